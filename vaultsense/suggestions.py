"""
vaultsense.suggestions

Turn scorer output into concrete, prioritized suggestions and produce
example replacement passwords (using generator) to demonstrate stronger choices.
"""

import logging
from typing import Any, Dict, List, Optional

from .evaluator import calculate_strength, detect_common_patterns, detect_repeated_chars
from .generator import GenerationRequest, generate
from .score import analyze_strength

logger = logging.getLogger(__name__)

STRONG_THRESHOLD = 80


def suggest_improvements(
    password: str,
    request: Optional[GenerationRequest] = None,
    examples: int = 1,
    rng: Optional[Any] = None,
) -> Dict:
    """
    Return a suggestion object combining both strength scales:
    {
        "score": int,          # 0..5
        "label": str,
        "strength": int,       # 0..100
        "suggestions": [str],  # most important first, no duplicates
        "examples": [str],     # generated replacements honoring `request`
    }
    """
    qualitative = analyze_strength(password)
    breakdown = calculate_strength(password)
    suggestions: List[str] = list(qualitative.suggestions)

    common = detect_common_patterns(password)
    if common:
        suggestions.insert(0, f"Avoid predictable sequences and words ({', '.join(common)}).")

    repeats = detect_repeated_chars(password)
    if repeats:
        suggestions.insert(0, f"Break up repeated characters ({', '.join(repeats)}).")

    if breakdown.score >= STRONG_THRESHOLD and not suggestions:
        suggestions.append("Your password looks strong. Keep it unique to this site.")

    request = request or GenerationRequest(length=max(16, len(password) + 4))
    produced: List[str] = []
    if breakdown.score < STRONG_THRESHOLD:
        for _ in range(examples):
            produced.append(generate(request, rng=rng))
        logger.debug("generated %d example password(s)", len(produced))

    return {
        "score": qualitative.score,
        "label": qualitative.label,
        "strength": breakdown.score,
        "suggestions": list(dict.fromkeys(suggestions)),  # unique-preserve-order
        "examples": produced,
    }
