from typing import List

from .evaluator import extract_features
from .models import StrengthResult

# indexed by score; a score past the end of the table falls back to the first label
STRENGTH_LABELS = ("Very Weak", "Weak", "Fair", "Good", "Strong")

MIN_LENGTH_HINT = "Use at least 8 characters"


def label_for(score: int) -> str:
    if 0 <= score < len(STRENGTH_LABELS):
        return STRENGTH_LABELS[score]
    return STRENGTH_LABELS[0]


def analyze_strength(password: str) -> StrengthResult:
    """
    Scores the strength of a password on a scale of 0-5 and returns score,
    label and the hints for every missing requirement.
    """
    f = extract_features(password)
    score = 0
    suggestions: List[str] = []

    # --- Length ---
    if f.length >= 12:
        score += 2
    elif f.length >= 8:
        score += 1
    else:
        suggestions.append(MIN_LENGTH_HINT)

    # --- Character variety ---
    for present, hint in (
        (f.has_lower, "Include lowercase letters"),
        (f.has_upper, "Include uppercase letters"),
        (f.has_digit, "Include numbers"),
        (f.has_symbol, "Include special characters"),
    ):
        if present:
            score += 1
        else:
            suggestions.append(hint)

    # --- Bonuses ---
    if f.length >= 16:
        score += 1
    # symbols count twice: once for variety, once as a bonus
    if f.has_symbol:
        score += 1

    # --- Penalties ---
    if f.has_repeats:
        score -= 1
    if f.has_common_pattern:
        score -= 2

    score = max(0, min(5, score))
    return StrengthResult(score=score, label=label_for(score), suggestions=suggestions)
