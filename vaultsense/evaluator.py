"""
vaultsense.evaluator

Password feature extraction and the quantitative (0-100) strength scale:
- extract_features(password): length, character-class flags, repeated
  characters, common patterns
- detect_repeated_chars / detect_common_patterns: the individual detectors
- calculate_strength(password): StrengthBreakdown with score 0..100 and the
  four class flags used by UI breakdowns

The qualitative 0-5 scale in vaultsense.score projects from the same
features, so both scales always agree on what a password contains.
"""

import re
from dataclasses import dataclass
from typing import List

from .models import StrengthBreakdown

# case-insensitive substrings that mark a password as predictable
COMMON_PATTERNS = ("123", "abc", "qwe", "password", "admin")

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(r"[^a-zA-Z0-9]")
_REPEAT = re.compile(r"(.)\1{2,}", re.DOTALL)
_COMMON = re.compile("|".join(re.escape(p) for p in COMMON_PATTERNS), re.IGNORECASE)

# quantitative weights
LENGTH_STEPS = ((16, 30), (12, 25), (8, 15), (6, 10))
LENGTH_FLOOR = 5
CLASS_WEIGHTS = {"upper": 15, "lower": 15, "digit": 15, "symbol": 25}
VARIETY_BONUS = 10
REPEAT_PENALTY = 10
COMMON_PENALTY = 20


@dataclass(frozen=True)
class PasswordFeatures:
    length: int
    has_upper: bool
    has_lower: bool
    has_digit: bool
    has_symbol: bool
    has_repeats: bool
    has_common_pattern: bool

    @property
    def class_count(self) -> int:
        return sum((self.has_upper, self.has_lower, self.has_digit, self.has_symbol))


def detect_repeated_chars(password: str) -> List[str]:
    """Return runs of one character repeated 3 or more times, e.g. 'aaa'."""
    return [m.group(0) for m in _REPEAT.finditer(password)]


def detect_common_patterns(password: str) -> List[str]:
    """Return the common patterns (lower-cased) found anywhere in the password."""
    lower = password.lower()
    return [p for p in COMMON_PATTERNS if p in lower]


def extract_features(password: str) -> PasswordFeatures:
    return PasswordFeatures(
        length=len(password),
        has_upper=bool(_UPPER.search(password)),
        has_lower=bool(_LOWER.search(password)),
        has_digit=bool(_DIGIT.search(password)),
        has_symbol=bool(_SYMBOL.search(password)),
        has_repeats=bool(_REPEAT.search(password)),
        has_common_pattern=bool(_COMMON.search(password)),
    )


def _length_points(length: int) -> int:
    for threshold, points in LENGTH_STEPS:
        if length >= threshold:
            return points
    return LENGTH_FLOOR


def calculate_strength(password: str) -> StrengthBreakdown:
    """
    Score a password on the 0-100 scale.

    length staircase + per-class weights + variety bonus (3+ and 4 classes)
    - repeated-character and common-pattern penalties, clamped to [0, 100].
    """
    f = extract_features(password)
    score = _length_points(f.length)

    if f.has_upper:
        score += CLASS_WEIGHTS["upper"]
    if f.has_lower:
        score += CLASS_WEIGHTS["lower"]
    if f.has_digit:
        score += CLASS_WEIGHTS["digit"]
    if f.has_symbol:
        score += CLASS_WEIGHTS["symbol"]

    if f.class_count >= 3:
        score += VARIETY_BONUS
    if f.class_count == 4:
        score += VARIETY_BONUS

    if f.has_repeats:
        score -= REPEAT_PENALTY
    if f.has_common_pattern:
        score -= COMMON_PENALTY

    score = max(0, min(100, score))
    return StrengthBreakdown(
        score=score,
        has_upper=f.has_upper,
        has_lower=f.has_lower,
        has_digit=f.has_digit,
        has_symbol=f.has_symbol,
    )
