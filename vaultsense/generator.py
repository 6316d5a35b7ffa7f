"""
vaultsense.generator
Constrained password generator. Randomness comes from an injected source
(default: secrets.SystemRandom) so tests can pass a seeded random.Random.
"""

import enum
import string
from dataclasses import dataclass
from secrets import SystemRandom
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from .errors import InvalidRequest


DEFAULT_SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
# visually ambiguous glyphs dropped when exclude_ambiguous_lookalikes is set
LOOKALIKES = frozenset("il1Lo0O")

_sysrand = SystemRandom()


class CharClass(enum.Enum):
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    DIGIT = "digit"
    SYMBOL = "symbol"

    @property
    def glyphs(self) -> str:
        return _POOLS[self]

    def pool(self, exclude_lookalikes: bool = False) -> str:
        if exclude_lookalikes:
            return "".join(c for c in self.glyphs if c not in LOOKALIKES)
        return self.glyphs


_POOLS = {
    CharClass.UPPERCASE: string.ascii_uppercase,
    CharClass.LOWERCASE: string.ascii_lowercase,
    CharClass.DIGIT: string.digits,
    CharClass.SYMBOL: DEFAULT_SYMBOLS,
}

# guarantee step draws in this order before the shuffle
CLASS_ORDER = (CharClass.UPPERCASE, CharClass.LOWERCASE, CharClass.DIGIT, CharClass.SYMBOL)


@dataclass(frozen=True)
class GenerationRequest:
    length: int = 16
    classes: FrozenSet[CharClass] = frozenset(CLASS_ORDER)
    exclude_ambiguous_lookalikes: bool = False

    @classmethod
    def of(cls, length: int, classes: Iterable[CharClass], exclude_ambiguous_lookalikes: bool = False) -> "GenerationRequest":
        return cls(length=length, classes=frozenset(classes), exclude_ambiguous_lookalikes=exclude_ambiguous_lookalikes)

    @classmethod
    def from_settings(cls, cfg: Dict[str, Any]) -> "GenerationRequest":
        """Build a request from user settings (see config.DEFAULTS)."""
        flags = {
            CharClass.UPPERCASE: cfg.get("include_uppercase", True),
            CharClass.LOWERCASE: cfg.get("include_lowercase", True),
            CharClass.DIGIT: cfg.get("include_numbers", True),
            CharClass.SYMBOL: cfg.get("include_symbols", True),
        }
        return cls.of(
            int(cfg.get("password_length", 16)),
            [c for c, on in flags.items() if on],
            bool(cfg.get("exclude_similar", False)),
        )

    def ordered_classes(self) -> List[CharClass]:
        return [c for c in CLASS_ORDER if c in self.classes]

    def alphabet(self) -> str:
        return "".join(c.pool(self.exclude_ambiguous_lookalikes) for c in self.ordered_classes())

    def validate(self) -> None:
        if not self.classes:
            raise InvalidRequest("At least one character set must be enabled")
        if self.length < 1:
            raise InvalidRequest("length must be > 0")
        if self.length < len(self.classes):
            raise InvalidRequest("length too small for the requested character classes")


def generate(request: GenerationRequest, rng: Optional[Any] = None) -> str:
    """
    Generate a password satisfying `request`.

    Every enabled class is represented at least once; the remaining positions
    are sampled uniformly from the working alphabet, then the whole password
    is shuffled so the guaranteed characters are not clustered at the start.
    """
    request.validate()
    rng = rng or _sysrand

    password_chars = []
    for cls in request.ordered_classes():
        password_chars.append(rng.choice(cls.pool(request.exclude_ambiguous_lookalikes)))

    all_chars = request.alphabet()
    for _ in range(request.length - len(password_chars)):
        password_chars.append(rng.choice(all_chars))

    rng.shuffle(password_chars)
    return "".join(password_chars)


def generate_password(
    length: int = 16,
    use_upper: bool = True,
    use_lower: bool = True,
    use_digits: bool = True,
    use_symbols: bool = True,
    exclude_similar: bool = False,
    rng: Optional[Any] = None,
) -> str:
    flags = [
        (CharClass.UPPERCASE, use_upper),
        (CharClass.LOWERCASE, use_lower),
        (CharClass.DIGIT, use_digits),
        (CharClass.SYMBOL, use_symbols),
    ]
    request = GenerationRequest.of(length, [c for c, on in flags if on], exclude_similar)
    return generate(request, rng=rng)
