"""
vaultsense.models

Plain in-memory records exchanged between the engine and its callers.
"""

import datetime
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple


def parse_timestamp(value: Any) -> datetime.datetime:
    """Accept a datetime or an ISO-8601 string (with or without a trailing 'Z')."""
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, str) and value:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.datetime.fromisoformat(value)
    raise ValueError(f"Not a timestamp: {value!r}")


def format_timestamp(value: datetime.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.isoformat()


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class StrengthResult:
    """Qualitative 0-5 strength with a label and improvement hints."""
    score: int
    label: str
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StrengthBreakdown:
    """Quantitative 0-100 strength with the character-class flags behind it."""
    score: int
    has_upper: bool
    has_lower: bool
    has_digit: bool
    has_symbol: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CredentialRecord:
    """A stored credential as handed over by the store. The engine never mutates it."""
    id: str
    title: str
    secret: str
    category: str = "Personal"
    last_modified: datetime.datetime = field(default_factory=utcnow)
    username: str = ""
    email: str = ""
    website_url: str = ""
    notes: str = ""
    created_at: Optional[datetime.datetime] = None
    owner_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["last_modified"] = format_timestamp(self.last_modified)
        d["created_at"] = format_timestamp(self.created_at) if self.created_at else None
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CredentialRecord":
        data = dict(data)
        data["last_modified"] = parse_timestamp(data.get("last_modified") or utcnow())
        if data.get("created_at"):
            data["created_at"] = parse_timestamp(data["created_at"])
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class ImportCandidate:
    """A parsed-but-not-yet-committed import entry."""
    title: str
    secret: str
    category: str = "Personal"
    username: str = ""
    email: str = ""
    website_url: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImportOutcome:
    """Result of committing a batch of candidates."""
    total: int
    succeeded: int
    failed: int
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["errors"] = list(self.errors)
        return d


@dataclass(frozen=True)
class HealthReport:
    """
    Aggregate vault health. Counts are computed once by health.analyze();
    the subset accessors re-run their filters over `records` on every call.
    """
    total: int
    weak_count: int
    duplicate_count: int
    stale_count: int
    strong_count: int
    composite_score: float
    records: Tuple[CredentialRecord, ...] = ()
    stale_before: Optional[datetime.datetime] = None

    def weak_records(self) -> List[CredentialRecord]:
        from .health import weak_records
        return weak_records(self.records)

    def duplicate_groups(self) -> List[List[CredentialRecord]]:
        from .health import duplicate_groups
        return duplicate_groups(self.records)

    def duplicate_records(self) -> List[CredentialRecord]:
        from .health import duplicate_records
        return duplicate_records(self.records)

    def stale_records(self) -> List[CredentialRecord]:
        from .health import stale_records
        return stale_records(self.records, self.stale_before)

    def summary(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "weak": self.weak_count,
            "duplicate": self.duplicate_count,
            "stale": self.stale_count,
            "strong": self.strong_count,
            "score": self.composite_score,
        }
