"""
vaultsense.health

Vault-wide health analysis: weak, duplicated and stale secrets rolled into a
single composite score. Every call works on the records it is given and
keeps nothing between calls.
"""

import calendar
import datetime
import logging
from typing import Dict, List, Optional, Sequence

from .evaluator import calculate_strength
from .models import CredentialRecord, HealthReport, utcnow

logger = logging.getLogger(__name__)

WEAK_BELOW = 60
STRONG_FROM = 80
DEFAULT_STALE_MONTHS = 6

# composite score weights
WEAK_WEIGHT = 40
DUPLICATE_WEIGHT = 30
STALE_WEIGHT = 20
STRONG_WEIGHT = 10


def months_ago(now: datetime.datetime, months: int) -> datetime.datetime:
    """
    Step back `months` calendar months from `now`. The day is clamped to the
    length of the target month (Aug 31 minus 6 months is Feb 28/29).
    """
    index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def _aware(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def is_weak(record: CredentialRecord) -> bool:
    return calculate_strength(record.secret).score < WEAK_BELOW


def is_strong(record: CredentialRecord) -> bool:
    return calculate_strength(record.secret).score >= STRONG_FROM


def is_stale(record: CredentialRecord, stale_before: datetime.datetime) -> bool:
    return _aware(record.last_modified) < _aware(stale_before)


def weak_records(records: Sequence[CredentialRecord]) -> List[CredentialRecord]:
    return [r for r in records if is_weak(r)]


def duplicate_groups(records: Sequence[CredentialRecord]) -> List[List[CredentialRecord]]:
    """Records sharing a secret, grouped in order of the secret's first appearance."""
    groups: Dict[str, List[CredentialRecord]] = {}
    for r in records:
        groups.setdefault(r.secret, []).append(r)
    return [g for g in groups.values() if len(g) > 1]


def duplicate_records(records: Sequence[CredentialRecord]) -> List[CredentialRecord]:
    return [r for group in duplicate_groups(records) for r in group]


def stale_records(
    records: Sequence[CredentialRecord],
    stale_before: Optional[datetime.datetime] = None,
) -> List[CredentialRecord]:
    if stale_before is None:
        stale_before = months_ago(utcnow(), DEFAULT_STALE_MONTHS)
    return [r for r in records if is_stale(r, stale_before)]


def composite_score(total: int, weak: int, duplicate: int, stale: int, strong: int) -> float:
    if total == 0:
        return 0.0
    score = (
        100
        - WEAK_WEIGHT * weak / total
        - DUPLICATE_WEIGHT * duplicate / total
        - STALE_WEIGHT * stale / total
        + STRONG_WEIGHT * strong / total
    )
    return max(0.0, min(100.0, score))


def analyze(
    records: Sequence[CredentialRecord],
    now: Optional[datetime.datetime] = None,
    stale_after_months: int = DEFAULT_STALE_MONTHS,
) -> HealthReport:
    """Compute a fresh HealthReport for `records`."""
    records = tuple(records)
    stale_before = months_ago(_aware(now or utcnow()), stale_after_months)

    weak = strong = stale = 0
    for r in records:
        score = calculate_strength(r.secret).score
        if score < WEAK_BELOW:
            weak += 1
        elif score >= STRONG_FROM:
            strong += 1
        if is_stale(r, stale_before):
            stale += 1
    duplicate = sum(len(g) for g in duplicate_groups(records))

    total = len(records)
    report = HealthReport(
        total=total,
        weak_count=weak,
        duplicate_count=duplicate,
        stale_count=stale,
        strong_count=strong,
        composite_score=composite_score(total, weak, duplicate, stale, strong),
        records=records,
        stale_before=stale_before,
    )
    logger.debug(
        "analyzed %d records: weak=%d duplicate=%d stale=%d strong=%d score=%.1f",
        total, weak, duplicate, stale, strong, report.composite_score,
    )
    return report
