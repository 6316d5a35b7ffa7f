"""
vaultsense.exporter
Canonical export: a JSON array that the JSON importer reads back unchanged.
"""

import json
from typing import Any, Dict, List, Sequence

from .errors import ParseError
from .importer import new_record_id, parse_json
from .models import CredentialRecord, format_timestamp, parse_timestamp, utcnow

EXPORT_KEYS = ("title", "username", "email", "password", "websiteUrl", "category", "notes", "createdAt")


def export_record(record: CredentialRecord) -> Dict[str, str]:
    created = record.created_at or record.last_modified
    return {
        "title": record.title,
        "username": record.username,
        "email": record.email,
        "password": record.secret,
        "websiteUrl": record.website_url,
        "category": record.category,
        "notes": record.notes,
        "createdAt": format_timestamp(created),
    }


def export_records(records: Sequence[CredentialRecord]) -> List[Dict[str, str]]:
    return [export_record(r) for r in records]


def dump_export(records: Sequence[CredentialRecord]) -> bytes:
    return json.dumps(export_records(records), ensure_ascii=False, indent=2).encode("utf-8")


def _timestamp(item: Dict[str, Any], *keys: str):
    for k in keys:
        if item.get(k):
            try:
                return parse_timestamp(item[k])
            except ValueError as e:
                raise ParseError(f"Invalid {k} timestamp: {item[k]!r}") from e
    return None


def records_from_export(content: bytes, owner_id: str = "") -> List[CredentialRecord]:
    """
    Read an export back as records for analysis. `updatedAt` is used as the
    modification time when present, else `createdAt`, else now.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8 text: {e}") from e
    candidates = parse_json(text)
    items = json.loads(text)

    records = []
    for candidate, item in zip(candidates, items):
        created = _timestamp(item, "createdAt")
        modified = _timestamp(item, "updatedAt") or created or utcnow()
        records.append(CredentialRecord(
            id=str(item.get("id") or new_record_id()),
            title=candidate.title,
            secret=candidate.secret,
            category=candidate.category,
            last_modified=modified,
            username=candidate.username,
            email=candidate.email,
            website_url=candidate.website_url,
            notes=candidate.notes,
            created_at=created,
            owner_id=owner_id,
        ))
    return records
