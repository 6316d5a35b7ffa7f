import datetime
import json

import pytest

from vaultsense.errors import ParseError
from vaultsense.exporter import EXPORT_KEYS, dump_export, export_records, records_from_export
from vaultsense.importer import detect_and_parse
from vaultsense.models import CredentialRecord

CREATED = datetime.datetime(2025, 5, 1, tzinfo=datetime.timezone.utc)


def sample():
    return [
        CredentialRecord(id="1", title="Gmail", secret="pw1", category="Work", username="john",
                         email="john@example.com", website_url="https://gmail.com", notes="n",
                         created_at=CREATED, last_modified=CREATED),
        CredentialRecord(id="2", title="Bank", secret="pw2", last_modified=CREATED),
    ]


def test_export_shape():
    exported = export_records(sample())
    assert all(tuple(item) == EXPORT_KEYS for item in exported)
    assert exported[0]["password"] == "pw1"
    assert exported[0]["websiteUrl"] == "https://gmail.com"
    assert exported[1]["createdAt"] == CREATED.isoformat()

def test_export_round_trips_through_json_import():
    candidates = detect_and_parse("export.json", dump_export(sample()))
    assert [(c.title, c.secret, c.category) for c in candidates] == [
        ("Gmail", "pw1", "Work"),
        ("Bank", "pw2", "Personal"),
    ]
    assert candidates[0].email == "john@example.com"
    assert candidates[0].notes == "n"

def test_records_from_export_uses_timestamps():
    data = json.dumps([
        {"title": "A", "password": "x", "createdAt": "2024-01-01T00:00:00Z"},
        {"title": "B", "password": "y", "createdAt": "2024-01-01T00:00:00Z", "updatedAt": "2026-01-01T00:00:00Z"},
    ]).encode()
    a, b = records_from_export(data)
    assert a.last_modified == datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
    assert b.last_modified.year == 2026
    assert a.created_at == b.created_at

def test_records_from_export_bad_timestamp():
    with pytest.raises(ParseError):
        records_from_export(b'[{"title": "A", "password": "x", "createdAt": "yesterday"}]')
