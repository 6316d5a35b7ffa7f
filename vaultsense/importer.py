"""
vaultsense.importer

Parse password export files into ImportCandidate records and commit them to
a store one at a time.

Format is chosen by file extension only:
- .json  -> array of objects (parse_json)
- .csv   -> header-driven CSV (parse_csv)
- other  -> one entry per line, split on tab/comma/semicolon (parse_generic)
"""

import csv
import json
import logging
import os
import re
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import ParseError
from .evaluator import calculate_strength
from .models import CredentialRecord, ImportCandidate, ImportOutcome, StrengthBreakdown, utcnow

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Personal"
ACCEPTED_EXTENSIONS = (".csv", ".json", ".txt")
MAX_IMPORT_BYTES = 10 * 1024 * 1024

# lower-cased CSV header -> candidate field
HEADER_SYNONYMS = {
    "title": "title",
    "name": "title",
    "site": "title",
    "username": "username",
    "user": "username",
    "email": "email",
    "password": "secret",
    "url": "website_url",
    "website": "website_url",
    "websiteurl": "website_url",
    "category": "category",
    "folder": "category",
    "notes": "notes",
    "note": "notes",
}

_QUOTED = re.compile(r'^"(.*)"$', re.DOTALL)
_GENERIC_SPLIT = re.compile(r"[\t,;]")


def fallback_title(index: int) -> str:
    return f"Imported Password {index}"


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8 text: {e}") from e


def _first(item: Dict[str, Any], *keys: str) -> str:
    """First non-empty value among `keys`, as a string; '' when none is set."""
    for k in keys:
        v = item.get(k)
        if v:
            return v if isinstance(v, str) else str(v)
    return ""


def parse_json(text: str) -> List[ImportCandidate]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})") from e
    if not isinstance(data, list):
        raise ParseError("JSON must be an array of password objects")

    candidates = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(f"Entry {index + 1} is not a JSON object")
        candidates.append(ImportCandidate(
            title=_first(item, "title", "name") or fallback_title(index + 1),
            username=_first(item, "username", "user"),
            email=_first(item, "email"),
            secret=_first(item, "password"),
            website_url=_first(item, "websiteUrl", "url", "website"),
            category=_first(item, "category") or DEFAULT_CATEGORY,
            notes=_first(item, "notes", "note"),
        ))
    return candidates


def _clean(value: str) -> str:
    value = value.strip()
    m = _QUOTED.match(value)
    return m.group(1) if m else value


def _split_line(line: str, lineno: int) -> List[str]:
    # quotes are ordinary characters here; _clean removes one surrounding pair
    try:
        return next(csv.reader([line.rstrip("\r")], quoting=csv.QUOTE_NONE), [])
    except csv.Error as e:
        raise ParseError(f"CSV row {lineno}: {e}") from e


def parse_csv(text: str) -> List[ImportCandidate]:
    """
    One record per non-blank line; the first one is the header. Rows without
    a password are skipped silently; rows without a title use the URL, then a
    name numbered by the row's position among the non-blank lines.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        raise ParseError("CSV must have at least a header row and one data row")

    fields = [HEADER_SYNONYMS.get(h.strip().lower()) for h in _split_line(lines[0], 1)]
    candidates = []
    skipped = 0
    for index, line in enumerate(lines[1:], start=1):
        row = _split_line(line, index + 1)
        values: Dict[str, str] = {}
        for pos, name in enumerate(fields):
            if name is None:
                continue
            values[name] = _clean(row[pos]) if pos < len(row) else ""

        if not values.get("secret"):
            skipped += 1
            continue
        candidates.append(ImportCandidate(
            title=values.get("title") or values.get("website_url") or fallback_title(index),
            username=values.get("username", ""),
            email=values.get("email", ""),
            secret=values["secret"],
            website_url=values.get("website_url", ""),
            category=values.get("category") or DEFAULT_CATEGORY,
            notes=values.get("notes", ""),
        ))
    if skipped:
        logger.info("skipped %d CSV row(s) without a password", skipped)
    return candidates


def parse_generic(text: str) -> List[ImportCandidate]:
    """title, username, password, url, notes... separated by tab, comma or semicolon."""
    lines = [line for line in text.splitlines() if line.strip()]
    candidates = []
    for index, line in enumerate(lines):
        parts = [p.strip() for p in _GENERIC_SPLIT.split(line)]
        if len(parts) < 2:
            continue
        candidates.append(ImportCandidate(
            title=parts[0] or fallback_title(index + 1),
            username=parts[1],
            secret=parts[2] if len(parts) > 2 and parts[2] else parts[1],
            website_url=parts[3] if len(parts) > 3 else "",
            category=DEFAULT_CATEGORY,
            notes=" ".join(parts[4:]),
        ))
    return candidates


def detect_and_parse(filename: str, content: bytes) -> List[ImportCandidate]:
    """Pick a parser from the extension of `filename` and parse `content`."""
    ext = os.path.splitext(filename.lower())[1]
    text = _decode(content)
    if ext == ".json":
        candidates = parse_json(text)
    elif ext == ".csv":
        candidates = parse_csv(text)
    else:
        candidates = parse_generic(text)
    logger.info("parsed %d candidate(s) from %s", len(candidates), filename)
    return candidates


def check_upload(filename: str, size: int, max_bytes: int = MAX_IMPORT_BYTES) -> None:
    """File policy applied by callers before parsing. Raises ParseError."""
    ext = os.path.splitext(filename.lower())[1]
    if ext not in ACCEPTED_EXTENSIONS:
        raise ParseError("Please select a CSV, JSON, or TXT file")
    if size > max_bytes:
        raise ParseError(f"Please select a file smaller than {max_bytes // (1024 * 1024)}MB")


def preview(candidates: Sequence[ImportCandidate]) -> List[Tuple[ImportCandidate, StrengthBreakdown]]:
    return [(c, calculate_strength(c.secret)) for c in candidates]


def new_record_id() -> str:
    return f"pwd_{uuid.uuid4().hex}"


def to_record(candidate: ImportCandidate, owner_id: str, now=None) -> CredentialRecord:
    now = now or utcnow()
    return CredentialRecord(
        id=new_record_id(),
        title=candidate.title,
        secret=candidate.secret,
        category=candidate.category,
        last_modified=now,
        username=candidate.username,
        email=candidate.email,
        website_url=candidate.website_url,
        notes=candidate.notes,
        created_at=now,
        owner_id=owner_id,
    )


def commit(
    candidates: Sequence[ImportCandidate],
    store,
    owner_id: str,
    should_cancel: Optional[Callable[[], bool]] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
    clock: Optional[Callable[[], Any]] = None,
) -> ImportOutcome:
    """
    Create each candidate in `store`, in order, one at a time.

    A failing record is counted and described in the outcome; the remaining
    records are still attempted. `should_cancel` is checked before each record.
    """
    clock = clock or utcnow
    total = len(candidates)
    succeeded = failed = 0
    errors: List[str] = []

    for done, candidate in enumerate(candidates, start=1):
        if should_cancel is not None and should_cancel():
            logger.info("import cancelled after %d of %d record(s)", done - 1, total)
            break
        try:
            store.create(to_record(candidate, owner_id, clock()))
            succeeded += 1
        except Exception as e:
            failed += 1
            errors.append(f'Failed to import "{candidate.title}": {e}')
            logger.warning("failed to import %r: %s", candidate.title, e)
        if on_progress is not None:
            on_progress(done, total)

    logger.info("imported %d of %d record(s), %d failed", succeeded, total, failed)
    return ImportOutcome(total=total, succeeded=succeeded, failed=failed, errors=tuple(errors))


TEMPLATES = {
    "csv": (
        "password-template.csv",
        "title,username,password,url,notes\n"
        "Gmail,john@example.com,mypassword123,https://gmail.com,Work email\n"
        "Facebook,john@example.com,anotherpassword,https://facebook.com,Social media\n",
    ),
    "json": (
        "password-template.json",
        json.dumps([
            {
                "title": "Gmail",
                "username": "john@example.com",
                "password": "mypassword123",
                "websiteUrl": "https://gmail.com",
                "category": "Work",
                "notes": "Work email",
            },
            {
                "title": "Facebook",
                "username": "john@example.com",
                "password": "anotherpassword",
                "websiteUrl": "https://facebook.com",
                "category": "Social",
                "notes": "Social media",
            },
        ], indent=2),
    ),
    "txt": (
        "password-template.txt",
        "Gmail\tjohn@example.com\tmypassword123\thttps://gmail.com\tWork email\n"
        "Facebook\tjohn@example.com\tanotherpassword\thttps://facebook.com\tSocial media\n",
    ),
}
