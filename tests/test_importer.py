import json

import pytest

from vaultsense.errors import ParseError, StoreError
from vaultsense.importer import (
    TEMPLATES,
    check_upload,
    commit,
    detect_and_parse,
    preview,
)
from vaultsense.vault import MemoryStore


class FlakyStore(MemoryStore):
    """Fails on the titles it is told to."""

    def __init__(self, fail_titles):
        super().__init__()
        self.fail_titles = set(fail_titles)
        self.calls = []

    def create(self, record):
        self.calls.append(record.title)
        if record.title in self.fail_titles:
            raise StoreError("database unavailable")
        return super().create(record)


def test_json_name_fallback_and_default_category():
    content = json.dumps([{"name": "Gmail", "password": "x"}]).encode()
    [c] = detect_and_parse("export.json", content)
    assert c.title == "Gmail"
    assert c.category == "Personal"
    assert c.secret == "x"
    assert c.username == c.email == c.website_url == c.notes == ""

def test_json_field_synonyms():
    content = json.dumps([
        {"user": "bob", "url": "https://a.example", "note": "n", "password": "p1"},
        {"title": "T", "username": "u", "website": "https://b.example", "category": "Work", "notes": "x"},
    ]).encode()
    first, second = detect_and_parse("data.JSON", content)
    assert first.title == "Imported Password 1"
    assert first.username == "bob"
    assert first.website_url == "https://a.example"
    assert first.notes == "n"
    assert second.website_url == "https://b.example"
    assert second.category == "Work"
    assert second.secret == ""

def test_json_must_be_array():
    with pytest.raises(ParseError, match="array"):
        detect_and_parse("x.json", b'{"title": "a"}')

def test_malformed_json():
    with pytest.raises(ParseError):
        detect_and_parse("x.json", b"[{")

def test_csv_drops_rows_without_password():
    content = (
        "title,username,password,url,notes\n"
        "Gmail,john@example.com,mypassword123,https://gmail.com,Work email\n"
        "Empty,jane,,https://empty.example,\n"
        "Bank,jane,\"s3cret\",https://bank.example,\n"
    ).encode()
    candidates = detect_and_parse("export.csv", content)
    assert [c.title for c in candidates] == ["Gmail", "Bank"]
    assert candidates[1].secret == "s3cret"
    assert candidates[0].website_url == "https://gmail.com"
    assert candidates[0].notes == "Work email"

def test_csv_header_synonyms_and_title_fallback():
    content = (
        "URL , Name,User,Password,Folder\n"
        "https://site.example,,alice,pw1,\n"
        ",,bob,pw2,Banking\n"
    ).encode()
    first, second = detect_and_parse("chrome.csv", content)
    assert first.title == "https://site.example"
    assert first.username == "alice"
    assert first.category == "Personal"
    assert second.title == "Imported Password 2"
    assert second.category == "Banking"

def test_csv_unclosed_quote_stays_on_its_line():
    content = b'title,username,password\n"Quoted,u,p1\nB,u,p2\nC,u,p3\n'
    candidates = detect_and_parse("a.csv", content)
    assert [c.title for c in candidates] == ['"Quoted', "B", "C"]
    assert [c.secret for c in candidates] == ["p1", "p2", "p3"]

def test_csv_unclosed_quote_before_many_rows():
    rows = "".join(f"Site{i},user,pw{i}\n" for i in range(10000))
    content = ('title,username,password\n"Broken,u,p\n' + rows).encode()
    candidates = detect_and_parse("big.csv", content)
    assert len(candidates) == 10001
    assert candidates[-1].secret == "pw9999"

def test_csv_separator_only_row_counts_for_numbering():
    content = b"title,username,password\n,,\n,u,p\n"
    [c] = detect_and_parse("a.csv", content)
    assert c.title == "Imported Password 2"

def test_csv_unquotes_one_layer():
    content = b'title,password\r\n"""x""",  "pw"  \r\n'
    [c] = detect_and_parse("a.csv", content)
    assert c.title == '""x""'
    assert c.secret == "pw"

def test_csv_stray_carriage_return_is_parse_error():
    with pytest.raises(ParseError, match="row 2"):
        detect_and_parse("a.csv", b"title,password\nA\rB,pw\n")

def test_csv_too_short():
    with pytest.raises(ParseError):
        detect_and_parse("a.csv", b"title,password\n")

def test_generic_lines():
    content = (
        "Gmail\tjohn\tpw1\thttps://gmail.com\tsome\tnotes\n"
        "\n"
        "Forum;carol\n"
        "lonely-token\n"
        ",dave,pw3\n"
    ).encode()
    candidates = detect_and_parse("passwords.txt", content)
    assert len(candidates) == 3
    gmail, forum, blank = candidates
    assert gmail.secret == "pw1"
    assert gmail.website_url == "https://gmail.com"
    assert gmail.notes == "some notes"
    assert forum.username == forum.secret == "carol"
    assert forum.category == "Personal"
    assert blank.title == "Imported Password 4"

def test_unknown_extension_uses_line_parser():
    [c] = detect_and_parse("dump.log", b"a,b,c")
    assert (c.title, c.username, c.secret) == ("a", "b", "c")

def test_no_content_sniffing():
    # JSON content in a .txt file goes through the line parser
    candidates = detect_and_parse("x.txt", b'[{"title": "a", "password": "b"}]')
    assert candidates[0].title == '[{"title": "a"'

def test_invalid_utf8():
    with pytest.raises(ParseError):
        detect_and_parse("x.csv", b"\xff\xfe\xfa")

def test_bom_is_ignored():
    [c] = detect_and_parse("a.csv", b"\xef\xbb\xbftitle,password\nA,B\n")
    assert c.title == "A"

def test_templates_parse():
    for fmt, (filename, content) in TEMPLATES.items():
        candidates = detect_and_parse(filename, content.encode("utf-8"))
        assert [c.title for c in candidates] == ["Gmail", "Facebook"], fmt

def test_check_upload():
    check_upload("a.csv", 100)
    check_upload("B.JSON", 10 * 1024 * 1024)
    with pytest.raises(ParseError):
        check_upload("a.xlsx", 100)
    with pytest.raises(ParseError):
        check_upload("a.txt", 10 * 1024 * 1024 + 1)

def test_preview_scores_candidates():
    candidates = detect_and_parse("a.csv", b"title,password\nA,password\nB,Tr0ub4dor&9!\n")
    scores = [s.score for _, s in preview(candidates)]
    assert scores[0] < 60 <= 80 <= scores[1]

def test_commit_partial_failure():
    candidates = detect_and_parse("a.csv", b"title,password\nA,1\nB,2\nC,3\n")
    store = FlakyStore({"B"})
    outcome = commit(candidates, store, "owner-1")
    assert (outcome.total, outcome.succeeded, outcome.failed) == (3, 2, 1)
    assert len(outcome.errors) == 1
    assert outcome.errors[0] == 'Failed to import "B": database unavailable'
    assert store.calls == ["A", "B", "C"]
    assert [r.title for r in store.list("owner-1")] == ["A", "C"]

def test_commit_records_shape():
    candidates = detect_and_parse("a.json", json.dumps([
        {"title": "T", "username": "u", "password": "p", "websiteUrl": "https://t.example", "category": "Work"}
    ]).encode())
    store = MemoryStore()
    commit(candidates, store, "me")
    [r] = store.list("me")
    assert r.id.startswith("pwd_")
    assert (r.title, r.username, r.secret, r.website_url, r.category) == ("T", "u", "p", "https://t.example", "Work")
    assert r.created_at == r.last_modified

def test_commit_progress_and_cancel():
    candidates = detect_and_parse("a.csv", b"title,password\nA,1\nB,2\nC,3\n")
    progress = []
    store = MemoryStore()
    outcome = commit(
        candidates, store, "o",
        should_cancel=lambda: len(progress) >= 2,
        on_progress=lambda done, total: progress.append((done, total)),
    )
    assert progress == [(1, 3), (2, 3)]
    assert outcome.total == 3
    assert outcome.succeeded == 2
    assert outcome.failed == 0
