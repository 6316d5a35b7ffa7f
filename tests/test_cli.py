import json
import os
import tempfile

from vaultsense import cli


def write_config(td):
    path = os.path.join(td, "config.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump({
            "vault_path": os.path.join(td, "vault.bin"),
            "kdf": {"time_cost": 1, "memory_cost_kb": 8192, "parallelism": 1},
        }, f)
    return path


def test_generate(capsys):
    with tempfile.TemporaryDirectory() as td:
        assert cli.main(["--config", write_config(td), "generate", "--length", "12", "--copies", "2"]) == 0
    out = capsys.readouterr().out
    assert "Password #1:" in out and "Password #2:" in out

def test_generate_invalid(capsys):
    with tempfile.TemporaryDirectory() as td:
        code = cli.main(["--config", write_config(td), "generate", "--length", "2"])
    assert code == 1
    assert "Error" in capsys.readouterr().out

def test_score(capsys):
    with tempfile.TemporaryDirectory() as td:
        cli.main(["--config", write_config(td), "score", "password"])
    out = capsys.readouterr().out
    assert "Very Weak" in out
    assert "Suggestions" in out

def test_import_then_health(monkeypatch, capsys):
    monkeypatch.setattr(cli, "getpass", lambda prompt="": "master-pw")
    with tempfile.TemporaryDirectory() as td:
        cfg = write_config(td)
        src = os.path.join(td, "export.csv")
        with open(src, "w", encoding="utf-8") as f:
            f.write("title,username,password\nGmail,john,abc123\nBank,john,abc123\nMail,john,\n")

        assert cli.main(["--config", cfg, "vault", "create"]) == 0
        assert cli.main(["--config", cfg, "import", src, "--yes"]) == 0
        out = capsys.readouterr().out
        assert "Found 2 passwords to import" in out
        assert "Successfully imported 2 of 2 passwords" in out

        assert cli.main(["--config", cfg, "health"]) == 0
        out = capsys.readouterr().out
        assert "Reused: 2" in out
        assert "Weak: 2" in out

        export = os.path.join(td, "out.json")
        assert cli.main(["--config", cfg, "export", "--output", export]) == 0
        with open(export, encoding="utf-8") as f:
            assert [item["title"] for item in json.load(f)] == ["Gmail", "Bank"]

def test_import_dry_run(capsys):
    with tempfile.TemporaryDirectory() as td:
        src = os.path.join(td, "list.txt")
        with open(src, "w", encoding="utf-8") as f:
            f.write("Gmail;john;pw1\nForum;carol\n")
        assert cli.main(["--config", write_config(td), "import", src, "--dry-run"]) == 0
    assert "Found 2 passwords to import" in capsys.readouterr().out

def test_wrong_master_password(monkeypatch, capsys):
    with tempfile.TemporaryDirectory() as td:
        cfg = write_config(td)
        monkeypatch.setattr(cli, "getpass", lambda prompt="": "Right-Horse-42")
        cli.main(["--config", cfg, "vault", "create"])
        monkeypatch.setattr(cli, "getpass", lambda prompt="": "wrong")
        assert cli.main(["--config", cfg, "vault", "list"]) == 1
    assert "Incorrect master password" in capsys.readouterr().out

def test_vault_create_rejects_weak_master(monkeypatch, capsys):
    with tempfile.TemporaryDirectory() as td:
        cfg = write_config(td)
        monkeypatch.setattr(cli, "getpass", lambda prompt="": "abc")
        assert cli.main(["--config", cfg, "vault", "create"]) == 1
        assert not os.path.exists(os.path.join(td, "vault.bin"))
    assert "at least 8 characters" in capsys.readouterr().out

def test_vault_create_rejects_mismatched_confirmation(monkeypatch, capsys):
    answers = iter(["Right-Horse-42", "Right-Horse-43"])
    with tempfile.TemporaryDirectory() as td:
        cfg = write_config(td)
        monkeypatch.setattr(cli, "getpass", lambda prompt="": next(answers))
        assert cli.main(["--config", cfg, "vault", "create"]) == 1
        assert not os.path.exists(os.path.join(td, "vault.bin"))
    assert "do not match" in capsys.readouterr().out

def test_changepw_rejects_weak_new_master(monkeypatch, capsys):
    with tempfile.TemporaryDirectory() as td:
        cfg = write_config(td)
        monkeypatch.setattr(cli, "getpass", lambda prompt="": "Right-Horse-42")
        assert cli.main(["--config", cfg, "vault", "create"]) == 0
        answers = iter(["Right-Horse-42", "password", "password"])
        monkeypatch.setattr(cli, "getpass", lambda prompt="": next(answers))
        assert cli.main(["--config", cfg, "vault", "changepw"]) == 1
        monkeypatch.setattr(cli, "getpass", lambda prompt="": "Right-Horse-42")
        assert cli.main(["--config", cfg, "vault", "list"]) == 0
    assert "too weak" in capsys.readouterr().out
