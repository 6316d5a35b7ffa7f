import os
import json
from typing import Any


def app_dir() -> str:
    """
    Windows %APPDATA%/VaultSense; fallback to ~/.vaultsense elsewhere.
    """
    appdata = os.getenv("APPDATA")
    if appdata:
        return os.path.join(appdata, "VaultSense")
    return os.path.join(os.path.expanduser("~"), ".vaultsense")


def default_vault_path() -> str:
    return os.path.join(app_dir(), "vault.bin")


def ensure_dir_exists(path: str) -> None:
    d = os.path.dirname(path)
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def atomic_write_bytes(path: str, data: bytes) -> None:
    """
    Atomically write bytes to 'path' by writing to a temp file and renaming.
    """
    ensure_dir_exists(path)
    tmp = path + ".tmp"
    with open(tmp, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


def read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def read_json_bytes(b: bytes) -> Any:
    return json.loads(b.decode("utf-8"))


def dump_json_bytes(obj: Any) -> bytes:
    return json.dumps(obj, ensure_ascii=False, indent=None).encode("utf-8")
