"""
vaultsense.vault
Store collaborators: the interface the engine consumes, an in-memory
implementation and an Argon2id + AES-GCM encrypted local vault file.
"""

import base64
import copy
import json
import logging
from typing import Any, Dict, List, Optional, Protocol

from .crypto import SALT_SIZE, CryptoContext
from .errors import InvalidRequest, StoreError
from .models import CredentialRecord, utcnow
from .score import analyze_strength
from .storage import atomic_write_bytes, read_bytes, default_vault_path, dump_json_bytes, read_json_bytes

logger = logging.getLogger(__name__)

VAULT_VERSION = 2
MIN_MASTER_LENGTH = 8
MIN_MASTER_SCORE = 3


class Store(Protocol):
    def list(self, owner_id: str) -> List[CredentialRecord]: ...

    def create(self, record: CredentialRecord) -> str: ...

    def update(self, record_id: str, partial: Dict[str, Any]) -> None: ...

    def delete(self, record_id: str) -> None: ...


def _apply(record: CredentialRecord, partial: Dict[str, Any]) -> CredentialRecord:
    data = record.to_dict()
    for k, v in partial.items():
        if k not in data or k == "id":
            raise StoreError(f"Unknown or read-only field: {k}")
        data[k] = v
    if "last_modified" not in partial:
        data["last_modified"] = utcnow()
    return CredentialRecord.from_dict(data)


class MemoryStore:
    """Records kept in a dict, in insertion order."""

    def __init__(self, records: Optional[List[CredentialRecord]] = None):
        self._records: Dict[str, CredentialRecord] = {}
        for r in records or []:
            self.create(r)

    def list(self, owner_id: str) -> List[CredentialRecord]:
        return [copy.copy(r) for r in self._records.values() if r.owner_id == owner_id]

    def create(self, record: CredentialRecord) -> str:
        if record.id in self._records:
            raise StoreError(f"Duplicate record id: {record.id}")
        self._records[record.id] = copy.copy(record)
        return record.id

    def update(self, record_id: str, partial: Dict[str, Any]) -> None:
        if record_id not in self._records:
            raise StoreError(f"No such record: {record_id}")
        self._records[record_id] = _apply(self._records[record_id], partial)

    def delete(self, record_id: str) -> None:
        if self._records.pop(record_id, None) is None:
            raise StoreError(f"No such record: {record_id}")


def check_master_password(password: str, confirm: Optional[str] = None) -> None:
    """
    Reject a master password shorter than MIN_MASTER_LENGTH or scoring below
    MIN_MASTER_SCORE on the 0-5 scale. `confirm`, when given, must match.
    """
    if len(password) < MIN_MASTER_LENGTH:
        raise InvalidRequest(f"Master password must be at least {MIN_MASTER_LENGTH} characters")
    result = analyze_strength(password)
    if result.score < MIN_MASTER_SCORE:
        hints = "; ".join(result.suggestions)
        raise InvalidRequest(f"Master password is too weak ({result.label})" + (f": {hints}" if hints else ""))
    if confirm is not None and password != confirm:
        raise InvalidRequest("Master passwords do not match")


def _wrap(context: CryptoContext, data: Dict[str, Any]) -> bytes:
    nonce, ciphertext = context.encrypt(dump_json_bytes(data))
    kdf = context.kdf_params
    wrapper = {
        "version": VAULT_VERSION,
        "kdf": {
            "type": "argon2id",
            "time_cost": kdf["time_cost"],
            "memory_cost_kb": kdf["memory_cost_kb"],
            "parallelism": kdf["parallelism"],
            "salt": base64.b64encode(context.salt).decode("ascii")
        },
        "cipher": {
            "nonce": base64.b64encode(nonce).decode("ascii"),
            "ciphertext": base64.b64encode(ciphertext).decode("ascii")
        }
    }
    return dump_json_bytes(wrapper)


def _load_wrapper(path: str) -> Dict[str, Any]:
    try:
        wrapper = read_json_bytes(read_bytes(path))
    except FileNotFoundError as e:
        raise StoreError(f"Vault not found at {path}") from e
    except (ValueError, UnicodeDecodeError) as e:
        raise StoreError("Invalid vault format") from e
    if not isinstance(wrapper, dict) or not isinstance(wrapper.get("kdf", {}), dict) \
            or not isinstance(wrapper.get("cipher", {}), dict):
        raise StoreError("Invalid vault format")
    return wrapper


def create_vault(master_password: str, path: Optional[str] = None,
                 kdf_params: Optional[Dict[str, int]] = None) -> CryptoContext:
    """
    Create a new empty vault at `path` and return the unlocked context for it.
    """
    check_master_password(master_password)
    path = path or default_vault_path()
    context = CryptoContext.from_password(master_password, kdf_params=kdf_params)
    atomic_write_bytes(path, _wrap(context, {"records": []}))
    logger.info("created vault at %s", path)
    return context


def unlock(master_password: str, path: Optional[str] = None) -> CryptoContext:
    """
    Derive the key for an existing vault and check it against the ciphertext.
    Raises StoreError on an incorrect password or a corrupted vault.
    """
    path = path or default_vault_path()
    wrapper = _load_wrapper(path)
    kdf = wrapper.get("kdf", {})
    salt_b64 = kdf.get("salt")
    if not salt_b64:
        raise StoreError("Invalid vault format: missing salt")
    try:
        salt = base64.b64decode(salt_b64, validate=True)
    except (ValueError, TypeError) as e:
        raise StoreError("Invalid vault format: bad salt") from e
    if len(salt) != SALT_SIZE:
        raise StoreError("Invalid vault format: bad salt")
    params = {k: kdf[k] for k in ("time_cost", "memory_cost_kb", "parallelism") if k in kdf}
    context = CryptoContext.from_password(master_password, salt, params)
    open_vault(context, path)
    return context


def open_vault(context: CryptoContext, path: Optional[str] = None) -> Dict[str, Any]:
    """
    Decrypt and return the vault plaintext dict, e.g. {"records": [...]}.
    """
    path = path or default_vault_path()
    wrapper = _load_wrapper(path)
    cipher = wrapper.get("cipher", {})
    try:
        nonce = base64.b64decode(cipher.get("nonce", ""), validate=True)
        ciphertext = base64.b64decode(cipher.get("ciphertext", ""), validate=True)
        plaintext = context.decrypt(nonce, ciphertext)
    except (ValueError, TypeError) as e:
        raise StoreError(str(e)) from e
    return json.loads(plaintext.decode("utf-8"))


def save_vault(context: CryptoContext, data: Dict[str, Any], path: Optional[str] = None) -> str:
    """
    Encrypt the provided plaintext dict and write to path atomically.
    """
    path = path or default_vault_path()
    try:
        atomic_write_bytes(path, _wrap(context, data))
    except (OSError, ValueError) as e:
        raise StoreError(f"Failed to save vault: {e}") from e
    return path


def change_master_password(context: CryptoContext, new_password: str, path: Optional[str] = None,
                           kdf_params: Optional[Dict[str, int]] = None) -> CryptoContext:
    """Re-encrypt the vault under a new password and fresh salt; returns the new context."""
    check_master_password(new_password)
    data = open_vault(context, path)
    new_context = CryptoContext.from_password(new_password, kdf_params=kdf_params or context.kdf_params)
    save_vault(new_context, data, path)
    context.lock()
    return new_context


class EncryptedVaultStore:
    """
    Store over the encrypted vault file. Each operation decrypts, edits and
    re-encrypts the whole file.
    """

    def __init__(self, context: CryptoContext, path: Optional[str] = None):
        self.context = context
        self.path = path or default_vault_path()

    def _load(self) -> List[CredentialRecord]:
        data = open_vault(self.context, self.path)
        return [CredentialRecord.from_dict(r) for r in data.get("records", [])]

    def _save(self, records: List[CredentialRecord]) -> None:
        save_vault(self.context, {"records": [r.to_dict() for r in records]}, self.path)

    def _index(self, records: List[CredentialRecord], record_id: str) -> int:
        for i, r in enumerate(records):
            if r.id == record_id:
                return i
        raise StoreError(f"No such record: {record_id}")

    def list(self, owner_id: str) -> List[CredentialRecord]:
        return [r for r in self._load() if r.owner_id == owner_id]

    def create(self, record: CredentialRecord) -> str:
        records = self._load()
        if any(r.id == record.id for r in records):
            raise StoreError(f"Duplicate record id: {record.id}")
        records.append(record)
        self._save(records)
        return record.id

    def update(self, record_id: str, partial: Dict[str, Any]) -> None:
        records = self._load()
        i = self._index(records, record_id)
        records[i] = _apply(records[i], partial)
        self._save(records)

    def delete(self, record_id: str) -> None:
        records = self._load()
        del records[self._index(records, record_id)]
        self._save(records)
