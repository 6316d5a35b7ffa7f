"""
vaultsense.crypto
Argon2id key derivation + AES-GCM, held in an explicit per-session context.

A CryptoContext is created when the vault is unlocked and passed to whatever
needs it; there is no module-level "current key".
"""

import os
from typing import Any, Dict, Optional, Tuple

from argon2 import low_level
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

# Default KDF params (tunable). Balance security/performance.
DEFAULT_KDF_PARAMS = {
    "time_cost": 3,        # iterations
    "memory_cost_kb": 65536,  # 64 MB
    "parallelism": 2,
    "hash_len": 32
}

SALT_SIZE = 16
NONCE_SIZE = 12


def derive_key(password: str, salt: bytes, params: Dict[str, int]) -> bytes:
    """
    Derive a raw key using Argon2id low-level API.
    """
    return low_level.hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt,
        time_cost=int(params.get("time_cost", DEFAULT_KDF_PARAMS["time_cost"])),
        memory_cost=int(params.get("memory_cost_kb", DEFAULT_KDF_PARAMS["memory_cost_kb"])),
        parallelism=int(params.get("parallelism", DEFAULT_KDF_PARAMS["parallelism"])),
        hash_len=int(params.get("hash_len", DEFAULT_KDF_PARAMS["hash_len"])),
        type=low_level.Type.ID
    )


class CryptoContext:
    """One unlocked key for one session."""

    def __init__(self, key: bytes, salt: bytes, kdf_params: Dict[str, int]):
        self._key: Optional[bytes] = key
        self.salt = salt
        self.kdf_params = dict(kdf_params)

    @classmethod
    def from_password(cls, master_password: str, salt: Optional[bytes] = None,
                      kdf_params: Optional[Dict[str, Any]] = None) -> "CryptoContext":
        params = dict(DEFAULT_KDF_PARAMS)
        params.update(kdf_params or {})
        salt = salt or os.urandom(SALT_SIZE)
        return cls(derive_key(master_password, salt, params), salt, params)

    @property
    def unlocked(self) -> bool:
        return self._key is not None

    def lock(self) -> None:
        self._key = None

    def _aead(self) -> AESGCM:
        if self._key is None:
            raise ValueError("Vault is locked")
        return AESGCM(self._key)

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        """Return (nonce, ciphertext)."""
        nonce = os.urandom(NONCE_SIZE)
        return nonce, self._aead().encrypt(nonce, plaintext, None)

    def decrypt(self, nonce: bytes, ciphertext: bytes) -> bytes:
        """Raises ValueError on a wrong key or tampered ciphertext."""
        try:
            return self._aead().decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise ValueError("Incorrect master password or corrupted vault") from e
