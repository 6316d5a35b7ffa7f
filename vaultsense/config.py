# vaultsense/config.py
"""
Simple settings persistence for VaultSense.
Settings saved as JSON in %APPDATA%/VaultSense/config.json (Windows) or ~/.vaultsense/config.json (fallback)
"""

import os
import json
import logging
from typing import Dict, Any, Optional

from .crypto import DEFAULT_KDF_PARAMS
from .storage import app_dir

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    # generator
    "password_length": 16,
    "include_uppercase": True,
    "include_lowercase": True,
    "include_numbers": True,
    "include_symbols": True,
    "exclude_similar": False,
    # health
    "stale_after_months": 6,
    # import
    "max_import_bytes": 10 * 1024 * 1024,
    # vault
    "vault_path": None,  # if None, storage.default_vault_path() is used
    "owner_id": "local",
    "kdf": dict(DEFAULT_KDF_PARAMS),
}


def config_path() -> str:
    return os.getenv("VAULTSENSE_CONFIG") or os.path.join(app_dir(), "config.json")


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    p = path or config_path()
    out = json.loads(json.dumps(DEFAULTS))  # deep copy
    if not os.path.exists(p):
        return out
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("ignoring unreadable config %s: %s", p, e)
        return out
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: expected a JSON object", p)
        return out
    # merge defaults
    kdf = data.pop("kdf", None)
    out.update(data)
    if isinstance(kdf, dict):
        out["kdf"].update(kdf)
    return out


def save_config(cfg: Dict[str, Any], path: Optional[str] = None) -> None:
    p = path or config_path()
    d = os.path.dirname(p)
    if d:
        os.makedirs(d, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)
