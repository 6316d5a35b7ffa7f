"""VaultSense: password generation, strength scoring, vault health and import parsing."""

__version__ = "0.3.0"
