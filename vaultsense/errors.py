"""
vaultsense.errors

Exceptions raised by the analysis engine and its store collaborators.
"""


class VaultSenseError(Exception):
    """Base class for all vaultsense errors."""


class InvalidRequest(VaultSenseError, ValueError):
    """A request was rejected: unsatisfiable generation constraints or a weak master password."""


class ParseError(VaultSenseError, ValueError):
    """An import file could not be parsed. The message is shown to the user."""


class StoreError(VaultSenseError):
    """A store operation failed (wrong master password, corrupted vault, unknown id...)."""
