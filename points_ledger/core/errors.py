class LedgerError(Exception):
    """Base class for every failure raised by the points ledger."""


class ValidationError(LedgerError, ValueError):
    """Raised when an amount or limit is out of range; nothing was stored."""


class StorageError(LedgerError):
    """Raised when the store fails mid-unit; the unit has been rolled back."""


class WriteConflictError(StorageError):
    """Raised when concurrent writers collide and the retry budget is spent."""
