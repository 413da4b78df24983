"""
Ledger error taxonomy.

Every failure surfaced by the ledger is a LedgerError subclass carrying a
human-readable message and a stable ``code`` that outer layers (HTTP, CLI)
map to their own status conventions.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""

    code = "ledger_error"
    prefix = "Ledger error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"


class InvalidInput(LedgerError):
    """Malformed identifier, empty required field, bad color. Caller-correctable."""

    code = "invalid_input"
    prefix = "Invalid input"


class NotFound(LedgerError):
    """Referenced entity does not exist."""

    code = "not_found"
    prefix = "Not found"


class AlreadyExists(LedgerError):
    """An invariant would be violated (double start, duplicate link)."""

    code = "already_exists"
    prefix = "Already exists"


Conflict = AlreadyExists


class OperationFailed(LedgerError):
    """Valid target, invalid state transition (e.g. stopping a stopped entry)."""

    code = "operation_failed"
    prefix = "Operation failed"


class StorageError(LedgerError):
    """Underlying persistence failure. The sqlite3 cause is chained."""

    code = "storage_error"
    prefix = "Database error"
