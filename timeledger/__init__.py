# Time Ledger - Core Library
"""
Time tracking ledger: single running entry, monthly reports, snapshot
export/import.
"""

from .errors import (
    AlreadyExists,
    Conflict,
    InvalidInput,
    LedgerError,
    NotFound,
    OperationFailed,
    StorageError,
)
from .ledger import Ledger
from .models import UNSET, EntryUpdate, FolderUpdate, TaskUpdate

__all__ = [
    "Ledger",
    "LedgerError",
    "InvalidInput",
    "NotFound",
    "AlreadyExists",
    "Conflict",
    "OperationFailed",
    "StorageError",
    "UNSET",
    "EntryUpdate",
    "TaskUpdate",
    "FolderUpdate",
]
