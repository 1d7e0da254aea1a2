"""Services package."""

from household_ledger.services.storage import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    ReferentialError,
    SQLLedgerStorage,
    StorageError,
    UserDirectoryInterface,
)

__all__ = [
    "DuplicateError",
    "LedgerStorageInterface",
    "NotFoundError",
    "ReferentialError",
    "SQLLedgerStorage",
    "StorageError",
    "UserDirectoryInterface",
]
