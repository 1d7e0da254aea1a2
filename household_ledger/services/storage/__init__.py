"""
Storage Services Package

Provides the abstract ledger storage interface and its SQLAlchemy
implementation. Business logic only ever talks to the interface.
"""

from household_ledger.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    ReferentialError,
    StorageError,
    UserDirectoryInterface,
)
from household_ledger.services.storage.sql import (
    AmountType,
    SQLLedgerStorage,
    create_ledger_engine,
)

__all__ = [
    # Interfaces
    "LedgerStorageInterface",
    "UserDirectoryInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "ReferentialError",
    "StorageError",
    # SQL implementation
    "AmountType",
    "SQLLedgerStorage",
    "create_ledger_engine",
]
