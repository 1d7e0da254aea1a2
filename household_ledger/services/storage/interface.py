"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for ledger storage.
This allows us to:
1. Run the same business logic on SQLite locally and PostgreSQL in production
2. Use an in-memory database for testing
3. Keep editors and aggregations decoupled from SQL

The interface is intentionally small - just the operations the editors,
list views and dashboard need. Aggregations are part of the interface
so backends can push the sums down into the database.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from household_ledger.models.ledger import (
    FundDirection,
    FundEntryData,
    Page,
    PersonalFundEntry,
    PersonalFundFilter,
    Transaction,
    TransactionData,
    TransactionFilter,
    TransactionType,
    User,
)


class UserDirectoryInterface(ABC):
    """
    Read access to household members.

    Users are owned by the authentication subsystem; the ledger only
    needs to resolve and list them.
    """

    @abstractmethod
    def get_user(self, user_id: int) -> User:
        """
        Retrieve a user by ID.

        Raises:
            NotFoundError: If no such user exists
        """
        pass

    @abstractmethod
    def user_exists(self, user_id: int) -> bool:
        pass

    @abstractmethod
    def list_users(self) -> list[User]:
        """All users ordered by name."""
        pass

    @abstractmethod
    def add_user(self, name: str, email: str) -> User:
        """Register a user (bootstrapping and seeding only)."""
        pass


class LedgerStorageInterface(UserDirectoryInterface):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    Every write is atomic: it either fully applies or raises and
    leaves the previous state untouched.
    """

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_transaction(
        self,
        data: TransactionData,
        created_by_user_id: int,
    ) -> Transaction:
        """
        Persist a new shared transaction.

        Args:
            data: The validated transaction fields
            created_by_user_id: Acting user, stamped once as creator

        Returns:
            The stored transaction with its new ID

        Raises:
            ReferentialError: If a referenced user does not exist
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Transaction:
        """
        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        data: TransactionData,
    ) -> Transaction:
        """
        Replace the mutable fields of a transaction.

        created_by_user_id is never changed.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ReferentialError: If a referenced user does not exist
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """
        Hard delete a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    def list_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> Page[Transaction]:
        """
        List transactions matching all given criteria.

        Ordered by occurred_at descending, then ID descending.

        Args:
            filters: Criteria (absent fields impose no constraint)
            page: 1-based page number
            per_page: Page size

        Returns:
            The requested page plus the total match count
        """
        pass

    @abstractmethod
    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        """The most recent transactions, newest first."""
        pass

    @abstractmethod
    def sum_transactions(self, transaction_type: TransactionType) -> Decimal:
        """Sum of all transaction amounts of one type (0.00 when none)."""
        pass

    # -------------------------------------------------------------------------
    # Personal fund entries
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_fund_entry(
        self,
        data: FundEntryData,
        created_by_user_id: int,
    ) -> PersonalFundEntry:
        """
        Persist a new personal fund entry.

        Raises:
            ReferentialError: If a referenced user does not exist
        """
        pass

    @abstractmethod
    def get_fund_entry(self, entry_id: int) -> PersonalFundEntry:
        """
        Raises:
            NotFoundError: If the entry doesn't exist
        """
        pass

    @abstractmethod
    def update_fund_entry(
        self,
        entry_id: int,
        data: FundEntryData,
    ) -> PersonalFundEntry:
        """
        Replace the mutable fields of a fund entry.

        Raises:
            NotFoundError: If the entry doesn't exist
            ReferentialError: If a referenced user does not exist
        """
        pass

    @abstractmethod
    def delete_fund_entry(self, entry_id: int) -> None:
        """
        Raises:
            NotFoundError: If the entry doesn't exist
        """
        pass

    @abstractmethod
    def list_fund_entries(
        self,
        filters: Optional[PersonalFundFilter] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> Page[PersonalFundEntry]:
        """Same contract as list_transactions."""
        pass

    @abstractmethod
    def sum_fund_entries(
        self,
        user_id: int,
        direction: FundDirection,
    ) -> Decimal:
        """Sum of one user's entries in one direction (0.00 when none)."""
        pass

    @abstractmethod
    def fund_totals_by_user(self) -> dict[int, dict[FundDirection, Decimal]]:
        """
        Credit and debit sums for every user that has entries.

        Users without entries are absent from the result.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ReferentialError(StorageError):
    """A write referenced a user that does not exist."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
