"""
Filtered, paginated list views.

A listing remembers the current filter and page for one list screen.
Changing any filter criterion sends the user back to page 1, so they
never land on an empty page 7 of a result set that now has 2 pages.

Fetching is read-only and always goes to the store.
"""

from typing import Generic, Optional, TypeVar

from household_ledger.config import get_settings
from household_ledger.models.ledger import (
    Page,
    PersonalFundEntry,
    PersonalFundFilter,
    Transaction,
    TransactionFilter,
)
from household_ledger.services.storage import LedgerStorageInterface

F = TypeVar("F", TransactionFilter, PersonalFundFilter)


class _Listing(Generic[F]):
    filter_class: type

    def __init__(
        self,
        storage: LedgerStorageInterface,
        filters: Optional[F] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ):
        self._storage = storage
        self.filters: F = filters or self.filter_class()
        self.page = max(page, 1)
        self.per_page = per_page or get_settings().app.page_size

    def update_filter(self, **criteria) -> bool:
        """
        Change one or more filter criteria.

        Values go through the filter model, so form strings ("" for
        "any", "2025-01-31" for dates) are accepted as-is.

        Returns:
            True if the filter actually changed (and the page was reset)
        """
        updated = self.filter_class.model_validate(
            {**self.filters.model_dump(), **criteria}
        )
        if updated == self.filters:
            return False
        self.filters = updated
        self.page = 1
        return True

    def clear_filters(self) -> bool:
        if self.filters == self.filter_class():
            return False
        self.filters = self.filter_class()
        self.page = 1
        return True

    def go_to_page(self, page: int) -> None:
        self.page = max(page, 1)

    def next_page(self) -> None:
        self.page += 1

    def previous_page(self) -> None:
        self.go_to_page(self.page - 1)


class TransactionListing(_Listing[TransactionFilter]):
    """State of the transactions list screen."""

    filter_class = TransactionFilter

    def fetch(self) -> Page[Transaction]:
        return self._storage.list_transactions(self.filters, self.page, self.per_page)


class PersonalFundListing(_Listing[PersonalFundFilter]):
    """State of the personal funds list screen."""

    filter_class = PersonalFundFilter

    def fetch(self) -> Page[PersonalFundEntry]:
        return self._storage.list_fund_entries(self.filters, self.page, self.per_page)
