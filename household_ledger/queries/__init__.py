"""Read-side queries: balances and list views."""

from household_ledger.queries.balances import BalanceAggregator
from household_ledger.queries.listing import PersonalFundListing, TransactionListing

__all__ = ["BalanceAggregator", "PersonalFundListing", "TransactionListing"]
