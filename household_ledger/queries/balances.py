"""
Balance Aggregation

DESIGN DECISION: Balances are DERIVED, never stored.
Every call goes back to the store and lets it sum the rows. There is
no cache to invalidate, so a write is visible on the very next read.

All results are Decimals at scale 2:
- shared balance = total income - total expense
- personal balance = credits - debits of one user's fund
"""

from decimal import Decimal
from typing import Optional

from household_ledger.config import get_settings
from household_ledger.models.ledger import (
    ZERO,
    DashboardOverview,
    FundDirection,
    PersonalBalance,
    TransactionType,
    to_cents,
)
from household_ledger.services.storage import LedgerStorageInterface


class BalanceAggregator:
    """Computes ledger totals on demand."""

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    def total_income(self) -> Decimal:
        return self._storage.sum_transactions(TransactionType.INCOME)

    def total_expense(self) -> Decimal:
        return self._storage.sum_transactions(TransactionType.EXPENSE)

    def shared_balance(self) -> Decimal:
        return to_cents(self.total_income() - self.total_expense())

    def personal_balance(self, user_id: int) -> Decimal:
        """
        Net personal fund of one user.

        A user without entries has a balance of 0.00, not an error.
        """
        credits = self._storage.sum_fund_entries(user_id, FundDirection.CREDIT)
        debits = self._storage.sum_fund_entries(user_id, FundDirection.DEBIT)
        return to_cents(credits - debits)

    def personal_balances(self) -> list[PersonalBalance]:
        """One balance per known user, ordered by name."""
        totals = self._storage.fund_totals_by_user()

        balances = []
        for user in self._storage.list_users():
            per_user = totals.get(user.id, {})
            credits = per_user.get(FundDirection.CREDIT, ZERO)
            debits = per_user.get(FundDirection.DEBIT, ZERO)
            balances.append(PersonalBalance(
                user_id=user.id,
                name=user.name,
                balance=to_cents(credits - debits),
            ))
        return balances

    def overview(self, recent_limit: Optional[int] = None) -> DashboardOverview:
        """
        Everything the dashboard shows.

        The shared balance is derived from the same two sums reported
        alongside it, so the three figures always agree.
        """
        recent_limit = recent_limit or get_settings().app.recent_transactions_limit

        total_income = self.total_income()
        total_expense = self.total_expense()

        return DashboardOverview(
            total_income=total_income,
            total_expense=total_expense,
            shared_balance=to_cents(total_income - total_expense),
            personal_balances=self.personal_balances(),
            recent_transactions=self._storage.recent_transactions(recent_limit),
        )
