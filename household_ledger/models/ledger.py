"""
Core Data Models for Household Ledger

These models define the strict schemas for all ledger data:
1. Shared Transactions (income/expense paid by a household member)
2. Personal Fund Entries (credit/debit against one member's own fund)
3. Filters, pages and balance summaries returned to the UI layer

DESIGN DECISION: Amounts are always positive Decimals at scale 2.
The sign lives in the entry's type/direction, never in the amount,
so a single negative number can never silently flip a balance.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# DECIMAL(12, 2) column
MAX_AMOUNT = Decimal("9999999999.99")
MAX_DESCRIPTION_LENGTH = 1000


def to_cents(value) -> Decimal:
    """Quantize a numeric value to scale 2, rounding half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored naive; aware values are converted to UTC first."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def utc_now() -> datetime:
    """Current time as a naive UTC timestamp."""
    return to_naive_utc(datetime.now(timezone.utc))


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Shared transaction kind. Income adds to the shared balance."""
    INCOME = "income"
    EXPENSE = "expense"


class FundDirection(str, Enum):
    """Personal fund movement. Credit adds to the owner's balance."""
    CREDIT = "credit"
    DEBIT = "debit"


Amount = Annotated[
    Decimal,
    Field(ge=CENT, le=MAX_AMOUNT, description="Positive amount at scale 2")
]


# =============================================================================
# USERS (owned by the auth subsystem, referenced only)
# =============================================================================

class User(BaseModel):
    """A household member as seen by the ledger."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class _EntryFields(BaseModel):
    """Fields shared by every ledger entry kind."""
    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)

    amount: Amount
    description: Optional[str] = Field(
        default=None,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="Free-text note"
    )
    occurred_at: datetime = Field(
        ...,
        description="When the money moved (user supplied)"
    )

    @field_validator('amount')
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        return to_cents(v)

    @field_validator('description')
    @classmethod
    def empty_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('occurred_at')
    @classmethod
    def normalize_occurred_at(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class TransactionData(_EntryFields):
    """
    The mutable part of a Transaction.

    This is what the editor hands to the store on create and update.
    """
    type: TransactionType
    paid_by_user_id: int = Field(
        ...,
        description="Household member who paid or received the money"
    )


class Transaction(TransactionData):
    """
    A persisted shared Transaction.

    CRITICAL: created_by_user_id is stamped once at creation and
    never changes afterwards, even when another member edits the row.
    """
    id: int
    created_by_user_id: int
    created_at: datetime
    updated_at: datetime

    @property
    def signed_amount(self) -> Decimal:
        """Contribution of this row to the shared balance."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount


class FundEntryData(_EntryFields):
    """The mutable part of a PersonalFundEntry."""
    direction: FundDirection
    user_id: int = Field(
        ...,
        description="Owner of the personal fund"
    )


class PersonalFundEntry(FundEntryData):
    """A persisted personal fund credit or debit."""
    id: int
    created_by_user_id: int
    created_at: datetime
    updated_at: datetime

    @property
    def signed_amount(self) -> Decimal:
        """Contribution of this row to the owner's personal balance."""
        if self.direction == FundDirection.CREDIT:
            return self.amount
        return -self.amount


# =============================================================================
# FILTERS AND PAGES
# =============================================================================

class _DateRangeFilter(BaseModel):
    """
    Inclusive day-granularity date range.

    Form inputs arrive as strings; an empty string means "no constraint".
    """
    model_config = ConfigDict(extra="forbid")

    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @field_validator('*', mode='before')
    @classmethod
    def blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class TransactionFilter(_DateRangeFilter):
    """Criteria for the transaction list."""
    person: Optional[int] = Field(
        default=None,
        description="Only transactions paid by this user"
    )
    type: Optional[TransactionType] = None


class PersonalFundFilter(_DateRangeFilter):
    """Criteria for the personal fund list."""
    user: Optional[int] = Field(
        default=None,
        description="Only entries in this user's fund"
    )
    direction: Optional[FundDirection] = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    One page of a filtered list.

    total counts every match of the filter, independent of pagination.
    """

    items: list[T] = Field(default_factory=list)
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    per_page: int = Field(ge=1)

    @property
    def last_page(self) -> int:
        if self.total == 0:
            return 1
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page


# =============================================================================
# BALANCES
# =============================================================================

class PersonalBalance(BaseModel):
    """Net personal fund of one household member."""

    user_id: int
    name: str
    balance: Decimal = ZERO


class DashboardOverview(BaseModel):
    """Everything the dashboard shows, computed in one pass."""

    total_income: Decimal
    total_expense: Decimal
    shared_balance: Decimal
    personal_balances: list[PersonalBalance] = Field(default_factory=list)
    recent_transactions: list[Transaction] = Field(default_factory=list)
    computed_at: datetime = Field(
        default_factory=utc_now
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single field-level validation issue."""

    field: str = Field(
        ...,
        description="Form field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'too_small')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
