"""
Data Models Package

This package contains all Pydantic models used in the Household Ledger.
All data flowing between the store, the editors and the UI layer must
conform to these schemas.
"""

from household_ledger.models.ledger import (
    CENT,
    MAX_AMOUNT,
    MAX_DESCRIPTION_LENGTH,
    ZERO,
    DashboardOverview,
    FundDirection,
    FundEntryData,
    Page,
    PersonalBalance,
    PersonalFundEntry,
    PersonalFundFilter,
    Transaction,
    TransactionData,
    TransactionFilter,
    TransactionType,
    User,
    ValidationIssue,
    to_cents,
    to_naive_utc,
    utc_now,
)
from household_ledger.models.forms import (
    PersonalFundForm,
    TransactionForm,
)
from household_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "CENT",
    "MAX_AMOUNT",
    "MAX_DESCRIPTION_LENGTH",
    "ZERO",
    "DashboardOverview",
    "FundDirection",
    "FundEntryData",
    "Page",
    "PersonalBalance",
    "PersonalFundEntry",
    "PersonalFundFilter",
    "Transaction",
    "TransactionData",
    "TransactionFilter",
    "TransactionType",
    "User",
    "ValidationIssue",
    "to_cents",
    "to_naive_utc",
    "utc_now",
    # Form state
    "PersonalFundForm",
    "TransactionForm",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
