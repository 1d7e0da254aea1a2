"""
Shared fixtures.

Every test gets a fresh in-memory SQLite ledger. The make_* factories
mirror the model factories of the web app: sensible defaults, override
whatever the test cares about.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from household_ledger.audit import AuditLogger
from household_ledger.config import DatabaseSettings
from household_ledger.events import ChangeNotifier
from household_ledger.models.ledger import (
    FundDirection,
    FundEntryData,
    TransactionData,
    TransactionType,
)
from household_ledger.services.storage import SQLLedgerStorage, create_ledger_engine


@pytest.fixture
def storage():
    engine = create_ledger_engine(DatabaseSettings(url="sqlite://"))
    store = SQLLedgerStorage(engine)
    store.init_schema()
    yield store
    engine.dispose()


@pytest.fixture
def me(storage):
    return storage.add_user("Me", "me@example.com")


@pytest.fixture
def partner(storage):
    return storage.add_user("Partner", "partner@example.com")


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def make_transaction(storage):
    def _make(
        type=TransactionType.EXPENSE,
        amount="10.00",
        paid_by=None,
        created_by=None,
        description="Groceries",
        occurred_at=None,
    ):
        data = TransactionData(
            type=type,
            amount=Decimal(amount),
            paid_by_user_id=paid_by.id,
            description=description,
            occurred_at=occurred_at or datetime.now() - timedelta(days=1),
        )
        return storage.create_transaction(
            data, created_by_user_id=(created_by or paid_by).id
        )

    return _make


@pytest.fixture
def make_fund_entry(storage):
    def _make(
        direction=FundDirection.CREDIT,
        amount="10.00",
        owner=None,
        created_by=None,
        description="Savings",
        occurred_at=None,
    ):
        data = FundEntryData(
            direction=direction,
            amount=Decimal(amount),
            user_id=owner.id,
            description=description,
            occurred_at=occurred_at or datetime.now() - timedelta(days=1),
        )
        return storage.create_fund_entry(
            data, created_by_user_id=(created_by or owner).id
        )

    return _make
