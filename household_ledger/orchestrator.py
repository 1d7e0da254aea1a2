"""
Main Orchestrator for Household Ledger

This module ties the components together for the web front end:
1. Editors (add / edit / delete entries)
2. List views (filter + paginate)
3. Dashboard (shared totals and personal balances)

DESIGN DECISION: One LedgerApp per process, one editor per request.
The app owns the long-lived pieces (store, notifier, audit logger);
editors and listings are cheap and created for each request with the
authenticated user's ID.
"""

from typing import Iterable, Optional
from uuid import UUID

import structlog

from household_ledger.audit import AuditLogger, create_correlation_id
from household_ledger.config import DatabaseSettings, get_settings
from household_ledger.editor import PersonalFundEditor, TransactionEditor
from household_ledger.events import ChangeNotifier
from household_ledger.models.forms import PersonalFundForm, TransactionForm
from household_ledger.models.ledger import (
    DashboardOverview,
    PersonalFundFilter,
    TransactionFilter,
    User,
)
from household_ledger.queries import (
    BalanceAggregator,
    PersonalFundListing,
    TransactionListing,
)
from household_ledger.services.storage import (
    DuplicateError,
    LedgerStorageInterface,
    SQLLedgerStorage,
    create_ledger_engine,
)
from household_ledger.validation import EntryValidator

logger = structlog.get_logger("household_ledger.orchestrator")

DEFAULT_HOUSEHOLD = [
    ("Mena", "mena@example.com"),
    ("Ahmed", "ahmed@example.com"),
]


class LedgerApp:
    """Entry point the UI layer talks to."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        notifier: Optional[ChangeNotifier] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.storage = storage
        self.notifier = notifier or ChangeNotifier()
        self.audit_logger = audit_logger or AuditLogger()
        self.balances = BalanceAggregator(storage)
        self._validator = EntryValidator(storage)

    def transaction_editor(
        self,
        acting_user_id: int,
        form: Optional[TransactionForm] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionEditor:
        return TransactionEditor(
            self.storage,
            acting_user_id,
            validator=self._validator,
            notifier=self.notifier,
            audit_logger=self.audit_logger,
            form=form,
            correlation_id=correlation_id or create_correlation_id(),
        )

    def fund_editor(
        self,
        acting_user_id: int,
        form: Optional[PersonalFundForm] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PersonalFundEditor:
        return PersonalFundEditor(
            self.storage,
            acting_user_id,
            validator=self._validator,
            notifier=self.notifier,
            audit_logger=self.audit_logger,
            form=form,
            correlation_id=correlation_id or create_correlation_id(),
        )

    def transaction_listing(
        self,
        filters: Optional[TransactionFilter] = None,
        page: int = 1,
    ) -> TransactionListing:
        return TransactionListing(self.storage, filters=filters, page=page)

    def fund_listing(
        self,
        filters: Optional[PersonalFundFilter] = None,
        page: int = 1,
    ) -> PersonalFundListing:
        return PersonalFundListing(self.storage, filters=filters, page=page)

    def overview(self) -> DashboardOverview:
        return self.balances.overview()

    def users(self) -> list[User]:
        """Choices for the payer / owner dropdowns, ordered by name."""
        return self.storage.list_users()


def seed_users(
    storage: LedgerStorageInterface,
    household: Iterable[tuple[str, str]] = DEFAULT_HOUSEHOLD,
) -> list[User]:
    """
    Register the household members.

    Safe to run repeatedly: already registered emails are skipped.

    Returns:
        The users created by this call
    """
    created = []
    for name, email in household:
        try:
            created.append(storage.add_user(name, email))
        except DuplicateError:
            logger.info("seed_user_exists", email=email)
    return created


def create_app_components(
    database_url: Optional[str] = None,
    seed: bool = False,
) -> LedgerApp:
    """
    Factory function to create all application components.

    Args:
        database_url: Override the configured database URL
        seed: Register the default household after creating the schema

    Returns:
        A ready LedgerApp on an initialized schema
    """
    db_settings = get_settings().database
    if database_url:
        db_settings = DatabaseSettings(url=database_url, echo=db_settings.echo)

    storage = SQLLedgerStorage(create_ledger_engine(db_settings))
    storage.init_schema()

    if seed:
        seed_users(storage)

    logger.info("ledger_ready", database=db_settings.url.split("://", 1)[0])
    return LedgerApp(storage)
