"""
SQL Storage Implementation

DESIGN DECISION: The ledger is stored in a relational database through
SQLAlchemy because:
1. Balances are plain SUM() queries - the database does the arithmetic
2. Foreign keys give us cascade-on-user-delete for free
3. SQLite works out of the box, PostgreSQL is one URL away

TRADEOFFS:
- SQLite has no DECIMAL type. Amounts are stored there as integer cents
  (see AmountType) so sums stay exact. Other backends use NUMERIC(12, 2).
- Every public method opens its own short session. There is no
  cross-request locking; concurrent edits are last-write-wins per row.
"""

from contextlib import contextmanager
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from household_ledger.config import DatabaseSettings, get_settings
from household_ledger.models.ledger import (
    ZERO,
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
    to_cents,
    utc_now,
)
from household_ledger.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    ReferentialError,
    StorageError,
)


# =============================================================================
# COLUMN TYPES
# =============================================================================

class AmountType(TypeDecorator):
    """
    Exact money column.

    NUMERIC(12, 2) where the backend supports it, integer cents on SQLite.
    SUM() over the column keeps this type, so aggregates come back as
    Decimals at scale 2 on every backend.
    """

    impl = Numeric(12, 2)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(Numeric(12, 2, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = to_cents(value)
        if dialect.name == "sqlite":
            return int(value * 100)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return to_cents(Decimal(value) / 100)
        return to_cents(value)


# =============================================================================
# TABLES
# =============================================================================

class Base(DeclarativeBase):
    pass


class UserRow(Base):
    """Minimal mirror of the auth subsystem's users table."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class TransactionRow(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_type_occurred_at", "type", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(AmountType, nullable=False)
    paid_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now
    )


class PersonalFundEntryRow(Base):
    __tablename__ = "personal_fund_entries"
    __table_args__ = (
        Index("ix_personal_fund_entries_user_id_occurred_at", "user_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    direction: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(AmountType, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now
    )


# =============================================================================
# ENGINE
# =============================================================================

def create_ledger_engine(settings: Optional[DatabaseSettings] = None) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    SQLite connections get foreign key enforcement switched on, otherwise
    ON DELETE CASCADE and reference checks are silently ignored.
    """
    settings = settings or get_settings().database

    kwargs = {"echo": settings.echo}
    if settings.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    if settings.is_in_memory:
        # One shared connection, or every session sees an empty database
        kwargs["poolclass"] = StaticPool

    engine = create_engine(settings.url, **kwargs)

    if settings.is_sqlite:
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def _day_range_conditions(column, date_from: Optional[date], date_to: Optional[date]) -> list:
    """Inclusive day bounds: start of date_from through end of date_to."""
    conditions = []
    if date_from is not None:
        conditions.append(column >= datetime.combine(date_from, time.min))
    if date_to is not None:
        conditions.append(column <= datetime.combine(date_to, time.max))
    return conditions


# =============================================================================
# STORAGE
# =============================================================================

class SQLLedgerStorage(LedgerStorageInterface):
    """
    SQLAlchemy implementation of ledger storage.

    One row per transaction / fund entry. Rows are converted to the
    pydantic models before leaving this class, so no ORM object ever
    escapes a session.
    """

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine or create_ledger_engine()
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_schema(self) -> None:
        """Create all tables and indexes that don't exist yet."""
        Base.metadata.create_all(bind=self._engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """
        Unit of work for one operation.

        Commits on success, rolls back on any error. A foreign key
        violation means a referenced user is missing; other database
        failures surface as StorageError.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ReferentialError(f"Referenced user does not exist: {e.orig}") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Database operation failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _get_row(session: Session, row_cls, row_id: int, label: str):
        row = session.get(row_cls, row_id)
        if row is None:
            raise NotFoundError(f"{label} not found: {row_id}")
        return row

    @staticmethod
    def _paginate(session: Session, row_cls, model_cls, conditions: list, page: int, per_page: int) -> Page:
        page = max(page, 1)

        total = session.scalar(
            select(func.count()).select_from(row_cls).where(*conditions)
        )
        rows = session.scalars(
            select(row_cls)
            .where(*conditions)
            .order_by(row_cls.occurred_at.desc(), row_cls.id.desc())
            .limit(per_page)
            .offset((page - 1) * per_page)
        ).all()

        return Page[model_cls](
            items=[model_cls.model_validate(row) for row in rows],
            total=total or 0,
            page=page,
            per_page=per_page,
        )

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_user(self, user_id: int) -> User:
        with self._session() as session:
            row = self._get_row(session, UserRow, user_id, "User")
            return User.model_validate(row)

    def user_exists(self, user_id: int) -> bool:
        with self._session() as session:
            return session.get(UserRow, user_id) is not None

    def list_users(self) -> list[User]:
        with self._session() as session:
            rows = session.scalars(
                select(UserRow).order_by(UserRow.name, UserRow.id)
            ).all()
            return [User.model_validate(row) for row in rows]

    def add_user(self, name: str, email: str) -> User:
        with self._session() as session:
            existing = session.scalar(select(UserRow.id).where(UserRow.email == email))
            if existing is not None:
                raise DuplicateError(f"Email already registered: {email}")
            row = UserRow(name=name, email=email)
            session.add(row)
            session.flush()
            return User.model_validate(row)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def create_transaction(
        self,
        data: TransactionData,
        created_by_user_id: int,
    ) -> Transaction:
        with self._session() as session:
            row = TransactionRow(
                type=data.type.value,
                amount=data.amount,
                paid_by_user_id=data.paid_by_user_id,
                description=data.description,
                occurred_at=data.occurred_at,
                created_by_user_id=created_by_user_id,
            )
            session.add(row)
            session.flush()
            return Transaction.model_validate(row)

    def get_transaction(self, transaction_id: int) -> Transaction:
        with self._session() as session:
            row = self._get_row(session, TransactionRow, transaction_id, "Transaction")
            return Transaction.model_validate(row)

    def update_transaction(
        self,
        transaction_id: int,
        data: TransactionData,
    ) -> Transaction:
        with self._session() as session:
            row = self._get_row(session, TransactionRow, transaction_id, "Transaction")
            row.type = data.type.value
            row.amount = data.amount
            row.paid_by_user_id = data.paid_by_user_id
            row.description = data.description
            row.occurred_at = data.occurred_at
            row.updated_at = utc_now()
            session.flush()
            return Transaction.model_validate(row)

    def delete_transaction(self, transaction_id: int) -> None:
        with self._session() as session:
            row = self._get_row(session, TransactionRow, transaction_id, "Transaction")
            session.delete(row)

    def list_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> Page[Transaction]:
        filters = filters or TransactionFilter()

        conditions = []
        if filters.person is not None:
            conditions.append(TransactionRow.paid_by_user_id == filters.person)
        if filters.type is not None:
            conditions.append(TransactionRow.type == filters.type.value)
        conditions.extend(
            _day_range_conditions(TransactionRow.occurred_at, filters.date_from, filters.date_to)
        )

        with self._session() as session:
            return self._paginate(session, TransactionRow, Transaction, conditions, page, per_page)

    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        with self._session() as session:
            rows = session.scalars(
                select(TransactionRow)
                .order_by(TransactionRow.occurred_at.desc(), TransactionRow.id.desc())
                .limit(limit)
            ).all()
            return [Transaction.model_validate(row) for row in rows]

    def sum_transactions(self, transaction_type: TransactionType) -> Decimal:
        with self._session() as session:
            total = session.scalar(
                select(func.sum(TransactionRow.amount))
                .where(TransactionRow.type == transaction_type.value)
            )
        return ZERO if total is None else to_cents(total)

    # -------------------------------------------------------------------------
    # Personal fund entries
    # -------------------------------------------------------------------------

    def create_fund_entry(
        self,
        data: FundEntryData,
        created_by_user_id: int,
    ) -> PersonalFundEntry:
        with self._session() as session:
            row = PersonalFundEntryRow(
                user_id=data.user_id,
                direction=data.direction.value,
                amount=data.amount,
                description=data.description,
                occurred_at=data.occurred_at,
                created_by_user_id=created_by_user_id,
            )
            session.add(row)
            session.flush()
            return PersonalFundEntry.model_validate(row)

    def get_fund_entry(self, entry_id: int) -> PersonalFundEntry:
        with self._session() as session:
            row = self._get_row(session, PersonalFundEntryRow, entry_id, "Personal fund entry")
            return PersonalFundEntry.model_validate(row)

    def update_fund_entry(
        self,
        entry_id: int,
        data: FundEntryData,
    ) -> PersonalFundEntry:
        with self._session() as session:
            row = self._get_row(session, PersonalFundEntryRow, entry_id, "Personal fund entry")
            row.user_id = data.user_id
            row.direction = data.direction.value
            row.amount = data.amount
            row.description = data.description
            row.occurred_at = data.occurred_at
            row.updated_at = utc_now()
            session.flush()
            return PersonalFundEntry.model_validate(row)

    def delete_fund_entry(self, entry_id: int) -> None:
        with self._session() as session:
            row = self._get_row(session, PersonalFundEntryRow, entry_id, "Personal fund entry")
            session.delete(row)

    def list_fund_entries(
        self,
        filters: Optional[PersonalFundFilter] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> Page[PersonalFundEntry]:
        filters = filters or PersonalFundFilter()

        conditions = []
        if filters.user is not None:
            conditions.append(PersonalFundEntryRow.user_id == filters.user)
        if filters.direction is not None:
            conditions.append(PersonalFundEntryRow.direction == filters.direction.value)
        conditions.extend(
            _day_range_conditions(PersonalFundEntryRow.occurred_at, filters.date_from, filters.date_to)
        )

        with self._session() as session:
            return self._paginate(
                session, PersonalFundEntryRow, PersonalFundEntry, conditions, page, per_page
            )

    def sum_fund_entries(
        self,
        user_id: int,
        direction: FundDirection,
    ) -> Decimal:
        with self._session() as session:
            total = session.scalar(
                select(func.sum(PersonalFundEntryRow.amount))
                .where(
                    PersonalFundEntryRow.user_id == user_id,
                    PersonalFundEntryRow.direction == direction.value,
                )
            )
        return ZERO if total is None else to_cents(total)

    def fund_totals_by_user(self) -> dict[int, dict[FundDirection, Decimal]]:
        with self._session() as session:
            rows = session.execute(
                select(
                    PersonalFundEntryRow.user_id,
                    PersonalFundEntryRow.direction,
                    func.sum(PersonalFundEntryRow.amount),
                )
                .group_by(PersonalFundEntryRow.user_id, PersonalFundEntryRow.direction)
            ).all()

        totals: dict[int, dict[FundDirection, Decimal]] = {}
        for user_id, direction, amount in rows:
            per_user = totals.setdefault(
                user_id, {FundDirection.CREDIT: ZERO, FundDirection.DEBIT: ZERO}
            )
            per_user[FundDirection(direction)] = to_cents(amount)
        return totals
