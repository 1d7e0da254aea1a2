"""
Entry Editors

One editor drives one add/edit form. It has two states:

    CREATING  (form.editing_id is None)  - Save inserts a new entry
    EDITING   (form.editing_id bound)    - Save updates that entry

    start_edit(id)  CREATING/EDITING -> EDITING
    save()          -> CREATING (after a successful write)
    delete(id)      -> CREATING if id was the bound entry
    cancel()        -> CREATING

CRITICAL BOUNDARIES:
- Nothing is written unless the whole form validates
- The acting user is stamped as creator on insert and never again
- Every successful write is audited and announced as "data changed"

DESIGN DECISION: The form is a plain object on the editor. A request
handler can pass an existing form in and read it back out, so the
editor itself holds no state between requests.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from household_ledger.audit import AuditLogger
from household_ledger.events import (
    PERSONAL_FUND_UPDATED,
    TRANSACTION_UPDATED,
    ChangeNotifier,
)
from household_ledger.models.forms import (
    PersonalFundForm,
    TransactionForm,
    format_form_amount,
    format_form_datetime,
)
from household_ledger.models.ledger import (
    PersonalFundEntry,
    Transaction,
    ValidationIssue,
)
from household_ledger.services.storage import (
    LedgerStorageInterface,
    NotFoundError,
    ReferentialError,
    StorageError,
)
from household_ledger.validation import EntryValidator, ValidationError


def _now_for_form() -> datetime:
    return datetime.now().replace(second=0, microsecond=0)


class _EntryEditor(ABC):
    """Shared state machine; subclasses bind it to one entity kind."""

    entity_type: str
    change_event: str
    reference_field: str

    def __init__(
        self,
        storage: LedgerStorageInterface,
        acting_user_id: int,
        validator: Optional[EntryValidator] = None,
        notifier: Optional[ChangeNotifier] = None,
        audit_logger: Optional[AuditLogger] = None,
        form=None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Args:
            storage: Ledger store
            acting_user_id: Authenticated user performing the actions
            validator: Field validator (built from storage if omitted)
            notifier: Receives "data changed" events
            audit_logger: Receives audit events
            form: Existing form state to continue from
            correlation_id: Ties this request's audit events together
        """
        self._storage = storage
        self._acting_user_id = acting_user_id
        self._validator = validator or EntryValidator(storage)
        self._notifier = notifier
        self._audit_logger = audit_logger
        self._correlation_id = correlation_id
        self.form = form if form is not None else self._blank_form()

    @property
    def acting_user_id(self) -> int:
        return self._acting_user_id

    @property
    def is_editing(self) -> bool:
        return self.form.is_editing

    @property
    def editing_id(self) -> Optional[int]:
        return self.form.editing_id

    def fill(self, **fields) -> None:
        """Set form fields as the user types them."""
        if "editing_id" in fields:
            raise ValueError("editing_id can only be bound through start_edit()")
        for name, value in fields.items():
            setattr(self.form, name, value)

    def start_edit(self, entry_id: int):
        """
        Load an existing entry into the form.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        entry = self._load(entry_id)
        self.form = self._form_from(entry)
        return self.form

    def save(self):
        """
        Validate the form and persist it.

        Returns:
            The stored entry

        Raises:
            ValidationError: If the form is invalid (nothing is written)
            NotFoundError: If the bound entry vanished meanwhile
        """
        editing_id = self.form.editing_id

        try:
            data = self._validate()
            if editing_id is None:
                entry = self._create(data)
            else:
                entry = self._update(editing_id, data)
        except ReferentialError as e:
            # The user disappeared between validation and the write
            error = ValidationError([ValidationIssue(
                field=self.reference_field,
                issue_type="not_found",
                message="The selected user does not exist.",
            )])
            self._log_rejected(error, editing_id)
            raise error from e
        except ValidationError as e:
            self._log_rejected(e, editing_id)
            raise
        except NotFoundError:
            raise
        except StorageError as e:
            self._log_storage_error("save", e, editing_id)
            raise

        if self._audit_logger:
            kind, amount = self._describe(entry)
            self._audit_logger.log_entry_saved(
                entity_type=self.entity_type,
                entity_id=entry.id,
                created=editing_id is None,
                amount=amount,
                kind=kind,
                acting_user_id=self._acting_user_id,
                correlation_id=self._correlation_id,
            )

        self.reset_form()
        self._notify()
        return entry

    def delete(self, entry_id: int) -> None:
        """
        Hard delete an entry.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        try:
            self._delete(entry_id)
        except NotFoundError:
            raise
        except StorageError as e:
            self._log_storage_error("delete", e, entry_id)
            raise

        if self._audit_logger:
            self._audit_logger.log_entry_deleted(
                entity_type=self.entity_type,
                entity_id=entry_id,
                acting_user_id=self._acting_user_id,
                correlation_id=self._correlation_id,
            )

        self._notify()

        if self.form.editing_id == entry_id:
            self.reset_form()

    def cancel(self) -> None:
        """Drop unsaved changes and go back to creating."""
        self.reset_form()

    def reset_form(self) -> None:
        self.form = self._blank_form()

    def _notify(self) -> None:
        if self._notifier:
            self._notifier.notify(self.change_event)

    def _log_storage_error(self, action: str, error: StorageError, entry_id: Optional[int]) -> None:
        if self._audit_logger:
            self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"action": action, "entity_type": self.entity_type, "entity_id": entry_id},
                correlation_id=self._correlation_id,
            )

    def _log_rejected(self, error: ValidationError, editing_id: Optional[int]) -> None:
        if self._audit_logger:
            self._audit_logger.log_validation_failed(
                entity_type=self.entity_type,
                issues=error.to_dicts(),
                acting_user_id=self._acting_user_id,
                entity_id=editing_id,
                correlation_id=self._correlation_id,
            )

    # Entity-specific hooks
    @abstractmethod
    def _blank_form(self):
        pass

    @abstractmethod
    def _form_from(self, entry):
        pass

    @abstractmethod
    def _validate(self):
        pass

    @abstractmethod
    def _load(self, entry_id: int):
        pass

    @abstractmethod
    def _create(self, data):
        pass

    @abstractmethod
    def _update(self, entry_id: int, data):
        pass

    @abstractmethod
    def _delete(self, entry_id: int) -> None:
        pass

    @abstractmethod
    def _describe(self, entry) -> tuple[str, str]:
        pass


class TransactionEditor(_EntryEditor):
    """Add/edit/delete shared income and expense transactions."""

    entity_type = "transaction"
    change_event = TRANSACTION_UPDATED
    reference_field = "paid_by_user_id"

    form: TransactionForm

    def _blank_form(self) -> TransactionForm:
        return TransactionForm(
            paid_by_user_id=self._acting_user_id,
            occurred_at=format_form_datetime(_now_for_form()),
        )

    def _form_from(self, entry: Transaction) -> TransactionForm:
        return TransactionForm(
            editing_id=entry.id,
            type=entry.type.value,
            amount=format_form_amount(entry.amount),
            paid_by_user_id=entry.paid_by_user_id,
            description=entry.description or "",
            occurred_at=format_form_datetime(entry.occurred_at),
        )

    def _validate(self):
        return self._validator.validate_transaction(self.form)

    def _load(self, entry_id: int) -> Transaction:
        return self._storage.get_transaction(entry_id)

    def _create(self, data) -> Transaction:
        return self._storage.create_transaction(data, created_by_user_id=self._acting_user_id)

    def _update(self, entry_id: int, data) -> Transaction:
        return self._storage.update_transaction(entry_id, data)

    def _delete(self, entry_id: int) -> None:
        self._storage.delete_transaction(entry_id)

    def _describe(self, entry: Transaction) -> tuple[str, str]:
        return entry.type.value, format_form_amount(entry.amount)


class PersonalFundEditor(_EntryEditor):
    """Add/edit/delete personal fund credits and debits."""

    entity_type = "fund_entry"
    change_event = PERSONAL_FUND_UPDATED
    reference_field = "user_id"

    form: PersonalFundForm

    def _blank_form(self) -> PersonalFundForm:
        return PersonalFundForm(
            user_id=self._acting_user_id,
            occurred_at=format_form_datetime(_now_for_form()),
        )

    def _form_from(self, entry: PersonalFundEntry) -> PersonalFundForm:
        return PersonalFundForm(
            editing_id=entry.id,
            direction=entry.direction.value,
            amount=format_form_amount(entry.amount),
            user_id=entry.user_id,
            description=entry.description or "",
            occurred_at=format_form_datetime(entry.occurred_at),
        )

    def _validate(self):
        return self._validator.validate_fund_entry(self.form)

    def _load(self, entry_id: int) -> PersonalFundEntry:
        return self._storage.get_fund_entry(entry_id)

    def _create(self, data) -> PersonalFundEntry:
        return self._storage.create_fund_entry(data, created_by_user_id=self._acting_user_id)

    def _update(self, entry_id: int, data) -> PersonalFundEntry:
        return self._storage.update_fund_entry(entry_id, data)

    def _delete(self, entry_id: int) -> None:
        self._storage.delete_fund_entry(entry_id)

    def _describe(self, entry: PersonalFundEntry) -> tuple[str, str]:
        return entry.direction.value, format_form_amount(entry.amount)

