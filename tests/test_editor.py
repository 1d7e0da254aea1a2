"""
Tests for the entry editors.

These walk the same flows as the add/edit/delete screens: fill the form,
save, load it back for editing, save again, delete.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

from household_ledger.editor import PersonalFundEditor, TransactionEditor, _EntryEditor
from household_ledger.events import PERSONAL_FUND_UPDATED, TRANSACTION_UPDATED
from household_ledger.models.audit import AuditEventType
from household_ledger.models.forms import TransactionForm
from household_ledger.models.ledger import FundDirection, TransactionType
from household_ledger.services.storage import NotFoundError, ReferentialError, StorageError
from household_ledger.validation import ValidationError


@pytest.fixture
def tx_editor(storage, me, notifier, audit_logger):
    return TransactionEditor(storage, me.id, notifier=notifier, audit_logger=audit_logger)


@pytest.fixture
def fund_editor(storage, me, notifier, audit_logger):
    return PersonalFundEditor(storage, me.id, notifier=notifier, audit_logger=audit_logger)


class TestTransactionEditor:
    """Tests for add/edit/delete of shared transactions."""

    def test_starts_in_creating_state_with_defaults(self, tx_editor, me):
        assert tx_editor.is_editing is False
        assert tx_editor.form.paid_by_user_id == me.id
        assert tx_editor.form.type == "expense"
        assert tx_editor.form.amount == ""
        datetime.strptime(tx_editor.form.occurred_at, "%Y-%m-%dT%H:%M")

    def test_add_edit_delete_flow(self, tx_editor, storage, me, partner):
        tx_editor.fill(
            type=TransactionType.EXPENSE,
            amount="120.50",
            paid_by_user_id=partner.id,
            description="Internet",
            occurred_at="2025-01-31T18:45",
        )
        created = tx_editor.save()

        stored = storage.get_transaction(created.id)
        assert stored.description == "Internet"
        assert stored.created_by_user_id == me.id
        assert tx_editor.is_editing is False

        tx_editor.start_edit(created.id)
        tx_editor.fill(amount="95.00")
        tx_editor.save()

        assert storage.get_transaction(created.id).amount == Decimal("95.00")
        assert storage.list_transactions().total == 1

        tx_editor.delete(created.id)
        with pytest.raises(NotFoundError):
            storage.get_transaction(created.id)

    def test_start_edit_round_trip(self, tx_editor, partner):
        tx_editor.fill(
            type="income",
            amount="1000",
            paid_by_user_id=partner.id,
            description="Salary",
            occurred_at="2025-02-28T09:15",
        )
        saved = tx_editor.save()

        form = tx_editor.start_edit(saved.id)
        assert form.editing_id == saved.id
        assert form.type == "income"
        assert form.amount == "1000.00"
        assert form.paid_by_user_id == partner.id
        assert form.description == "Salary"
        assert form.occurred_at == "2025-02-28T09:15"

    def test_edit_by_other_user_keeps_creator(self, storage, me, partner, tx_editor):
        tx_editor.fill(amount="10", occurred_at="2025-01-01T10:00")
        saved = tx_editor.save()

        partner_editor = TransactionEditor(storage, partner.id)
        partner_editor.start_edit(saved.id)
        partner_editor.fill(description="Fixed typo")
        partner_editor.save()

        stored = storage.get_transaction(saved.id)
        assert stored.created_by_user_id == me.id
        assert stored.description == "Fixed typo"

    def test_clearing_description_stores_null(self, tx_editor, storage):
        tx_editor.fill(amount="10", description="Temp", occurred_at="2025-01-01T10:00")
        saved = tx_editor.save()
        tx_editor.start_edit(saved.id)
        tx_editor.fill(description="")
        tx_editor.save()
        assert storage.get_transaction(saved.id).description is None

    def test_invalid_save_writes_nothing(self, tx_editor, storage, notifier):
        listener = MagicMock()
        notifier.subscribe(listener)
        tx_editor.fill(amount="0", occurred_at="2025-01-01T10:00")

        with pytest.raises(ValidationError) as exc_info:
            tx_editor.save()

        assert exc_info.value.field == "amount"
        assert storage.list_transactions().total == 0
        listener.assert_not_called()
        # Form is kept so the user can correct it
        assert tx_editor.form.amount == "0"

    def test_invalid_update_keeps_row(self, tx_editor, storage):
        tx_editor.fill(amount="10", occurred_at="2025-01-01T10:00")
        saved = tx_editor.save()

        tx_editor.start_edit(saved.id)
        tx_editor.fill(amount="12", occurred_at="not a date")
        with pytest.raises(ValidationError):
            tx_editor.save()

        assert storage.get_transaction(saved.id).amount == Decimal("10.00")
        assert tx_editor.editing_id == saved.id

    def test_start_edit_unknown_id(self, tx_editor):
        with pytest.raises(NotFoundError):
            tx_editor.start_edit(404)
        assert tx_editor.is_editing is False

    def test_delete_unknown_id(self, tx_editor):
        with pytest.raises(NotFoundError):
            tx_editor.delete(404)

    def test_deleting_bound_entry_resets_form(self, tx_editor):
        tx_editor.fill(amount="10", occurred_at="2025-01-01T10:00")
        saved = tx_editor.save()
        tx_editor.start_edit(saved.id)

        tx_editor.delete(saved.id)
        assert tx_editor.is_editing is False
        assert tx_editor.form.amount == ""

    def test_deleting_other_entry_keeps_form(self, tx_editor):
        tx_editor.fill(amount="10", occurred_at="2025-01-01T10:00")
        first = tx_editor.save()
        tx_editor.fill(amount="20", occurred_at="2025-01-02T10:00")
        second = tx_editor.save()

        tx_editor.start_edit(first.id)
        tx_editor.delete(second.id)
        assert tx_editor.editing_id == first.id

    def test_cancel(self, tx_editor):
        tx_editor.fill(amount="10", occurred_at="2025-01-01T10:00")
        saved = tx_editor.save()
        tx_editor.start_edit(saved.id)
        tx_editor.fill(amount="99")

        tx_editor.cancel()
        assert tx_editor.is_editing is False
        assert tx_editor.form.amount == ""

    def test_editing_id_cannot_be_filled(self, tx_editor):
        with pytest.raises(ValueError):
            tx_editor.fill(editing_id=1)

    def test_form_can_be_carried_between_requests(self, storage, me):
        first_request = TransactionEditor(storage, me.id)
        first_request.fill(amount="33.30", occurred_at="2025-01-01T10:00")
        form = TransactionForm.model_validate(first_request.form.model_dump())

        second_request = TransactionEditor(storage, me.id, form=form)
        saved = second_request.save()
        assert saved.amount == Decimal("33.30")

    def test_notifies_on_save_and_delete(self, tx_editor, notifier):
        received = []
        notifier.subscribe(received.append, TRANSACTION_UPDATED)

        tx_editor.fill(amount="10", occurred_at="2025-01-01T10:00")
        saved = tx_editor.save()
        tx_editor.delete(saved.id)

        assert received == [TRANSACTION_UPDATED, TRANSACTION_UPDATED]

    def test_audit_trail(self, tx_editor, audit_logger, me):
        tx_editor.fill(amount="10", occurred_at="2025-01-01T10:00")
        saved = tx_editor.save()
        tx_editor.start_edit(saved.id)
        tx_editor.fill(amount="")
        with pytest.raises(ValidationError):
            tx_editor.save()
        tx_editor.delete(saved.id)

        types = [e.event_type for e in reversed(audit_logger.recent_events)]
        assert types == [
            AuditEventType.TRANSACTION_CREATED,
            AuditEventType.VALIDATION_FAILED,
            AuditEventType.TRANSACTION_DELETED,
        ]
        assert all(e.acting_user_id == me.id for e in audit_logger.recent_events)

    def test_referential_error_becomes_validation_error(self, me):
        storage = MagicMock()
        storage.user_exists.return_value = True
        storage.create_transaction.side_effect = ReferentialError("gone")

        editor = TransactionEditor(storage, me.id)
        editor.fill(amount="10", occurred_at="2025-01-01T10:00")

        with pytest.raises(ValidationError) as exc_info:
            editor.save()
        assert exc_info.value.field == "paid_by_user_id"


    def test_storage_failure_is_audited(self, me, audit_logger):
        storage = MagicMock()
        storage.user_exists.return_value = True
        storage.create_transaction.side_effect = StorageError("disk full")

        editor = TransactionEditor(storage, me.id, audit_logger=audit_logger)
        editor.fill(amount="10", occurred_at="2025-01-01T10:00")

        with pytest.raises(StorageError):
            editor.save()
        event = audit_logger.recent_events[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "disk full"
        assert editor.form.amount == "10"

    def test_delete_storage_failure_is_audited(self, me, notifier, audit_logger):
        storage = MagicMock()
        storage.delete_transaction.side_effect = StorageError("database is locked")
        received = []
        notifier.subscribe(received.append)

        editor = TransactionEditor(storage, me.id, notifier=notifier, audit_logger=audit_logger)
        with pytest.raises(StorageError):
            editor.delete(5)

        event = audit_logger.recent_events[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.details["action"] == "delete"
        assert event.details["entity_id"] == 5
        assert received == []

    def test_delete_missing_entry_is_not_a_system_error(self, tx_editor, audit_logger):
        with pytest.raises(NotFoundError):
            tx_editor.delete(404)
        assert audit_logger.recent_events == []

    def test_base_editor_cannot_be_instantiated(self, storage, me):
        with pytest.raises(TypeError):
            _EntryEditor(storage, me.id)

class TestPersonalFundEditor:
    """Tests for add/edit/delete of personal fund entries."""

    def test_add_edit_delete_flow(self, fund_editor, storage, partner, notifier):
        received = []
        notifier.subscribe(received.append)

        fund_editor.fill(
            user_id=partner.id,
            direction=FundDirection.CREDIT,
            amount="200.00",
            description="Savings transfer",
            occurred_at="2025-03-01T12:00",
        )
        entry = fund_editor.save()
        assert storage.get_fund_entry(entry.id).description == "Savings transfer"

        fund_editor.start_edit(entry.id)
        fund_editor.fill(direction="debit", amount="45.25")
        fund_editor.save()

        stored = storage.get_fund_entry(entry.id)
        assert stored.direction == FundDirection.DEBIT
        assert stored.amount == Decimal("45.25")

        fund_editor.delete(entry.id)
        with pytest.raises(NotFoundError):
            storage.get_fund_entry(entry.id)

        assert received == [PERSONAL_FUND_UPDATED] * 3

    def test_defaults_after_save(self, fund_editor, me, partner):
        fund_editor.fill(user_id=partner.id, direction="debit", amount="5", occurred_at="2025-03-01")
        fund_editor.save()

        assert fund_editor.form.user_id == me.id
        assert fund_editor.form.direction == "credit"
        assert fund_editor.form.amount == ""
        assert fund_editor.form.description == ""

    def test_owner_must_exist(self, fund_editor, storage):
        fund_editor.fill(user_id=999, amount="5", occurred_at="2025-03-01")
        with pytest.raises(ValidationError) as exc_info:
            fund_editor.save()
        assert exc_info.value.field == "user_id"
        assert storage.list_fund_entries().total == 0
