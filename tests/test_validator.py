"""Tests for field-level entry validation."""

import pytest
from datetime import datetime
from decimal import Decimal

from household_ledger.models.forms import PersonalFundForm, TransactionForm
from household_ledger.models.ledger import FundDirection, TransactionType
from household_ledger.validation import EntryValidator, ValidationError


@pytest.fixture
def validator(storage):
    return EntryValidator(storage)


def _transaction_form(user, **overrides):
    values = dict(
        type="expense",
        amount="120.50",
        paid_by_user_id=user.id,
        description="Internet",
        occurred_at="2025-01-31T18:45",
    )
    values.update(overrides)
    return TransactionForm(**values)


class TestTransactionValidation:
    """Tests for transaction form validation."""

    def test_valid_form(self, validator, me):
        data = validator.validate_transaction(_transaction_form(me))
        assert data.type == TransactionType.EXPENSE
        assert data.amount == Decimal("120.50")
        assert data.paid_by_user_id == me.id
        assert data.description == "Internet"
        assert data.occurred_at == datetime(2025, 1, 31, 18, 45)

    def test_payer_as_form_string(self, validator, me):
        data = validator.validate_transaction(_transaction_form(me, paid_by_user_id=str(me.id)))
        assert data.paid_by_user_id == me.id

    def test_amount_required(self, validator, me):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, amount=""))
        assert exc_info.value.field == "amount"
        assert exc_info.value.issues[0].issue_type == "missing"

    @pytest.mark.parametrize("amount, issue_type", [
        ("abc", "invalid_format"),
        ("NaN", "invalid_format"),
        ("0", "too_small"),
        ("0.001", "too_small"),
        ("-3", "too_small"),
        ("10000000000", "too_large"),
    ])
    def test_bad_amounts(self, validator, me, amount, issue_type):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, amount=amount))
        assert exc_info.value.field == "amount"
        assert exc_info.value.issues[0].issue_type == issue_type

    def test_minimum_amount_accepted(self, validator, me):
        data = validator.validate_transaction(_transaction_form(me, amount="0.01"))
        assert data.amount == Decimal("0.01")

    def test_unknown_type(self, validator, me):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, type="transfer"))
        assert exc_info.value.field == "type"

    def test_missing_payer(self, validator, me):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, paid_by_user_id=None))
        assert exc_info.value.field == "paid_by_user_id"

    def test_payer_must_exist(self, validator, me):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, paid_by_user_id=999))
        assert exc_info.value.field == "paid_by_user_id"
        assert exc_info.value.issues[0].issue_type == "not_found"

    def test_payer_must_be_an_id(self, validator, me):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, paid_by_user_id="abc"))
        assert exc_info.value.issues[0].issue_type == "invalid_format"

    def test_description_optional(self, validator, me):
        data = validator.validate_transaction(_transaction_form(me, description=""))
        assert data.description is None

    def test_description_too_long(self, validator, me):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, description="x" * 1001))
        assert exc_info.value.field == "description"

    def test_description_at_limit(self, validator, me):
        data = validator.validate_transaction(_transaction_form(me, description="x" * 1000))
        assert len(data.description) == 1000

    @pytest.mark.parametrize("occurred_at", ["", "yesterday", "2025-13-01"])
    def test_bad_dates(self, validator, me, occurred_at):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(_transaction_form(me, occurred_at=occurred_at))
        assert exc_info.value.field == "occurred_at"

    def test_plain_date_accepted(self, validator, me):
        data = validator.validate_transaction(_transaction_form(me, occurred_at="2025-02-03"))
        assert data.occurred_at == datetime(2025, 2, 3)

    def test_collects_every_issue(self, validator, me):
        form = _transaction_form(me, type="", amount="", occurred_at="")
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transaction(form)
        error = exc_info.value
        assert error.fields == ["type", "amount", "occurred_at"]
        assert error.messages_for("amount") == ["The amount field is required."]


class TestFundEntryValidation:
    """Tests for personal fund form validation."""

    def test_valid_form(self, validator, partner):
        form = PersonalFundForm(
            user_id=partner.id,
            direction="debit",
            amount="45.25",
            occurred_at="2025-06-01T10:00",
        )
        data = validator.validate_fund_entry(form)
        assert data.direction == FundDirection.DEBIT
        assert data.amount == Decimal("45.25")
        assert data.user_id == partner.id
        assert data.description is None

    def test_owner_must_exist(self, validator):
        form = PersonalFundForm(user_id=12, amount="1", occurred_at="2025-06-01")
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_fund_entry(form)
        assert exc_info.value.field == "user_id"

    def test_direction_required(self, validator, me):
        form = PersonalFundForm(user_id=me.id, direction="", amount="1", occurred_at="2025-06-01")
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_fund_entry(form)
        assert exc_info.value.field == "direction"
