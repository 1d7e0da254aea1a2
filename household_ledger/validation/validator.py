"""
Entry Validation

DESIGN DECISION: Validation is field-level only.
The ledger has no business rules beyond "is this a well-formed entry":
- amount: required, numeric, at least 0.01, fits DECIMAL(12, 2)
- type / direction: one of the two defined values
- payer / owner: must reference an existing user
- description: optional, at most 1000 characters
- occurred_at: required, must parse as a date or date/time

All issues are collected in one pass so the UI can mark every bad
field at once. Nothing is persisted unless the whole form is valid.

IMPORTANT: Validation NEVER silently fixes issues. The only normalization
is rounding the amount to cents and treating an empty description as
"no description".
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from household_ledger.config import get_settings
from household_ledger.models.forms import PersonalFundForm, TransactionForm
from household_ledger.models.ledger import (
    CENT,
    MAX_AMOUNT,
    FundDirection,
    FundEntryData,
    TransactionData,
    TransactionType,
    ValidationIssue,
    to_cents,
    to_naive_utc,
)
from household_ledger.services.storage import UserDirectoryInterface


class ValidationError(Exception):
    """
    A form failed field-level validation.

    Attributes:
        issues: Every issue found, in field order
        field: The first offending field
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        self.field = issues[0].field if issues else None
        super().__init__(
            "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        )

    @property
    def fields(self) -> list[str]:
        """Offending fields without duplicates."""
        return list(dict.fromkeys(issue.field for issue in self.issues))

    def messages_for(self, field: str) -> list[str]:
        return [issue.message for issue in self.issues if issue.field == field]

    def to_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


class EntryValidator:
    """
    Validates editor forms and turns them into storable entry data.

    Needs the user directory to check that payer/owner references exist.
    """

    def __init__(
        self,
        users: UserDirectoryInterface,
        max_description_length: Optional[int] = None,
    ):
        self._users = users
        self._max_description_length = (
            max_description_length or get_settings().app.max_description_length
        )

    def validate_transaction(self, form: TransactionForm) -> TransactionData:
        """
        Validate a transaction form.

        Raises:
            ValidationError: If any field is invalid
        """
        issues: list[ValidationIssue] = []

        tx_type = self._check_choice("type", form.type, TransactionType, issues)
        amount = self._check_amount("amount", form.amount, issues)
        payer = self._check_user("paid_by_user_id", form.paid_by_user_id, issues)
        description = self._check_description("description", form.description, issues)
        occurred_at = self._check_datetime("occurred_at", form.occurred_at, issues)

        if issues:
            raise ValidationError(issues)

        return TransactionData(
            type=tx_type,
            amount=amount,
            paid_by_user_id=payer,
            description=description,
            occurred_at=occurred_at,
        )

    def validate_fund_entry(self, form: PersonalFundForm) -> FundEntryData:
        """
        Validate a personal fund form.

        Raises:
            ValidationError: If any field is invalid
        """
        issues: list[ValidationIssue] = []

        owner = self._check_user("user_id", form.user_id, issues)
        direction = self._check_choice("direction", form.direction, FundDirection, issues)
        amount = self._check_amount("amount", form.amount, issues)
        description = self._check_description("description", form.description, issues)
        occurred_at = self._check_datetime("occurred_at", form.occurred_at, issues)

        if issues:
            raise ValidationError(issues)

        return FundEntryData(
            user_id=owner,
            direction=direction,
            amount=amount,
            description=description,
            occurred_at=occurred_at,
        )

    # -------------------------------------------------------------------------
    # Field checks. Each appends its issues and returns the parsed value
    # (or None when the field is invalid).
    # -------------------------------------------------------------------------

    @staticmethod
    def _required(field: str, issues: list[ValidationIssue]) -> None:
        issues.append(ValidationIssue(
            field=field,
            issue_type="missing",
            message=f"The {field.replace('_', ' ')} field is required.",
        ))

    def _check_choice(
        self,
        field: str,
        raw: str,
        choices: type[Enum],
        issues: list[ValidationIssue],
    ):
        value = (raw or "").strip()
        if not value:
            self._required(field, issues)
            return None
        try:
            return choices(value)
        except ValueError:
            allowed = ", ".join(c.value for c in choices)
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_choice",
                message=f"The selected {field} is invalid (expected one of: {allowed}).",
            ))
            return None

    def _check_amount(
        self,
        field: str,
        raw: str,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        text = (raw or "").strip()
        if not text:
            self._required(field, issues)
            return None

        try:
            amount = Decimal(text)
        except InvalidOperation:
            amount = None
        if amount is None or not amount.is_finite():
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"The {field} must be a number.",
            ))
            return None

        if amount < CENT:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_small",
                message=f"The {field} must be at least {CENT}.",
            ))
            return None

        amount = to_cents(amount)
        if amount > MAX_AMOUNT:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_large",
                message=f"The {field} may not be greater than {MAX_AMOUNT}.",
            ))
            return None

        return amount

    def _check_user(
        self,
        field: str,
        raw: Optional[Union[int, str]],
        issues: list[ValidationIssue],
    ) -> Optional[int]:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            self._required(field, issues)
            return None

        try:
            user_id = int(raw)
        except (TypeError, ValueError):
            user_id = None
        if user_id is None or isinstance(raw, bool):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"The {field.replace('_', ' ')} must be a user ID.",
            ))
            return None

        if not self._users.user_exists(user_id):
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_found",
                message=f"The selected user ({user_id}) does not exist.",
            ))
            return None

        return user_id

    def _check_description(
        self,
        field: str,
        raw: str,
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        text = (raw or "").strip()
        if len(text) > self._max_description_length:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_long",
                message=(
                    f"The {field} may not be greater than "
                    f"{self._max_description_length} characters."
                ),
            ))
            return None
        return text or None

    def _check_datetime(
        self,
        field: str,
        raw: str,
        issues: list[ValidationIssue],
    ) -> Optional[datetime]:
        text = (raw or "").strip()
        if not text:
            self._required(field, issues)
            return None
        try:
            return to_naive_utc(datetime.fromisoformat(text))
        except ValueError:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"The {field.replace('_', ' ')} is not a valid date.",
            ))
            return None
