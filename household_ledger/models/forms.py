"""
Editor Form State

The editors keep the raw, user-entered values in these models until the
user presses Save. Nothing here is validated beyond "it is text": the
EntryValidator decides whether the values make a valid entry, so a half
typed amount never blows up while the user is still editing.

DESIGN DECISION: The form is a plain object owned by whoever drives the
editor (usually one request handler). There is no global editor state.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from household_ledger.models.ledger import FundDirection, TransactionType

FORM_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"


def format_form_datetime(value: datetime) -> str:
    """Render a timestamp the way a datetime-local input expects it."""
    if value.second or value.microsecond:
        return value.isoformat()
    return value.strftime(FORM_DATETIME_FORMAT)


def format_form_amount(value: Decimal) -> str:
    return f"{value:.2f}"


class _EntryForm(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    editing_id: Optional[int] = None
    amount: str = ""
    description: str = ""
    occurred_at: str = ""

    @field_validator('amount', mode='before')
    @classmethod
    def amount_as_text(cls, v):
        if isinstance(v, Decimal):
            return format_form_amount(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('description', mode='before')
    @classmethod
    def description_as_text(cls, v):
        return "" if v is None else v

    @field_validator('occurred_at', mode='before')
    @classmethod
    def occurred_at_as_text(cls, v):
        if isinstance(v, datetime):
            return format_form_datetime(v)
        return "" if v is None else v

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None


def _enum_as_text(v):
    if isinstance(v, Enum):
        return v.value
    return "" if v is None else v


class TransactionForm(_EntryForm):
    """Raw values of the transaction editor."""

    type: str = TransactionType.EXPENSE.value
    paid_by_user_id: Optional[Union[int, str]] = None

    @field_validator('type', mode='before')
    @classmethod
    def type_as_text(cls, v):
        return _enum_as_text(v)


class PersonalFundForm(_EntryForm):
    """Raw values of the personal fund editor."""

    direction: str = FundDirection.CREDIT.value
    user_id: Optional[Union[int, str]] = None

    @field_validator('direction', mode='before')
    @classmethod
    def direction_as_text(cls, v):
        return _enum_as_text(v)
