"""
Audit Models for Household Ledger

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Traceability of who created, changed or removed money records
2. Debugging information when a save is rejected
3. Ability to reconstruct history after a hard delete

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from household_ledger.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Shared transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Personal funds
    FUND_ENTRY_CREATED = "fund_entry_created"
    FUND_ENTRY_UPDATED = "fund_entry_updated"
    FUND_ENTRY_DELETED = "fund_entry_deleted"

    # Rejected input
    VALIDATION_FAILED = "validation_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Maps onto the log level the event is written at."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    One append-only line of the audit trail.

    Amounts travel as formatted strings in ``details`` so the log shows
    exactly what was stored.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utc_now)

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # 'transaction' or 'fund_entry'
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    acting_user_id: Optional[int] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Shared by every event raised while handling one request"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Flatten to JSON-safe values for structlog."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_saved("transaction", 7, True, ...)
        event = AuditEventBuilder.validation_failed("transaction", issues, ...)
    """

    _EVENT_TYPES = {
        ("transaction", "created"): AuditEventType.TRANSACTION_CREATED,
        ("transaction", "updated"): AuditEventType.TRANSACTION_UPDATED,
        ("transaction", "deleted"): AuditEventType.TRANSACTION_DELETED,
        ("fund_entry", "created"): AuditEventType.FUND_ENTRY_CREATED,
        ("fund_entry", "updated"): AuditEventType.FUND_ENTRY_UPDATED,
        ("fund_entry", "deleted"): AuditEventType.FUND_ENTRY_DELETED,
    }

    @classmethod
    def entry_saved(
        cls,
        entity_type: str,
        entity_id: int,
        created: bool,
        amount: str,
        kind: str,
        acting_user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        action = "created" if created else "updated"
        label = entity_type.replace("_", " ")
        return AuditEvent(
            event_type=cls._EVENT_TYPES[(entity_type, action)],
            entity_type=entity_type,
            entity_id=entity_id,
            acting_user_id=acting_user_id,
            correlation_id=correlation_id,
            description=f"{label.capitalize()} {action}: {kind} {amount}",
            details={
                "kind": kind,
                "amount": amount,
            },
        )

    @classmethod
    def entry_deleted(
        cls,
        entity_type: str,
        entity_id: int,
        acting_user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        label = entity_type.replace("_", " ")
        return AuditEvent(
            event_type=cls._EVENT_TYPES[(entity_type, "deleted")],
            entity_type=entity_type,
            entity_id=entity_id,
            acting_user_id=acting_user_id,
            correlation_id=correlation_id,
            description=f"{label.capitalize()} {entity_id} deleted",
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        acting_user_id: int,
        entity_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            acting_user_id=acting_user_id,
            correlation_id=correlation_id,
            description=f"Save rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
