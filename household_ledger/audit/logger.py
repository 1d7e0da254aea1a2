"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged.
This provides:
1. Traceability of who changed which money record
2. Debugging capability when a save is rejected
3. A record of hard deletes, which leave nothing behind in the tables

The audit logger:
- Writes structured JSON lines through structlog
- Never raises: a logging failure must not undo a committed write
- Supports correlation IDs to trace events from one request
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from household_ledger.config import get_settings
from household_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure stdlib logging and structlog for JSON output.

    Args:
        level: Minimum log level. Defaults to the configured log_level.
    """
    level = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("household_ledger").setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Every event goes to the structured log. Events are also kept in
    memory (bounded) so the UI layer can show a short activity feed.
    """

    def __init__(self, history_size: int = 100):
        self._logger = structlog.get_logger("household_ledger.audit")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        self._history.append(event)
        del self._history[:-self._history_size]

        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).error(
                "audit logging failed for %s: %s", event.event_id, e
            )

    def log_entry_saved(
        self,
        entity_type: str,
        entity_id: int,
        created: bool,
        amount: str,
        kind: str,
        acting_user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a created or updated transaction / fund entry."""
        event = AuditEventBuilder.entry_saved(
            entity_type=entity_type,
            entity_id=entity_id,
            created=created,
            amount=amount,
            kind=kind,
            acting_user_id=acting_user_id,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_entry_deleted(
        self,
        entity_type: str,
        entity_id: int,
        acting_user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a hard delete."""
        event = AuditEventBuilder.entry_deleted(
            entity_type=entity_type,
            entity_id=entity_id,
            acting_user_id=acting_user_id,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        acting_user_id: int,
        entity_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a save rejected by validation."""
        event = AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            acting_user_id=acting_user_id,
            entity_id=entity_id,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it to the editor.
    """
    return uuid4()
