"""
Audit Logger

DESIGN DECISION: Every change to the books is logged.
This provides:
1. Traceability of each record back to the action that made it
2. A trail for disputed partner balances
3. Debugging when a sync or restore misbehaves

The audit logger:
- Runs inline; events are small and storage writes are best effort
- Gracefully handles failures (a broken audit sheet never blocks bookkeeping)
- Supports correlation IDs to tie a sync to its outcome
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from sitebook.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from sitebook.services.storage import AuditStorageInterface


# Configure structlog for local logging
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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log
    2. An audit storage backend (memory or the AuditLog sheet), if given
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        self._storage = storage
        self._logger = structlog.get_logger("sitebook.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the storage write succeeded (or no storage is
        configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is None:
            return True

        try:
            return self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def log_record_created(self, kind: str, record_id: str, summary: str) -> None:
        self.log(AuditEventBuilder.record_created(kind, record_id, summary))

    def log_record_updated(self, kind: str, record_id: str, summary: str) -> None:
        self.log(AuditEventBuilder.record_updated(kind, record_id, summary))

    def log_record_deleted(self, kind: str, record_id: str) -> None:
        self.log(AuditEventBuilder.record_deleted(kind, record_id))

    def log_validation_failed(self, kind: str, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.validation_failed(kind, issues))

    def log_derived_edit_refused(self, entry_id: str, entry_kind: str, action: str) -> None:
        self.log(AuditEventBuilder.derived_edit_refused(entry_id, entry_kind, action))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unexpected failure."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per user action and pass it to every event that action emits.
    """
    return uuid4()
