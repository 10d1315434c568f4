"""
Audit Models for Sitebook

Every change to the books is logged for audit purposes.
This provides:
1. Traceability of who changed which record, and when
2. Debugging information when a sync or import goes wrong
3. A history partners can review when balances are questioned

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Record changes
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    VALIDATION_FAILED = "validation_failed"
    DERIVED_EDIT_REFUSED = "derived_edit_refused"

    # Remote mirror
    SYNC_STARTED = "sync_started"
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"

    # Export and restore
    REPORT_EXPORTED = "report_exported"
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"
    BACKUP_REJECTED = "backup_rejected"

    # Project-level
    SETTINGS_UPDATED = "settings_updated"
    DATA_RESET = "data_reset"

    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# What an event is about when it is not a single record
SNAPSHOT_SUBJECT = "snapshot"
SETTINGS_SUBJECT = "settings"
HISTORY_SUBJECT = "history"


class AuditEvent(BaseModel):
    """
    One line in the project's change log.

    `subject` is a record collection ("incomes", "payments", ...) or one
    of the whole-book subjects above; `record_id` is set for changes to
    a single record. Sync attempts share a `correlation_id` between the
    start event and its outcome.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utc_now)

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    subject: Optional[str] = None
    record_id: Optional[str] = None
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    actor: Literal["user", "system"] = "system"

    def to_log_dict(self) -> dict:
        """Flat, JSON-safe fields for the structlog event."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_sheets_row(self) -> list:
        """
        One row of the AuditLog worksheet, in AUDIT_COLUMNS order.
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.subject or "",
            self.record_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            self.actor,
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("incomes", income.id, "₹5000")
        event = AuditEventBuilder.sync_failed("apps_script", str(e), correlation_id)
    """

    @staticmethod
    def record_created(
        kind: str,
        record_id: str,
        summary: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            subject=kind,
            record_id=record_id,
            description=f"Added to {kind}: {summary}",
            details={"summary": summary},
            actor="user",
        )

    @staticmethod
    def record_updated(
        kind: str,
        record_id: str,
        summary: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            subject=kind,
            record_id=record_id,
            description=f"Updated in {kind}: {summary}",
            details={"summary": summary},
            actor="user",
        )

    @staticmethod
    def record_deleted(
        kind: str,
        record_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            subject=kind,
            record_id=record_id,
            description=f"Deleted from {kind}: {record_id}",
            actor="user",
        )

    @staticmethod
    def validation_failed(
        kind: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            subject=kind,
            description=f"Entry rejected with {len(issues)} issues",
            details={"issues": issues},
            actor="user",
        )

    @staticmethod
    def derived_edit_refused(
        entry_id: str,
        entry_kind: str,
        action: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DERIVED_EDIT_REFUSED,
            severity=AuditSeverity.WARNING,
            subject=HISTORY_SUBJECT,
            record_id=entry_id,
            description=f"Refused to {action} derived history entry ({entry_kind})",
            details={"entry_kind": entry_kind, "action": action},
            actor="user",
        )

    @staticmethod
    def sync_started(
        target: str,
        record_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_STARTED,
            subject=SNAPSHOT_SUBJECT,
            correlation_id=correlation_id,
            description=f"Sync to {target} started ({record_count} records)",
            details={"target": target, "record_count": record_count},
        )

    @staticmethod
    def sync_completed(
        target: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_COMPLETED,
            subject=SNAPSHOT_SUBJECT,
            correlation_id=correlation_id,
            description=f"Sync to {target} sent",
            details={"target": target},
        )

    @staticmethod
    def sync_failed(
        target: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            subject=SNAPSHOT_SUBJECT,
            correlation_id=correlation_id,
            description=f"Sync to {target} failed",
            error_message=error_message,
            details={"target": target},
        )

    @staticmethod
    def report_exported(path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_EXPORTED,
            subject=SNAPSHOT_SUBJECT,
            description="CSV report exported",
            details={"path": path},
            actor="user",
        )

    @staticmethod
    def backup_exported(path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            subject=SNAPSHOT_SUBJECT,
            description="JSON backup exported",
            details={"path": path},
            actor="user",
        )

    @staticmethod
    def backup_imported(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORTED,
            subject=SNAPSHOT_SUBJECT,
            description=f"Backup restored ({sum(counts.values())} records)",
            details={"counts": counts},
            actor="user",
        )

    @staticmethod
    def backup_rejected(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_REJECTED,
            severity=AuditSeverity.WARNING,
            subject=SNAPSHOT_SUBJECT,
            description="Backup file rejected; current data kept",
            error_message=error_message,
            actor="user",
        )

    @staticmethod
    def settings_updated(changed: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            subject=SETTINGS_SUBJECT,
            description=f"Settings updated: {', '.join(changed) or 'nothing'}",
            details={"changed": changed},
            actor="user",
        )

    @staticmethod
    def data_reset(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            severity=AuditSeverity.WARNING,
            subject=SNAPSHOT_SUBJECT,
            description="All records cleared",
            details={"counts_before": counts},
            actor="user",
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
