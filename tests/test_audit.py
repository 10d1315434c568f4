"""Tests for audit models and the audit logger."""

from unittest.mock import Mock
from uuid import uuid4

from sitebook.audit import AuditLogger, create_correlation_id
from sitebook.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from sitebook.services.storage import InMemoryAuditStorage


class TestAuditModels:
    """Tests for audit event construction."""

    def test_record_created(self):
        event = AuditEventBuilder.record_created("incomes", "inc_1", "₹5000 from Dr. Salik")
        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.subject == "incomes"
        assert event.record_id == "inc_1"
        assert event.actor == "user"

    def test_sync_failed_is_an_error(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.sync_failed("apps_script", "timeout", correlation_id)
        assert event.severity == AuditSeverity.ERROR
        assert event.correlation_id == correlation_id
        assert event.error_message == "timeout"

    def test_derived_edit_refused_is_a_warning(self):
        event = AuditEventBuilder.derived_edit_refused("exp_1", "spent_expense", "delete")
        assert event.severity == AuditSeverity.WARNING
        assert event.details == {"entry_kind": "spent_expense", "action": "delete"}

    def test_log_dict_is_plain(self):
        event = AuditEventBuilder.settings_updated(["budget"])
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "settings_updated"
        assert isinstance(log_dict["event_id"], str)
        assert "correlation_id" not in log_dict

    def test_sheets_row_has_eleven_columns(self):
        row = AuditEventBuilder.backup_imported({"incomes": 3, "expenses": 2}).to_sheets_row()
        assert len(row) == 11
        assert row[2] == "backup_imported"
        assert '"incomes": 3' in row[8]


class TestAuditLogger:
    """Tests for the logging service."""

    def test_without_storage_only_logs_locally(self):
        assert AuditLogger().log(AuditEventBuilder.data_reset({})) is True

    def test_persists_to_storage(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        logger.log_record_deleted("payments", "pay_1")
        [event] = storage.get_recent_events()
        assert event.event_type == AuditEventType.RECORD_DELETED
        assert event.record_id == "pay_1"

    def test_storage_failure_never_raises(self):
        storage = Mock()
        storage.append_event.side_effect = RuntimeError("sheet gone")
        assert AuditLogger(storage).log(AuditEventBuilder.data_reset({})) is False

    def test_convenience_methods(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        logger.log_record_created("labours", "lab_1", "Ramesh")
        logger.log_record_updated("labours", "lab_1", "Ramesh")
        logger.log_validation_failed("incomes", [{"field": "amount"}])
        logger.log_derived_edit_refused("pay_1", "spent_labour", "edit")
        logger.log_error("ValueError", "boom")

        types = {e.event_type for e in storage.get_recent_events()}
        assert types == {
            AuditEventType.RECORD_CREATED,
            AuditEventType.RECORD_UPDATED,
            AuditEventType.VALIDATION_FAILED,
            AuditEventType.DERIVED_EDIT_REFUSED,
            AuditEventType.SYSTEM_ERROR,
        }

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()

    def test_event_round_trips_through_model(self):
        event = AuditEventBuilder.report_exported("/tmp/report.csv")
        assert AuditEvent.model_validate(event.model_dump()) == event
