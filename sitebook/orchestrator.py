"""
Main Orchestrator for Sitebook

This module ties together all the components and defines the
end-to-end flows for:
1. Entry (form values -> validate -> store -> audit -> auto-sync)
2. Reading (store snapshot -> ledger engine / history feed)
3. Export, restore and sync

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the store without passing validation
- Every figure the UI shows is recomputed from the records
- Derived history entries are never edited through the income feed
- A rejected backup never touches current data
- Every mutation is audited

This is the "glue" between the Streamlit pages and the pure ledger
functions underneath.
"""

from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from sitebook.audit import AuditLogger
from sitebook.config import AppSettings, get_settings
from sitebook.ledger import summarize
from sitebook.models.audit import AuditEventBuilder
from sitebook.models.ledger import HistoryEntry, LedgerSummary
from sitebook.models.records import (
    RECORD_MODELS,
    Attendance,
    Expense,
    Income,
    LabourPayment,
    LabourProfile,
    ProjectSettings,
    RecordKind,
    RecordModel,
    Snapshot,
    Vendor,
)
from sitebook.models.validation import ValidationResult
from sitebook.queries import (
    DerivedEntryError,
    ensure_editable,
    history_totals,
    merged_history,
    search_history,
)
from sitebook.services.export import (
    UNKNOWN_LABOUR,
    BackupFormatError,
    export_backup,
    export_csv_report,
    labour_names,
    parse_backup,
)
from sitebook.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    JsonFileRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from sitebook.services.sync import SyncResult, SyncService
from sitebook.validation import RecordValidationError, RecordValidator


logger = structlog.get_logger(__name__)

RecordInput = Union[dict, RecordModel]


def _describe(kind: RecordKind, record: RecordModel) -> str:
    """One-line audit summary of a record."""
    if kind == RecordKind.INCOMES:
        return f"₹{record.amount} from {record.paid_by.value}"
    if kind == RecordKind.EXPENSES:
        return f"₹{record.amount} to {record.paid_to or record.category.value} by {record.paid_by.value}"
    if kind == RecordKind.PAYMENTS:
        return f"₹{record.amount} to labour {record.labour_id} by {record.paid_by.value}"
    if kind == RecordKind.ATTENDANCE:
        return f"{record.status.value} for labour {record.labour_id} on {record.date}"
    if kind == RecordKind.LABOURS:
        return f"{record.name} at ₹{record.daily_wage}/day"
    return record.name


class BookkeepingService:
    """
    Orchestrates every read and write the UI performs.

    Writes flow:
    1. Validate -> two-stage check against the current snapshot
    2. Store -> add / update / delete in the record store
    3. Audit -> record the change
    4. Sync -> push in the background when auto-sync is on

    Reads always recompute from a fresh snapshot.
    """

    def __init__(
        self,
        store: Optional[RecordStoreInterface] = None,
        validator: Optional[RecordValidator] = None,
        sync_service: Optional[SyncService] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._settings = settings or get_settings().app
        self._store = store or InMemoryRecordStore()
        self._validator = validator or RecordValidator(self._settings)
        self._audit_logger = audit_logger or AuditLogger()
        self._sync = sync_service or SyncService(audit_logger=self._audit_logger)

        self.last_sync_thread = None
        self.last_sync_result: Optional[SyncResult] = None

    @property
    def store(self) -> RecordStoreInterface:
        return self._store

    @property
    def validator(self) -> RecordValidator:
        return self._validator

    # =========================================================================
    # Generic record operations
    # =========================================================================

    def _remember_sync(self, result: SyncResult) -> None:
        self.last_sync_result = result

    def _after_change(self) -> None:
        """Kick off a background push if the project has auto-sync on."""
        if not self._store.get_settings().auto_sync:
            return
        self.last_sync_thread = self._sync.push_in_background(
            self._store.snapshot(),
            on_done=self._remember_sync,
        )

    def _write(self, kind: RecordKind, action: str, operation, *args):
        try:
            return operation(kind, *args)
        except StorageError as e:
            self._audit_logger.log_error(
                error_type="storage_error",
                error_message=str(e),
                details={"kind": kind.value, "action": action},
            )
            raise

    def _validated(
        self,
        kind: RecordKind,
        data: RecordInput,
    ) -> tuple[RecordModel, ValidationResult]:
        result = self._validator.validate(kind, data, self._store.snapshot())
        if not result.is_valid:
            self._audit_logger.log_validation_failed(
                kind.value,
                [issue.model_dump() for issue in result.errors],
            )
            raise RecordValidationError(result)
        return result.record, result

    def add_record(
        self,
        kind: RecordKind,
        data: RecordInput,
    ) -> tuple[RecordModel, ValidationResult]:
        """
        Validate and store a new record.

        Returns:
            (stored_record, validation_result). Warnings are on the result.

        Raises:
            RecordValidationError: If the entry has errors
        """
        record, result = self._validated(kind, data)
        stored = self._write(kind, "add", self._store.add, record)
        self._audit_logger.log_record_created(kind.value, stored.id, _describe(kind, stored))
        self._after_change()
        return stored, result

    def update_record(
        self,
        kind: RecordKind,
        record_id: str,
        changes: RecordInput,
    ) -> tuple[RecordModel, ValidationResult]:
        """
        Apply changes to an existing record and re-validate it.

        `changes` may be a partial dict; the id is always kept.

        Raises:
            NotFoundError: If no such record exists
            RecordValidationError: If the result has errors
        """
        existing = self._store.get(kind, record_id)
        if existing is None:
            raise NotFoundError(f"No record {record_id} in {kind.value}")

        if isinstance(changes, RecordModel):
            changes = changes.model_dump()

        # camelCase form keys onto field names, so they override the dump
        aliases = {
            field.alias: name
            for name, field in RECORD_MODELS[kind].model_fields.items()
            if field.alias
        }
        changes = {aliases.get(key, key): value for key, value in changes.items()}
        merged = {**existing.model_dump(), **changes, "id": existing.id}

        record, result = self._validated(kind, merged)
        stored = self._write(kind, "update", self._store.update, record)
        self._audit_logger.log_record_updated(kind.value, stored.id, _describe(kind, stored))
        self._after_change()
        return stored, result

    def delete_record(self, kind: RecordKind, record_id: str) -> bool:
        """
        Delete a record by id.

        Deleting a labour profile leaves its attendance and payments in
        place; they simply stop counting for anyone.
        """
        deleted = self._write(kind, "delete", self._store.delete, record_id)
        if deleted:
            self._audit_logger.log_record_deleted(kind.value, str(record_id))
            self._after_change()
        return deleted

    def list_records(self, kind: RecordKind) -> list[RecordModel]:
        return self._store.list(kind)

    # =========================================================================
    # Per-kind entry points used by the UI
    # =========================================================================

    def add_income(self, data: RecordInput) -> tuple[Income, ValidationResult]:
        return self.add_record(RecordKind.INCOMES, data)

    def update_income(self, record_id: str, changes: RecordInput) -> tuple[Income, ValidationResult]:
        return self.update_record(RecordKind.INCOMES, record_id, changes)

    def delete_income(self, record_id: str) -> bool:
        return self.delete_record(RecordKind.INCOMES, record_id)

    def add_expense(self, data: RecordInput) -> tuple[Expense, ValidationResult]:
        return self.add_record(RecordKind.EXPENSES, data)

    def update_expense(self, record_id: str, changes: RecordInput) -> tuple[Expense, ValidationResult]:
        return self.update_record(RecordKind.EXPENSES, record_id, changes)

    def delete_expense(self, record_id: str) -> bool:
        return self.delete_record(RecordKind.EXPENSES, record_id)

    def add_labour(self, data: RecordInput) -> tuple[LabourProfile, ValidationResult]:
        return self.add_record(RecordKind.LABOURS, data)

    def update_labour(self, record_id: str, changes: RecordInput) -> tuple[LabourProfile, ValidationResult]:
        return self.update_record(RecordKind.LABOURS, record_id, changes)

    def delete_labour(self, record_id: str) -> bool:
        return self.delete_record(RecordKind.LABOURS, record_id)

    def add_attendance(self, data: RecordInput) -> tuple[Attendance, ValidationResult]:
        return self.add_record(RecordKind.ATTENDANCE, data)

    def update_attendance(self, record_id: str, changes: RecordInput) -> tuple[Attendance, ValidationResult]:
        return self.update_record(RecordKind.ATTENDANCE, record_id, changes)

    def delete_attendance(self, record_id: str) -> bool:
        return self.delete_record(RecordKind.ATTENDANCE, record_id)

    def add_payment(self, data: RecordInput) -> tuple[LabourPayment, ValidationResult]:
        return self.add_record(RecordKind.PAYMENTS, data)

    def update_payment(self, record_id: str, changes: RecordInput) -> tuple[LabourPayment, ValidationResult]:
        return self.update_record(RecordKind.PAYMENTS, record_id, changes)

    def delete_payment(self, record_id: str) -> bool:
        return self.delete_record(RecordKind.PAYMENTS, record_id)

    def add_vendor(self, data: RecordInput) -> tuple[Vendor, ValidationResult]:
        return self.add_record(RecordKind.VENDORS, data)

    def update_vendor(self, record_id: str, changes: RecordInput) -> tuple[Vendor, ValidationResult]:
        return self.update_record(RecordKind.VENDORS, record_id, changes)

    def delete_vendor(self, record_id: str) -> bool:
        return self.delete_record(RecordKind.VENDORS, record_id)

    # =========================================================================
    # Derived views
    # =========================================================================

    def snapshot(self) -> Snapshot:
        return self._store.snapshot()

    def summary(self) -> LedgerSummary:
        """Labour stats, fund totals and partner breakdown, fresh."""
        return summarize(self._store.snapshot())

    def _with_worker_names(self, kind: RecordKind) -> list[tuple[RecordModel, str]]:
        names = labour_names(self._store.snapshot())
        records = sorted(self._store.list(kind), key=lambda r: r.date, reverse=True)
        return [(r, names.get(str(r.labour_id), UNKNOWN_LABOUR)) for r in records]

    def payments_with_workers(self) -> list[tuple[LabourPayment, str]]:
        """Labour payments newest first, each with its worker's name or "Unknown"."""
        return self._with_worker_names(RecordKind.PAYMENTS)

    def attendance_with_workers(self) -> list[tuple[Attendance, str]]:
        """Attendance marks newest first, each with its worker's name or "Unknown"."""
        return self._with_worker_names(RecordKind.ATTENDANCE)

    def history(self, search: Optional[str] = None) -> list[HistoryEntry]:
        """The merged income feed, optionally filtered."""
        snapshot = self._store.snapshot()
        entries = merged_history(snapshot.incomes, snapshot.expenses, snapshot.payments)
        return search_history(entries, search)

    def history_totals(self):
        """(direct_total, personal_spend_total) over the whole feed."""
        return history_totals(self.history())

    def _guard_history_entry(self, entry: HistoryEntry, action: str) -> None:
        try:
            ensure_editable(entry, action)
        except DerivedEntryError:
            self._audit_logger.log_derived_edit_refused(entry.id, entry.kind.value, action)
            raise

    def edit_history_entry(
        self,
        entry: HistoryEntry,
        changes: RecordInput,
    ) -> tuple[Income, ValidationResult]:
        """
        Edit a feed entry. Only direct incomes can be edited here.

        Raises:
            DerivedEntryError: For personal-spend entries
        """
        self._guard_history_entry(entry, "edit")
        return self.update_income(entry.origin_id or entry.id, changes)

    def delete_history_entry(self, entry: HistoryEntry) -> bool:
        """
        Delete a feed entry. Only direct incomes can be deleted here.

        Raises:
            DerivedEntryError: For personal-spend entries; nothing changes
        """
        self._guard_history_entry(entry, "delete")
        return self.delete_income(entry.origin_id or entry.id)

    # =========================================================================
    # Sync, export and restore
    # =========================================================================

    def sync_now(self) -> SyncResult:
        """Push everything to the sheet mirror and wait for the outcome."""
        result = self._sync.sync(self._store.snapshot())
        self.last_sync_result = result
        return result

    def export_csv(
        self,
        output_dir: Optional[Path] = None,
        day: Optional[date] = None,
    ) -> Path:
        path = export_csv_report(
            self._store.snapshot(),
            output_dir or self._settings.export_path,
            day,
        )
        self._audit_logger.log(AuditEventBuilder.report_exported(str(path)))
        return path

    def export_backup(self, output_dir: Optional[Path] = None) -> Path:
        path = export_backup(
            self._store.snapshot(),
            output_dir or self._settings.export_path,
        )
        self._audit_logger.log(AuditEventBuilder.backup_exported(str(path)))
        return path

    def import_backup(self, content: Union[str, bytes]) -> dict[str, int]:
        """
        Replace all data with a backup's contents.

        The backup is fully parsed first; current data is only replaced
        once it is known to be good.

        Returns:
            Record counts per collection after the restore

        Raises:
            BackupFormatError: If the file is rejected (state unchanged)
        """
        try:
            restored = parse_backup(content, fallback_settings=self._store.get_settings())
        except BackupFormatError as e:
            self._audit_logger.log(AuditEventBuilder.backup_rejected(str(e)))
            raise

        self._store.replace_all(restored)
        counts = {kind.value: len(restored.records(kind)) for kind in RecordKind}
        self._audit_logger.log(AuditEventBuilder.backup_imported(counts))
        logger.info("backup_imported", **counts)
        return counts

    # =========================================================================
    # Project settings and reset
    # =========================================================================

    def get_project_settings(self) -> ProjectSettings:
        return self._store.get_settings()

    def update_settings(self, **changes: Any) -> ProjectSettings:
        """
        Change project settings.

        Raises:
            pydantic.ValidationError: If a value is invalid (nothing saved)
        """
        current = self._store.get_settings()
        updated = ProjectSettings.model_validate({**current.model_dump(), **changes})

        changed = sorted(
            name for name in ProjectSettings.model_fields
            if getattr(updated, name) != getattr(current, name)
        )
        self._store.save_settings(updated)
        self._audit_logger.log(AuditEventBuilder.settings_updated(changed))
        return updated

    def reset_all(self) -> dict[str, int]:
        """Delete every record. Project settings are kept."""
        snapshot = self._store.snapshot()
        counts = {kind.value: len(snapshot.records(kind)) for kind in RecordKind}
        self._store.reset()
        self._audit_logger.log(AuditEventBuilder.data_reset(counts))
        return counts


def create_app_components(
    use_sheets_audit: bool = True,
    settings: Optional[AppSettings] = None,
) -> BookkeepingService:
    """
    Factory function to create all application components.

    Args:
        use_sheets_audit: Whether to persist audit events to the
                          AuditLog sheet. Falls back to memory when the
                          service account isn't configured.
        settings: App settings; loaded from the environment when None

    Returns:
        A ready BookkeepingService
    """
    settings = settings or get_settings().app

    if settings.data_path is not None:
        store: RecordStoreInterface = JsonFileRecordStore(settings.data_path)
    else:
        store = InMemoryRecordStore()

    audit_storage: AuditStorageInterface
    if use_sheets_audit:
        try:
            audit_storage = GoogleSheetsAuditStorage(GoogleSheetsClient())
        except ValidationError as e:
            # Service account not configured - continue without it
            logger.warning("sheets_audit_not_configured", error=str(e))
            audit_storage = InMemoryAuditStorage()
    else:
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)

    return BookkeepingService(
        store=store,
        validator=RecordValidator(settings),
        sync_service=SyncService(audit_logger=audit_logger),
        audit_logger=audit_logger,
        settings=settings,
    )
