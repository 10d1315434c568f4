"""
Sync Service

Wraps a mirror push with the user-facing contract:
- No URL configured -> setup guidance, no request made
- Transport failure -> a readable failure message, state untouched
- Every attempt is audited under one correlation id

`push_in_background` is what auto-sync uses after a mutation, so a
slow network never blocks the form that triggered it.
"""

import threading
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from sitebook.config import SyncSettings, get_settings
from sitebook.models.audit import AuditEventBuilder
from sitebook.models.records import Snapshot
from sitebook.services.sync.apps_script import AppsScriptMirror
from sitebook.services.sync.google_sheets import GoogleSheetsMirror
from sitebook.services.sync.interface import (
    SheetMirrorInterface,
    SyncError,
    SyncResult,
)


logger = structlog.get_logger(__name__)


SETUP_GUIDANCE = (
    "Please add your Apps Script URL in Settings first. "
    "Deploy the script as a web app on your Google Sheet and paste its URL."
)
SUCCESS_MESSAGE = "Sync complete. Check your Google Sheet."
FAILURE_HINT = "Did you run the Apps Script once to grant permission?"


class SyncService:
    """
    Pushes snapshots to the configured mirror.

    If no mirror is injected and the backend is "apps_script", an
    AppsScriptMirror is built per push from the project's
    `google_sheet_url`, falling back to SHEETS_SYNC_SCRIPT_URL.
    The "google_sheets" backend uses the service-account client.
    """

    def __init__(
        self,
        mirror: Optional[SheetMirrorInterface] = None,
        settings: Optional[SyncSettings] = None,
        audit_logger=None,
    ):
        self._mirror = mirror
        self._settings = settings or get_settings().sync
        self._audit = audit_logger

    def resolve_mirror(self, snapshot: Snapshot) -> Optional[SheetMirrorInterface]:
        if self._mirror is not None:
            return self._mirror

        if self._settings.backend == "google_sheets":
            try:
                self._mirror = GoogleSheetsMirror()
            except ValidationError as e:
                raise SyncError(f"Google Sheets mirror is not configured: {e}") from e
            return self._mirror

        url = (snapshot.settings.google_sheet_url or "").strip() or self._settings.script_url
        if not url:
            return None
        return AppsScriptMirror(
            url,
            timeout_seconds=self._settings.timeout_seconds,
            retry_attempts=self._settings.retry_attempts,
        )

    def _audit_event(self, event) -> None:
        if self._audit is not None:
            self._audit.log(event)

    def sync(self, snapshot: Snapshot) -> SyncResult:
        """Push the snapshot once. Never raises for transport errors."""
        try:
            mirror = self.resolve_mirror(snapshot)
        except SyncError as e:
            logger.warning("sync_target_unavailable", error=str(e))
            return SyncResult(success=False, message=str(e))

        if mirror is None:
            logger.info("sync_skipped_no_target")
            return SyncResult(success=False, message=SETUP_GUIDANCE)

        result = SyncResult(success=False, message="", target=mirror.name)
        correlation_id = result.correlation_id
        record_count = sum(len(v) for v in snapshot.collections_json().values())

        self._audit_event(AuditEventBuilder.sync_started(
            target=mirror.name,
            record_count=record_count,
            correlation_id=correlation_id,
        ))

        try:
            mirror.push(snapshot)
        except SyncError as e:
            logger.warning("sync_failed", target=mirror.name, error=str(e))
            self._audit_event(AuditEventBuilder.sync_failed(
                target=mirror.name,
                error_message=str(e),
                correlation_id=correlation_id,
            ))
            result.message = f"Sync failed: {e}. {FAILURE_HINT}"
            return result

        self._audit_event(AuditEventBuilder.sync_completed(
            target=mirror.name,
            correlation_id=correlation_id,
        ))
        logger.info("sync_completed", target=mirror.name, records=record_count)
        result.success = True
        result.message = SUCCESS_MESSAGE
        return result

    def push_in_background(
        self,
        snapshot: Snapshot,
        on_done: Optional[Callable[[SyncResult], None]] = None,
    ) -> threading.Thread:
        """
        Start a daemon thread running `sync`.

        The snapshot is copied before the thread starts so later edits
        do not leak into an in-flight push.
        """
        frozen = snapshot.model_copy(deep=True)

        def _run() -> None:
            result = self.sync(frozen)
            if on_done is not None:
                on_done(result)

        thread = threading.Thread(target=_run, name="sitebook-sync", daemon=True)
        thread.start()
        return thread
