"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote mirror because:
1. Partners can view the books directly in Sheets
2. No server or database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Sheets is never the source of truth; local records are
- Each push rewrites whole worksheets (no row-level diffing)
- Audit rows are appended, never rewritten

This module holds the service-account client and the audit log sheet.
The record mirror that rewrites the ledger sheets lives in
sitebook.services.sync.google_sheets.
"""

import json
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from sitebook.config import GoogleSheetsSettings, get_settings
from sitebook.models.audit import AuditEvent
from sitebook.services.storage.interface import (
    AuditStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "subject",
    "record_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "actor",
]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


class SheetsConnectionError(StorageError):
    """Could not connect to the Google Sheets backend."""
    pass


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise SheetsConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise SheetsConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise SheetsConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet by title, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self.get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def rewrite_sheet(
        self,
        title: str,
        columns: list[str],
        rows: list[list],
    ) -> None:
        """
        Clear a worksheet and write header plus rows in one call.

        Mirrors what the Apps Script does on each push.
        """
        sheet = self.get_or_create_sheet(title, columns, rows=max(len(rows) + 1, 100))
        sheet.clear()
        sheet.update(
            values=[columns, *rows],
            range_name="A1",
            value_input_option="RAW",
        )


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=safe_get(0),
            timestamp=safe_get(1),
            event_type=safe_get(2),
            severity=safe_get(3),
            subject=safe_get(4) or None,
            record_id=safe_get(5) or None,
            correlation_id=safe_get(6) or None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            actor=safe_get(10, "system"),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(row, value_input_option="RAW")

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_row(event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning(
                "audit_sheet_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except Exception:
                    logger.warning("audit_row_skipped", event_id=row[0])
                    continue

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
