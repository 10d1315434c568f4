"""
Google Sheets API Mirror

Alternative to the Apps Script push for operators who hold a service
account. Writes the same three sheets with the same headers, using
the gspread client from the storage layer.
"""

from typing import Optional

import structlog

from sitebook.models.records import RecordKind, Snapshot
from sitebook.services.export.exporter import tabular_rows
from sitebook.services.storage.google_sheets import GoogleSheetsClient
from sitebook.services.storage.interface import StorageError
from sitebook.services.sync.interface import SheetMirrorInterface, SyncError


logger = structlog.get_logger(__name__)


class GoogleSheetsMirror(SheetMirrorInterface):
    """Rewrites the income, expense and labour payment sheets."""

    name = "google_sheets"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet_titles(self) -> dict[RecordKind, str]:
        settings = self._client.settings
        return {
            RecordKind.INCOMES: settings.incomes_sheet_name,
            RecordKind.EXPENSES: settings.expenses_sheet_name,
            RecordKind.PAYMENTS: settings.payments_sheet_name,
        }

    def push(self, snapshot: Snapshot) -> None:
        tables = tabular_rows(snapshot)
        try:
            for kind, title in self._sheet_titles().items():
                table = tables[kind]
                self._client.rewrite_sheet(title, table.columns, table.rows)
                logger.debug("sheet_rewritten", sheet=title, rows=len(table.rows))
        except StorageError as e:
            raise SyncError(str(e)) from e
        except Exception as e:
            raise SyncError(f"Google Sheets write failed: {e}") from e
