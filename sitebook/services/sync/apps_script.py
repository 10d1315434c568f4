"""
Apps Script Push Mirror

The user deploys a small Apps Script web app on their own Google Sheet
(source in APPS_SCRIPT_SOURCE) and pastes its URL into Settings. Each
sync POSTs the full payload there; the script rewrites three sheets.

The response is never interpreted. The browser client this replaces
could not read it either (no-cors), so the script's reply carries no
contract. Success means the request went out without a transport error.
"""

import json
from typing import Optional

import requests
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from sitebook.models.records import Snapshot
from sitebook.services.export.exporter import (
    EXPENSE_COLUMNS,
    INCOME_COLUMNS,
    PAYMENT_COLUMNS,
)
from sitebook.services.sync.interface import (
    SheetMirrorInterface,
    SyncError,
    build_sync_payload,
)


logger = structlog.get_logger(__name__)


_APPS_SCRIPT_TEMPLATE = """function doPost(e) {
  var ss = SpreadsheetApp.getActiveSpreadsheet();
  var data = JSON.parse(e.postData.contents);
  var payload = data.data;

  // 1. Sync Income (Direct Cash Injections)
  var sheetIncome = ss.getSheetByName("Direct_Incomes") || ss.insertSheet("Direct_Incomes");
  sheetIncome.clear();
  sheetIncome.appendRow(__INCOME_COLUMNS__);
  payload.incomes.forEach(function(i) {
    sheetIncome.appendRow([i.date, i.amount, i.source, i.paidBy, i.mode, i.remarks]);
  });

  // 2. Sync All Expenses
  var sheetExpense = ss.getSheetByName("Expenses") || ss.insertSheet("Expenses");
  sheetExpense.clear();
  sheetExpense.appendRow(__EXPENSE_COLUMNS__);
  payload.expenses.forEach(function(e) {
    sheetExpense.appendRow([e.date, e.amount, e.category, e.subCategory || "", e.paidTo, e.paidBy, e.mode, e.notes]);
  });

  // 3. Sync Labour Payments
  var sheetPayments = ss.getSheetByName("Labour_Payments") || ss.insertSheet("Labour_Payments");
  sheetPayments.clear();
  sheetPayments.appendRow(__PAYMENT_COLUMNS__);
  payload.payments.forEach(function(p) {
    var worker = payload.labours.find(function(l) { return String(l.id) === String(p.labourId) });
    sheetPayments.appendRow([p.date, worker ? worker.name : "Unknown", p.amount, p.paidBy, p.mode, p.type]);
  });

  return ContentService.createTextOutput("Success").setMimeType(ContentService.MimeType.TEXT);
}"""

# Header rows come from the exporter so both sync backends and the CSV
# report agree on columns.
APPS_SCRIPT_SOURCE = (
    _APPS_SCRIPT_TEMPLATE
    .replace("__INCOME_COLUMNS__", json.dumps(INCOME_COLUMNS))
    .replace("__EXPENSE_COLUMNS__", json.dumps(EXPENSE_COLUMNS))
    .replace("__PAYMENT_COLUMNS__", json.dumps(PAYMENT_COLUMNS))
)


class AppsScriptMirror(SheetMirrorInterface):
    """
    Pushes the snapshot to a user-deployed Apps Script URL.

    Transport errors (connection refused, DNS, timeout) are retried
    with exponential backoff, then raised as SyncError.
    """

    name = "apps_script"

    def __init__(
        self,
        script_url: str,
        timeout_seconds: float = 20.0,
        retry_attempts: int = 2,
        session: Optional[requests.Session] = None,
    ):
        if not script_url:
            raise ValueError("Apps Script URL is required")
        self._url = script_url
        self._timeout = timeout_seconds
        self._attempts = retry_attempts
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def push(self, snapshot: Snapshot) -> None:
        payload = build_sync_payload(snapshot)

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._attempts),
                wait=wait_exponential(multiplier=1, min=1, max=8),
                retry=retry_if_exception_type(requests.RequestException),
                reraise=True,
            ):
                with attempt:
                    response = self._session.post(
                        self._url,
                        json=payload,
                        headers={"Content-Type": "application/json"},
                        timeout=self._timeout,
                    )
        except requests.RequestException as e:
            raise SyncError(f"Could not reach Apps Script: {e}") from e

        logger.info(
            "apps_script_push_sent",
            status_code=getattr(response, "status_code", None),
            sheet_name=payload["sheetName"],
        )
