"""
Report and Backup Export

Two outputs, for two audiences:
1. A sectioned CSV report that opens directly in Excel
   (UTF-8 BOM so the rupee symbol and Hindi remarks survive)
2. A JSON backup of every collection plus settings, restorable
   with `parse_backup`

DESIGN DECISION: Restore is parse-then-swap. `parse_backup` either
returns a fully validated Snapshot or raises; the caller only touches
current state after it returns.
"""

import csv
import io
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import NamedTuple, Optional, Union

from pydantic import ValidationError

from sitebook.models.records import ProjectSettings, RecordKind, Snapshot


REPORT_FILENAME = "EVS_Full_Report_{day}.csv"
BACKUP_FILENAME = "EVS_Full_Backup.json"
UNKNOWN_LABOUR = "Unknown"

INCOME_COLUMNS = ["Date", "Amount", "Source", "Paid By", "Mode", "Remarks"]
EXPENSE_COLUMNS = [
    "Date", "Amount", "Category", "Sub Category", "Paid To",
    "Payment Source", "Mode", "Notes",
]
PAYMENT_COLUMNS = ["Date", "Labour Name", "Amount", "Paid From", "Mode", "Type"]
LABOUR_COLUMNS = ["Name", "Mobile", "Work Type", "Daily Wage"]
ATTENDANCE_COLUMNS = ["Date", "Labour Name", "Status", "Overtime Hours"]
VENDOR_COLUMNS = ["Name", "Category", "Mobile"]

# Sections of the CSV report, in order
REPORT_SECTIONS = (
    (RecordKind.INCOMES, "DIRECT INCOME"),
    (RecordKind.EXPENSES, "EXPENSES"),
    (RecordKind.PAYMENTS, "LABOUR PAYMENTS"),
)


class BackupFormatError(Exception):
    """A backup file is not valid JSON or not a Sitebook snapshot."""
    pass


class Table(NamedTuple):
    """A flat, serialisable projection of one record collection."""
    columns: list[str]
    rows: list[list]


def format_amount(value: Decimal) -> str:
    """Render money without a trailing .0 for whole rupees."""
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())


def _text(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def labour_names(snapshot: Snapshot) -> dict[str, str]:
    """Map stringified labour id to worker name."""
    return {str(labour.id): labour.name for labour in snapshot.labours}


def tabular_rows(snapshot: Snapshot) -> dict[RecordKind, Table]:
    """
    Flat projection of every record kind.

    Labour references are resolved to names; ids with no matching
    profile become "Unknown".
    """
    names = labour_names(snapshot)

    def worker(labour_id: str) -> str:
        return names.get(str(labour_id), UNKNOWN_LABOUR)

    return {
        RecordKind.INCOMES: Table(INCOME_COLUMNS, [
            [i.date.isoformat(), format_amount(i.amount), _text(i.source),
             _text(i.paid_by), _text(i.mode), i.remarks]
            for i in snapshot.incomes
        ]),
        RecordKind.EXPENSES: Table(EXPENSE_COLUMNS, [
            [e.date.isoformat(), format_amount(e.amount), _text(e.category),
             _text(e.sub_category), e.paid_to, _text(e.paid_by), _text(e.mode), e.notes]
            for e in snapshot.expenses
        ]),
        RecordKind.PAYMENTS: Table(PAYMENT_COLUMNS, [
            [p.date.isoformat(), worker(p.labour_id), format_amount(p.amount),
             _text(p.paid_by), _text(p.mode), _text(p.payment_type)]
            for p in snapshot.payments
        ]),
        RecordKind.LABOURS: Table(LABOUR_COLUMNS, [
            [l.name, l.mobile, l.work_type, format_amount(l.daily_wage)]
            for l in snapshot.labours
        ]),
        RecordKind.ATTENDANCE: Table(ATTENDANCE_COLUMNS, [
            [a.date.isoformat(), worker(a.labour_id), _text(a.status),
             format_amount(a.overtime_hours)]
            for a in snapshot.attendance
        ]),
        RecordKind.VENDORS: Table(VENDOR_COLUMNS, [
            [v.name, _text(v.category), _text(v.mobile)]
            for v in snapshot.vendors
        ]),
    }


def build_csv_report(snapshot: Snapshot) -> str:
    """Build the sectioned CSV report as a string (BOM included)."""
    tables = tabular_rows(snapshot)
    buffer = io.StringIO()
    buffer.write("\ufeff")
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")

    for position, (kind, title) in enumerate(REPORT_SECTIONS):
        if position:
            writer.writerow([])
        table = tables[kind]
        writer.writerow([f"SECTION: {title}"])
        writer.writerow(table.columns)
        writer.writerows(table.rows)

    return buffer.getvalue()


def export_csv_report(
    snapshot: Snapshot,
    output_dir: Path,
    day: Optional[date] = None,
) -> Path:
    """Write the CSV report into `output_dir` and return its path."""
    day = day or date.today()
    output_path = Path(output_dir) / REPORT_FILENAME.format(day=day.isoformat())
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # newline="" keeps csv line endings as written
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        fh.write(build_csv_report(snapshot))

    return output_path


def build_backup_json(snapshot: Snapshot) -> str:
    """Serialise the complete state (collections and settings)."""
    return json.dumps(snapshot.to_json_dict(), indent=2, ensure_ascii=False)


def export_backup(snapshot: Snapshot, output_dir: Path) -> Path:
    """Write the JSON backup into `output_dir` and return its path."""
    output_path = Path(output_dir) / BACKUP_FILENAME
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(build_backup_json(snapshot), encoding="utf-8")
    return output_path


def parse_backup(
    content: Union[str, bytes],
    fallback_settings: Optional[ProjectSettings] = None,
) -> Snapshot:
    """
    Parse and fully validate a backup file.

    Backups without a "settings" object keep `fallback_settings`
    (when given) instead of resetting to defaults.

    Raises:
        BackupFormatError: If the content is not JSON, not an object,
            holds none of the record collections, or any record fails
            validation
    """
    try:
        raw = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BackupFormatError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise BackupFormatError("Backup must be a JSON object")

    if not any(kind.value in raw for kind in RecordKind):
        raise BackupFormatError(
            "Backup holds none of: " + ", ".join(kind.value for kind in RecordKind)
        )

    try:
        snapshot = Snapshot.model_validate(raw)
    except ValidationError as e:
        raise BackupFormatError(
            f"Backup has {e.error_count()} invalid fields: {e.errors()[0]['msg']}"
        ) from e

    if "settings" not in raw and fallback_settings is not None:
        snapshot.settings = fallback_settings.model_copy(deep=True)

    return snapshot
