"""Report and backup export package."""

from sitebook.services.export.exporter import (
    BACKUP_FILENAME,
    REPORT_FILENAME,
    UNKNOWN_LABOUR,
    BackupFormatError,
    Table,
    build_backup_json,
    build_csv_report,
    export_backup,
    export_csv_report,
    format_amount,
    labour_names,
    parse_backup,
    tabular_rows,
)

__all__ = [
    "BACKUP_FILENAME",
    "REPORT_FILENAME",
    "UNKNOWN_LABOUR",
    "BackupFormatError",
    "Table",
    "build_backup_json",
    "build_csv_report",
    "export_backup",
    "export_csv_report",
    "format_amount",
    "labour_names",
    "parse_backup",
    "tabular_rows",
]
