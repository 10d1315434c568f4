"""
Sheet Sync Package

Best-effort, push-only mirroring of the books to a Google Sheet,
either through a user-deployed Apps Script URL or the Sheets API.
"""

from sitebook.services.sync.interface import (
    SheetMirrorInterface,
    SyncError,
    SyncResult,
    build_sync_payload,
)
from sitebook.services.sync.apps_script import APPS_SCRIPT_SOURCE, AppsScriptMirror
from sitebook.services.sync.google_sheets import GoogleSheetsMirror
from sitebook.services.sync.service import SETUP_GUIDANCE, SyncService

__all__ = [
    "APPS_SCRIPT_SOURCE",
    "AppsScriptMirror",
    "GoogleSheetsMirror",
    "SETUP_GUIDANCE",
    "SheetMirrorInterface",
    "SyncError",
    "SyncResult",
    "SyncService",
    "build_sync_payload",
]
