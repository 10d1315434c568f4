"""
Remote Mirror Interface

DESIGN DECISION: Sync is push-only and best effort.
- One request per sync, carrying the complete state
- No acknowledgement is read back and nothing is reconciled
- A failed push never touches local records
- Two overlapping pushes may race; the last write to the sheet wins

The remote sheet is a convenience mirror for partners, not a source
of truth.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from sitebook.models.records import Snapshot


class SyncError(Exception):
    """A push to the remote mirror failed at the transport level."""
    pass


class SyncResult(BaseModel):
    """Outcome of one sync attempt, ready to show the user."""

    success: bool
    message: str
    target: Optional[str] = None
    correlation_id: UUID = Field(default_factory=uuid4)
    finished_at: datetime = Field(default_factory=datetime.now)


def build_sync_payload(
    snapshot: Snapshot,
    sheet_name: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> dict:
    """
    Build the single outbound sync payload.

    Shape: {"sheetName": ..., "timestamp": ..., "data": {<collections>}}
    """
    timestamp = timestamp or datetime.now()
    return {
        "sheetName": sheet_name or snapshot.settings.school_name,
        "timestamp": timestamp.isoformat(timespec="seconds"),
        "data": snapshot.collections_json(),
    }


class SheetMirrorInterface(ABC):
    """
    Abstract interface for a remote spreadsheet mirror.
    """

    name: str = "mirror"

    @abstractmethod
    def push(self, snapshot: Snapshot) -> None:
        """
        Send the complete state to the mirror.

        Raises:
            SyncError: If the transport fails
        """
        pass
