"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for record storage.
This allows us to:
1. Keep everything in memory for tests and throwaway sessions
2. Persist to a local JSON file, like the browser store it replaces
3. Keep the ledger engine decoupled from where records live

The interface is intentionally simple - add/update/delete per record
kind, keyed by id, plus whole-snapshot operations for backup/restore.
It enforces no foreign keys: deleting a labourer leaves their
attendance and payments behind, and the ledger copes with that.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sitebook.models.audit import AuditEvent
from sitebook.models.records import (
    ProjectSettings,
    RecordKind,
    RecordModel,
    Snapshot,
)


class RecordStoreInterface(ABC):
    """
    Abstract interface for record storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def add(self, kind: RecordKind, record: RecordModel) -> RecordModel:
        """
        Add a new record.

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If the record is the wrong type or save fails
        """
        pass

    @abstractmethod
    def update(self, kind: RecordKind, record: RecordModel) -> RecordModel:
        """
        Replace an existing record with the same id.

        Raises:
            NotFoundError: If no record has this id
        """
        pass

    @abstractmethod
    def delete(self, kind: RecordKind, record_id: str) -> bool:
        """
        Delete a record by id. Never cascades.

        Returns:
            True if a record was removed, False if none matched
        """
        pass

    @abstractmethod
    def get(self, kind: RecordKind, record_id: str) -> Optional[RecordModel]:
        """Retrieve a record by id, or None."""
        pass

    @abstractmethod
    def list(self, kind: RecordKind) -> list[RecordModel]:
        """All records of a kind, in insertion order."""
        pass

    @abstractmethod
    def snapshot(self) -> Snapshot:
        """
        A detached copy of the complete state.

        Mutating the returned snapshot never affects the store.
        """
        pass

    @abstractmethod
    def replace_all(self, snapshot: Snapshot) -> None:
        """Swap the complete state for `snapshot` (restore from backup)."""
        pass

    @abstractmethod
    def get_settings(self) -> ProjectSettings:
        """Current project settings."""
        pass

    @abstractmethod
    def save_settings(self, settings: ProjectSettings) -> None:
        """Replace project settings."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Delete every record. Project settings are kept."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a record whose id already exists."""
    pass
