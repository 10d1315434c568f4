"""
In-Memory Storage Implementation

The reference record store. State lives in a single Snapshot; every
read hands out copies so callers can never mutate the store by accident.
"""

from typing import Optional

import structlog

from sitebook.models.audit import AuditEvent
from sitebook.models.records import (
    RECORD_MODELS,
    ProjectSettings,
    RecordKind,
    RecordModel,
    Snapshot,
)
from sitebook.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class InMemoryRecordStore(RecordStoreInterface):
    """Keeps every collection in process memory."""

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._state = snapshot.model_copy(deep=True) if snapshot else Snapshot()

    def _on_change(self) -> None:
        """Hook for subclasses that persist after each mutation."""

    def _commit(self, previous: Snapshot) -> None:
        """Persist the current state, restoring `previous` if that fails."""
        try:
            self._on_change()
        except StorageError:
            self._state = previous
            raise

    def _records(self, kind: RecordKind) -> list:
        return self._state.records(kind)

    def _index_of(self, kind: RecordKind, record_id: str) -> Optional[int]:
        for idx, record in enumerate(self._records(kind)):
            if str(record.id) == str(record_id):
                return idx
        return None

    def _check_type(self, kind: RecordKind, record: RecordModel) -> None:
        expected = RECORD_MODELS[kind]
        if not isinstance(record, expected):
            raise StorageError(
                f"Cannot store {type(record).__name__} in {kind.value}; "
                f"expected {expected.__name__}"
            )

    def add(self, kind: RecordKind, record: RecordModel) -> RecordModel:
        self._check_type(kind, record)
        if self._index_of(kind, record.id) is not None:
            raise DuplicateError(f"{kind.value} already has a record with id {record.id}")

        previous = self._state.model_copy(deep=True)
        stored = record.model_copy(deep=True)
        self._records(kind).append(stored)
        self._commit(previous)
        logger.debug("record_added", kind=kind.value, record_id=stored.id)
        return stored.model_copy(deep=True)

    def update(self, kind: RecordKind, record: RecordModel) -> RecordModel:
        self._check_type(kind, record)
        idx = self._index_of(kind, record.id)
        if idx is None:
            raise NotFoundError(f"No record {record.id} in {kind.value}")

        previous = self._state.model_copy(deep=True)
        stored = record.model_copy(deep=True)
        self._records(kind)[idx] = stored
        self._commit(previous)
        logger.debug("record_updated", kind=kind.value, record_id=stored.id)
        return stored.model_copy(deep=True)

    def delete(self, kind: RecordKind, record_id: str) -> bool:
        idx = self._index_of(kind, record_id)
        if idx is None:
            return False

        previous = self._state.model_copy(deep=True)
        del self._records(kind)[idx]
        self._commit(previous)
        logger.debug("record_deleted", kind=kind.value, record_id=record_id)
        return True

    def get(self, kind: RecordKind, record_id: str) -> Optional[RecordModel]:
        idx = self._index_of(kind, record_id)
        if idx is None:
            return None
        return self._records(kind)[idx].model_copy(deep=True)

    def list(self, kind: RecordKind) -> list[RecordModel]:
        return [record.model_copy(deep=True) for record in self._records(kind)]

    def snapshot(self) -> Snapshot:
        return self._state.model_copy(deep=True)

    def replace_all(self, snapshot: Snapshot) -> None:
        previous = self._state
        self._state = snapshot.model_copy(deep=True)
        self._commit(previous)

    def get_settings(self) -> ProjectSettings:
        return self._state.settings.model_copy(deep=True)

    def save_settings(self, settings: ProjectSettings) -> None:
        previous = self._state.model_copy(deep=True)
        self._state.settings = settings.model_copy(deep=True)
        self._commit(previous)

    def reset(self) -> None:
        previous = self._state
        self._state = Snapshot(settings=self._state.settings.model_copy(deep=True))
        self._commit(previous)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
