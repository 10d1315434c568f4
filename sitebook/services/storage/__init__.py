"""
Storage Services Package

Provides the abstract record store interface and concrete implementations:
in-memory, a local JSON file, and a Google Sheets audit log.
"""

from sitebook.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from sitebook.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
)
from sitebook.services.storage.json_file import JsonFileRecordStore
from sitebook.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    SheetsConnectionError,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStoreInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "SheetsConnectionError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
]
