"""
JSON File Storage Implementation

DESIGN DECISION: The whole snapshot is rewritten after every change.
Records for one building project number in the hundreds, so a full
rewrite is cheap, and the file stays a valid backup at all times.

Writes go to a temporary file in the same directory and are moved into
place with os.replace, so a crash never leaves a half-written file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

import structlog
from pydantic import ValidationError

from sitebook.models.records import Snapshot
from sitebook.services.storage.interface import StorageError
from sitebook.services.storage.memory import InMemoryRecordStore


logger = structlog.get_logger(__name__)


class JsonFileRecordStore(InMemoryRecordStore):
    """Record store persisted to a single JSON file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        super().__init__(self._load())

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Snapshot:
        if not self._path.exists():
            logger.info("data_file_missing", path=str(self._path))
            return Snapshot()

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return Snapshot.model_validate(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Data file {self._path} is corrupt: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read data file {self._path}: {e}") from e

    def _on_change(self) -> None:
        payload = json.dumps(self._state.to_json_dict(), indent=2, ensure_ascii=False)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise StorageError(f"Cannot write data file {self._path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write data file {self._path}: {e}") from e
