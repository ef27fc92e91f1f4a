from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from errors import StorageError
from json_store import atomic_write_json, read_json

from .interfaces import DocumentStore
from .paths import document_path, ensure_dir

logger = logging.getLogger(__name__)


class DiskJsonDocumentStore(DocumentStore):
    """
    Stores one JSON document per identifier under `data_dir`.

    - Missing or empty files read as [].
    - Writes are atomic (temp file + replace), so readers never see a torn file.
    - Locking is the caller's job; see DocumentLockRegistry.
    """

    def __init__(self, data_dir: Path):
        self._data_dir = ensure_dir(Path(data_dir))

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, doc_id: str) -> Path:
        return document_path(self._data_dir, doc_id)

    def read(self, doc_id: str) -> Any:
        path = self.path_for(doc_id)
        try:
            return read_json(path, default=[])
        except (OSError, RecursionError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("DOCUMENT READ: failed to read %s: %r", path, e)
            raise StorageError("Error reading data", details={"id": doc_id}) from e

    def write(self, doc_id: str, value: Any) -> None:
        path = self.path_for(doc_id)
        try:
            atomic_write_json(path, value)
        except (OSError, RecursionError, TypeError, ValueError) as e:
            logger.error("DOCUMENT WRITE: failed to write %s: %r", path, e)
            raise StorageError("Error saving file", details={"id": doc_id}) from e

    def exists(self, doc_id: str) -> bool:
        return self.path_for(doc_id).is_file()
