from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Callable

from errors import MalformedInput, NotFoundError, StorageError
from json_store import dumps_pretty
from validation import ValidationLimits, nesting_depth, normalize_rows, validate_structure

from .interfaces import DocumentStore
from .locks import DocumentLockRegistry
from .paths import document_filename, require_identifier
from .undo import UndoLedger

logger = logging.getLogger(__name__)

# Deeper documents could not be pretty-printed back to disk.
MAX_JSON_DEPTH = 256


def generate_document_id() -> str:
    """16 hex chars from 8 random bytes."""
    return secrets.token_hex(8)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_json_bytes(raw: bytes) -> Any:
    try:
        data = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except RecursionError as e:
        raise MalformedInput("Invalid JSON format: nesting too deep to parse") from e
    # JSONDecodeError and UnicodeDecodeError are both ValueErrors.
    except ValueError as e:
        raise MalformedInput("Invalid JSON format", details={"error": str(e)}) from e
    if nesting_depth(data) > MAX_JSON_DEPTH:
        raise MalformedInput(
            f"Invalid JSON format: nesting deeper than {MAX_JSON_DEPTH} levels",
            details={"limit": MAX_JSON_DEPTH},
        )
    return data


@dataclass(frozen=True)
class DocumentDownload:
    filename: str
    content: str


class DocumentService:
    """
    Read/replace/upload/download/undo over a DocumentStore.

    Every operation on an identifier runs under that identifier's lock:
    reads share it, anything that writes (or consumes an undo snapshot)
    holds it exclusively for the whole read-validate-write sequence.
    Different identifiers never contend.
    """

    def __init__(
        self,
        store: DocumentStore,
        locks: DocumentLockRegistry,
        ledger: UndoLedger,
        limits: ValidationLimits,
        *,
        normalize_uploads: bool = True,
        id_factory: Callable[[], str] = generate_document_id,
    ):
        self._store = store
        self._locks = locks
        self._ledger = ledger
        self._limits = limits
        self._normalize_uploads = normalize_uploads
        self._id_factory = id_factory

    def get(self, doc_id: str) -> Any:
        doc_id = require_identifier(doc_id)
        with self._locks.read_locked(doc_id):
            return self._store.read(doc_id)

    def replace(self, doc_id: str, new_value: Any) -> None:
        doc_id = require_identifier(doc_id)
        with self._locks.write_locked(doc_id):
            try:
                previous = self._store.read(doc_id)
            except StorageError:
                logger.warning("REPLACE %s: existing document unreadable, treating as empty", doc_id)
                previous = []
            self._ledger.snapshot(doc_id, previous)

            # A rejected value leaves the snapshot in place until the next successful write.
            validate_structure(new_value, self._limits)
            self._store.write(doc_id, new_value)
        logger.info("REPLACE %s: saved", doc_id)

    def upload(self, raw: bytes) -> str:
        data = parse_json_bytes(raw)
        if self._normalize_uploads:
            data = normalize_rows(data)
        validate_structure(data, self._limits)

        doc_id = self._id_factory()
        with self._locks.write_locked(doc_id):
            self._store.write(doc_id, data)
        logger.info("UPLOAD: stored new document %s", doc_id)
        return doc_id

    def create_if_absent(self, doc_id: str, value: Any) -> bool:
        """Store `value` under `doc_id` unless a document already exists. No undo snapshot."""
        doc_id = require_identifier(doc_id)
        validate_structure(value, self._limits)
        with self._locks.write_locked(doc_id):
            if self._store.exists(doc_id):
                return False
            self._store.write(doc_id, value)
        return True

    def download(self, doc_id: str) -> DocumentDownload:
        doc_id = require_identifier(doc_id)
        with self._locks.read_locked(doc_id):
            if not self._store.exists(doc_id):
                raise NotFoundError("File not found", details={"id": doc_id})
            data = self._store.read(doc_id)
        try:
            content = dumps_pretty(data)
        except RecursionError as e:
            raise StorageError("Error reading data", details={"id": doc_id}) from e
        return DocumentDownload(filename=document_filename(doc_id), content=content)

    def undo(self, doc_id: str) -> None:
        doc_id = require_identifier(doc_id)
        with self._locks.write_locked(doc_id):
            previous = self._ledger.consume(doc_id)
            # Snapshots were valid when taken, so no re-validation here.
            self._store.write(doc_id, previous)
        logger.info("UNDO %s: restored previous version", doc_id)
