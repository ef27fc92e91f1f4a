from __future__ import annotations

from .disk_store import DiskJsonDocumentStore
from .documents import DocumentDownload, DocumentService, generate_document_id
from .interfaces import DocumentStore
from .locks import DocumentLockRegistry, ReadWriteLock
from .repositories import AsyncDocumentRepository, AsyncDocumentService
from .undo import UndoLedger

__all__ = [
    "DocumentStore",
    "DiskJsonDocumentStore",
    "DocumentLockRegistry",
    "ReadWriteLock",
    "UndoLedger",
    "DocumentService",
    "DocumentDownload",
    "generate_document_id",
    "AsyncDocumentRepository",
    "AsyncDocumentService",
]
