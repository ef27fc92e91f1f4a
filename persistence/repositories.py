from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol, TypeVar

from .documents import DocumentDownload, DocumentService
from .paths import require_identifier

T = TypeVar("T")


class AsyncDocumentRepository(Protocol):
    async def get(self, doc_id: str) -> Any: ...
    async def replace(self, doc_id: str, new_value: Any) -> None: ...
    async def upload(self, raw: bytes) -> str: ...
    async def download(self, doc_id: str) -> DocumentDownload: ...
    async def undo(self, doc_id: str) -> None: ...


class AsyncDocumentService(AsyncDocumentRepository):
    """
    Async wrapper around DocumentService.
    Uses asyncio.to_thread so lock waits and file I/O don't block the event loop.

    Requests for one identifier queue on an asyncio.Lock before they get a
    worker thread, so at most one thread per identifier sits in the shared
    pool. A long-held document lock then stalls only that document's
    requests instead of filling the pool for everyone.

    A thread started by to_thread keeps running if the awaiting request is
    cancelled, so a write that has begun always finishes.
    """

    def __init__(self, service: DocumentService) -> None:
        self._service = service
        # Only touched from the event loop thread, so plain dict access is safe.
        self._gates: dict[str, asyncio.Lock] = {}

    @property
    def service(self) -> DocumentService:
        return self._service

    def _gate_for(self, doc_id: str) -> asyncio.Lock:
        gate = self._gates.get(doc_id)
        if gate is None:
            gate = asyncio.Lock()
            self._gates[doc_id] = gate
        return gate

    async def _run(self, doc_id: str, func: Callable[..., T], *args: Any) -> T:
        doc_id = require_identifier(doc_id)
        async with self._gate_for(doc_id):
            return await asyncio.to_thread(func, *args)

    async def get(self, doc_id: str) -> Any:
        return await self._run(doc_id, self._service.get, doc_id)

    async def replace(self, doc_id: str, new_value: Any) -> None:
        await self._run(doc_id, self._service.replace, doc_id, new_value)

    async def upload(self, raw: bytes) -> str:
        # Fresh identifier, nothing to wait on.
        return await asyncio.to_thread(self._service.upload, raw)

    async def download(self, doc_id: str) -> DocumentDownload:
        return await self._run(doc_id, self._service.download, doc_id)

    async def undo(self, doc_id: str) -> None:
        await self._run(doc_id, self._service.undo, doc_id)
