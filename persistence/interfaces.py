from __future__ import annotations

from typing import Any, Protocol


class DocumentStore(Protocol):
    """
    Minimal DB-friendly interface: one JSON value persisted per identifier.
    """

    def read(self, doc_id: str) -> Any:
        """Return the stored value, or [] if nothing was ever written."""
        ...

    def write(self, doc_id: str, value: Any) -> None:
        """Replace the stored value wholesale. Does not validate."""
        ...

    def exists(self, doc_id: str) -> bool:
        ...
