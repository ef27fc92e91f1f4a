from __future__ import annotations

import json
import threading
from typing import Any

from errors import NoUndoAvailable


class UndoLedger:
    """
    Holds at most one prior version per document identifier.

    A snapshot replaces whatever was pending for that identifier and is
    handed out exactly once by consume().
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._snapshots: dict[str, str] = {}

    def snapshot(self, doc_id: str, value: Any) -> None:
        # Kept as JSON text so later mutation of the caller's value can't leak in.
        saved = json.dumps(value)
        with self._guard:
            self._snapshots[doc_id] = saved

    def consume(self, doc_id: str) -> Any:
        with self._guard:
            try:
                saved = self._snapshots.pop(doc_id)
            except KeyError:
                raise NoUndoAvailable("Nothing to undo", details={"id": doc_id}) from None
        return json.loads(saved)
