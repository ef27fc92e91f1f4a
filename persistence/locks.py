from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """
    Many concurrent readers or one writer.

    Waiting writers block new readers so a steady stream of reads cannot
    starve a write.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a held read lock")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a held write lock")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def reading(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def writing(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class DocumentLockRegistry:
    """
    Provides a stable read/write lock per document identifier.

    Locks are created on first use and kept for the process lifetime; the
    lookup-or-insert runs under a single guard so concurrent first accesses
    agree on one instance.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, ReadWriteLock] = {}

    def lock_for(self, doc_id: str) -> ReadWriteLock:
        with self._guard:
            lock = self._locks.get(doc_id)
            if lock is None:
                lock = ReadWriteLock()
                self._locks[doc_id] = lock
            return lock

    @contextmanager
    def read_locked(self, doc_id: str) -> Iterator[None]:
        with self.lock_for(doc_id).reading():
            yield

    @contextmanager
    def write_locked(self, doc_id: str) -> Iterator[None]:
        with self.lock_for(doc_id).writing():
            yield
