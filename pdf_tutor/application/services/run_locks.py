"""Per-document mutex so two runs for the same filename never interleave."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterator
from contextlib import contextmanager


class DocumentRunLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}
        self._run_ids = itertools.count(1)

    def next_run_id(self) -> int:
        with self._guard:
            return next(self._run_ids)

    def is_running(self, filename: str) -> bool:
        with self._guard:
            return self._holders.get(filename, 0) > 0

    @contextmanager
    def hold(self, filename: str) -> Iterator[None]:
        """Block until no other run for ``filename`` is active."""
        with self._guard:
            lock = self._locks.setdefault(filename, threading.Lock())
            self._holders[filename] = self._holders.get(filename, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[filename] -= 1
                if self._holders[filename] == 0:
                    del self._holders[filename]
                    self._locks.pop(filename, None)
