from __future__ import annotations

from threading import Lock
from typing import Iterable, List

from .models import Record


class ResultAggregator:
    """Thread-safe buffer collecting records from concurrent tasks.

    Order across writers is whatever order the lock is won in."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._records: List[Record] = []

    def add(self, records: Iterable[Record]) -> None:
        batch = list(records)
        with self._lock:
            self._records.extend(batch)

    def snapshot(self) -> List[Record]:
        """Return a copy of everything added so far."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
