from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Generic, Iterable, Optional, TypeVar

from .context import ScrapeContext
from .errors import TaskError

T = TypeVar("T")


class TaskGroup(Generic[T]):
    """Runs one call per item on a bounded thread pool and reports the first error.

    At most ``max_concurrency`` calls are active at once; the rest wait for a
    slot. A failing call never cancels its siblings: run() returns only after
    every item has been attempted, then hands back the first failure (in
    completion order) wrapped with the item that caused it.
    """

    def __init__(self, max_concurrency: int) -> None:
        if max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be > 0, got {max_concurrency}")
        self._limit = max_concurrency

        self._lock = threading.Lock()
        self._cv = threading.Condition(self._lock)

        self._active = 0
        self._first_error: Optional[TaskError] = None

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        return self._active

    def run(
        self,
        ctx: ScrapeContext,
        items: Iterable[T],
        fn: Callable[[ScrapeContext, T], None],
        key: Callable[[T], str] = str,
    ) -> Optional[TaskError]:
        with self._cv:
            self._first_error = None

        with ThreadPoolExecutor(max_workers=self._limit, thread_name_prefix="magscraper") as executor:
            for item in items:
                with self._cv:
                    while self._active >= self._limit:
                        self._cv.wait(timeout=0.5)
                    self._active += 1
                executor.submit(self._wrap_task, ctx, fn, item, key)

            with self._cv:
                while self._active > 0:
                    self._cv.wait(timeout=0.5)

        return self._first_error

    def _wrap_task(
        self,
        ctx: ScrapeContext,
        fn: Callable[[ScrapeContext, T], None],
        item: T,
        key: Callable[[T], str],
    ) -> None:
        try:
            fn(ctx, item)
        except Exception as exc:  # noqa: BLE001
            with self._cv:
                if self._first_error is None:
                    self._first_error = TaskError(key(item), exc)
        finally:
            with self._cv:
                self._active = max(0, self._active - 1)
                self._cv.notify_all()
