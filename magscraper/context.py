"""Cancellation and deadline propagation for worker threads.

A :class:`ScrapeContext` is handed to every task of a scrape run. Blocking
steps (rate-limit waits, network reads, extraction loops) poll it or wait on
it so that a deadline or an external ``cancel()`` stops them promptly.

Contexts form a tree: a child created with :meth:`ScrapeContext.with_timeout`
is done when its own deadline passes or when its parent is done, whichever
comes first. Cancelling a child never affects the parent.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from .errors import Cancelled


class ScrapeContext:
    def __init__(self, deadline: Optional[float] = None, parent: Optional["ScrapeContext"] = None) -> None:
        self._deadline = deadline
        self._parent = parent
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._error: Optional[Cancelled] = None
        self._children: List[ScrapeContext] = []
        self._callbacks: List[Callable[[], None]] = []

    @classmethod
    def background(cls) -> "ScrapeContext":
        """Return a root context with no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> "ScrapeContext":
        """Derive a child whose deadline is at most ``seconds`` from now."""
        deadline = time.monotonic() + seconds
        if self._deadline is not None:
            deadline = min(deadline, self._deadline)
        child = ScrapeContext(deadline=deadline, parent=self)
        with self._lock:
            if self._error is None:
                self._children.append(child)
                return child
            inherited = self._error
        child._finish(inherited)
        return child

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self.error() is not None

    def cancel(self) -> None:
        self._finish(Cancelled(deadline_exceeded=False))

    def error(self) -> Optional[Cancelled]:
        """Return the reason this context is done, or None while it is live."""
        if self._error is None and self._deadline is not None and time.monotonic() >= self._deadline:
            self._finish(Cancelled(deadline_exceeded=True))
        return self._error

    def raise_if_cancelled(self) -> None:
        err = self.error()
        if err is not None:
            raise Cancelled(deadline_exceeded=err.deadline_exceeded)

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block up to ``timeout`` seconds; return True once the context is done."""
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._done.wait(timeout)
        return self.cancelled

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` once when the context is cancelled.

        Runs immediately when the context is already done. A passed deadline
        only fires callbacks once something observes it via error().
        """
        with self._lock:
            if self._error is None:
                self._callbacks.append(callback)
                return
        callback()

    def remove_done_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _finish(self, error: Cancelled) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            children, self._children = self._children, []
            callbacks, self._callbacks = self._callbacks, []
        self._done.set()
        for child in children:
            child._finish(error)
        for callback in callbacks:
            callback()

    def _detach(self, child: "ScrapeContext") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def __enter__(self) -> "ScrapeContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # releases the child and anything still blocked on it
        self.cancel()
        if self._parent is not None:
            self._parent._detach(self)
