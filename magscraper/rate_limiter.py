from __future__ import annotations

import threading
import time
from typing import Optional

from .context import ScrapeContext
from .errors import Cancelled


class RateLimiter:
    """Thread-safe token-bucket rate limiter shared by all tasks of a run.

    Tokens refill continuously at ``qps`` per second up to ``burst``. Calling
    acquire() reserves a token and blocks the current thread until the
    reservation matures, or raises Cancelled when the context ends first.

    A cancelled reservation only gives back the part of its token that no
    later reservation has already been scheduled against, so abandoning a
    wait never lets two grants share one slot."""

    def __init__(self, qps: float, burst: int = 1) -> None:
        if qps <= 0:
            raise ValueError(f"qps must be > 0, got {qps}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self._qps = qps
        self._burst = burst
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._last = time.monotonic()
        # grant time of the newest reservation
        self._last_event = self._last

    @property
    def qps(self) -> float:
        return self._qps

    def acquire(self, ctx: ScrapeContext) -> None:
        """Block until a token is available under the QPS limit."""
        ctx.raise_if_cancelled()
        act_at = self._reserve(max_wait=ctx.remaining())
        if act_at is None:
            # token would mature after the deadline
            raise Cancelled(deadline_exceeded=True)

        wait = act_at - time.monotonic()
        if wait <= 0:
            return
        if ctx.wait(wait):
            self._cancel(act_at)
            ctx.raise_if_cancelled()

    def _advance(self, now: float) -> None:
        if now <= self._last:
            return
        elapsed = now - self._last
        self._last = now
        self._tokens = min(float(self._burst), self._tokens + elapsed * self._qps)

    def _reserve(self, max_wait: Optional[float] = None) -> Optional[float]:
        """Book one token and return the monotonic time it may be used.

        Returns None without booking anything when the wait would exceed
        ``max_wait`` seconds.
        """
        with self._lock:
            now = time.monotonic()
            self._advance(now)
            tokens = self._tokens - 1.0
            wait = 0.0 if tokens >= 0 else -tokens / self._qps
            if max_wait is not None and wait > max_wait:
                return None
            self._tokens = tokens
            self._last_event = now + wait
            return self._last_event

    def _cancel(self, act_at: float) -> None:
        with self._lock:
            now = time.monotonic()
            if act_at <= now:
                return
            # tokens already promised to reservations booked after this one
            restore = 1.0 - (self._last_event - act_at) * self._qps
            if restore <= 0:
                return
            self._advance(now)
            self._tokens = min(float(self._burst), self._tokens + restore)
            if act_at == self._last_event:
                prev_event = act_at - 1.0 / self._qps
                if prev_event >= now:
                    self._last_event = prev_event
