from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Deque, Dict, List

from .errors import Cancelled, FetchFailed, InvalidInput
from .models import Failure, MetricsSnapshot, Success, TaskOutcome


def outcome_kind(outcome: TaskOutcome) -> str:
    """Classify an outcome as success, invalid, fetch_failed, cancelled or error."""
    if isinstance(outcome, Success):
        return "success"
    cause = outcome.cause
    if isinstance(cause, InvalidInput):
        return "invalid"
    if isinstance(cause, FetchFailed):
        return "fetch_failed"
    if isinstance(cause, Cancelled):
        return "cancelled"
    return "error"


class MetricsCollector:
    """Thread-safe collector for per-URL task outcomes.

    Records Success/Failure events and produces aggregated MetricsSnapshot
    objects over configurable sliding time windows."""

    def __init__(self, maxlen: int = 10000) -> None:
        self._lock = Lock()
        self._events: Deque[tuple[float, TaskOutcome]] = deque(maxlen=maxlen)

    def record_outcome(self, outcome: TaskOutcome) -> None:
        """Record a task outcome with the current timestamp."""
        with self._lock:
            self._events.append((time.time(), outcome))

    def snapshot(self, window_secs: int) -> MetricsSnapshot:
        """Return aggregated metrics for events within the last window_secs seconds."""
        now = time.time()
        cutoff = now - window_secs
        with self._lock:
            events: List[TaskOutcome] = [e for ts, e in self._events if ts >= cutoff]
        kinds = [outcome_kind(e) for e in events]
        total = len(events)
        record_count = sum(len(e.records) for e in events if isinstance(e, Success))
        avg_latency_ms = (sum(e.latency_ms for e in events) / total) if total else 0.0

        return MetricsSnapshot(
            window_secs=window_secs,
            total_tasks=total,
            success_count=kinds.count("success"),
            invalid_count=kinds.count("invalid"),
            fetch_failed_count=kinds.count("fetch_failed"),
            cancelled_count=kinds.count("cancelled"),
            record_count=record_count,
            avg_latency_ms=avg_latency_ms,
            timestamp=now,
        )

    def export_json(self) -> List[Dict]:
        """Export all recorded events as a list of flat dictionaries."""
        with self._lock:
            events = list(self._events)
        rows: List[Dict] = []
        for ts, e in events:
            row = {"timestamp": ts, "url": e.url, "kind": outcome_kind(e), "latency_ms": e.latency_ms}
            if isinstance(e, Success):
                row["records"] = len(e.records)
            elif isinstance(e, Failure):
                row["error"] = str(e.cause)
            rows.append(row)
        return rows
