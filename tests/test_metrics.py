"""Tests for the MetricsCollector class."""

import unittest
from datetime import datetime, timezone

from magscraper.errors import Cancelled, FetchFailed, InvalidInput
from magscraper.metrics import MetricsCollector, outcome_kind
from magscraper.models import Failure, Record, Success

URL = "https://flipboard.com/@news/tech"


def _success(n=1, latency_ms=100) -> Success:
    now = datetime.now(timezone.utc)
    records = tuple(Record(title=f"t{i}", source_url="", summary="", observed_at=now) for i in range(n))
    return Success(url=URL, records=records, latency_ms=latency_ms)


class TestMetricsCollector(unittest.TestCase):
    """Verify metrics recording and snapshot aggregation."""

    def test_empty_snapshot(self):
        """Snapshot with no events should have all zeros."""
        metrics = MetricsCollector()
        snap = metrics.snapshot(window_secs=30)
        self.assertEqual(snap.total_tasks, 0)
        self.assertEqual(snap.success_count, 0)
        self.assertEqual(snap.avg_latency_ms, 0.0)

    def test_records_success(self):
        metrics = MetricsCollector()
        metrics.record_outcome(_success(n=2))
        metrics.record_outcome(_success(n=3))
        snap = metrics.snapshot(window_secs=30)
        self.assertEqual(snap.total_tasks, 2)
        self.assertEqual(snap.success_count, 2)
        self.assertEqual(snap.record_count, 5)

    def test_records_errors_by_kind(self):
        metrics = MetricsCollector()
        metrics.record_outcome(Failure(url="http://x", cause=InvalidInput("http://x")))
        metrics.record_outcome(Failure(url=URL, cause=FetchFailed(URL, status_code=503)))
        metrics.record_outcome(Failure(url=URL, cause=Cancelled(deadline_exceeded=True)))
        metrics.record_outcome(Failure(url=URL, cause=RuntimeError("parser blew up")))
        snap = metrics.snapshot(window_secs=30)
        self.assertEqual(snap.total_tasks, 4)
        self.assertEqual(snap.invalid_count, 1)
        self.assertEqual(snap.fetch_failed_count, 1)
        self.assertEqual(snap.cancelled_count, 1)
        self.assertEqual(snap.success_count, 0)

    def test_outcome_kind_for_unknown_error(self):
        self.assertEqual(outcome_kind(Failure(url=URL, cause=KeyError("x"))), "error")

    def test_average_latency(self):
        metrics = MetricsCollector()
        metrics.record_outcome(_success(latency_ms=100))
        metrics.record_outcome(_success(latency_ms=200))
        snap = metrics.snapshot(window_secs=30)
        self.assertAlmostEqual(snap.avg_latency_ms, 150.0)

    def test_export_json(self):
        metrics = MetricsCollector()
        metrics.record_outcome(_success(n=2))
        metrics.record_outcome(Failure(url=URL, cause=FetchFailed(URL, status_code=404)))
        exported = metrics.export_json()
        self.assertEqual(len(exported), 2)
        self.assertEqual(exported[0]["records"], 2)
        self.assertIn("404", exported[1]["error"])


if __name__ == "__main__":
    unittest.main()
