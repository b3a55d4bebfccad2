"""Tests for the TaskGroup runner."""

import threading
import time
import unittest

from magscraper.context import ScrapeContext
from magscraper.errors import TaskError
from magscraper.controller import TaskGroup


class TestTaskGroup(unittest.TestCase):
    def setUp(self):
        self.ctx = ScrapeContext.background()

    def test_rejects_non_positive_limit(self):
        with self.assertRaises(ValueError):
            TaskGroup(0)

    def test_runs_every_item(self):
        seen = []
        lock = threading.Lock()

        def fn(ctx, item):
            with lock:
                seen.append(item)

        err = TaskGroup(3).run(self.ctx, range(20), fn)
        self.assertIsNone(err)
        self.assertEqual(sorted(seen), list(range(20)))

    def test_never_exceeds_concurrency_limit(self):
        limit = 3
        active = 0
        peak = 0
        lock = threading.Lock()

        def fn(ctx, item):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1

        group = TaskGroup(limit)
        self.assertIsNone(group.run(self.ctx, range(15), fn))
        self.assertLessEqual(peak, limit)
        self.assertGreater(peak, 1)
        self.assertEqual(group.active, 0)

    def test_failure_does_not_stop_siblings(self):
        done = []
        lock = threading.Lock()

        def fn(ctx, item):
            if item == "bad":
                raise RuntimeError("boom")
            time.sleep(0.01)
            with lock:
                done.append(item)

        items = ["a", "bad", "b", "c", "d"]
        err = TaskGroup(2).run(self.ctx, items, fn)
        self.assertIsInstance(err, TaskError)
        self.assertEqual(err.item, "bad")
        self.assertIsInstance(err.cause, RuntimeError)
        self.assertIn("bad", str(err))
        self.assertIn("boom", str(err))
        self.assertEqual(sorted(done), ["a", "b", "c", "d"])

    def test_returns_only_first_error(self):
        def fn(ctx, item):
            time.sleep(0.05 * item)
            raise ValueError(f"fail {item}")

        err = TaskGroup(4).run(self.ctx, [0, 1, 2, 3], fn)
        self.assertEqual(err.item, "0")

    def test_passes_context_to_every_call(self):
        received = []

        def fn(ctx, item):
            received.append(ctx)

        TaskGroup(2).run(self.ctx, [1, 2], fn)
        self.assertTrue(all(c is self.ctx for c in received))


if __name__ == "__main__":
    unittest.main()
