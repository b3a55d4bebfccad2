"""Tests for the command-line entry point."""

import os
import tempfile
import unittest
from datetime import datetime, timezone
from unittest import mock

import main
from magscraper.errors import ScrapeError
from magscraper.models import Record, ScrapeConfig

RECORD = Record(title="Hello", source_url="", summary="", observed_at=datetime.now(timezone.utc))


class TestMain(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.output = os.path.join(self.tmp.name, "articles")

    def test_missing_urls_exits_with_error(self):
        self.assertEqual(main.main(["--urls", " , "]), 1)

    def test_invalid_config_exits_with_error(self):
        self.assertEqual(main.main(["--urls", "https://flipboard.com/@a/b", "--concurrent", "0"]), 1)

    def test_unknown_log_level_is_a_usage_error(self):
        with mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit) as raised:
                main.main(["--urls", "https://flipboard.com/@a/b", "--log-level", "LOUD"])
        self.assertEqual(raised.exception.code, 2)

    def test_log_level_is_case_insensitive(self):
        self.assertEqual(main.main(["--urls", " , ", "--log-level", "debug"]), 1)

    def test_split_urls_trims_entries(self):
        self.assertEqual(main._split_urls(" a , b,,c "), ["a", "b", "c"])

    @mock.patch("main.ScrapeOrchestrator")
    def test_partial_success_is_exported(self, orchestrator_cls):
        orchestrator_cls.return_value.scrape_urls.return_value = ([RECORD], ScrapeError("scraping error: x"))
        code = main.run(["https://flipboard.com/@a/b"], ScrapeConfig.default(), "csv", self.output)
        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(self.output + ".csv"))

    @mock.patch("main.ScrapeOrchestrator")
    def test_no_records_is_fatal(self, orchestrator_cls):
        orchestrator_cls.return_value.scrape_urls.return_value = ([], ScrapeError("scraping error: x"))
        code = main.run(["https://flipboard.com/@a/b"], ScrapeConfig.default(), "sqlite", self.output)
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(self.output + ".db"))


if __name__ == "__main__":
    unittest.main()
