"""Concurrent Flipboard magazine scraper.

Fetches many magazine pages on a bounded thread pool under one shared
rate limit, extracts article records, and hands them to an exporter.

Key modules:
    models          -- Record, ScrapeConfig, Success/Failure, MetricsSnapshot
    errors          -- ScrapeError and its InvalidInput/EmptyInput/FetchFailed/Cancelled kinds
    context         -- ScrapeContext for deadlines and cancellation
    rate_limiter    -- RateLimiter token bucket shared by all tasks
    fetcher         -- PageFetcher, extract_records, clean_text
    aggregator      -- ResultAggregator thread-safe record buffer
    controller      -- TaskGroup bounded, fail-soft task runner
    orchestrator    -- ScrapeOrchestrator and scrape_urls
    metrics         -- MetricsCollector for per-URL outcomes
    storage         -- CsvExporter and SqliteExporter sinks
    logging_utils   -- log_event and configure_logging
"""
from __future__ import annotations

from .context import ScrapeContext
from .errors import Cancelled, EmptyInput, FetchFailed, InvalidInput, ScrapeError, TaskError
from .models import Record, ScrapeConfig
from .orchestrator import ScrapeOrchestrator, scrape_urls

__all__ = [
    "Cancelled",
    "EmptyInput",
    "FetchFailed",
    "InvalidInput",
    "Record",
    "ScrapeConfig",
    "ScrapeContext",
    "ScrapeError",
    "ScrapeOrchestrator",
    "TaskError",
    "scrape_urls",
]
