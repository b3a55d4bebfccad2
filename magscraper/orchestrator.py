"""
Concurrent scraping of many magazine URLs.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence, Tuple

from .aggregator import ResultAggregator
from .context import ScrapeContext
from .controller import TaskGroup
from .errors import EmptyInput, ScrapeError
from .fetcher import PageFetcher, validate_url
from .logging_utils import log_event
from .metrics import MetricsCollector
from .models import Failure, Record, ScrapeConfig, Success, TaskOutcome
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class ScrapeOrchestrator:
    """
    Fans a URL list out over a bounded thread pool and gathers the records.

    Each URL becomes one task: validate, wait for a rate-limit token, fetch
    and extract, then append to a shared buffer. Failed tasks do not stop the
    others; the first failure is summarized in the returned error while every
    record from the successful tasks is still returned.
    """

    def __init__(
        self,
        config: ScrapeConfig,
        fetcher: Optional[PageFetcher] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._config = config
        self._fetcher = fetcher or PageFetcher(config)
        self._metrics = metrics

    @property
    def config(self) -> ScrapeConfig:
        return self._config

    def scrape_urls(
        self,
        ctx: ScrapeContext,
        urls: Sequence[str],
    ) -> Tuple[List[Record], Optional[ScrapeError]]:
        urls = list(urls)
        if not urls:
            raise EmptyInput()

        started = time.monotonic()
        rate_limiter = RateLimiter(qps=self._config.max_requests_per_second, burst=1)
        aggregator = ResultAggregator()
        group: TaskGroup[str] = TaskGroup(self._config.max_concurrency)

        def task(task_ctx: ScrapeContext, url: str) -> None:
            self._scrape_one(task_ctx, url, rate_limiter, aggregator)

        with ctx.with_timeout(self._config.overall_timeout) as run_ctx:
            first_error = group.run(run_ctx, urls, task)

        records = aggregator.snapshot()
        log_event(
            logger,
            logging.INFO,
            "scrape_completed",
            urls=len(urls),
            records=len(records),
            failed=first_error is not None,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        if first_error is None:
            return records, None
        return records, ScrapeError(f"scraping error: {first_error}", first_error)

    def _scrape_one(
        self,
        ctx: ScrapeContext,
        url: str,
        rate_limiter: RateLimiter,
        aggregator: ResultAggregator,
    ) -> None:
        start_ms = self._now_ms()
        log_event(logger, logging.DEBUG, "task_started", url=url)
        try:
            # malformed URLs fail before they can spend a token
            validate_url(url)
            rate_limiter.acquire(ctx)
            records = self._fetcher.fetch(ctx, url)
        except Exception as exc:
            self._record(Failure(url=url, cause=exc, latency_ms=self._now_ms() - start_ms))
            log_event(
                logger,
                logging.WARNING,
                "task_failed",
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

        aggregator.add(records)
        self._record(Success(url=url, records=tuple(records), latency_ms=self._now_ms() - start_ms))
        log_event(logger, logging.INFO, "task_succeeded", url=url, records=len(records))

    def _record(self, outcome: TaskOutcome) -> None:
        if self._metrics:
            self._metrics.record_outcome(outcome)

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)


def scrape_urls(
    ctx: ScrapeContext,
    urls: Sequence[str],
    config: ScrapeConfig,
) -> Tuple[List[Record], Optional[ScrapeError]]:
    """
    Scrape ``urls`` with a fresh orchestrator built from ``config``.
    """

    return ScrapeOrchestrator(config).scrape_urls(ctx, urls)
