from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import List, Optional, Sequence

from magscraper.context import ScrapeContext
from magscraper.errors import EmptyInput
from magscraper.logging_utils import configure_logging
from magscraper.metrics import MetricsCollector
from magscraper.models import ScrapeConfig
from magscraper.orchestrator import ScrapeOrchestrator
from magscraper.storage import ExportError, create_exporter

logger = logging.getLogger("magscraper.cli")


def _split_urls(raw: str) -> List[str]:
    return [u.strip() for u in raw.split(",") if u.strip()]


def _install_interrupt_handler(ctx: ScrapeContext) -> None:
    def _handler(signum, frame) -> None:
        logger.warning("Received interrupt signal. Cleaning up...")
        ctx.cancel()

    signal.signal(signal.SIGINT, _handler)


def run(
    urls: Sequence[str],
    config: ScrapeConfig,
    fmt: str,
    output: str,
    ctx: Optional[ScrapeContext] = None,
) -> int:
    ctx = ctx or ScrapeContext.background()
    metrics = MetricsCollector()
    orchestrator = ScrapeOrchestrator(config, metrics=metrics)

    try:
        exporter = create_exporter(fmt, output)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    try:
        records, err = orchestrator.scrape_urls(ctx, urls)
    except EmptyInput as exc:
        logger.error("%s", exc)
        return 1

    if err is not None:
        logger.warning("Some URLs may have failed: %s", err)

    snap = metrics.snapshot(window_secs=int(config.overall_timeout) + 60)
    logger.info(
        "tasks=%d success=%d invalid=%d fetch_failed=%d cancelled=%d avg_latency_ms=%.0f",
        snap.total_tasks,
        snap.success_count,
        snap.invalid_count,
        snap.fetch_failed_count,
        snap.cancelled_count,
        snap.avg_latency_ms,
    )

    if not records:
        logger.error("No articles were scraped")
        return 1

    print(f"Found {len(records)} articles")

    try:
        exporter.export(records)
    except ExportError as exc:
        logger.error("%s", exc)
        return 1

    print(f"Articles exported to {exporter.path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Scrape Flipboard magazines into CSV or SQLite")
    parser.add_argument("--urls", default="", help="Comma-separated list of Flipboard magazine URLs to scrape")
    parser.add_argument("--format", default="csv", choices=("csv", "sqlite"), help="Export format")
    parser.add_argument("--output", default="articles", help="Output file (without extension)")

    parser.add_argument("--concurrent", type=int, default=3, help="Maximum number of concurrent requests")
    parser.add_argument("--rate-limit", type=float, default=1.0, help="Maximum requests per second")
    parser.add_argument("--timeout", type=float, default=120.0, help="Timeout in seconds")
    parser.add_argument("--impersonate", default=None, help="curl_cffi browser fingerprint, e.g. chrome120")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        help="Logging level",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    urls = _split_urls(args.urls)
    if not urls:
        logger.error("Please provide Flipboard magazine URLs using the --urls flag")
        return 1

    try:
        config = ScrapeConfig(
            max_concurrency=args.concurrent,
            max_requests_per_second=args.rate_limit,
            overall_timeout=args.timeout,
            impersonate=args.impersonate,
        )
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    ctx = ScrapeContext.background()
    _install_interrupt_handler(ctx)
    return run(urls, config, args.format, args.output, ctx=ctx)


if __name__ == "__main__":
    sys.exit(main())
