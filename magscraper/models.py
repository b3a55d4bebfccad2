from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass(frozen=True)
class Record:
    """One article extracted from a magazine page."""

    title: str
    source_url: str
    summary: str
    observed_at: datetime

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("record.title is required")

    def as_row(self) -> Tuple[str, str, str, datetime]:
        return (self.title, self.source_url, self.summary, self.observed_at)


@dataclass(frozen=True)
class ScrapeConfig:
    max_concurrency: int
    max_requests_per_second: float
    overall_timeout: float
    request_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    impersonate: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be > 0, got {self.max_concurrency}")
        if self.max_requests_per_second <= 0:
            raise ValueError(f"max_requests_per_second must be > 0, got {self.max_requests_per_second}")
        if self.overall_timeout <= 0:
            raise ValueError(f"overall_timeout must be > 0, got {self.overall_timeout}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got {self.request_timeout}")

    @classmethod
    def default(cls) -> "ScrapeConfig":
        return cls(max_concurrency=3, max_requests_per_second=1.0, overall_timeout=120.0)


@dataclass(frozen=True)
class Success:
    url: str
    records: Tuple[Record, ...] = field(default_factory=tuple)
    latency_ms: int = 0


@dataclass(frozen=True)
class Failure:
    url: str
    cause: BaseException
    latency_ms: int = 0


TaskOutcome = Union[Success, Failure]


@dataclass(frozen=True)
class MetricsSnapshot:
    window_secs: int
    total_tasks: int
    success_count: int
    invalid_count: int
    fetch_failed_count: int
    cancelled_count: int
    record_count: int
    avg_latency_ms: float
    timestamp: float
