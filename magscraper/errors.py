"""Error types raised and returned by the scraping core.

Every error derives from :class:`ScrapeError` so callers can catch the whole
family at once. Per-URL failures are wrapped in :class:`TaskError` so the
failing URL always appears in the message.
"""
from __future__ import annotations

from typing import Optional


class ScrapeError(Exception):
    """Base class for scraping errors. Also used for the run summary."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class InvalidInput(ScrapeError, ValueError):
    """The URL is not an accepted magazine URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"invalid Flipboard URL: {url}")
        self.url = url


class EmptyInput(ScrapeError, ValueError):
    def __init__(self) -> None:
        super().__init__("no URLs provided")


class FetchFailed(ScrapeError):
    """Transport failure or non-2xx response for one URL."""

    def __init__(
        self,
        url: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ) -> None:
        if status_code is not None:
            message = f"request to {url} failed with status {status_code}"
        elif cause is not None:
            message = f"request to {url} failed: {cause}"
        else:
            message = f"request to {url} failed"
        super().__init__(message, cause)
        self.url = url
        self.status_code = status_code


class Cancelled(ScrapeError):
    """The context was cancelled or its deadline passed."""

    def __init__(self, deadline_exceeded: bool = False) -> None:
        super().__init__("deadline exceeded" if deadline_exceeded else "cancelled")
        self.deadline_exceeded = deadline_exceeded


class TaskError(ScrapeError):
    """Failure of one scheduled item, tagged with the item's identity."""

    def __init__(self, item: str, cause: BaseException) -> None:
        super().__init__(f"failed to scrape {item}: {cause}", cause)
        self.item = item
