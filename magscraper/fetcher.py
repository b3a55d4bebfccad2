"""Single-page retrieval and article extraction.

:class:`PageFetcher` downloads one magazine page and turns its
``article.item`` blocks into :class:`~magscraper.models.Record` values.
Every call opens its own HTTP session, parse tree and record buffer, so a
single fetcher can be used from any number of worker threads at once.
"""
from __future__ import annotations

import re
import threading
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import requests
from bs4 import BeautifulSoup
from curl_cffi import CurlError
from curl_cffi import requests as curl_requests

from .context import ScrapeContext
from .errors import FetchFailed, InvalidInput
from .models import Record, ScrapeConfig

URL_PREFIX = "https://flipboard.com/"

ARTICLE_SELECTOR = "article.item"
TITLE_SELECTOR = "h3"
LINK_SELECTOR = "a"
SUMMARY_SELECTOR = "p.description"

_CHUNK_SIZE = 16 * 1024
_WHITESPACE_RE = re.compile(r"\s+")

TRANSPORT_ERRORS = (requests.RequestException, CurlError)

SessionFactory = Callable[[], Any]


def clean_text(text: str) -> str:
    """Collapse whitespace runs into single spaces and trim both ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def validate_url(url: str) -> None:
    if not url.startswith(URL_PREFIX):
        raise InvalidInput(url)


def _child_text(block: Any, selector: str) -> str:
    # inline markup splits words into several text nodes; join them as-is
    return "".join(el.get_text() for el in block.select(selector))


def _child_attr(block: Any, selector: str, attr: str) -> str:
    el = block.select_one(selector)
    if el is None:
        return ""
    value = el.get(attr)
    return value.strip() if isinstance(value, str) else ""


def extract_records(
    markup: Any,
    ctx: Optional[ScrapeContext] = None,
) -> List[Record]:
    """Parse ``markup`` and return one record per titled article block.

    Blocks whose title is empty after normalization are skipped. The page
    carries no publication dates, so ``observed_at`` is the extraction time.
    When ``ctx`` ends mid-way, Cancelled is raised and nothing is returned.
    """
    soup = BeautifulSoup(markup, "html.parser")
    records: List[Record] = []
    for block in soup.select(ARTICLE_SELECTOR):
        if ctx is not None:
            ctx.raise_if_cancelled()
        title = clean_text(_child_text(block, TITLE_SELECTOR))
        if not title:
            continue
        records.append(
            Record(
                title=title,
                source_url=_child_attr(block, LINK_SELECTOR, "href"),
                summary=clean_text(_child_text(block, SUMMARY_SELECTOR)),
                observed_at=datetime.now(timezone.utc),
            )
        )
    if ctx is not None:
        ctx.raise_if_cancelled()
    return records


class PageFetcher:
    """Fetches one magazine page per call and extracts its articles.

    Uses ``requests`` by default. When ``config.impersonate`` names a browser
    (e.g. ``"chrome120"``), requests go through ``curl_cffi`` with that TLS
    and header fingerprint instead, and no explicit User-Agent is sent.
    """

    def __init__(self, config: ScrapeConfig, session_factory: Optional[SessionFactory] = None) -> None:
        self._config = config
        self._session_factory = session_factory or self._default_session_factory

    def _default_session_factory(self) -> Any:
        if self._config.impersonate:
            return curl_requests.Session(impersonate=self._config.impersonate)
        return requests.Session()

    def _headers(self) -> dict:
        if self._config.impersonate:
            return {}
        return {"User-Agent": self._config.user_agent}

    def fetch(self, ctx: ScrapeContext, url: str) -> List[Record]:
        validate_url(url)
        ctx.raise_if_cancelled()

        session = self._session_factory()
        try:
            markup = self._download(ctx, session, url)
        finally:
            session.close()

        return extract_records(markup, ctx=ctx)

    def _request_timeout(self, ctx: ScrapeContext) -> float:
        timeout = self._config.request_timeout
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, max(remaining, 0.001))
        return timeout

    def _download(self, ctx: ScrapeContext, session: Any, url: str) -> bytes:
        """Run the request on a helper thread and return as soon as it ends or ctx does.

        A request blocked on connect or headers cannot be interrupted. On
        cancellation the caller returns at once and the helper finishes on its
        own socket timeout.
        """
        outcome: dict = {}
        wake = threading.Event()

        def target() -> None:
            try:
                outcome["body"] = self._read(ctx, session, url)
            except Exception as exc:  # noqa: BLE001
                outcome["error"] = exc
            finally:
                outcome["finished"] = True
                wake.set()

        ctx.add_done_callback(wake.set)
        try:
            threading.Thread(target=target, name="magscraper-fetch", daemon=True).start()
            while not outcome.get("finished"):
                wake.wait(ctx.remaining())
                if ctx.cancelled and not outcome.get("finished"):
                    # fetch() closes the session on the way out
                    ctx.raise_if_cancelled()
        finally:
            ctx.remove_done_callback(wake.set)

        if "error" in outcome:
            raise outcome["error"]
        ctx.raise_if_cancelled()
        return outcome["body"]

    def _read(self, ctx: ScrapeContext, session: Any, url: str) -> bytes:
        chunks: List[bytes] = []
        try:
            response = session.get(
                url,
                headers=self._headers(),
                timeout=self._request_timeout(ctx),
                allow_redirects=True,
                stream=True,
            )
            try:
                status_code = getattr(response, "status_code", None)
                if status_code is None or not 200 <= int(status_code) < 300:
                    raise FetchFailed(url, status_code=status_code)
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    ctx.raise_if_cancelled()
                    if chunk:
                        chunks.append(chunk)
            finally:
                response.close()
        except TRANSPORT_ERRORS as exc:
            # a socket timeout caused by the run deadline counts as cancellation
            ctx.raise_if_cancelled()
            raise FetchFailed(url, exc) from exc

        ctx.raise_if_cancelled()
        return b"".join(chunks)
