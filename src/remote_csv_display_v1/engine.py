from __future__ import annotations

import hashlib
import logging
from datetime import datetime, time, timezone
from typing import Awaitable, Callable, Optional

from .errors import EmptyBodyError, FetchError, RemoteCsvError, UnsafeUrlError
from .freshness import DEFAULT_CUTOFF, DEFAULT_TIMEZONE, should_refresh
from .models import RemoteCsvInput, RemoteCsvOutput, TableViewConfig, TabularDataset
from .parser import MAX_ROWS, parse_csv_text
from .security import DEFAULT_TIMEOUT_SECONDS, FetchResponse, fetch_csv, is_safe_public_http_url
from .stores import OptionStore, TtlCache
from .table_view import build_table_view, render_table_html
from .timeline_view import build_timeline_view, parse_timeline_columns, render_timeline_html

CACHE_PREFIX = "rcd_cache_"
LAST_FETCH_PREFIX = "rcd_last_fetch_timestamp_"
DAY_IN_SECONDS = 24 * 60 * 60

Fetcher = Callable[[str, float], Awaitable[FetchResponse]]

logger = logging.getLogger("remote_csv_display_v1.engine")


def url_fingerprint(url: str) -> str:
    return hashlib.md5(url.encode("utf-8")).hexdigest()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RemoteCsvDisplayEngine:
    def __init__(
        self,
        cache: TtlCache,
        options: OptionStore,
        fetcher: Optional[Fetcher] = None,
        clock: Callable[[], datetime] = _utc_now,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        cutoff: time = DEFAULT_CUTOFF,
        timezone_name: str = DEFAULT_TIMEZONE,
        max_rows: int = MAX_ROWS,
        cache_ttl_seconds: int = DAY_IN_SECONDS,
    ) -> None:
        self._cache = cache
        self._options = options
        self._fetcher = fetcher or _default_fetcher
        self._clock = clock
        self._timeout_seconds = timeout_seconds
        self._cutoff = cutoff
        self._timezone_name = timezone_name
        self._max_rows = max_rows
        self._cache_ttl_seconds = cache_ttl_seconds

    async def run(self, payload: RemoteCsvInput) -> RemoteCsvOutput:
        mode = "timeline" if payload.grouped_timeline is not None else "table"
        try:
            dataset = await self.load_dataset(payload.url)
            if mode == "timeline":
                timeline = build_timeline_view(dataset, parse_timeline_columns(payload.grouped_timeline or ""))
                return RemoteCsvOutput(mode=mode, ok=True, html=render_timeline_html(timeline), timeline=timeline)

            config = TableViewConfig.from_hide_option(payload.hide)
            table = build_table_view(dataset, config.hidden_columns)
            return RemoteCsvOutput(mode=mode, ok=True, html=render_table_html(table), table=table)
        except RemoteCsvError as exc:
            logger.warning("remote csv render failed code=%s url=%s: %s", exc.code, payload.url, exc)
            return RemoteCsvOutput(mode=mode, ok=False, html=exc.placeholder, error=exc.code)

    async def load_dataset(self, url: str) -> TabularDataset:
        """Return the cached dataset for ``url``, refreshing it at most once per daily window."""
        if not is_safe_public_http_url(url):
            raise UnsafeUrlError(f"url is not allowed (non-public or local): {url}")

        fingerprint = url_fingerprint(url)
        cache_key = CACHE_PREFIX + fingerprint
        option_key = LAST_FETCH_PREFIX + fingerprint

        now = self._clock()
        last_fetch = self._options.get(option_key, 0)
        refresh_due = should_refresh(now, last_fetch, self._cutoff, self._timezone_name)

        cached = self._cache.get(cache_key)
        if cached is not None and not refresh_due:
            logger.debug("cache hit url=%s", url)
            return TabularDataset.model_validate(cached)

        dataset = await self._fetch_dataset(url)

        self._cache.set(cache_key, dataset.model_dump(mode="json"), self._cache_ttl_seconds)
        self._options.set(option_key, int(now.timestamp()))
        logger.info("refreshed csv url=%s rows=%d", url, len(dataset.rows))
        return dataset

    def teardown(self) -> int:
        removed = self._cache.delete_by_prefix(CACHE_PREFIX)
        removed += self._options.delete_by_prefix(LAST_FETCH_PREFIX)
        logger.info("removed %d cached csv records", removed)
        return removed

    async def _fetch_dataset(self, url: str) -> TabularDataset:
        try:
            response = await self._fetcher(url, self._timeout_seconds)
        except RemoteCsvError:
            logger.warning("csv fetch failed url=%s", url, exc_info=True)
            raise
        except Exception as exc:
            logger.warning("csv fetch failed url=%s", url, exc_info=True)
            raise FetchError(f"csv request failed: {url}") from exc

        if response.status_code != 200:
            raise FetchError(f"csv fetch failed: status={response.status_code}")

        if not response.text or not response.text.strip():
            raise EmptyBodyError(f"csv body is empty: {url}")

        return parse_csv_text(response.text, max_rows=self._max_rows)


async def _default_fetcher(url: str, timeout_seconds: float) -> FetchResponse:
    return await fetch_csv(url, timeout_seconds=timeout_seconds)
