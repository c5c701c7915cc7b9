from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional

from workline_search.config import Config
from workline_search.discover import discover_article_urls
from workline_search.exceptions import FetchError, RefreshAborted
from workline_search.extract import DEFAULT_TITLE_SUFFIXES, scrape_article
from workline_search.http import Fetcher
from workline_search.types import ArticleRecord


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArticleCache:
    """In-memory store of scraped articles keyed by URL, refreshed from the index page.

    Refreshes are serialised with a lock. New records are staged and swapped in
    as a whole when a refresh completes, so readers only ever see a finished
    refresh. Entries are never evicted; a refresh only adds or overwrites.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        index_url: str,
        keyword: str = "workline",
        ttl: timedelta = timedelta(minutes=30),
        max_articles: int = 20,
        batch_size: int = 2,
        batch_delay_seconds: float = 2.0,
        title_suffixes: tuple[str, ...] = DEFAULT_TITLE_SUFFIXES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetcher = fetcher
        self.index_url = index_url
        self.keyword = keyword
        self.ttl = ttl
        self.max_articles = max_articles
        self.batch_size = max(1, batch_size)
        self.batch_delay_seconds = batch_delay_seconds
        self.title_suffixes = title_suffixes
        self._clock = clock

        self._entries: dict[str, ArticleRecord] = {}
        self._last_refresh: Optional[datetime] = None
        self._lock = asyncio.Lock()
        self._attempts = 0

    @classmethod
    def from_config(cls, fetcher: Fetcher, cfg: Config, **kwargs) -> "ArticleCache":
        cache_cfg = cfg.raw["cache"]
        return cls(
            fetcher,
            index_url=cfg.index_url,
            keyword=cfg.keyword,
            ttl=cfg.cache_ttl,
            max_articles=int(cache_cfg["max_articles"]),
            batch_size=int(cache_cfg["batch_size"]),
            batch_delay_seconds=float(cache_cfg["batch_delay_seconds"]),
            title_suffixes=cfg.title_suffixes,
            **kwargs,
        )

    @property
    def last_refresh(self) -> Optional[datetime]:
        return self._last_refresh

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __iter__(self) -> Iterator[ArticleRecord]:
        return iter(self.records())

    def get(self, url: str) -> Optional[ArticleRecord]:
        return self._entries.get(url)

    def records(self) -> list[ArticleRecord]:
        return list(self._entries.values())

    def put(self, record: ArticleRecord) -> bool:
        """Insert a scraped record outside a refresh. Placeholders are refused.

        Synchronous, so the dict swap cannot interleave with a refresh; the
        refresh merges its staged records over whatever is current when it ends.
        """

        if record.is_placeholder:
            return False
        self._entries = {**self._entries, record.url: record}
        return True

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        if self._last_refresh is None:
            return True
        now = now or self._clock()
        return now - self._last_refresh > self.ttl

    async def refresh(self) -> None:
        async with self._lock:
            await self._run_refresh()

    async def ensure_fresh(self) -> None:
        """Refresh when stale, then retry once more if the cache is still empty."""

        if self.is_stale():
            async with self._lock:
                # another caller may have refreshed while we waited
                if self.is_stale():
                    await self._run_refresh()

        if not self._entries:
            seen = self._attempts
            async with self._lock:
                if not self._entries and self._attempts == seen:
                    logger.warning("No articles in cache, attempting another refresh")
                    await self._run_refresh()

    async def _run_refresh(self) -> None:
        self._attempts += 1
        try:
            await self._refresh_once()
        except RefreshAborted as e:
            logger.error("Refresh aborted, keeping %d cached articles: %s", len(self._entries), e)

    async def _refresh_once(self) -> None:
        logger.info("Refreshing article cache from %s", self.index_url)
        try:
            html = await self._fetcher.get_text(self.index_url)
        except FetchError as e:
            raise RefreshAborted(f"index page unreachable ({e})") from e

        try:
            urls = discover_article_urls(html, self.index_url, keyword=self.keyword)
        except Exception as e:
            raise RefreshAborted(f"index page could not be parsed ({e})") from e

        urls = urls[: self.max_articles]
        logger.info("Found %d articles to cache", len(urls))

        staged: dict[str, ArticleRecord] = {}
        for i in range(0, len(urls), self.batch_size):
            batch = urls[i : i + self.batch_size]
            results = await asyncio.gather(
                *(scrape_article(self._fetcher, u, title_suffixes=self.title_suffixes) for u in batch)
            )
            for record in results:
                if not record.is_placeholder:
                    staged[record.url] = record

            # politeness throttle towards the source site
            if i + self.batch_size < len(urls):
                await asyncio.sleep(self.batch_delay_seconds)

        self._entries = {**self._entries, **staged}
        self._last_refresh = self._clock()
        logger.info("Cached %d articles (%d from this refresh)", len(self._entries), len(staged))
