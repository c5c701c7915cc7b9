from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from workline_search.cache import ArticleCache
from workline_search.config import Config
from workline_search.exceptions import ExternalSearchUnavailable, FetchError
from workline_search.extract import DEFAULT_TITLE_SUFFIXES, TITLE_MAX_CHARS, scrape_article
from workline_search.http import Fetcher
from workline_search.types import SOURCE_EXTERNAL, ArticleRecord, ExternalHit


logger = logging.getLogger(__name__)

# Only used to order external hits ahead of local ones; not on the scorer's scale.
EXTERNAL_SCORE = 100


class GoogleSearchClient:
    """Google Custom Search JSON API, restricted to the article site."""

    BASE = "https://www.googleapis.com/customsearch/v1"

    def __init__(
        self,
        fetcher: Fetcher,
        api_key: str,
        engine_id: str,
        *,
        site_filter: Optional[str] = None,
        request_count: int = 10,
    ) -> None:
        self._fetcher = fetcher
        self._api_key = api_key
        self._cx = engine_id
        self._site_filter = site_filter
        self._num = max(1, min(int(request_count), 10))

    def build_params(self, query: str) -> dict[str, Any]:
        q = query.strip()
        if self._site_filter:
            q = f"site:{self._site_filter} {q}"
        return {"key": self._api_key, "cx": self._cx, "q": q, "num": self._num}

    async def query(self, query: str) -> list[ExternalHit]:
        try:
            data = await self._fetcher.get_json(self.BASE, params=self.build_params(query))
        except FetchError as e:
            raise ExternalSearchUnavailable(f"search API request failed ({e})") from e

        if "error" in data:
            err = data.get("error") or {}
            msg = err.get("message") if isinstance(err, dict) else err
            raise ExternalSearchUnavailable(f"search API error: {msg}")

        hits: list[ExternalHit] = []
        for item in data.get("items") or []:
            if not isinstance(item, dict):
                continue
            url = str(item.get("link") or "").strip()
            if not url:
                continue
            hits.append(
                ExternalHit(
                    url=url,
                    title=str(item.get("title") or "").strip(),
                    snippet=str(item.get("snippet") or "").strip(),
                )
            )
        return hits


class ExternalSearch:
    """Merges external search hits with the article cache.

    Hits already cached reuse the cached record. Others are scraped and, when
    extraction succeeds, added to the cache.
    """

    def __init__(
        self,
        client: Optional[GoogleSearchClient],
        cache: ArticleCache,
        fetcher: Fetcher,
        *,
        max_hits: int = 5,
        title_suffixes: tuple[str, ...] = DEFAULT_TITLE_SUFFIXES,
    ) -> None:
        self._client = client
        self._cache = cache
        self._fetcher = fetcher
        self.max_hits = max_hits
        self.title_suffixes = title_suffixes

    @classmethod
    def from_config(cls, fetcher: Fetcher, cache: ArticleCache, cfg: Config) -> "ExternalSearch":
        ext = cfg.raw["external_search"]
        creds = cfg.external_credentials
        client = None
        if creds is not None:
            client = GoogleSearchClient(
                fetcher,
                creds[0],
                creds[1],
                site_filter=ext.get("site_filter"),
                request_count=int(ext.get("request_count", 10)),
            )
        else:
            logger.info("External search not configured; using cached articles only")
        return cls(client, cache, fetcher, max_hits=int(ext.get("max_hits", 5)), title_suffixes=cfg.title_suffixes)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def search(self, query: str) -> list[ArticleRecord]:
        if not self.enabled:
            return []

        try:
            hits = await self._query(query)
        except ExternalSearchUnavailable as e:
            logger.warning("External search unavailable: %s", e)
            return []

        results: dict[str, ArticleRecord] = {}
        for hit in hits[: self.max_hits]:
            if hit.url in results:
                continue
            record = await self._resolve(hit)
            results[hit.url] = replace(record, score=EXTERNAL_SCORE, source=SOURCE_EXTERNAL)
        return list(results.values())

    async def _query(self, query: str) -> list[ExternalHit]:
        if self._client is None:
            raise ExternalSearchUnavailable("no API key / engine id configured")
        return await self._client.query(query)

    async def _resolve(self, hit: ExternalHit) -> ArticleRecord:
        cached = self._cache.get(hit.url)
        if cached is not None:
            return cached

        record = await scrape_article(self._fetcher, hit.url, title_suffixes=self.title_suffixes)
        if self._cache.put(record):
            return record

        return ArticleRecord(
            url=hit.url,
            title=(hit.title or hit.url)[:TITLE_MAX_CHARS],
            summary=hit.snippet,
        )
