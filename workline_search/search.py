from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from workline_search.cache import ArticleCache
from workline_search.config import Config
from workline_search.external import ExternalSearch
from workline_search.http import Fetcher, HttpClient, RetryPolicy
from workline_search.scoring import rank_local
from workline_search.types import ArticleRecord


logger = logging.getLogger(__name__)


def merge_results(
    external: list[ArticleRecord],
    local: list[ArticleRecord],
    limit: int,
) -> list[ArticleRecord]:
    """Union keyed by URL with external hits winning, best score first.

    ``sorted`` is stable, so equal scores keep external-then-local order.
    """

    merged: dict[str, ArticleRecord] = {}
    for r in external:
        merged.setdefault(r.url, r)
    for r in local:
        merged.setdefault(r.url, r)

    ranked = sorted(merged.values(), key=lambda r: r.score, reverse=True)
    return ranked[: max(0, limit)]


class WorklineSearch:
    """Entry point: keeps the article cache fresh and answers queries against it.

    Use as an async context manager to own the HTTP session, or pass a fetcher
    directly (tests, embedding into an existing event loop)::

        async with WorklineSearch(load_config("config.yaml")) as ws:
            results = await ws.search("hybrid work")
    """

    def __init__(self, cfg: Optional[Config] = None, fetcher: Optional[Fetcher] = None) -> None:
        self.cfg = cfg or Config()
        self._session: Optional[aiohttp.ClientSession] = None
        self._cache: Optional[ArticleCache] = None
        self._external: Optional[ExternalSearch] = None
        if fetcher is not None:
            self._bind(fetcher)

    def _bind(self, fetcher: Fetcher) -> None:
        self._cache = ArticleCache.from_config(fetcher, self.cfg)
        self._external = ExternalSearch.from_config(fetcher, self._cache, self.cfg)

    async def __aenter__(self) -> "WorklineSearch":
        if self._cache is None:
            http_cfg = self.cfg.raw["http"]
            self._session = aiohttp.ClientSession()
            client = HttpClient(
                self._session,
                retry=RetryPolicy.from_raw(http_cfg.get("retry", {}) or {}),
                user_agent=str(http_cfg["user_agent"]),
                timeout_seconds=float(http_cfg["timeout_seconds"]),
            )
            self._bind(client)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def cache(self) -> ArticleCache:
        if self._cache is None:
            raise RuntimeError("WorklineSearch has no fetcher; use 'async with' or pass one in")
        return self._cache

    @property
    def external(self) -> ExternalSearch:
        if self._external is None:
            raise RuntimeError("WorklineSearch has no fetcher; use 'async with' or pass one in")
        return self._external

    async def refresh(self) -> None:
        await self.cache.refresh()

    async def search(self, query: str) -> list[ArticleRecord]:
        """Ranked records for ``query``, at most ``search.max_results`` of them.

        Each result carries ``score`` and ``source`` ("external" or "local").
        Failures degrade to fewer results; nothing is raised.
        """

        query = (query or "").strip()
        if not query:
            return []

        logger.info("Searching for %r", query)
        external = await self.external.search(query)

        await self.cache.ensure_fresh()
        local = rank_local(query, self.cache.records())

        results = merge_results(external, local, self.cfg.max_results)
        logger.info(
            "Returning %d results for %r (%d external, %d local matches)",
            len(results),
            query,
            len(external),
            len(local),
        )
        return results
