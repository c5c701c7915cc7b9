from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

import pytest

from workline_search.config import build_config
from workline_search.exceptions import FetchError


INDEX_URL = "https://www.flexos.work/the-workline/"


class FakeFetcher:
    """In-memory stand-in for HttpClient: serves canned pages, records every call."""

    def __init__(
        self,
        pages: Optional[dict[str, str]] = None,
        json_responses: Optional[dict[str, Any]] = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.json_responses = dict(json_responses or {})
        self.calls: list[str] = []
        self.json_calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_text(self, url: str) -> str:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if url not in self.pages:
                raise FetchError(f"{url}: HTTP 404")
            return self.pages[url]
        finally:
            self.in_flight -= 1

    async def get_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        self.json_calls.append(dict(params or {}))
        if url not in self.json_responses:
            raise FetchError(f"{url}: HTTP 500")
        return self.json_responses[url]

    def count(self, url: str) -> int:
        return self.calls.count(url)


def article_html(
    title: str,
    summary: str = "",
    body: str = "",
    topics: tuple[str, ...] = (),
    published: Optional[str] = None,
) -> str:
    tags = "".join(f'<a class="tag" href="/tag/{t}">#{t}</a>' for t in topics)
    meta = f'<meta name="description" content="{summary}">' if summary else ""
    time_el = f'<time datetime="{published}">{published}</time>' if published else ""
    return (
        f"<html><head><title>{title} | FlexOS</title>{meta}</head>"
        f"<body><h1>{title}</h1>{time_el}<article><p>{body}</p>{tags}</article></body></html>"
    )


def index_html(urls: list[str]) -> str:
    links = "".join(f'<h2><a href="{u}">{u}</a></h2>' for u in urls)
    return f"<html><body><main>{links}</main></body></html>"


@pytest.fixture(autouse=True)
def _no_external_credentials(monkeypatch):
    monkeypatch.delenv("GOOGLE_CSE_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_CSE_CX", raising=False)


@pytest.fixture
def cfg():
    return build_config({"cache": {"batch_delay_seconds": 0}})
