from __future__ import annotations

import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)


# Independent rules; their matches are unioned.
LINK_SELECTORS = (
    'a[href*="/the-workline/"]',
    'a[href*="workline"]',
    ".post-link, .article-link",
    "article a, .post a",
    "h1 a, h2 a, h3 a",
)

_DENY_SUBSTRINGS = (
    "#",
    "mailto:",
    "javascript:",
)


def _resolve(base_url: str, href: str) -> str | None:
    href = (href or "").strip()
    if not href:
        return None
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def accept_candidate(url: str, *, index_url: str, keyword: str) -> bool:
    url_l = url.lower()
    if any(s in url_l for s in _DENY_SUBSTRINGS):
        return False
    if url.rstrip("/") == index_url.rstrip("/"):
        return False
    return keyword.lower() in url_l


def discover_article_urls(
    html: str,
    index_url: str,
    *,
    keyword: str = "workline",
) -> list[str]:
    """Collect candidate article links from the listing page.

    The result has no duplicates and keeps first-seen document order so that
    capping the list downstream is deterministic.
    """

    soup = BeautifulSoup(html or "", "lxml")

    found: dict[str, None] = {}
    for sel in LINK_SELECTORS:
        for a in soup.select(sel):
            # ".post-link" may sit on a non-anchor wrapper; only hrefs count
            href = a.get("href")
            if not href:
                continue
            url = _resolve(index_url, str(href))
            if not url:
                continue
            if not accept_candidate(url, index_url=index_url, keyword=keyword):
                continue
            found.setdefault(url, None)

    logger.debug("Discovered %d candidate article URLs", len(found))
    return list(found)
