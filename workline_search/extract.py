from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from bs4 import BeautifulSoup

from workline_search.exceptions import FetchError
from workline_search.http import Fetcher
from workline_search.types import PLACEHOLDER_TITLE, ArticleRecord, placeholder_record


logger = logging.getLogger(__name__)

Probe = Callable[[BeautifulSoup], Optional[str]]

TITLE_MAX_CHARS = 150
SUMMARY_MAX_CHARS = 300
SUMMARY_MIN_CHARS = 50
PARAGRAPH_MIN_CHARS = 30
PARAGRAPH_MAX_CHARS = 250
BODY_MIN_CHARS = 100
BODY_MAX_CHARS = 3000
MAX_TOPICS = 5

DEFAULT_TITLE_SUFFIXES = (" | FlexOS", " | The Workline")

_SUMMARY_PARAGRAPH_SELECTORS = (
    "article p:first-of-type",
    ".content p:first-of-type",
    ".post-content p:first-of-type",
    ".entry-content p:first-of-type",
    "main p:first-of-type",
    "p",
)

_BODY_SELECTORS = (
    "article",
    ".content, .post-content, .entry-content",
    "main",
    ".post, .article",
)

_TOPIC_SELECTOR = '[class*="tag"], [class*="category"], [rel="tag"], .hashtag'


def normalize_text(text: str) -> str:
    text = re.sub(r"\s+", " ", text).strip()
    return text


def _text_of(soup: BeautifulSoup, selector: str) -> Optional[str]:
    el = soup.select_one(selector)
    if el is None:
        return None
    return el.get_text(" ", strip=True) or None


def _attr_of(soup: BeautifulSoup, selector: str, attr: str) -> Optional[str]:
    el = soup.select_one(selector)
    if el is None:
        return None
    value = str(el.get(attr) or "").strip()
    return value or None


def text_probe(selector: str) -> Probe:
    return lambda soup: _text_of(soup, selector)


def attr_probe(selector: str, attr: str) -> Probe:
    return lambda soup: _attr_of(soup, selector, attr)


def first_match(soup: BeautifulSoup, probes: Iterable[Probe]) -> Optional[str]:
    """Run probes in order and return the first non-empty value."""

    for probe in probes:
        value = probe(soup)
        if value:
            return value
    return None


def _page_title_probe(suffixes: tuple[str, ...]) -> Probe:
    def probe(soup: BeautifulSoup) -> Optional[str]:
        if soup.title is None:
            return None
        t = soup.title.get_text(" ", strip=True)
        for suffix in suffixes:
            t = t.replace(suffix, "")
        return t.strip() or None

    return probe


def extract_title(soup: BeautifulSoup, suffixes: tuple[str, ...] = DEFAULT_TITLE_SUFFIXES) -> str:
    title = first_match(
        soup,
        (
            text_probe("h1"),
            _page_title_probe(suffixes),
            text_probe('[class*="title"]'),
        ),
    )
    if not title:
        return PLACEHOLDER_TITLE
    return title[:TITLE_MAX_CHARS]


def _first_paragraph(soup: BeautifulSoup) -> Optional[str]:
    for sel in _SUMMARY_PARAGRAPH_SELECTORS:
        para = _text_of(soup, sel)
        if para and len(para) > PARAGRAPH_MIN_CHARS:
            return para[:PARAGRAPH_MAX_CHARS]
    return None


def extract_summary(soup: BeautifulSoup) -> str:
    summary = first_match(
        soup,
        (
            attr_probe('meta[name="description"]', "content"),
            attr_probe('meta[property="og:description"]', "content"),
            text_probe(".excerpt, .summary, .intro"),
        ),
    )

    # Metadata is often missing or a one-liner; prefer the lead paragraph then.
    if not summary or len(summary) < SUMMARY_MIN_CHARS:
        summary = _first_paragraph(soup) or summary

    if not summary:
        return ""
    if len(summary) > SUMMARY_MAX_CHARS:
        return summary[:SUMMARY_MAX_CHARS] + "..."
    return summary


def extract_body(soup: BeautifulSoup) -> str:
    content = ""
    for sel in _BODY_SELECTORS:
        elements = soup.select(sel)
        if elements:
            content = " ".join(el.get_text(" ", strip=True) for el in elements).strip()
            break

    if len(content) < BODY_MIN_CHARS:
        root = soup.body or soup
        content = root.get_text(" ", strip=True)

    return normalize_text(content)[:BODY_MAX_CHARS]


def extract_topics(soup: BeautifulSoup) -> tuple[str, ...]:
    topics: list[str] = []
    for el in soup.select(_TOPIC_SELECTOR):
        tag = el.get_text(" ", strip=True).lower()
        if tag.startswith("#"):
            tag = tag[1:].strip()
        if len(tag) > 2 and tag not in topics:
            topics.append(tag)
        if len(topics) >= MAX_TOPICS:
            break
    return tuple(topics)


def extract_publish_date(soup: BeautifulSoup) -> Optional[str]:
    return first_match(
        soup,
        (
            attr_probe("time[datetime]", "datetime"),
            attr_probe('meta[property="article:published_time"]', "content"),
            text_probe(".date, .published, .post-date"),
        ),
    )


def extract_article(
    html: str,
    url: str,
    *,
    title_suffixes: tuple[str, ...] = DEFAULT_TITLE_SUFFIXES,
) -> ArticleRecord:
    """Build an ArticleRecord from an article page. Never raises; failures give a placeholder."""

    try:
        soup = BeautifulSoup(html or "", "lxml")
        # Scripts and styles would otherwise leak into the body text.
        for tag in soup.select("script, style, noscript"):
            tag.decompose()

        return ArticleRecord(
            url=url,
            title=extract_title(soup, title_suffixes),
            summary=extract_summary(soup),
            body=extract_body(soup),
            topics=extract_topics(soup),
            publish_date=extract_publish_date(soup),
            scraped_at=datetime.now(timezone.utc),
        )
    except Exception:
        logger.exception("Extraction failed for %s", url)
        return placeholder_record(url)


async def scrape_article(
    fetcher: Fetcher,
    url: str,
    *,
    title_suffixes: tuple[str, ...] = DEFAULT_TITLE_SUFFIXES,
) -> ArticleRecord:
    logger.debug("Scraping %s", url)
    try:
        html = await fetcher.get_text(url)
    except FetchError as e:
        logger.warning("Could not fetch article: %s", e)
        return placeholder_record(url)

    record = extract_article(html, url, title_suffixes=title_suffixes)
    if not record.is_placeholder:
        logger.debug("Scraped %r", record.title)
    return record
