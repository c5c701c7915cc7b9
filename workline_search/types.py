from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


PLACEHOLDER_TITLE = "Article"
PLACEHOLDER_SUMMARY = "Could not load summary"

SOURCE_LOCAL = "local"
SOURCE_EXTERNAL = "external"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ArticleRecord:
    url: str
    title: str
    summary: str = ""
    # search-only, never displayed
    body: str = ""
    topics: tuple[str, ...] = ()
    publish_date: Optional[str] = None
    scraped_at: datetime = field(default_factory=_utcnow)

    # populated on search results only
    score: int = 0
    source: str = SOURCE_LOCAL

    @property
    def is_placeholder(self) -> bool:
        return self.title == PLACEHOLDER_TITLE


@dataclass(frozen=True)
class ExternalHit:
    url: str
    title: str
    snippet: str


def placeholder_record(url: str) -> ArticleRecord:
    return ArticleRecord(url=url, title=PLACEHOLDER_TITLE, summary=PLACEHOLDER_SUMMARY)
