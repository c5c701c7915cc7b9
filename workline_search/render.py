from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from dateutil import parser as dateparser

from workline_search.types import ArticleRecord


Block = dict[str, Any]

MAX_TOPICS_SHOWN = 3

SUGGESTED_TOPICS = (
    "change management",
    "hybrid work",
    "employee experience",
    "workplace metrics",
    "innovation",
    "leadership",
)

RETRY_MESSAGE = "Sorry, I encountered an error while searching. Please try again in a moment."


def _section(text: str) -> Block:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context(text: str) -> Block:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


_DIVIDER: Block = {"type": "divider"}


def _parse_dt(value: str | None) -> Optional[datetime]:
    if not value:
        return None
    try:
        return dateparser.parse(value)
    except (ValueError, OverflowError):
        return None


def format_date(value: str | None) -> Optional[str]:
    """Display form of an opaque publish date; None when it does not parse."""

    dt = _parse_dt(value)
    if dt is None:
        return None
    return dt.strftime("%b %d, %Y")


def result_metadata(result: ArticleRecord) -> Optional[str]:
    parts: list[str] = []
    if result.topics:
        parts.append("Topics: " + ", ".join(result.topics[:MAX_TOPICS_SHOWN]))
    date = format_date(result.publish_date)
    if date:
        parts.append("Published: " + date)
    return " • ".join(parts) or None


def format_results(query: str, results: list[ArticleRecord]) -> dict[str, list[Block]]:
    if not results:
        return no_results_blocks(query)

    plural = "" if len(results) == 1 else "s"
    blocks: list[Block] = [
        _section(f'*Found {len(results)} result{plural} for "{query}"*'),
        dict(_DIVIDER),
    ]

    for i, r in enumerate(results):
        article = _section(f"*<{r.url}|{r.title}>*\n{r.summary}")
        article["accessory"] = {
            "type": "button",
            "text": {"type": "plain_text", "text": "Read Article"},
            "url": r.url,
            "action_id": f"read_{i}",
        }
        blocks.append(article)

        meta = result_metadata(r)
        if meta:
            blocks.append(_context(meta))

        if i < len(results) - 1:
            blocks.append(dict(_DIVIDER))

    tips = ", ".join(f"'{t}'" for t in SUGGESTED_TOPICS[:3])
    blocks.append(dict(_DIVIDER))
    blocks.append(_context(f"*Tip:* Try specific terms like {tips} for better results"))
    return {"blocks": blocks}


def no_results_blocks(query: str) -> dict[str, list[Block]]:
    suggestions = "\n".join(f"• {t}" for t in SUGGESTED_TOPICS)
    return {
        "blocks": [
            _section(f'No articles found for *"{query}"*'),
            _section(f"*Try searching for:*\n{suggestions}"),
        ]
    }


def help_blocks(command: str = "/workline") -> dict[str, list[Block]]:
    examples = "\n".join(f"• `{command} {t}`" for t in SUGGESTED_TOPICS[:3])
    return {
        "blocks": [
            _section(
                "*Welcome to Workline Search*\n\n"
                "Find insights from The Workline on workplace transformation, "
                "hybrid work and organizational change."
            ),
            dict(_DIVIDER),
            _section(f"*How to search:*\n{examples}"),
            _section("*Popular topics:* " + ", ".join(SUGGESTED_TOPICS)),
        ]
    }


def error_message() -> dict[str, str]:
    return {"text": RETRY_MESSAGE}
