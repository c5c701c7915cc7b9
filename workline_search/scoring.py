from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from workline_search.types import SOURCE_LOCAL, ArticleRecord


MIN_TERM_LENGTH = 3

TITLE_WEIGHT = 5
SUMMARY_WEIGHT = 3
TOPIC_WEIGHT = 2
MAX_FREQUENCY_BONUS = 3


def query_terms(query: str) -> list[str]:
    return [t for t in query.lower().split() if len(t) >= MIN_TERM_LENGTH]


def score_terms(terms: Iterable[str], record: ArticleRecord) -> int:
    title = record.title.lower()
    summary = record.summary.lower()
    searchable = f"{record.title} {record.summary} {record.body}".lower()

    score = 0
    for term in terms:
        if term in title:
            score += TITLE_WEIGHT
        if term in summary:
            score += SUMMARY_WEIGHT
        if any(term in topic for topic in record.topics):
            score += TOPIC_WEIGHT
        score += min(searchable.count(term), MAX_FREQUENCY_BONUS)
    return score


def score_article(query: str, record: ArticleRecord) -> int:
    """Term-based relevance of a record to a free-text query; 0 means no match."""

    return score_terms(query_terms(query), record)


def rank_local(query: str, records: Iterable[ArticleRecord]) -> list[ArticleRecord]:
    """Score every record and keep those with a positive score, in input order."""

    terms = query_terms(query)
    if not terms:
        return []

    out: list[ArticleRecord] = []
    for r in records:
        s = score_terms(terms, r)
        if s > 0:
            out.append(replace(r, score=s, source=SOURCE_LOCAL))
    return out
