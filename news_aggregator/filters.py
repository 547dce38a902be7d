"""Ad-hoc search filtering over an aggregated article list.

Steps run in a fixed order, each narrowing the previous output:
keyword -> category -> source -> date_from -> date_to -> sort.

Sorting is always newest first. `relevancy` and `popularity` are accepted
(and forwarded to providers that understand them) but do not change the
local order.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from news_aggregator.categories import CATEGORY_VARIATIONS
from news_aggregator.dates import parse_bound, sort_key
from news_aggregator.types import SORT_OPTIONS, Article, FilterOptions

logger = logging.getLogger(__name__)


def filter_by_keyword(articles: list[Article], keyword: str) -> list[Article]:
    term = keyword.lower()
    return [
        a
        for a in articles
        if term in a.title.lower()
        or term in a.description.lower()
        or term in a.content.lower()
        or (a.author and term in a.author.lower())
    ]


def _category_matches(article_category: Optional[str], wanted: str) -> bool:
    if not article_category:
        return False
    cat = article_category.lower()
    if cat == wanted:
        return True
    if cat in wanted or wanted in cat:
        return True
    return any(v in cat for v in CATEGORY_VARIATIONS.get(wanted, ()))


def filter_by_category(articles: list[Article], category: str) -> list[Article]:
    wanted = category.lower()
    return [a for a in articles if _category_matches(a.category, wanted)]


def filter_by_source(articles: list[Article], source: str) -> list[Article]:
    return [a for a in articles if a.source.name == source]


def filter_by_date_from(articles: list[Article], date_from: datetime) -> list[Article]:
    return [a for a in articles if a.published_at is not None and a.published_at >= date_from]


def filter_by_date_to(articles: list[Article], date_to: datetime) -> list[Article]:
    return [a for a in articles if a.published_at is not None and a.published_at <= date_to]


def sort_articles(articles: list[Article], sort_by: str = "publishedAt") -> list[Article]:
    # every sort option currently orders by publish time, newest first
    return sorted(articles, key=lambda a: sort_key(a.published_at), reverse=True)


def validate_filters(filters: FilterOptions) -> list[str]:
    """Return human-readable warnings for filter values that will be ignored."""
    warnings: list[str] = []
    if filters.date_from and parse_bound(filters.date_from) is None:
        warnings.append(f"Ignoring unparseable date_from: {filters.date_from!r}")
    if filters.date_to and parse_bound(filters.date_to, end_of_day=True) is None:
        warnings.append(f"Ignoring unparseable date_to: {filters.date_to!r}")
    if filters.sort_by and filters.sort_by not in SORT_OPTIONS:
        warnings.append(f"Unknown sort_by {filters.sort_by!r}; sorting by publishedAt")
    return warnings


def apply_filters(articles: list[Article], filters: FilterOptions) -> list[Article]:
    filtered = list(articles)

    if filters.keyword:
        filtered = filter_by_keyword(filtered, filters.keyword)

    if filters.category:
        filtered = filter_by_category(filtered, filters.category)

    if filters.source:
        filtered = filter_by_source(filtered, filters.source)

    if filters.date_from:
        bound = parse_bound(filters.date_from)
        if bound is None:
            logger.warning("Ignoring unparseable date_from: %r", filters.date_from)
        else:
            filtered = filter_by_date_from(filtered, bound)

    if filters.date_to:
        bound = parse_bound(filters.date_to, end_of_day=True)
        if bound is None:
            logger.warning("Ignoring unparseable date_to: %r", filters.date_to)
        else:
            filtered = filter_by_date_to(filtered, bound)

    return sort_articles(filtered, filters.sort_by)
