from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

SORT_OPTIONS = ("relevancy", "popularity", "publishedAt")


@dataclass(frozen=True)
class Source:
    id: str
    name: str


@dataclass(frozen=True)
class Article:
    id: str
    title: str
    url: str
    source: Source
    published_at: Optional[datetime]
    description: str = ""
    content: str = ""
    image_url: str = ""
    author: str = ""

    # canonical tag, provider-supplied or inferred; None is a valid state
    category: Optional[str] = None


@dataclass(frozen=True)
class SearchQuery:
    keyword: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    sort_by: Optional[str] = None


@dataclass(frozen=True)
class FilterOptions:
    keyword: str = ""
    category: str = ""
    source: str = ""
    date_from: str = ""
    date_to: str = ""
    sort_by: str = "publishedAt"

    def to_query(self) -> SearchQuery:
        return SearchQuery(
            keyword=self.keyword or None,
            category=self.category or None,
            source=self.source or None,
            date_from=self.date_from or None,
            date_to=self.date_to or None,
            sort_by=self.sort_by or None,
        )


@dataclass(frozen=True)
class UserPreferences:
    preferred_sources: frozenset[str] = field(default_factory=frozenset)
    preferred_categories: frozenset[str] = field(default_factory=frozenset)
    preferred_authors: frozenset[str] = field(default_factory=frozenset)

    def is_empty(self) -> bool:
        return not (self.preferred_sources or self.preferred_categories or self.preferred_authors)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "preferred_sources": sorted(self.preferred_sources),
            "preferred_categories": sorted(self.preferred_categories),
            "preferred_authors": sorted(self.preferred_authors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "UserPreferences":
        data = data or {}
        return cls(
            preferred_sources=frozenset(str(x) for x in data.get("preferred_sources") or []),
            preferred_categories=frozenset(str(x).lower() for x in data.get("preferred_categories") or []),
            preferred_authors=frozenset(str(x) for x in data.get("preferred_authors") or []),
        )


@dataclass(frozen=True)
class Ok:
    """An adapter call that reached its provider and mapped the response."""

    provider: str
    articles: list[Article] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class Degraded:
    """An adapter call whose failure was absorbed; contributes no articles."""

    provider: str
    reason: str

    @property
    def articles(self) -> list[Article]:
        return []

    @property
    def degraded(self) -> bool:
        return True


AdapterOutcome = Union[Ok, Degraded]


@dataclass(frozen=True)
class AggregationResult:
    articles: list[Article]
    outcomes: list[AdapterOutcome] = field(default_factory=list)

    @property
    def degraded(self) -> list[str]:
        return [o.provider for o in self.outcomes if o.degraded]
