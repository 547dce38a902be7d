from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Iterable, Optional

from news_aggregator.store import KeyValueStore
from news_aggregator.types import Article, UserPreferences

logger = logging.getLogger(__name__)

STORAGE_KEY = "user_preferences"

DIMENSIONS = {
    "source": "preferred_sources",
    "category": "preferred_categories",
    "author": "preferred_authors",
}


def apply_preferences(articles: list[Article], preferences: UserPreferences) -> list[Article]:
    """Keep articles that satisfy every configured preference dimension.

    With no preferences configured the input list is returned unchanged.
    """
    if preferences.is_empty():
        return articles

    sources = preferences.preferred_sources
    categories = {c.lower() for c in preferences.preferred_categories}
    authors = [a.lower() for a in preferences.preferred_authors]

    def matches(article: Article) -> bool:
        if sources and article.source.name not in sources:
            return False
        if categories and (not article.category or article.category.lower() not in categories):
            return False
        if authors:
            author = (article.author or "").lower()
            if not author or not any(a in author for a in authors):
                return False
        return True

    return [a for a in articles if matches(a)]


def _normalize(dimension: str, value: str) -> str:
    value = value.strip()
    return value.lower() if dimension == "category" else value


class PreferenceStore:
    """Loads, mutates and persists UserPreferences per user.

    Each add/remove runs load -> change -> save under a per-user lock and
    returns the new preferences. Persistence is best effort: a failed save is
    logged and the new state is still returned.
    """

    def __init__(self, store: KeyValueStore, default_user: str = "default") -> None:
        self._store = store
        self._default_user = default_user
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, user: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(user, threading.Lock())

    def _key(self, user: str) -> str:
        return f"{STORAGE_KEY}:{user}"

    def load(self, user: Optional[str] = None) -> UserPreferences:
        user = user or self._default_user
        try:
            raw = self._store.get(self._key(user))
        except Exception as e:
            logger.error("Failed to load preferences for %s: %s", user, e)
            return UserPreferences()
        if not isinstance(raw, dict):
            return UserPreferences()
        return UserPreferences.from_dict(raw)

    def save(self, preferences: UserPreferences, user: Optional[str] = None) -> bool:
        user = user or self._default_user
        try:
            self._store.set(self._key(user), preferences.to_dict())
        except Exception as e:
            logger.error("Failed to save preferences for %s: %s", user, e)
            return False
        return True

    def update(
        self,
        user: Optional[str] = None,
        *,
        sources: Optional[Iterable[str]] = None,
        categories: Optional[Iterable[str]] = None,
        authors: Optional[Iterable[str]] = None,
    ) -> UserPreferences:
        """Replace whole dimensions at once; dimensions left as None are kept."""
        user = user or self._default_user
        with self._lock_for(user):
            current = self.load(user)
            changes = {}
            if sources is not None:
                changes["preferred_sources"] = frozenset(_normalize("source", s) for s in sources)
            if categories is not None:
                changes["preferred_categories"] = frozenset(_normalize("category", c) for c in categories)
            if authors is not None:
                changes["preferred_authors"] = frozenset(_normalize("author", a) for a in authors)
            new = replace(current, **changes)
            self.save(new, user)
            return new

    def add(self, dimension: str, value: str, user: Optional[str] = None) -> UserPreferences:
        return self._mutate(dimension, value, user, add=True)

    def remove(self, dimension: str, value: str, user: Optional[str] = None) -> UserPreferences:
        return self._mutate(dimension, value, user, add=False)

    def _mutate(self, dimension: str, value: str, user: Optional[str], *, add: bool) -> UserPreferences:
        if dimension not in DIMENSIONS:
            raise ValueError(f"Unknown preference dimension: {dimension}. Valid: {list(DIMENSIONS)}")
        field_name = DIMENSIONS[dimension]
        value = _normalize(dimension, value)
        user = user or self._default_user

        with self._lock_for(user):
            current = self.load(user)
            values: frozenset[str] = getattr(current, field_name)
            values = values | {value} if add else values - {value}
            new = replace(current, **{field_name: values})
            self.save(new, user)
            return new

    def add_source(self, source: str, user: Optional[str] = None) -> UserPreferences:
        return self.add("source", source, user)

    def remove_source(self, source: str, user: Optional[str] = None) -> UserPreferences:
        return self.remove("source", source, user)

    def add_category(self, category: str, user: Optional[str] = None) -> UserPreferences:
        return self.add("category", category, user)

    def remove_category(self, category: str, user: Optional[str] = None) -> UserPreferences:
        return self.remove("category", category, user)

    def add_author(self, author: str, user: Optional[str] = None) -> UserPreferences:
        return self.add("author", author, user)

    def remove_author(self, author: str, user: Optional[str] = None) -> UserPreferences:
        return self.remove("author", author, user)
