"""Tests for news_aggregator.preferences and news_aggregator.store modules."""

import json
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from news_aggregator.preferences import STORAGE_KEY, PreferenceStore, apply_preferences
from news_aggregator.store import JsonFileStore, MemoryStore
from news_aggregator.types import Article, Source, UserPreferences


def make_article(title, source="BBC News", category=None, author=""):
    return Article(
        id=title,
        title=title,
        url=f"https://example.com/{title}",
        source=Source(id=source, name=source),
        published_at=None,
        category=category,
        author=author,
    )


ARTICLES = [
    make_article("a", "BBC News", "sports", "Jane Doe"),
    make_article("b", "BBC News", "business", ""),
    make_article("c", "The Guardian", "sports", "Sam Writer"),
    make_article("d", "The Guardian", None, "jane doe"),
]


class FailingStore:
    def get(self, key, default=None):
        raise OSError("disk on fire")

    def set(self, key, value):
        raise OSError("disk on fire")


class TestApplyPreferences:
    def test_empty_preferences_is_identity(self) -> None:
        assert apply_preferences(ARTICLES, UserPreferences()) == ARTICLES

    def test_source_only(self) -> None:
        prefs = UserPreferences(preferred_sources=frozenset({"The Guardian"}))
        assert [a.title for a in apply_preferences(ARTICLES, prefs)] == ["c", "d"]

    def test_category_is_case_insensitive_and_excludes_uncategorized(self) -> None:
        prefs = UserPreferences(preferred_categories=frozenset({"Sports"}))
        assert [a.title for a in apply_preferences(ARTICLES, prefs)] == ["a", "c"]

    def test_author_substring_and_missing_author(self) -> None:
        prefs = UserPreferences(preferred_authors=frozenset({"Jane"}))
        assert [a.title for a in apply_preferences(ARTICLES, prefs)] == ["a", "d"]

    def test_dimensions_combine_with_and(self) -> None:
        prefs = UserPreferences(
            preferred_sources=frozenset({"BBC News"}),
            preferred_categories=frozenset({"sports"}),
        )
        assert [a.title for a in apply_preferences(ARTICLES, prefs)] == ["a"]


class TestPreferenceStore:
    def test_defaults_when_nothing_stored(self) -> None:
        assert PreferenceStore(MemoryStore()).load() == UserPreferences()

    def test_add_is_idempotent(self) -> None:
        store = PreferenceStore(MemoryStore())

        store.add_source("BBC News")
        prefs = store.add_source("BBC News")

        assert prefs.preferred_sources == frozenset({"BBC News"})
        assert store.load() == prefs

    def test_categories_are_lower_cased(self) -> None:
        store = PreferenceStore(MemoryStore())

        store.add_category("Sports")
        prefs = store.add_category("sports")

        assert prefs.preferred_categories == frozenset({"sports"})

    def test_remove(self) -> None:
        store = PreferenceStore(MemoryStore())
        store.add_author("Jane Doe")
        store.add_author("Sam Writer")

        prefs = store.remove_author("Jane Doe")

        assert prefs.preferred_authors == frozenset({"Sam Writer"})

    def test_remove_missing_value_is_noop(self) -> None:
        store = PreferenceStore(MemoryStore())
        assert store.remove_category("health") == UserPreferences()

    def test_users_are_isolated(self) -> None:
        store = PreferenceStore(MemoryStore())
        store.add_source("CNN", user="alice")

        assert store.load("bob") == UserPreferences()
        assert store.load("alice").preferred_sources == frozenset({"CNN"})

    def test_update_replaces_given_dimensions(self) -> None:
        store = PreferenceStore(MemoryStore())
        store.add_source("CNN")
        store.add_author("Jane Doe")

        prefs = store.update(sources=["NPR", "Reuters"], categories=["World"])

        assert prefs.preferred_sources == frozenset({"NPR", "Reuters"})
        assert prefs.preferred_categories == frozenset({"world"})
        assert prefs.preferred_authors == frozenset({"Jane Doe"})

    def test_unknown_dimension(self) -> None:
        with pytest.raises(ValueError):
            PreferenceStore(MemoryStore()).add("publisher", "x")

    def test_failing_backend_still_returns_new_state(self) -> None:
        store = PreferenceStore(FailingStore())

        prefs = store.add_source("CNN")

        assert prefs.preferred_sources == frozenset({"CNN"})
        assert store.save(prefs) is False
        assert store.load() == UserPreferences()


class TestJsonFileStore:
    def test_roundtrip_through_disk(self, tmp_path) -> None:
        path = tmp_path / "prefs" / "preferences.json"

        PreferenceStore(JsonFileStore(path)).add_category("Health")
        reloaded = PreferenceStore(JsonFileStore(path)).load()

        assert reloaded.preferred_categories == frozenset({"health"})
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data[f"{STORAGE_KEY}:default"]["preferred_categories"] == ["health"]

    def test_corrupt_file_reads_as_empty(self, tmp_path) -> None:
        path = tmp_path / "preferences.json"
        path.write_text("{not json", encoding="utf-8")

        assert JsonFileStore(path).get("anything", "fallback") == "fallback"

    def test_missing_file(self, tmp_path) -> None:
        assert JsonFileStore(tmp_path / "nope.json").get("k") is None


class SlowStore(MemoryStore):
    def get(self, key, default=None):
        # widen the read-modify-write window
        time.sleep(0.002)
        return super().get(key, default)


class TestConcurrentUpdates:
    def test_same_user_updates_are_not_lost(self) -> None:
        store = PreferenceStore(SlowStore())

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda i: store.add("source", f"S{i}"), range(40)))

        assert store.load().preferred_sources == frozenset(f"S{i}" for i in range(40))

    def test_mixed_add_and_remove(self) -> None:
        store = PreferenceStore(SlowStore())
        store.update(authors=[f"A{i}" for i in range(20)])

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(store.remove_author, f"A{i}") for i in range(0, 20, 2)]
            futures += [pool.submit(store.add_category, f"C{i}") for i in range(10)]
            for f in futures:
                f.result()

        prefs = store.load()
        assert prefs.preferred_authors == frozenset(f"A{i}" for i in range(1, 20, 2))
        assert prefs.preferred_categories == frozenset(f"c{i}" for i in range(10))
