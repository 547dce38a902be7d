"""Tests for news_aggregator.filters module."""

from datetime import datetime, timezone

from news_aggregator.filters import (
    apply_filters,
    filter_by_category,
    filter_by_keyword,
    sort_articles,
    validate_filters,
)
from news_aggregator.types import Article, FilterOptions, Source


def make_article(title, published_at=None, *, source="BBC News", category=None, description="", content="", author=""):
    return Article(
        id=title,
        title=title,
        url=f"https://example.com/{title}",
        source=Source(id=source, name=source),
        published_at=published_at,
        description=description,
        content=content,
        author=author,
        category=category,
    )


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestKeyword:
    def test_matches_any_text_field_case_insensitively(self) -> None:
        articles = [
            make_article("", content="The STORM arrived"),
            make_article("Calm day"),
            make_article("Other", description="storm warning"),
            make_article("Byline", author="Storm Reporter"),
        ]

        kept = filter_by_keyword(articles, "storm")

        assert [a.title for a in kept] == ["", "Other", "Byline"]


class TestCategory:
    def test_substring_match(self) -> None:
        articles = [make_article("a", category="technology"), make_article("b", category="sports")]
        assert [a.title for a in filter_by_category(articles, "tech")] == ["a"]

    def test_variation_match(self) -> None:
        articles = [make_article("a", category="culture"), make_article("b", category="politics")]
        assert [a.title for a in filter_by_category(articles, "entertainment")] == ["a"]

    def test_uncategorized_never_matches(self) -> None:
        assert filter_by_category([make_article("a")], "general") == []


class TestApplyFilters:
    def test_empty_filters_only_sort(self) -> None:
        articles = [make_article("old", utc(2024, 1, 1)), make_article("new", utc(2024, 1, 2))]
        assert [a.title for a in apply_filters(articles, FilterOptions())] == ["new", "old"]

    def test_source_is_exact(self) -> None:
        articles = [make_article("a", source="BBC News"), make_article("b", source="BBC")]
        assert [a.title for a in apply_filters(articles, FilterOptions(source="BBC"))] == ["b"]

    def test_date_from_bare_date_starts_at_midnight_utc(self) -> None:
        articles = [
            make_article("before", utc(2023, 12, 31, 23, 59, 59)),
            make_article("midnight", utc(2024, 1, 1)),
        ]

        kept = apply_filters(articles, FilterOptions(date_from="2024-01-01"))

        assert [a.title for a in kept] == ["midnight"]

    def test_date_to_bare_date_includes_whole_day(self) -> None:
        articles = [
            make_article("late", utc(2024, 1, 31, 23, 30)),
            make_article("after", utc(2024, 2, 1, 0, 0, 1)),
        ]

        kept = apply_filters(articles, FilterOptions(date_to="2024-01-31"))

        assert [a.title for a in kept] == ["late"]

    def test_date_bounds_exclude_undated(self) -> None:
        articles = [make_article("undated"), make_article("dated", utc(2024, 1, 5))]
        kept = apply_filters(articles, FilterOptions(date_from="2024-01-01"))
        assert [a.title for a in kept] == ["dated"]

    def test_unparseable_bound_is_ignored(self) -> None:
        articles = [make_article("undated"), make_article("dated", utc(2024, 1, 5))]

        kept = apply_filters(articles, FilterOptions(date_from="not-a-date"))

        assert [a.title for a in kept] == ["dated", "undated"]

    def test_combined_filters(self) -> None:
        articles = [
            make_article("Cup final", utc(2024, 1, 2), category="sports"),
            make_article("Cup of tea", utc(2024, 1, 3), category="general"),
            make_article("Cup draw", utc(2024, 1, 4), category="sports", source="The Guardian"),
        ]
        filters = FilterOptions(keyword="cup", category="sports", source="BBC News")

        assert [a.title for a in apply_filters(articles, filters)] == ["Cup final"]

    def test_idempotent(self) -> None:
        articles = [
            make_article("a", utc(2024, 1, 2), category="sports"),
            make_article("b", utc(2024, 1, 4), category="sports"),
            make_article("c", None, category="sports"),
        ]
        filters = FilterOptions(category="sports")

        once = apply_filters(articles, filters)

        assert apply_filters(once, filters) == once

    def test_does_not_mutate_input(self) -> None:
        articles = [make_article("old", utc(2024, 1, 1)), make_article("new", utc(2024, 1, 2))]
        apply_filters(articles, FilterOptions())
        assert [a.title for a in articles] == ["old", "new"]


class TestSort:
    def test_non_increasing_with_undated_last(self) -> None:
        articles = [
            make_article("undated"),
            make_article("mid", utc(2024, 1, 2)),
            make_article("new", utc(2024, 1, 3)),
            make_article("old", utc(2024, 1, 1)),
        ]

        for sort_by in ("publishedAt", "relevancy", "popularity"):
            assert [a.title for a in sort_articles(articles, sort_by)] == ["new", "mid", "old", "undated"]


class TestValidateFilters:
    def test_clean_filters(self) -> None:
        assert validate_filters(FilterOptions(date_from="2024-01-01", date_to="2024-01-31T10:00:00Z")) == []

    def test_reports_bad_dates_and_sort(self) -> None:
        warnings = validate_filters(FilterOptions(date_from="not-a-date", sort_by="random"))

        assert len(warnings) == 2
        assert "not-a-date" in warnings[0]
        assert "random" in warnings[1]
