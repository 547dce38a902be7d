from __future__ import annotations

from dataclasses import dataclass

from news_aggregator.types import Article


@dataclass(frozen=True)
class DedupResult:
    articles: list[Article]
    dropped: int


def dedup_key(article: Article) -> tuple[str, str]:
    # Exact text on both parts: same title under another source name is a different article.
    return (article.title, article.source.name)


def dedup_articles(articles: list[Article]) -> DedupResult:
    """Drop articles whose (title, source name) was already seen; first occurrence wins."""
    seen: set[tuple[str, str]] = set()
    kept: list[Article] = []
    for a in articles:
        key = dedup_key(a)
        if key in seen:
            continue
        seen.add(key)
        kept.append(a)
    return DedupResult(articles=kept, dropped=len(articles) - len(kept))
