from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

GENERAL = "general"

PROVIDERS = ("newsapi", "guardian", "nytimes")

# Iteration order is the tie-break: the first category with a keyword hit wins.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "sports": (
        "sport", "football", "basketball", "tennis", "soccer", "baseball", "nfl", "nba", "mlb",
        "championship", "tournament", "game", "match", "player", "team", "coach", "athlete",
        "olympics", "world cup",
    ),
    "technology": (
        "tech", "technology", "digital", "software", "app", "ai", "artificial intelligence",
        "machine learning", "startup", "innovation", "computer", "internet", "cyber", "data",
        "algorithm",
    ),
    "business": (
        "business", "economy", "financial", "market", "stock", "investment", "company",
        "corporate", "profit", "revenue", "ceo", "entrepreneur", "startup", "venture", "funding",
    ),
    "science": (
        "science", "scientific", "research", "study", "discovery", "experiment", "laboratory",
        "scientist", "physics", "chemistry", "biology", "medicine", "medical",
    ),
    "health": (
        "health", "medical", "medicine", "doctor", "hospital", "patient", "treatment", "disease",
        "vaccine", "covid", "pandemic", "wellness", "fitness",
    ),
    "entertainment": (
        "entertainment", "movie", "film", "music", "celebrity", "actor", "actress", "hollywood",
        "award", "concert", "performance", "artist",
    ),
    "politics": (
        "politics", "political", "government", "election", "president", "congress", "senate",
        "democrat", "republican", "policy", "law", "legislation",
    ),
    "world": (
        "world", "international", "global", "foreign", "country", "nation", "diplomacy",
        "embassy", "treaty", "alliance",
    ),
}

CATEGORY_MAPPING: dict[str, dict[str, str]] = {
    "technology": {"newsapi": "technology", "guardian": "technology", "nytimes": "technology"},
    "business": {"newsapi": "business", "guardian": "business", "nytimes": "business"},
    "science": {"newsapi": "science", "guardian": "science", "nytimes": "science"},
    "health": {"newsapi": "health", "guardian": "health", "nytimes": "health"},
    "sports": {"newsapi": "sports", "guardian": "sport", "nytimes": "sports"},
    "entertainment": {"newsapi": "entertainment", "guardian": "culture", "nytimes": "arts"},
    "politics": {"newsapi": "politics", "guardian": "politics", "nytimes": "politics"},
    "world": {"newsapi": "general", "guardian": "world", "nytimes": "world"},
    "general": {"newsapi": "general", "guardian": "news", "nytimes": "news"},
}

CATEGORY_VARIATIONS: dict[str, tuple[str, ...]] = {
    "technology": ("tech", "technological", "digital"),
    "business": ("economy", "financial", "commerce"),
    "science": ("scientific", "research", "study"),
    "health": ("medical", "healthcare", "medicine"),
    "sports": ("sport", "athletic", "game"),
    "entertainment": ("entertainment", "culture", "arts"),
    "politics": ("political", "government", "policy"),
    "world": ("international", "global", "foreign"),
}


def _build_reverse_mapping() -> dict[str, dict[str, str]]:
    reverse: dict[str, dict[str, str]] = {p: {} for p in PROVIDERS}
    for canonical, per_provider in CATEGORY_MAPPING.items():
        for provider, native in per_provider.items():
            # first canonical wins for shared native names (newsapi "general")
            reverse[provider].setdefault(native, canonical)
    return reverse


_REVERSE_MAPPING = _build_reverse_mapping()


def classify(title: str, description: str, content: str) -> str:
    """Infer a canonical category from article text by keyword matching."""
    text = f"{title or ''} {description or ''} {content or ''}".lower()

    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            logger.debug('Category detected as "%s" for article: "%s"', category, (title or "")[:50])
            return category

    logger.debug('Category detected as "%s" for article: "%s"', GENERAL, (title or "")[:50])
    return GENERAL


def map_category_for_provider(category: str, provider: str) -> str:
    """Translate a canonical category into a provider's vocabulary.

    Unknown categories (or providers) are passed through unchanged.
    """
    mapped = CATEGORY_MAPPING.get((category or "").lower())
    if mapped and provider in mapped:
        return mapped[provider]
    return category


def canonical_category(value: Optional[str], provider: str) -> Optional[str]:
    """Map a provider-native section name back to a canonical category.

    Returns None when the section has no canonical counterpart.
    """
    if not value:
        return None
    key = value.strip().lower()
    if key in CATEGORY_MAPPING:
        return key
    return _REVERSE_MAPPING.get(provider, {}).get(key)


def is_valid_category(category: str) -> bool:
    return (category or "").lower() in CATEGORY_KEYWORDS


def category_display_name(category: str) -> str:
    return category[:1].upper() + category[1:]
