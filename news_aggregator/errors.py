from __future__ import annotations


class NewsAggregatorError(Exception):
    """Base class for errors raised by news_aggregator."""


class FetchError(NewsAggregatorError):
    """A provider request failed: network error, bad status or unreadable body."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason
        self.status = status


class ConfigError(NewsAggregatorError):
    """Configuration could not be loaded."""
