from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional

import aiohttp

from news_aggregator.config import Config
from news_aggregator.dates import sort_key
from news_aggregator.dedup import dedup_articles
from news_aggregator.filters import apply_filters
from news_aggregator.http import DomainRateLimiter, HttpClient, RetryPolicy
from news_aggregator.preferences import apply_preferences
from news_aggregator.providers import ProviderAdapter, build_adapters
from news_aggregator.types import (
    AdapterOutcome,
    AggregationResult,
    Article,
    Degraded,
    FilterOptions,
    SearchQuery,
    UserPreferences,
)

logger = logging.getLogger(__name__)


def sort_by_published(articles: list[Article]) -> list[Article]:
    return sorted(articles, key=lambda a: sort_key(a.published_at), reverse=True)


class NewsAggregator:
    """Fans a request out to the provider adapters and merges the results."""

    def __init__(self, adapters: list[ProviderAdapter]) -> None:
        self._adapters = list(adapters)

    @property
    def adapters(self) -> list[ProviderAdapter]:
        return list(self._adapters)

    def select_adapters(self, source: Optional[str]) -> list[ProviderAdapter]:
        if not source:
            return list(self._adapters)
        selected = [a for a in self._adapters if a.owns_source(source)]
        if not selected:
            logger.info("No provider serves source %r", source)
        return selected

    async def search_with_report(self, query: Optional[SearchQuery] = None, **params) -> AggregationResult:
        if query is not None and params:
            raise TypeError("pass either a SearchQuery or keyword params, not both")
        if query is None:
            query = SearchQuery(**params)
        logger.info("Searching providers: %s", query)
        selected = self.select_adapters(query.source)
        outcomes = await _gather_outcomes(selected, lambda a: a.search(query))
        return _merge(outcomes)

    async def search_all_sources(self, query: Optional[SearchQuery] = None, **params) -> list[Article]:
        result = await self.search_with_report(query, **params)
        return result.articles

    async def headlines_with_report(self) -> AggregationResult:
        outcomes = await _gather_outcomes(self._adapters, lambda a: a.headlines())
        merged = _merge(outcomes)
        return AggregationResult(articles=sort_by_published(merged.articles), outcomes=merged.outcomes)

    async def get_top_headlines(self) -> list[Article]:
        result = await self.headlines_with_report()
        return result.articles


async def _gather_outcomes(
    adapters: list[ProviderAdapter],
    call: Callable[[ProviderAdapter], Awaitable[AdapterOutcome]],
) -> list[AdapterOutcome]:
    if not adapters:
        return []

    # Wait for every adapter; one failing call never cancels or short-circuits the others.
    results = await asyncio.gather(*(call(a) for a in adapters), return_exceptions=True)

    outcomes: list[AdapterOutcome] = []
    for adapter, r in zip(adapters, results):
        if isinstance(r, asyncio.CancelledError):
            raise r
        if isinstance(r, Exception):
            logger.warning("%s failed unexpectedly: %r", adapter.name, r)
            outcomes.append(Degraded(provider=adapter.name, reason=repr(r)))
        else:
            outcomes.append(r)
    return outcomes


def _merge(outcomes: list[AdapterOutcome]) -> AggregationResult:
    merged: list[Article] = []
    for o in outcomes:
        merged.extend(o.articles)

    deduped = dedup_articles(merged)
    degraded = [o.provider for o in outcomes if o.degraded]
    if degraded:
        logger.warning("Degraded providers: %s", ", ".join(degraded))
    logger.info(
        "Merged %d articles from %d providers (%d duplicates dropped)",
        len(deduped.articles),
        len(outcomes),
        deduped.dropped,
    )
    return AggregationResult(articles=deduped.articles, outcomes=outcomes)


async def run_search(
    aggregator: NewsAggregator,
    filters: FilterOptions,
    preferences: Optional[UserPreferences] = None,
) -> list[Article]:
    """Aggregate for `filters`, then narrow by preferences and the filters themselves."""
    articles = await aggregator.search_all_sources(filters.to_query())
    return _narrow(articles, filters, preferences)


async def run_headlines(
    aggregator: NewsAggregator,
    filters: Optional[FilterOptions] = None,
    preferences: Optional[UserPreferences] = None,
) -> list[Article]:
    articles = await aggregator.get_top_headlines()
    return _narrow(articles, filters or FilterOptions(), preferences)


def _narrow(
    articles: list[Article],
    filters: FilterOptions,
    preferences: Optional[UserPreferences],
) -> list[Article]:
    if preferences is not None:
        articles = apply_preferences(articles, preferences)
    return apply_filters(articles, filters)


@asynccontextmanager
async def open_aggregator(cfg: Config) -> AsyncIterator[NewsAggregator]:
    """Build the HTTP stack and provider adapters for one session of requests."""
    http_cfg = cfg.raw["http"]
    conc_cfg = cfg.raw["concurrency"]
    rl_cfg = cfg.raw["rate_limit"]
    rt_cfg = cfg.raw["retry"]

    limiter = DomainRateLimiter(
        max_requests_per_period=int(rl_cfg["max_requests_per_period"]),
        period_seconds=float(rl_cfg["period_seconds"]),
    )

    sem = asyncio.Semaphore(int(conc_cfg["max_in_flight_requests"]))

    retry = RetryPolicy(
        max_attempts=max(1, int(rt_cfg["max_attempts"])),
        base_delay_seconds=float(rt_cfg["base_delay_seconds"]),
        max_delay_seconds=float(rt_cfg["max_delay_seconds"]),
        retry_statuses=set(int(x) for x in rt_cfg.get("retry_statuses", [])),
    )

    connector = aiohttp.TCPConnector(limit=int(http_cfg["max_connections"]))

    async with aiohttp.ClientSession(connector=connector) as session:
        client = HttpClient(
            session=session,
            limiter=limiter,
            retry=retry,
            semaphore=sem,
            user_agent=str(http_cfg["user_agent"]),
            timeout_seconds=int(http_cfg["timeout_seconds"]),
        )
        yield NewsAggregator(build_adapters(cfg, client))
