from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from news_aggregator.errors import FetchError
from news_aggregator.types import AdapterOutcome, Article, Degraded, Ok, SearchQuery

logger = logging.getLogger(__name__)


class JsonFetcher(Protocol):
    async def get_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]: ...


@dataclass(frozen=True)
class ProviderRequest:
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    # prefix for positional ids when the provider has no stable id
    id_prefix: str = ""


class ProviderAdapter(ABC):
    """One external news provider behind the canonical search contract.

    Subclasses describe how a SearchQuery becomes a provider request and how a
    raw response becomes Articles; this class owns the failure policy: nothing
    raised while fetching or mapping escapes `search` / `headlines`.
    """

    name: str = ""
    api_key_param: str = "api-key"
    owned_sources: frozenset[str] = frozenset()

    def __init__(
        self,
        client: JsonFetcher,
        *,
        api_key: Optional[str],
        base_url: str,
        page_size: int = 20,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._page_size = page_size

    def owns_source(self, source_name: str) -> bool:
        return source_name in self.owned_sources

    def get_source_id(self, source_name: str) -> Optional[str]:
        return None

    @abstractmethod
    def build_request(self, query: SearchQuery) -> ProviderRequest:
        ...

    @abstractmethod
    def build_headlines_request(self) -> ProviderRequest:
        ...

    @abstractmethod
    def parse_response(self, data: dict[str, Any], id_prefix: str) -> list[Article]:
        ...

    def postprocess(self, articles: list[Article], query: SearchQuery) -> list[Article]:
        return articles

    async def search(self, query: SearchQuery) -> AdapterOutcome:
        return await self._run(lambda: self.build_request(query), query)

    async def headlines(self) -> AdapterOutcome:
        return await self._run(self.build_headlines_request, None)

    async def _run(self, make_request, query: Optional[SearchQuery]) -> AdapterOutcome:
        if not self._api_key:
            logger.warning("%s: no API key configured, skipping", self.name)
            return Degraded(provider=self.name, reason="missing api key")

        try:
            req = make_request()
            params = {k: v for k, v in req.params.items() if v is not None and v != ""}
            params[self.api_key_param] = self._api_key
            data = await self._client.get_json(f"{self._base_url}{req.path}", params=params)
            articles = self.parse_response(data, req.id_prefix)
            if query is not None:
                articles = self.postprocess(articles, query)
        except FetchError as e:
            logger.warning("%s request failed: %s", self.name, e)
            return Degraded(provider=self.name, reason=str(e))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("%s returned an unexpected payload: %r", self.name, e)
            return Degraded(provider=self.name, reason=f"unexpected payload: {e!r}")

        logger.info("%s returned %d articles", self.name, len(articles))
        return Ok(provider=self.name, articles=articles)


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
