"""The Guardian content API adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from news_aggregator.categories import canonical_category, classify, map_category_for_provider
from news_aggregator.dates import parse_dt, to_provider_date
from news_aggregator.providers.base import ProviderAdapter, ProviderRequest, as_dict, as_list
from news_aggregator.text import clean_field
from news_aggregator.types import Article, SearchQuery, Source

SOURCE = Source(id="guardian", name="The Guardian")

DESCRIPTION_CHARS = 200


@dataclass(frozen=True)
class GuardianItem:
    id: str
    web_title: str
    web_url: str
    web_publication_date: str
    section_id: str
    thumbnail: str
    body_text: str
    byline: str

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "GuardianItem":
        fields = as_dict(raw.get("fields"))
        return cls(
            id=str(raw.get("id") or ""),
            web_title=clean_field(raw.get("webTitle")),
            web_url=str(raw.get("webUrl") or ""),
            web_publication_date=str(raw.get("webPublicationDate") or ""),
            section_id=str(raw.get("sectionId") or ""),
            thumbnail=str(fields.get("thumbnail") or ""),
            body_text=clean_field(fields.get("bodyText")),
            byline=clean_field(fields.get("byline")),
        )

    def to_article(self, fallback_id: str) -> Article:
        description = self.body_text[:DESCRIPTION_CHARS]
        category = canonical_category(self.section_id, "guardian") or classify(
            self.web_title, description, self.body_text
        )
        return Article(
            id=self.id or fallback_id,
            title=self.web_title,
            description=description,
            content=self.body_text,
            url=self.web_url,
            image_url=self.thumbnail,
            published_at=parse_dt(self.web_publication_date),
            source=SOURCE,
            author=self.byline,
            category=category,
        )


class GuardianAdapter(ProviderAdapter):
    name = "guardian"
    api_key_param = "api-key"
    owned_sources = frozenset({SOURCE.name})

    def _params(self, **extra: Any) -> dict[str, Any]:
        params = {
            "show-fields": "thumbnail,bodyText,byline",
            "page-size": self._page_size,
        }
        params.update(extra)
        return params

    def build_request(self, query: SearchQuery) -> ProviderRequest:
        section = map_category_for_provider(query.category, self.name) if query.category else None
        return ProviderRequest(
            path="/search",
            params=self._params(
                q=query.keyword,
                section=section,
                **{
                    "from-date": to_provider_date(query.date_from),
                    "to-date": to_provider_date(query.date_to),
                    "order-by": "newest" if query.sort_by == "publishedAt" else "relevance",
                },
            ),
        )

    def build_headlines_request(self) -> ProviderRequest:
        return ProviderRequest(path="/search", params=self._params(**{"order-by": "newest"}))

    def parse_response(self, data: dict[str, Any], id_prefix: str) -> list[Article]:
        response = as_dict(data["response"])
        if response.get("status") not in (None, "ok"):
            raise ValueError(f"guardian status {response.get('status')}: {response.get('message')}")
        return [
            GuardianItem.from_raw(as_dict(raw)).to_article(f"{id_prefix or self.name}-{index}")
            for index, raw in enumerate(as_list(response["results"]))
        ]
