"""New York Times Article Search API adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from news_aggregator.categories import canonical_category, classify, map_category_for_provider
from news_aggregator.dates import parse_dt, to_provider_date
from news_aggregator.providers.base import ProviderAdapter, ProviderRequest, as_dict, as_list
from news_aggregator.text import clean_field
from news_aggregator.types import Article, SearchQuery, Source

SOURCE = Source(id="nytimes", name="The New York Times")

IMAGE_BASE_URL = "https://www.nytimes.com/"


def _thumbnail_url(multimedia: Any) -> str:
    # Older responses carry a list of renditions; newer ones a dict without thumbnails.
    for media in as_list(multimedia):
        media = as_dict(media)
        if media.get("subtype") == "thumbnail" and media.get("url"):
            url = str(media["url"])
            if url.startswith("http"):
                return url
            return IMAGE_BASE_URL + url.lstrip("/")
    return ""


@dataclass(frozen=True)
class NYTimesDoc:
    id: str
    headline: str
    abstract: str
    lead_paragraph: str
    web_url: str
    pub_date: str
    byline: str
    section_name: str
    image_url: str

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "NYTimesDoc":
        return cls(
            id=str(raw.get("_id") or ""),
            headline=clean_field(as_dict(raw.get("headline")).get("main")),
            abstract=clean_field(raw.get("abstract")),
            lead_paragraph=clean_field(raw.get("lead_paragraph")),
            web_url=str(raw.get("web_url") or ""),
            pub_date=str(raw.get("pub_date") or ""),
            byline=clean_field(as_dict(raw.get("byline")).get("original")),
            section_name=str(raw.get("section_name") or ""),
            image_url=_thumbnail_url(raw.get("multimedia")),
        )

    def to_article(self, fallback_id: str) -> Article:
        category = canonical_category(self.section_name, "nytimes") or classify(
            self.headline, self.abstract, self.lead_paragraph
        )
        return Article(
            id=self.id or fallback_id,
            title=self.headline,
            description=self.abstract,
            content=self.lead_paragraph,
            url=self.web_url,
            image_url=self.image_url,
            published_at=parse_dt(self.pub_date),
            source=SOURCE,
            author=self.byline,
            category=category,
        )


class NYTimesAdapter(ProviderAdapter):
    name = "nytimes"
    api_key_param = "api-key"
    owned_sources = frozenset({SOURCE.name})

    SEARCH_PATH = "/search/v2/articlesearch.json"

    def build_request(self, query: SearchQuery) -> ProviderRequest:
        fq = None
        if query.category:
            fq = f'section_name:("{map_category_for_provider(query.category, self.name)}")'
        return ProviderRequest(
            path=self.SEARCH_PATH,
            params={
                "q": query.keyword,
                "fq": fq,
                "begin_date": to_provider_date(query.date_from, "%Y%m%d"),
                "end_date": to_provider_date(query.date_to, "%Y%m%d"),
                "sort": "newest" if query.sort_by == "publishedAt" else "relevance",
            },
            id_prefix="nytimes",
        )

    def build_headlines_request(self) -> ProviderRequest:
        return ProviderRequest(path=self.SEARCH_PATH, params={"sort": "newest"}, id_prefix="nytimes")

    def parse_response(self, data: dict[str, Any], id_prefix: str) -> list[Article]:
        docs = as_list(as_dict(data["response"])["docs"])
        # the Article Search API pages at 10 docs; honour a smaller configured cap
        docs = docs[: self._page_size]
        return [
            NYTimesDoc.from_raw(as_dict(raw)).to_article(f"{id_prefix}-{index}")
            for index, raw in enumerate(docs)
        ]
