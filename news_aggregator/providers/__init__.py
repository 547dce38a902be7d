"""Provider registry."""

from news_aggregator.providers.base import JsonFetcher, ProviderAdapter
from news_aggregator.providers.guardian import GuardianAdapter
from news_aggregator.providers.newsapi import NewsApiAdapter
from news_aggregator.providers.nytimes import NYTimesAdapter

# Registry mapping provider keys to adapter classes, in invocation order
PROVIDERS = {
    "newsapi": NewsApiAdapter,
    "guardian": GuardianAdapter,
    "nytimes": NYTimesAdapter,
}


def build_adapters(cfg, client: JsonFetcher) -> list[ProviderAdapter]:
    """Instantiate every enabled provider adapter from configuration."""
    providers_cfg = cfg.raw["providers"]
    adapters: list[ProviderAdapter] = []
    for name, adapter_cls in PROVIDERS.items():
        if not cfg.provider_enabled(name):
            continue
        kwargs = {
            "api_key": cfg.api_key(name),
            "base_url": str(cfg.provider(name)["base_url"]),
            "page_size": cfg.page_size,
        }
        if adapter_cls is NewsApiAdapter:
            kwargs["language"] = str(providers_cfg.get("language", "en"))
            kwargs["country"] = str(providers_cfg.get("country", "us"))
        adapters.append(adapter_cls(client, **kwargs))
    return adapters


def all_source_names() -> list[str]:
    """Canonical source names, in provider order (drives source pickers and validation)."""
    names: list[str] = []
    for adapter_cls in PROVIDERS.values():
        names.extend(sorted(adapter_cls.owned_sources))
    return names


__all__ = [
    "PROVIDERS",
    "ProviderAdapter",
    "GuardianAdapter",
    "NewsApiAdapter",
    "NYTimesAdapter",
    "build_adapters",
    "all_source_names",
]
