from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from news_aggregator.errors import ConfigError

DEFAULT_CONFIG_FILE = "config.yaml"

API_KEY_ENV = {
    "newsapi": "NEWS_API_KEY",
    "guardian": "GUARDIAN_API_KEY",
    "nytimes": "NYTIMES_API_KEY",
}

DEFAULTS: dict[str, Any] = {
    "providers": {
        "page_size": 20,
        "language": "en",
        "country": "us",
        "newsapi": {"enabled": True, "base_url": "https://newsapi.org/v2"},
        "guardian": {"enabled": True, "base_url": "https://content.guardianapis.com"},
        "nytimes": {"enabled": True, "base_url": "https://api.nytimes.com/svc"},
    },
    "http": {
        "user_agent": "news-aggregator/1.0",
        "timeout_seconds": 15,
        "max_connections": 20,
    },
    "concurrency": {"max_in_flight_requests": 8},
    "rate_limit": {"max_requests_per_period": 5, "period_seconds": 1.0},
    "retry": {
        "max_attempts": 3,
        "base_delay_seconds": 0.5,
        "max_delay_seconds": 4.0,
        "retry_statuses": [429, 500, 502, 503, 504],
    },
    "storage": {"output_dir": "data"},
}


@dataclass(frozen=True)
class Config:
    raw: dict[str, Any]

    @property
    def output_dir(self) -> Path:
        return Path(self.raw["storage"]["output_dir"])

    @property
    def preferences_file(self) -> Path:
        storage = self.raw.get("storage", {})
        return self.output_dir / str(storage.get("preferences_file") or "preferences.json")

    @property
    def page_size(self) -> int:
        return int(self.raw["providers"]["page_size"])

    def provider(self, name: str) -> dict[str, Any]:
        return dict(self.raw["providers"].get(name) or {})

    def provider_enabled(self, name: str) -> bool:
        return bool(self.provider(name).get("enabled", True))

    def api_key(self, name: str) -> str | None:
        env_var = API_KEY_ENV.get(name)
        if env_var is None:
            return None
        return os.environ.get(env_var) or None


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: str | Path | None = None) -> Config:
    """Build a Config from defaults, an optional YAML file and the environment.

    API keys are read from the environment (a local .env file is honoured) and
    are never taken from the YAML file.
    """
    load_dotenv()

    if path is None:
        candidate = Path(DEFAULT_CONFIG_FILE)
        if not candidate.exists():
            return Config(raw=copy.deepcopy(DEFAULTS))
        path = candidate

    try:
        file_cfg = load_yaml(path)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(file_cfg, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return Config(raw=_merge(DEFAULTS, file_cfg))
