from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from workline_search.exceptions import ConfigError


DEFAULTS: dict[str, Any] = {
    "site": {
        "index_url": "https://www.flexos.work/the-workline/",
        "keyword": "workline",
        "title_suffixes": [" | FlexOS", " | The Workline"],
    },
    "http": {
        "user_agent": "WorklineSearchBot/1.0 (Workplace Research Assistant)",
        "timeout_seconds": 15,
        "retry": {
            "max_attempts": 2,
            "base_delay_seconds": 0.5,
            "max_delay_seconds": 4.0,
            "retry_statuses": [429, 502, 503, 504],
        },
    },
    "cache": {
        "ttl_minutes": 30,
        "max_articles": 20,
        "batch_size": 2,
        "batch_delay_seconds": 2.0,
    },
    "search": {
        "max_results": 5,
    },
    "external_search": {
        "enabled": True,
        "api_key": None,
        "engine_id": None,
        "api_key_env": "GOOGLE_CSE_API_KEY",
        "engine_id_env": "GOOGLE_CSE_CX",
        "site_filter": "flexos.work/the-workline",
        "request_count": 10,
        "max_hits": 5,
    },
    "logging": {
        "level": "INFO",
        "console": True,
        "file": None,
    },
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


@dataclass(frozen=True)
class Config:
    raw: dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULTS))

    @property
    def index_url(self) -> str:
        return str(self.raw["site"]["index_url"])

    @property
    def keyword(self) -> str:
        return str(self.raw["site"]["keyword"])

    @property
    def title_suffixes(self) -> tuple[str, ...]:
        return tuple(str(s) for s in (self.raw["site"].get("title_suffixes") or []))

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(minutes=float(self.raw["cache"]["ttl_minutes"]))

    @property
    def max_results(self) -> int:
        return int(self.raw["search"]["max_results"])

    @property
    def external_credentials(self) -> tuple[str, str] | None:
        """Key/engine pair for the external search API, or None when the feature is off."""

        ext = self.raw.get("external_search", {}) or {}
        if not bool(ext.get("enabled", True)):
            return None
        key = ext.get("api_key") or os.getenv(str(ext.get("api_key_env") or ""))
        cx = ext.get("engine_id") or os.getenv(str(ext.get("engine_id_env") or ""))
        if not key or not cx:
            return None
        return str(key), str(cx)


def load_yaml(path: str | Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")
    return data


def build_config(overrides: dict[str, Any] | None = None) -> Config:
    """Defaults with ``overrides`` merged in section by section."""

    return Config(raw=_deep_merge(DEFAULTS, overrides or {}))


def load_config(path: str | Path | None = None) -> Config:
    if path is None:
        return build_config()
    return build_config(load_yaml(path))
