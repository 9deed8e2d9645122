"""Configuration loader for sentinel."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from common.config import ConfigSingleton, find_config_path, load_yaml, section
from ingest_articles.fetch_articles.sources import DEFAULT_SOURCES
from ingest_articles.models import SourceFeed

load_dotenv()

CONFIG_DIR = Path(__file__).parent / "configs"


@dataclass
class SignificanceConfig:
    keywords: list[str] = field(default_factory=list)  # regexes, matched case-insensitively
    preferred_sources: list[str] = field(default_factory=list)
    require_match: bool = False


@dataclass
class FetchConfig:
    timeout_seconds: float = 30
    resolve_short_bodies: bool = True
    min_body_chars: int = 200


@dataclass
class FormatterConfig:
    enable_ai_enhancement: bool = False
    enhancer_url: str | None = None
    enhancer_timeout_seconds: float = 30


@dataclass
class TranslationConfig:
    target_lang: str = "km"
    api_url: str | None = None
    timeout_seconds: float = 20


@dataclass
class StorageConfig:
    backend: str = "memory"  # "memory" or "sql"
    database_url: str | None = None
    timeout_seconds: float = 10


@dataclass
class SentinelConfig:
    enabled: bool = False
    frequency_seconds: int = 300
    auto_persist: bool = False
    max_items_per_run: int = 3
    max_workers: int = 4
    lookback_hours: int = 48
    record_rejections: bool = False
    sources: list[SourceFeed] = field(default_factory=lambda: list(DEFAULT_SOURCES))
    significance: SignificanceConfig = field(default_factory=SignificanceConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    formatter: FormatterConfig = field(default_factory=FormatterConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def load_config(config_name: str | None = None) -> SentinelConfig:
    """Load configuration from YAML file.

    Args:
        config_name: Name of config file (without .yaml extension).
                    If None, uses SENTINEL_CONFIG env var or "prod".

    Returns:
        Loaded SentinelConfig object
    """
    config_path = find_config_path(config_name, CONFIG_DIR, env_var="SENTINEL_CONFIG")
    config = _parse_config(load_yaml(config_path))
    _apply_env_overrides(config)
    return config


def _parse_sources(items: list | None) -> list[SourceFeed]:
    if not items:
        return list(DEFAULT_SOURCES)
    return [
        SourceFeed(
            name=item["name"],
            url=item["url"],
            enabled=item.get("enabled", True),
        )
        for item in items
    ]


def _parse_keywords(items: list | None) -> list[str]:
    keywords = list(items or [])
    for keyword in keywords:
        try:
            re.compile(keyword)
        except re.error as e:
            raise ValueError(f"Invalid significance keyword pattern {keyword!r}: {e}") from e
    return keywords


def _parse_config(data: dict) -> SentinelConfig:
    """Parse config dictionary into SentinelConfig object."""
    significance = SignificanceConfig(
        keywords=_parse_keywords(section(data, "significance").get("keywords")),
        preferred_sources=section(data, "significance").get("preferred_sources", []),
        require_match=section(data, "significance").get("require_match", False),
    )

    fetch = FetchConfig(
        timeout_seconds=section(data, "fetch").get("timeout_seconds", 30),
        resolve_short_bodies=section(data, "fetch").get("resolve_short_bodies", True),
        min_body_chars=section(data, "fetch").get("min_body_chars", 200),
    )

    formatter = FormatterConfig(
        enable_ai_enhancement=section(data, "formatter").get("enable_ai_enhancement", False),
        enhancer_url=section(data, "formatter").get("enhancer_url"),
        enhancer_timeout_seconds=section(data, "formatter").get("enhancer_timeout_seconds", 30),
    )

    translation = TranslationConfig(
        target_lang=section(data, "translation").get("target_lang", "km"),
        api_url=section(data, "translation").get("api_url"),
        timeout_seconds=section(data, "translation").get("timeout_seconds", 20),
    )

    storage = StorageConfig(
        backend=section(data, "storage").get("backend", "memory"),
        database_url=section(data, "storage").get("database_url"),
        timeout_seconds=section(data, "storage").get("timeout_seconds", 10),
    )

    return SentinelConfig(
        enabled=data.get("enabled", False),
        frequency_seconds=data.get("frequency_seconds", 300),
        auto_persist=data.get("auto_persist", False),
        max_items_per_run=data.get("max_items_per_run", 3),
        max_workers=data.get("max_workers", 4),
        lookback_hours=data.get("lookback_hours", 48),
        record_rejections=data.get("record_rejections", False),
        sources=_parse_sources(data.get("sources")),
        significance=significance,
        fetch=fetch,
        formatter=formatter,
        translation=translation,
        storage=storage,
    )


def _apply_env_overrides(config: SentinelConfig) -> None:
    """Secrets and endpoints come from the environment when set."""
    if os.environ.get("DATABASE_URL"):
        config.storage.database_url = os.environ["DATABASE_URL"]
        config.storage.backend = "sql"
    if os.environ.get("TRANSLATE_API_URL"):
        config.translation.api_url = os.environ["TRANSLATE_API_URL"]
    if os.environ.get("ENHANCER_API_URL"):
        config.formatter.enhancer_url = os.environ["ENHANCER_API_URL"]


_manager = ConfigSingleton(load_config)
get_config = _manager.get
set_config = _manager.set
reset_config = _manager.reset
