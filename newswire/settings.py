"""Configuration for the aggregator and its HTTP surface."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List, Set, Tuple

from pydantic import (
    BaseModel,
    Field,
    PositiveFloat,
    PositiveInt,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Source


class SourceConfig(BaseModel):
    """One syndication feed to aggregate."""

    name: str = Field(..., description="Display name of the origin (e.g. BBC).")
    url: str = Field(..., description="Absolute RSS/RDF/Atom feed URL.")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("source name must not be blank")
        return name

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        url = value.strip()
        if "://" not in url:
            raise ValueError(f"source url must be absolute: {value!r}")
        return url


DEFAULT_SOURCES: Tuple[SourceConfig, ...] = (
    SourceConfig(name="BBC", url="https://feeds.bbci.co.uk/news/world/rss.xml"),
    SourceConfig(name="NPR", url="https://feeds.npr.org/1001/rss.xml"),
    SourceConfig(name="NYTimes", url="https://rss.nytimes.com/services/xml/rss/nyt/HomePage.xml"),
    SourceConfig(name="Al Jazeera", url="https://www.aljazeera.com/xml/rss/all.xml"),
)


class Settings(BaseSettings):
    """Environment-driven settings. Tunables are fixed for the process lifetime."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    sources: List[SourceConfig] = Field(
        default_factory=lambda: list(DEFAULT_SOURCES),
        alias="NEWSWIRE_SOURCES",
        description="JSON array of {name, url} objects.",
    )
    cache_ttl_seconds: PositiveInt = Field(180, alias="NEWSWIRE_CACHE_TTL_SECONDS", description="Cached result lifetime.")
    feed_item_limit: PositiveInt = Field(30, alias="NEWSWIRE_FEED_ITEM_LIMIT", description="Items kept per feed.")
    result_limit: PositiveInt = Field(90, alias="NEWSWIRE_RESULT_LIMIT", description="Stories kept per aggregation.")
    fetch_timeout_seconds: PositiveFloat = Field(
        15.0,
        alias="NEWSWIRE_FETCH_TIMEOUT_SECONDS",
        description="Per-feed HTTP timeout; a timeout counts as that feed's failure.",
    )
    user_agent: str = Field("Newswire/1.0 (+local)", alias="NEWSWIRE_USER_AGENT", description="HTTP User-Agent.")
    host: str = Field("127.0.0.1", alias="NEWSWIRE_HOST", description="Bind address for `serve`.")
    port: PositiveInt = Field(3000, alias="PORT", description="Bind port for `serve`.")
    log_level: str = Field("INFO", alias="NEWSWIRE_LOG_LEVEL", description="Root log level.")
    log_json: bool = Field(False, alias="NEWSWIRE_LOG_JSON", description="Emit logs as JSON lines.")

    @field_validator("sources", mode="before")
    @classmethod
    def _parse_sources(cls, value: Any) -> List[Any]:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("NEWSWIRE_SOURCES must be a JSON array") from exc
        if isinstance(value, (list, tuple)):
            return list(value)
        raise ValueError("NEWSWIRE_SOURCES must be a list")

    @field_validator("sources")
    @classmethod
    def _validate_unique_sources(cls, value: List[SourceConfig]) -> List[SourceConfig]:
        seen: Set[str] = set()
        for source in value:
            if source.name in seen:
                raise ValueError(f"duplicate source name: {source.name}")
            seen.add(source.name)
        return value

    @field_validator("user_agent")
    @classmethod
    def _validate_user_agent(cls, value: str) -> str:
        agent = value.strip()
        if not agent:
            raise ValueError("NEWSWIRE_USER_AGENT must not be blank")
        return agent

    def feed_sources(self) -> Tuple[Source, ...]:
        return tuple(Source(name=s.name, url=s.url) for s in self.sources)


@lru_cache()
def get_settings() -> Settings:
    try:
        return Settings()
    except ValueError as exc:  # ValidationError and SettingsError
        raise RuntimeError(f"Invalid newswire configuration: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the cached Settings (used by tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
