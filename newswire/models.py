from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as ``2025-01-01T12:00:00.000Z`` (or None)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class Source:
    """A named feed origin."""
    name: str
    url: str


@dataclass(frozen=True)
class Story:
    """
    Canonical, deduplicated news item.

    WARNING: Do not change fields lightly. `to_dict` is the JSON contract
    consumed by the web and mobile clients.
    """
    id: str
    source: str
    title: str
    link: str
    published_at: Optional[datetime]
    tldr: str
    image: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "title": self.title,
            "link": self.link,
            "publishedAt": isoformat_utc(self.published_at),
            "tldr": self.tldr,
        }
        if self.image:
            data["image"] = self.image
        return data


@dataclass(frozen=True)
class SourceError:
    source: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "error": self.error}


@dataclass(frozen=True)
class AggregationResult:
    """One aggregation cycle: newest-first stories plus per-source failures."""
    generated_at: datetime
    items: Tuple[Story, ...] = field(default_factory=tuple)
    errors: Tuple[SourceError, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": isoformat_utc(self.generated_at),
            "items": [it.to_dict() for it in self.items],
            "errors": [err.to_dict() for err in self.errors],
        }
