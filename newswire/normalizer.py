from __future__ import annotations

import hashlib
from typing import Any, Mapping, Optional

from .models import Source, Story
from .parser import (
    clean_text,
    extract_date,
    extract_image,
    extract_link,
    normalize_url,
    raw_summary,
    text_value,
    tldr_from,
)

FINGERPRINT_LENGTH = 16


def fingerprint(title: str, link: str) -> str:
    """Stable short id for a story; identical title/link always hash the same."""
    data = f"{title}::{link}".encode("utf-8")
    return hashlib.sha1(data).hexdigest()[:FINGERPRINT_LENGTH]


def to_story(item: Mapping[str, Any], source: Source) -> Optional[Story]:
    """
    Convert one raw feed item into a Story.

    Returns None when the item has no usable title or link; such items are
    dropped, not reported.
    """
    if not isinstance(item, Mapping):
        return None

    title = clean_text(text_value(item.get("title")))
    link = normalize_url(extract_link(item))
    if not title or not link:
        return None

    return Story(
        id=fingerprint(title, link),
        source=source.name,
        title=title,
        link=link,
        published_at=extract_date(item),
        tldr=tldr_from(item),
        image=extract_image(item, raw_summary(item)),
    )
