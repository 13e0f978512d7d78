from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Story

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def dedup_key(story: Story) -> str:
    """Canonical link, or the lower-cased title when there is no link."""
    return story.link or story.title.lower()


def recency_key(value: Optional[datetime]) -> Tuple[bool, datetime]:
    # Undated ranks below every dated value, including the epoch and earlier.
    return (value is not None, value or _EPOCH)


def deduplicate(items: Iterable[Story]) -> List[Story]:
    """
    Collapse stories sharing a dedup key.
    The more recently published one wins; on a tie the first occurrence is kept.
    Output follows the order in which each key was first seen.
    """
    kept: Dict[str, Story] = {}
    for it in items:
        key = dedup_key(it)
        existing = kept.get(key)
        if existing is None or recency_key(it.published_at) > recency_key(existing.published_at):
            kept[key] = it
    return list(kept.values())


def sort_newest_first(items: Iterable[Story]) -> List[Story]:
    return sorted(items, key=lambda x: recency_key(x.published_at), reverse=True)
