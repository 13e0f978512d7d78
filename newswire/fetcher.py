from __future__ import annotations

import io
from typing import Any, Dict, List, Optional

import feedparser
import httpx

from .exceptions import FeedFetchError, FeedHTTPError, FeedParseError
from .log import get_logger
from .models import Source, Story
from .normalizer import to_story

logger = get_logger(__name__)


def parse_feed(content: bytes, content_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Parse an RSS 2.0, RSS 1.0 (RDF) or Atom document and return its raw items.

    feedparser resolves channel items, RDF items and Atom entries into one
    `entries` list. Raises FeedParseError when the document is malformed
    and nothing could be recovered from it.
    """
    headers = {"content-type": content_type} if content_type else None
    # a stream, so feedparser never treats the body as a filename or URL
    feed = feedparser.parse(io.BytesIO(content), response_headers=headers)
    entries = getattr(feed, "entries", None)
    if not isinstance(entries, list):
        raise FeedParseError("Feed has no item list")

    if getattr(feed, "bozo", 0) and not entries:
        exc = getattr(feed, "bozo_exception", None)
        msg = "Invalid RSS/Atom feed"
        if exc:
            msg += f" ({exc})"
        raise FeedParseError(msg)

    if not getattr(feed, "version", "") and not entries:
        raise FeedParseError("Not an RSS/RDF/Atom document")
    return entries


async def fetch_source(client: httpx.AsyncClient, source: Source, *, item_limit: int) -> List[Story]:
    """
    Fetch a single feed and return its normalized stories.

    Raises FeedFetchError on network, HTTP status or parse failures. Items
    without a usable title or link are dropped silently.
    """
    try:
        resp = await client.get(source.url)
    except httpx.TimeoutException as exc:
        raise FeedFetchError(f"Timed out fetching {source.url}") from exc
    except httpx.HTTPError as exc:
        raise FeedFetchError(str(exc) or exc.__class__.__name__) from exc

    if not resp.is_success:
        raise FeedHTTPError(resp.status_code)

    raw_items = parse_feed(resp.content, resp.headers.get("content-type"))[:item_limit]
    stories = [to_story(item, source) for item in raw_items]
    kept = [s for s in stories if s is not None]
    logger.debug(
        "fetched feed",
        extra={"source": source.name, "raw_items": len(raw_items), "stories": len(kept)},
    )
    return kept
