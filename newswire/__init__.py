"""
newswire

A small feed-aggregation library that pulls RSS/RDF/Atom feeds and serves one
deduplicated, newest-first list of stories.

Core ideas:
- Input: a static list of named feed sources
- Process: fetch (concurrently) → parse → normalize → deduplicate → sort (newest first) → cap
- Output: AggregationResult (stories plus per-source errors), cached with a TTL

Example
-------
import asyncio

from newswire import NewsAggregator, RefreshCache, Source, build_digest

aggregator = NewsAggregator([
    Source("BBC", "https://feeds.bbci.co.uk/news/world/rss.xml"),
    Source("NPR", "https://feeds.npr.org/1001/rss.xml"),
])
cache = RefreshCache(aggregator.aggregate, ttl_seconds=180)

result = asyncio.run(cache.get())
for item in result.items:
    print(item.published_at, item.source, item.title)

digest = build_digest(result)
print(digest.lead.title if digest.lead else "nothing yet")
"""
from .cache import RefreshCache
from .classifier import Digest, build_digest
from .core import NewsAggregator
from .models import AggregationResult, Source, SourceError, Story

__all__ = [
    "AggregationResult",
    "Digest",
    "NewsAggregator",
    "RefreshCache",
    "Source",
    "SourceError",
    "Story",
    "build_digest",
]
