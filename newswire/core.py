from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

import httpx

from .dedup import deduplicate, sort_newest_first
from .fetcher import fetch_source
from .log import get_logger
from .models import AggregationResult, Source, SourceError, Story
from .settings import Settings

logger = get_logger(__name__)

FetchFn = Callable[..., Awaitable[List[Story]]]

UNKNOWN_FETCH_ERROR = "Unknown fetch error"


@dataclass(frozen=True)
class AggregateOptions:
    item_limit: int = 30
    result_limit: int = 90
    user_agent: str = "Newswire/1.0 (+local)"
    timeout_seconds: Optional[float] = 15.0


class NewsAggregator:
    """
    Fan out to every source concurrently and merge what comes back.

    Pipeline: fetch (all sources, settle-all) → merge → deduplicate → sort
    (newest first) → cap. A failing source becomes an entry in `errors` and
    never aborts the cycle.
    """

    def __init__(
        self,
        sources: Iterable[Source],
        *,
        item_limit: int = 30,
        result_limit: int = 90,
        user_agent: str = "Newswire/1.0 (+local)",
        timeout_seconds: Optional[float] = 15.0,
        fetcher: FetchFn = fetch_source,
    ) -> None:
        self.sources: Sequence[Source] = tuple(sources)
        self.options = AggregateOptions(
            item_limit=item_limit,
            result_limit=result_limit,
            user_agent=user_agent,
            timeout_seconds=timeout_seconds,
        )
        self._fetcher = fetcher

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "NewsAggregator":
        return cls(
            settings.feed_sources(),
            item_limit=settings.feed_item_limit,
            result_limit=settings.result_limit,
            user_agent=settings.user_agent,
            timeout_seconds=settings.fetch_timeout_seconds,
            **kwargs,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": self.options.user_agent},
            timeout=self.options.timeout_seconds,
            follow_redirects=True,
        )

    async def aggregate(self) -> AggregationResult:
        started = time.perf_counter()
        async with self._client() as client:
            settled = await asyncio.gather(
                *(self._fetcher(client, source, item_limit=self.options.item_limit) for source in self.sources),
                return_exceptions=True,
            )

        items: List[Story] = []
        errors: List[SourceError] = []
        for source, outcome in zip(self.sources, settled):
            if isinstance(outcome, Exception):
                message = str(outcome) or UNKNOWN_FETCH_ERROR
                logger.warning(
                    "feed fetch failed",
                    extra={"source": source.name, "error": message, "error_type": type(outcome).__name__},
                )
                errors.append(SourceError(source=source.name, error=message))
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            items.extend(outcome)

        # Deduplicate and sort (newest first), then cap
        merged = sort_newest_first(deduplicate(items))[: self.options.result_limit]

        result = AggregationResult(
            generated_at=datetime.now(timezone.utc),
            items=tuple(merged),
            errors=tuple(errors),
        )
        logger.info(
            "aggregation complete",
            extra={
                "items": len(result.items),
                "errors": len(result.errors),
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return result
