"""Time-bounded holder of the latest aggregation result."""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

from .log import get_logger
from .models import AggregationResult

logger = get_logger(__name__)

ComputeFn = Callable[[], Awaitable[AggregationResult]]


class RefreshCache:
    """
    Serves the latest AggregationResult and coalesces concurrent refreshes.

    Lifecycle: empty → fresh → stale (past TTL) → refreshing → fresh. At most
    one computation runs at a time; every caller that needs a refresh while
    one is running awaits that same task and receives the same result.

    The in-flight check and the task registration in `get` happen with no
    await between them, so on a single event loop no lock is needed.

    A failed refresh leaves the previous result and its expiry untouched.
    If a previous result exists the waiting callers receive it; otherwise
    the failure propagates.
    """

    def __init__(
        self,
        compute: ComputeFn,
        *,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._compute = compute
        self._ttl = ttl_seconds
        self._clock = clock
        self._result: Optional[AggregationResult] = None
        self._expires_at: float = 0.0
        self._pending: Optional[asyncio.Task] = None

    @property
    def result(self) -> Optional[AggregationResult]:
        return self._result

    @property
    def expires_at(self) -> float:
        return self._expires_at

    @property
    def in_flight(self) -> bool:
        return self._pending is not None

    @property
    def state(self) -> str:
        if self._pending is not None:
            return "refreshing"
        if self._result is None:
            return "empty"
        if self._clock() < self._expires_at:
            return "fresh"
        return "stale"

    async def get(self, force: bool = False) -> AggregationResult:
        if not force and self._result is not None and self._clock() < self._expires_at:
            logger.debug("news cache hit")
            return self._result

        if self._pending is None:
            logger.debug("news cache refresh", extra={"forced": force})
            self._pending = asyncio.ensure_future(self._refresh())
        else:
            logger.debug("joining in-flight refresh", extra={"forced": force})
        # shield: a cancelled caller must not cancel the shared refresh
        return await asyncio.shield(self._pending)

    async def _refresh(self) -> AggregationResult:
        previous = self._result
        try:
            result = await self._compute()
        except Exception:
            if previous is None:
                raise
            logger.warning("refresh failed; serving stale result", exc_info=True)
            return previous
        finally:
            self._pending = None
        self._result = result
        self._expires_at = self._clock() + self._ttl
        return result
