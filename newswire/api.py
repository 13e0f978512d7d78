"""HTTP surface: the `/api/news` JSON contract plus a digest view."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .cache import RefreshCache
from .classifier import build_digest
from .core import NewsAggregator
from .log import get_logger
from .models import AggregationResult
from .settings import Settings, get_settings

logger = get_logger(__name__)

AGGREGATION_FAILED = "Failed to aggregate news."

router = APIRouter()


def build_cache(settings: Settings) -> RefreshCache:
    aggregator = NewsAggregator.from_settings(settings)
    return RefreshCache(aggregator.aggregate, ttl_seconds=settings.cache_ttl_seconds)


def _failure(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": AGGREGATION_FAILED, "details": str(exc) or "Unknown error"},
    )


async def _load(request: Request, refresh: Optional[str]) -> AggregationResult:
    cache: RefreshCache = request.app.state.news_cache
    return await cache.get(force=refresh == "1")


@router.get("/api/news", tags=["news"])
async def get_news(request: Request, refresh: Optional[str] = Query(None)) -> Any:
    try:
        result = await _load(request, refresh)
    except Exception as exc:
        logger.exception("news aggregation failed")
        return _failure(exc)
    return result.to_dict()


@router.get("/api/digest", tags=["news"])
async def get_digest(request: Request, refresh: Optional[str] = Query(None)) -> Any:
    try:
        result = await _load(request, refresh)
    except Exception as exc:
        logger.exception("news aggregation failed")
        return _failure(exc)
    if result.errors:
        logger.debug("suppressed feed errors", extra={"errors": [e.to_dict() for e in result.errors]})
    return build_digest(result).to_dict()


def create_app(cache: Optional[RefreshCache] = None, settings: Optional[Settings] = None) -> FastAPI:
    app = FastAPI(title="Newswire", version="1.0.0")
    if cache is None:
        cache = build_cache(settings or get_settings())
    app.state.news_cache = cache
    app.include_router(router)

    @app.get("/healthz", tags=["system"])
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    return app
