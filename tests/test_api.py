from __future__ import annotations

from fastapi.testclient import TestClient

from newswire.api import AGGREGATION_FAILED, create_app
from newswire.cache import RefreshCache
from newswire.models import AggregationResult, SourceError
from newswire.settings import Settings


class StubCompute:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    async def __call__(self) -> AggregationResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def _client(compute) -> TestClient:
    return TestClient(create_app(cache=RefreshCache(compute, ttl_seconds=180)))


def _result(make_story, now) -> AggregationResult:
    return AggregationResult(
        generated_at=now,
        items=(
            make_story(title="Senate passes budget bill", link="https://example.com/a", source="DRUDGE REPORT"),
            make_story(title="Local bakery opens", link="https://example.com/b", source="BBC", published_at=None),
        ),
        errors=(SourceError(source="NPR", error="HTTP 500"),),
    )


def test_news_returns_cached_payload(make_story, now):
    compute = StubCompute(result=_result(make_story, now))

    with _client(compute) as client:
        first = client.get("/api/news")
        second = client.get("/api/news")

    assert first.status_code == 200
    body = first.json()
    assert body["generatedAt"] == "2025-01-06T12:00:00.000Z"
    assert [it["title"] for it in body["items"]] == ["Senate passes budget bill", "Local bakery opens"]
    assert body["items"][1]["publishedAt"] is None
    assert "image" not in body["items"][0]
    assert body["errors"] == [{"source": "NPR", "error": "HTTP 500"}]
    assert second.json() == body
    assert compute.calls == 1


def test_news_refresh_flag_forces_recompute(make_story, now):
    compute = StubCompute(result=_result(make_story, now))

    with _client(compute) as client:
        client.get("/api/news")
        client.get("/api/news?refresh=0")
        assert compute.calls == 1
        client.get("/api/news?refresh=1")

    assert compute.calls == 2


def test_news_failure_without_cache_returns_500():
    compute = StubCompute(error=RuntimeError("all feeds down"))

    with _client(compute) as client:
        resp = client.get("/api/news")

    assert resp.status_code == 500
    assert resp.json() == {"error": AGGREGATION_FAILED, "details": "all feeds down"}


def test_digest_view(make_story, now):
    compute = StubCompute(result=_result(make_story, now))

    with _client(compute) as client:
        resp = client.get("/api/digest")

    assert resp.status_code == 200
    body = resp.json()
    assert body["lead"]["source"] == "DRUDGE REPORT"
    assert body["total"] == 2
    assert [g["topic"] for g in body["groups"]] == ["General"]
    assert "errors" not in body


def test_digest_failure_returns_500():
    compute = StubCompute(error=RuntimeError(""))

    with _client(compute) as client:
        resp = client.get("/api/digest")

    assert resp.status_code == 500
    assert resp.json() == {"error": AGGREGATION_FAILED, "details": "Unknown error"}


def test_healthz_from_settings():
    app = create_app(settings=Settings(sources=[]))

    with TestClient(app) as client:
        resp = client.get("/healthz")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert isinstance(app.state.news_cache, RefreshCache)
