from __future__ import annotations

from datetime import datetime, timedelta, timezone

from newswire.models import AggregationResult, SourceError, isoformat_utc


def test_isoformat_utc_uses_milliseconds_and_z():
    value = datetime(2025, 1, 6, 12, 0, 5, 123456, tzinfo=timezone.utc)
    assert isoformat_utc(value) == "2025-01-06T12:00:05.123Z"


def test_isoformat_utc_converts_offsets_and_naive_values():
    plus_two = timezone(timedelta(hours=2))
    assert isoformat_utc(datetime(2025, 1, 6, 14, 0, tzinfo=plus_two)) == "2025-01-06T12:00:00.000Z"
    assert isoformat_utc(datetime(2025, 1, 6, 12, 0)) == "2025-01-06T12:00:00.000Z"
    assert isoformat_utc(None) is None


def test_story_to_dict(make_story):
    story = make_story(tldr="A storm.", image="https://img.example.com/storm.jpg")

    assert story.to_dict() == {
        "id": story.id,
        "source": "BBC",
        "title": "Storm hits coast",
        "link": "https://example.com/storm",
        "publishedAt": "2025-01-06T12:00:00.000Z",
        "tldr": "A storm.",
        "image": "https://img.example.com/storm.jpg",
    }


def test_story_to_dict_omits_empty_image(make_story):
    data = make_story(published_at=None).to_dict()
    assert "image" not in data
    assert data["publishedAt"] is None


def test_aggregation_result_to_dict(make_story, now):
    result = AggregationResult(
        generated_at=now,
        items=(make_story(),),
        errors=(SourceError(source="NPR", error="HTTP 503"),),
    )
    data = result.to_dict()

    assert set(data) == {"generatedAt", "items", "errors"}
    assert data["items"][0]["title"] == "Storm hits coast"
    assert data["errors"] == [{"source": "NPR", "error": "HTTP 503"}]
