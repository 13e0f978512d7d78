"""
Presentation heuristics over aggregated stories.

The keyword tables below are hand-tuned editorial values. Keep them as
literal data; clients depend on the resulting rankings.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .dedup import recency_key
from .models import AggregationResult, Story, isoformat_utc

GENERAL_TOPIC = "General"

TOPIC_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Politics", ("election", "senate", "congress", "parliament", "president", "prime minister",
                  "government", "policy", "campaign", "vote")),
    ("Conflict", ("war", "military", "missile", "attack", "ceasefire", "troops", "airstrike",
                  "hostage", "defense", "conflict")),
    ("Business", ("market", "stocks", "economy", "inflation", "interest rate", "fed", "earnings",
                  "trade", "tariff", "company")),
    ("Technology", ("artificial intelligence", "ai", "software", "cyber", "chip", "startup",
                    "data breach", "app", "tech")),
    ("Health", ("health", "hospital", "disease", "virus", "vaccine", "medical", "outbreak")),
    ("Climate", ("climate", "storm", "hurricane", "flood", "wildfire", "earthquake", "heatwave",
                 "emissions")),
    ("Science", ("space", "nasa", "research", "study", "scientist", "astronomy")),
    ("Sports", ("nba", "nfl", "mlb", "nhl", "soccer", "football", "tennis", "olympic", "tournament",
                "match")),
    ("Culture", ("movie", "music", "tv", "celebrity", "festival", "book", "award", "art")),
    ("Crime", ("police", "shooting", "killed", "arrest", "charged", "trial", "investigation", "crime")),
)

# Display order of topic groups; General always last.
TOPIC_ORDER: Tuple[str, ...] = tuple(name for name, _ in TOPIC_RULES) + (GENERAL_TOPIC,)

URGENCY_RULES: Tuple[Tuple[str, int], ...] = (
    ("breaking", 6),
    ("urgent", 5),
    ("live", 4),
    ("alert", 4),
    ("emergency", 4),
    ("attack", 4),
    ("killed", 4),
    ("war", 3),
    ("earthquake", 4),
    ("wildfire", 3),
    ("hurricane", 3),
    ("evacuat", 3),
    ("outbreak", 3),
    ("explosion", 3),
    ("hostage", 3),
    ("ceasefire", 2),
)

# (max age in hours, score), checked in order
RECENCY_BUCKETS: Tuple[Tuple[float, int], ...] = ((1, 5), (3, 4), (8, 3), (18, 2), (36, 1))

ALWAYS_FEATURED_SOURCE = "DRUDGE REPORT"
FEATURED_SOURCE_PRIORITY = frozenset({"CNN", "DRUDGE REPORT", "NEW YORK POST"})

# Cyrillic, Hebrew, Arabic, Devanagari, Thai, Hangul Jamo, Kana, CJK
NON_LATIN_SCRIPT_PATTERN = re.compile(
    r"[\u0400-\u04FF\u0590-\u05FF\u0600-\u06FF\u0900-\u097F\u0E00-\u0E7F"
    r"\u1100-\u11FF\u3040-\u30FF\u3400-\u9FFF]"
)
_LETTER_RE = re.compile(r"[A-Za-z\u00C0-\u024F]")
_ASCII_LETTER_RE = re.compile("[A-Za-z]")
MIN_ASCII_LETTER_RATIO = 0.7

STOP_WORDS = frozenset({
    "about", "after", "again", "against", "among", "around", "because", "being", "before", "between",
    "could", "during", "first", "from", "have", "into", "just", "more", "most", "over", "said", "than",
    "that", "their", "there", "these", "they", "this", "those", "through", "under", "very", "were",
    "what", "when", "where", "which", "while", "will", "with", "would",
})
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")
MIN_TOKEN_LENGTH = 4

RELATED_MIN_SCORE = 2
RELATED_LIMIT = 4
RELATED_MAX_SHARED = 4


def _story_text(story: Story) -> str:
    return f"{story.title or ''} {story.tldr or ''}".lower()


def _source_key(story: Story) -> str:
    return (story.source or "").strip().upper()


def _timestamp(story: Story) -> Tuple[bool, datetime]:
    return recency_key(story.published_at)


def is_likely_english(title: Optional[str]) -> bool:
    """
    Heuristic English filter for titles.
    Rejects any non-Latin script character, then requires at least 70% of
    Latin letters to be plain ASCII.
    """
    value = (title or "").strip()
    if not value:
        return False
    if NON_LATIN_SCRIPT_PATTERN.search(value):
        return False
    letters = _LETTER_RE.findall(value)
    ascii_letters = _ASCII_LETTER_RE.findall(value)
    if not letters or not ascii_letters:
        return False
    return len(ascii_letters) / len(letters) >= MIN_ASCII_LETTER_RATIO


def filter_english(items: Iterable[Story]) -> List[Story]:
    return [it for it in items if is_likely_english(it.title)]


def recency_score(published_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    if published_at is None:
        return 0
    now = now or datetime.now(timezone.utc)
    hours_old = max(0.0, (now - published_at).total_seconds() / 3600)
    for max_hours, score in RECENCY_BUCKETS:
        if hours_old <= max_hours:
            return score
    return 0


def urgency_score(story: Story, now: Optional[datetime] = None) -> int:
    text = _story_text(story)
    score = recency_score(story.published_at, now)
    for term, weight in URGENCY_RULES:
        if term in text:
            score += weight
    return score


def pick_top_by_urgency(items: Sequence[Story], now: Optional[datetime] = None) -> Optional[Story]:
    """Highest urgency wins; ties go to the more recent story, then input order."""
    if not items:
        return None
    now = now or datetime.now(timezone.utc)
    ranked = sorted(items, key=lambda it: (urgency_score(it, now), _timestamp(it)), reverse=True)
    return ranked[0]


def pick_featured_story(items: Sequence[Story], now: Optional[datetime] = None) -> Optional[Story]:
    if not items:
        return None
    for it in items:
        if _source_key(it) == ALWAYS_FEATURED_SOURCE:
            return it
    prioritized = [it for it in items if _source_key(it) in FEATURED_SOURCE_PRIORITY]
    if prioritized:
        return pick_top_by_urgency(prioritized, now)
    return pick_top_by_urgency(items, now)


def topic_scores(story: Story) -> Dict[str, int]:
    """Keyword hit count per topic, in TOPIC_RULES order."""
    text = _story_text(story)
    return {name: sum(1 for kw in keywords if kw in text) for name, keywords in TOPIC_RULES}


def classify_topic(story: Story) -> str:
    winner = GENERAL_TOPIC
    winner_score = 0
    for name, score in topic_scores(story).items():
        # strictly greater: earlier topics keep ties
        if score > winner_score:
            winner, winner_score = name, score
    return winner


@dataclass(frozen=True)
class TopicGroup:
    topic: str
    items: Tuple[Story, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"topic": self.topic, "items": [it.to_dict() for it in self.items]}


def group_by_topic(items: Iterable[Story]) -> List[TopicGroup]:
    grouped: Dict[str, List[Story]] = {}
    for it in items:
        grouped.setdefault(classify_topic(it), []).append(it)
    return [TopicGroup(topic=t, items=tuple(grouped[t])) for t in TOPIC_ORDER if t in grouped]


def tokenize(text: str) -> List[str]:
    return [
        tok for tok in _TOKEN_SPLIT_RE.split((text or "").lower())
        if len(tok) >= MIN_TOKEN_LENGTH and tok not in STOP_WORDS
    ]


def _overlap_count(left: Sequence[str], right: Sequence[str]) -> int:
    right_set = set(right)
    return sum(1 for tok in left if tok in right_set)


def pick_related_stories(anchor: Optional[Story], pool: Sequence[Story]) -> List[Story]:
    """
    Up to four stories related to `anchor`.

    Score: +2 same topic, +1 per shared significant token (max 4), +1 same
    source. Candidates below 2 are dropped; the rest are ordered by score,
    then recency.
    """
    if anchor is None or not pool:
        return []
    anchor_topic = classify_topic(anchor)
    anchor_tokens = tokenize(f"{anchor.title} {anchor.tldr}")

    scored: List[Tuple[int, Tuple[bool, datetime], Story]] = []
    for it in pool:
        if it.id == anchor.id:
            continue
        score = 0
        if classify_topic(it) == anchor_topic:
            score += 2
        score += min(_overlap_count(anchor_tokens, tokenize(f"{it.title} {it.tldr}")), RELATED_MAX_SHARED)
        if it.source == anchor.source:
            score += 1
        if score >= RELATED_MIN_SCORE:
            scored.append((score, _timestamp(it), it))

    scored.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
    return [it for _, _, it in scored[:RELATED_LIMIT]]


@dataclass(frozen=True)
class Digest:
    """Reader-facing view: a lead story, its related links and topic groups."""
    generated_at: datetime
    lead: Optional[Story]
    related: Tuple[Story, ...] = field(default_factory=tuple)
    groups: Tuple[TopicGroup, ...] = field(default_factory=tuple)
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": isoformat_utc(self.generated_at),
            "lead": self.lead.to_dict() if self.lead else None,
            "related": [it.to_dict() for it in self.related],
            "groups": [g.to_dict() for g in self.groups],
            "total": self.total,
        }


def build_digest(result: AggregationResult, now: Optional[datetime] = None) -> Digest:
    """
    Apply the presentation heuristics to one aggregation result.
    English filter → featured lead → related links from the remaining
    stories → remaining stories grouped by topic. `result.errors` is not
    part of the digest.
    """
    items = filter_english(result.items)
    lead = pick_featured_story(items, now)
    rest = [it for it in items if lead is None or it.id != lead.id]
    return Digest(
        generated_at=result.generated_at,
        lead=lead,
        related=tuple(pick_related_stories(lead, rest)),
        groups=tuple(group_by_topic(rest)),
        total=len(items),
    )
