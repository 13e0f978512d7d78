"""
Extraction helpers over a raw feed item.

A raw item is a generic tree value: a string, a list of values, or a mapping
of string keys to values. feedparser entries are mappings; hand-built test
fixtures and other XML-to-dict conventions (``#text``, ``@href``) are
accepted as well. Every helper returns a plain value, or an empty/None result
when nothing usable is found.
"""
from __future__ import annotations

import calendar
import html
import re
import time
from datetime import datetime, timezone
from itertools import chain
from typing import Any, Iterator, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from feedparser.datetimes import _parse_date

SUMMARY_MAX_WORDS = 18
TITLE_FALLBACK_MAX_WORDS = 14
MIN_SENTENCE_CHARS = 30
NO_SUMMARY = "No summary available."

TRACKING_PARAM_PREFIXES = ("utm_",)
TRACKING_PARAMS = frozenset({"gclid", "fbclid"})

# Maximum nesting below the item that the image search will descend.
MAX_IMAGE_DEPTH = 3
IMAGE_NODE_NAMES = frozenset({
    "media_content", "media:content",
    "media_thumbnail", "media:thumbnail",
    "enclosures", "enclosure",
    "itunes_image", "itunes:image",
    "image", "thumbnail",
})
# Nodes whose untyped URLs still count as images when nothing better is found.
IMAGE_HINT_NODE_NAMES = frozenset({
    "media_thumbnail", "media:thumbnail",
    "itunes_image", "itunes:image",
    "image", "thumbnail",
})

_TEXT_KEYS = ("#text", "value", "@_href", "@href", "href", "__cdata")
_HREF_KEYS = ("@_href", "@href", "href")
_MEDIA_URL_KEYS = ("url", "@url", "@_url", "href", "@href", "@_href")
_MEDIA_TYPE_KEYS = ("type", "@type", "@_type")
_MEDIA_MEDIUM_KEYS = ("medium", "@medium", "@_medium")

_SUMMARY_KEYS = ("description", "summary", "content:encoded", "content_encoded", "content")
_PARSED_DATE_KEYS = ("published_parsed", "updated_parsed", "created_parsed")
_DATE_KEYS = ("pubDate", "published", "updated", "dc:date", "created")

_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_IMG_SRC_RE = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)
_IMAGE_EXT_RE = re.compile(r"\.(?:jpe?g|png|gif|webp|avif|bmp)$", re.IGNORECASE)
_IMAGE_PATH_HINTS = ("/image", "/img/", "/photo", "/thumbnail")


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def text_value(value: Any) -> str:
    """
    Pull a text string out of a tree value.
    Strings are returned as is, lists yield their first non-empty member, and
    mappings are probed for text-node and href-like keys.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        for entry in value:
            nested = text_value(entry)
            if nested:
                return nested
        return ""
    if isinstance(value, Mapping):
        for key in _TEXT_KEYS:
            candidate = value.get(key)
            if isinstance(candidate, str):
                return candidate
    return ""


def clean_text(value: Any) -> str:
    if not value:
        return ""
    text = _STYLE_RE.sub(" ", str(value))
    text = _SCRIPT_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def first_sentence(text: str) -> str:
    pieces = _SENTENCE_SPLIT_RE.split(text)
    for piece in pieces:
        if len(piece) > MIN_SENTENCE_CHARS:
            return piece
    return pieces[0] if pieces and pieces[0] else text


def limit_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + "..."


def raw_summary(item: Mapping[str, Any]) -> str:
    """First non-empty summary markup, in description → summary → encoded → content order."""
    for key in _SUMMARY_KEYS:
        raw = text_value(item.get(key))
        if raw:
            return raw
    return ""


def tldr_from(item: Mapping[str, Any]) -> str:
    cleaned = clean_text(raw_summary(item))
    if cleaned:
        return limit_words(first_sentence(cleaned), SUMMARY_MAX_WORDS)
    fallback = clean_text(text_value(item.get("title")))
    return limit_words(fallback or NO_SUMMARY, TITLE_FALLBACK_MAX_WORDS)


def extract_link(item: Mapping[str, Any]) -> str:
    for key in ("link", "links"):
        for candidate in as_list(item.get(key)):
            if isinstance(candidate, str):
                if candidate.strip():
                    return candidate
                continue
            if isinstance(candidate, Mapping):
                for href_key in _HREF_KEYS:
                    href = candidate.get(href_key)
                    if isinstance(href, str) and href.strip():
                        return href
    return ""


def _struct_to_datetime(value: time.struct_time) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return None


def extract_date(item: Mapping[str, Any]) -> Optional[datetime]:
    """
    Convert feed item date fields to a timezone-aware UTC datetime.
    Priority: feedparser's *_parsed fields, then pubDate -> published -> updated
    -> dc:date -> created as strings. Unparseable or absent dates yield None.
    """
    for key in _PARSED_DATE_KEYS:
        val = item.get(key)
        if isinstance(val, time.struct_time):
            parsed = _struct_to_datetime(val)
            if parsed is not None:
                return parsed
    for key in _DATE_KEYS:
        val = item.get(key)
        if isinstance(val, datetime):
            return val if val.tzinfo else val.replace(tzinfo=timezone.utc)
        raw = text_value(val).strip()
        if not raw:
            continue
        struct = _parse_date(raw)
        if struct is not None:
            parsed = _struct_to_datetime(struct)
            if parsed is not None:
                return parsed
    return None


def _is_tracking_param(name: str) -> bool:
    lower = name.lower()
    return lower in TRACKING_PARAMS or lower.startswith(TRACKING_PARAM_PREFIXES)


def normalize_url(url: str) -> str:
    """
    Canonicalize an absolute URL by dropping tracking query parameters.

    Remaining parameters keep their order. Anything that does not parse as an
    absolute URL is returned trimmed and otherwise unchanged.
    """
    raw = (url or "").strip()
    try:
        parts = urlsplit(raw)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return raw
    if not parts.scheme or not parts.netloc:
        return raw

    netloc = parts.netloc
    if "@" in netloc:
        userinfo, host = netloc.rsplit("@", 1)
        netloc = f"{userinfo}@{host.lower()}"
    else:
        netloc = netloc.lower()

    scheme = parts.scheme.lower()
    path = parts.path
    if not path and scheme in ("http", "https"):
        path = "/"

    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking_param(key)
    ]
    return urlunsplit((scheme, netloc, path, urlencode(query), parts.fragment))


def _is_absolute(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def looks_like_image_url(url: str) -> bool:
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    if _IMAGE_EXT_RE.search(path):
        return True
    return any(hint in path for hint in _IMAGE_PATH_HINTS)


def _first_str(node: Mapping[str, Any], keys: Tuple[str, ...]) -> str:
    for key in keys:
        value = node.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _media_candidates(value: Any) -> Iterator[Tuple[str, str]]:
    for node in as_list(value):
        if isinstance(node, str):
            if node.strip():
                yield node.strip(), ""
        elif isinstance(node, Mapping):
            url = _first_str(node, _MEDIA_URL_KEYS) or text_value(node).strip()
            if not url:
                continue
            mime = _first_str(node, _MEDIA_TYPE_KEYS).lower()
            if not mime and _first_str(node, _MEDIA_MEDIUM_KEYS).lower() == "image":
                mime = "image/"
            yield url, mime


def image_candidates(node: Any, depth: int = 0) -> Iterator[Tuple[str, str, str]]:
    """
    Yield (url, mime, node name) triples found under image-like node names.

    Descends at most MAX_IMAGE_DEPTH levels below the starting node.
    """
    if depth > MAX_IMAGE_DEPTH:
        return
    if isinstance(node, Mapping):
        for key, value in node.items():
            name = key.lower() if isinstance(key, str) else ""
            if name in IMAGE_NODE_NAMES:
                for url, mime in _media_candidates(value):
                    yield url, mime, name
            if isinstance(value, (Mapping, list)):
                yield from image_candidates(value, depth + 1)
    elif isinstance(node, list):
        for child in node:
            yield from image_candidates(child, depth + 1)


def extract_image(item: Mapping[str, Any], summary_markup: str = "") -> str:
    # feedparser synthesizes `enclosures` from rel=enclosure links; it never shows up in items()
    enclosures = ((url, mime, "enclosures") for url, mime in _media_candidates(item.get("enclosures")))
    fallback = ""
    for url, mime, name in chain(image_candidates(item), enclosures):
        normalized = normalize_url(url)
        if not _is_absolute(normalized):
            continue
        if mime.startswith("image/") or looks_like_image_url(url):
            return normalized
        if not fallback and not mime and name in IMAGE_HINT_NODE_NAMES:
            fallback = normalized
    if fallback:
        return fallback
    match = _IMG_SRC_RE.search(summary_markup or "")
    if match:
        normalized = normalize_url(html.unescape(match.group(1)))
        if _is_absolute(normalized):
            return normalized
    return ""
