from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from newswire.models import Story  # noqa: E402
from newswire.normalizer import fingerprint  # noqa: E402
from newswire.settings import reset_settings_cache  # noqa: E402

NOW = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)

RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Example Wire</title>
    <link>https://example.com/</link>
    <description>Example headlines</description>
    <item>
      <title>Storm hits coast</title>
      <link>https://example.com/storm?utm_source=x&amp;id=7</link>
      <description>&lt;p&gt;A powerful storm made landfall on the eastern coast early on Monday. Residents fled.&lt;/p&gt;</description>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
      <media:thumbnail url="https://img.example.com/storm.jpg" width="240" height="135"/>
    </item>
    <item>
      <title>Markets rally on earnings</title>
      <link>https://example.com/markets</link>
      <description>Stocks climbed across the board as quarterly earnings beat expectations.</description>
      <pubDate>Mon, 06 Jan 2025 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>   </title>
      <link>https://example.com/untitled</link>
    </item>
  </channel>
</rss>
"""

RDF_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
         xmlns="http://purl.org/rss/1.0/"
         xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel rdf:about="https://rdf.example.org/">
    <title>RDF Wire</title>
    <link>https://rdf.example.org/</link>
    <description>RSS 1.0 headlines</description>
  </channel>
  <item rdf:about="https://rdf.example.org/budget">
    <title>Parliament passes budget</title>
    <link>https://rdf.example.org/budget</link>
    <description>Lawmakers approved the spending plan after a long debate in the chamber.</description>
    <dc:date>2025-01-05T08:30:00Z</dc:date>
  </item>
</rdf:RDF>
"""

ATOM_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Wire</title>
  <id>urn:example:atom</id>
  <updated>2025-01-06T07:00:00Z</updated>
  <entry>
    <title>Chip maker unveils new processor</title>
    <id>urn:example:atom:1</id>
    <link rel="alternate" href="https://atom.example.net/chip?fbclid=abc&amp;ref=home"/>
    <updated>2025-01-06T07:00:00Z</updated>
    <content type="html">&lt;p&gt;&lt;img src="https://cdn.example.net/chip.png"/&gt;The company said the chip doubles battery life for laptops.&lt;/p&gt;</content>
  </entry>
</feed>
"""


@pytest.fixture(autouse=True)
def _clean_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def make_story():
    def _make(
        title: str = "Storm hits coast",
        link: str = "https://example.com/storm",
        source: str = "BBC",
        published_at: Optional[datetime] = NOW,
        tldr: str = "",
        image: str = "",
    ) -> Story:
        return Story(
            id=fingerprint(title, link),
            source=source,
            title=title,
            link=link,
            published_at=published_at,
            tldr=tldr,
            image=image,
        )

    return _make


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rss_feed() -> bytes:
    return RSS_FEED


@pytest.fixture
def rdf_feed() -> bytes:
    return RDF_FEED


@pytest.fixture
def atom_feed() -> bytes:
    return ATOM_FEED
