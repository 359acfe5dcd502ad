"""RSS and Atom feed reader."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import feedparser
import requests

logger = logging.getLogger(__name__)


@dataclass
class FeedItem:
    title: str
    link: str
    source: str
    published: Optional[datetime] = None

    @property
    def age_label(self) -> str:
        if self.published is None:
            return ""
        return self.published.astimezone().strftime("%b %d %H:%M")


def _entry_date(entry) -> Optional[datetime]:
    # feedparser normalizes every date format it knows to a UTC struct_time
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


def parse_feed(content: bytes, fallback_source: str = "") -> list[FeedItem]:
    """Parse an RSS (0.9x, 1.0/RDF, 2.0) or Atom document.

    Raises:
        ValueError: If the document is too broken to yield any entries.
    """
    parsed = feedparser.parse(content)
    if parsed.bozo and not parsed.entries:
        raise ValueError(f"malformed feed: {parsed.get('bozo_exception')}")
    if not parsed.version and not parsed.entries:
        raise ValueError("not an RSS or Atom feed")

    source = parsed.feed.get("title", "").strip() or fallback_source
    return [
        FeedItem(
            title=entry.get("title", "").strip(),
            link=entry.get("link", ""),
            source=source,
            published=_entry_date(entry),
        )
        for entry in parsed.entries
    ]


def fetch_feed(session: requests.Session, url: str, timeout: float = 10) -> list[FeedItem]:
    response = session.get(url, timeout=timeout)
    response.raise_for_status()
    return parse_feed(response.content, fallback_source=url)


def merge_feeds(feeds: list[list[FeedItem]], limit: int = 30) -> list[FeedItem]:
    """Merge several feeds newest first; undated items go last in feed order."""
    merged = [item for feed in feeds for item in feed]
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    merged.sort(key=lambda i: i.published or epoch, reverse=True)
    return merged[:limit]


def fetch_feeds(session: requests.Session, urls: list[str], limit: int = 30, timeout: float = 10) -> list[FeedItem]:
    """Fetch and merge every feed. A failing feed is skipped unless all fail."""
    feeds = []
    errors = []
    for url in urls:
        try:
            feeds.append(fetch_feed(session, url, timeout))
        except (requests.RequestException, ValueError) as e:
            logger.warning("Feed %s failed: %s", url, e)
            errors.append(e)
    if urls and len(errors) == len(urls):
        raise errors[0]
    return merge_feeds(feeds, limit)
