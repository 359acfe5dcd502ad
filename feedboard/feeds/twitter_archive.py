"""Archived tweets listed through the Wayback Machine CDX API."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

import requests

CDX_URL = "https://web.archive.org/cdx/search/cdx"
ARCHIVE_URL = "https://web.archive.org/web/{timestamp}/{original}"

_TWEET_ID = re.compile(r"/status/(\d[^?%#\"]*)")
_AUTHOR = re.compile(r"^(?:https?://)?(?:www\.)?(?:twitter\.com|x\.com)/([^/]+)")


@dataclass
class ArchivedTweet:
    timestamp: str
    original_url: str
    archive_url: str
    author: Optional[str]
    date_display: str


def status_query(query: str) -> str:
    """Narrow an account or site query to tweet URLs."""
    if "/status" in query:
        return query
    return query.rstrip("*").rstrip("/") + "/status/*"


def format_wayback_timestamp(ts: str) -> str:
    """``20230615143022`` -> ``2023-06-15 14:30``; short stamps are returned unchanged."""
    if len(ts) < 8:
        return ts
    date = f"{ts[0:4]}-{ts[4:6]}-{ts[6:8]}"
    if len(ts) >= 12:
        date += f" {ts[8:10]}:{ts[10:12]}"
    return date


def extract_author_from_url(url: str) -> Optional[str]:
    """``https://twitter.com/someone/status/1`` -> ``@someone``."""
    match = _AUTHOR.match(url)
    if not match:
        return None
    return f"@{match.group(1)}"


def is_tweet_url(url: str) -> bool:
    return _TWEET_ID.search(url) is not None


def fetch_archived_tweets(
    session: requests.Session, query: str, limit: int = 20, timeout: float = 15
) -> list[ArchivedTweet]:
    response = session.get(
        CDX_URL,
        params={
            "url": status_query(query),
            "output": "json",
            # First row is the header
            "limit": limit + 1,
            "fl": "timestamp,original,statuscode",
            "filter": "statuscode:200",
            "collapse": "urlkey",
        },
        timeout=timeout,
    )
    response.raise_for_status()
    if not response.text.strip():
        return []
    rows = response.json()
    if not isinstance(rows, list):
        raise ValueError("CDX payload is not a JSON array")

    tweets = []
    for row in rows[1:]:
        if len(row) < 3 or not is_tweet_url(row[1]):
            continue
        timestamp, original = row[0], row[1]
        tweets.append(
            ArchivedTweet(
                timestamp=timestamp,
                original_url=original,
                archive_url=ARCHIVE_URL.format(timestamp=timestamp, original=original),
                author=extract_author_from_url(original),
                date_display=format_wayback_timestamp(timestamp),
            )
        )
        if len(tweets) >= limit:
            break
    return tweets
