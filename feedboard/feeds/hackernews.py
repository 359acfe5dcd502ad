"""Hacker News stories via the public Firebase API."""

from __future__ import annotations

from dataclasses import dataclass

import requests

HN_API = "https://hacker-news.firebaseio.com/v0"
STORY_TYPES = ("top", "new", "best", "ask", "show", "job")


@dataclass
class HnStory:
    id: int
    title: str
    url: str
    score: int
    by: str
    comments: int

    @property
    def discussion_url(self) -> str:
        return f"https://news.ycombinator.com/item?id={self.id}"


def fetch_story_ids(session: requests.Session, story_type: str = "top", timeout: float = 10) -> list[int]:
    if story_type not in STORY_TYPES:
        raise ValueError(f"unknown story type {story_type!r}")
    response = session.get(f"{HN_API}/{story_type}stories.json", timeout=timeout)
    response.raise_for_status()
    ids = response.json()
    if not isinstance(ids, list):
        raise ValueError("story list is not a JSON array")
    return ids


def fetch_item(session: requests.Session, item_id: int, timeout: float = 10) -> HnStory | None:
    """Fetch one story. Returns None for deleted or dead items."""
    response = session.get(f"{HN_API}/item/{item_id}.json", timeout=timeout)
    response.raise_for_status()
    data = response.json()
    if not data or data.get("deleted") or data.get("dead"):
        return None
    return HnStory(
        id=data["id"],
        title=data.get("title", ""),
        url=data.get("url") or f"https://news.ycombinator.com/item?id={data['id']}",
        score=data.get("score", 0),
        by=data.get("by", ""),
        comments=data.get("descendants", 0),
    )


def fetch_stories(
    session: requests.Session, story_type: str = "top", limit: int = 10, timeout: float = 10
) -> list[HnStory]:
    """Fetch up to ``limit`` live stories of the given list, in rank order."""
    stories = []
    for item_id in fetch_story_ids(session, story_type, timeout)[:limit]:
        story = fetch_item(session, item_id, timeout)
        if story is not None:
            stories.append(story)
    return stories
