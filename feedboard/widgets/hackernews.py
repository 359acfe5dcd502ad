"""Hacker News story list."""

from __future__ import annotations

from ..core.specs import WidgetSpec
from ..errors import ConfigError
from ..feeds.hackernews import STORY_TYPES, HnStory, fetch_stories
from ..render.panel import DIM, WHITE
from .base import ListWidget, WidgetKind, option, positive_int


class HackerNewsWidget(ListWidget):
    kind = WidgetKind.HACKERNEWS

    def __init__(self, spec: WidgetSpec, story_type: str = "top", limit: int = 15):
        super().__init__(spec)
        self.story_type = story_type
        self.limit = limit

    @classmethod
    def from_spec(cls, spec):
        story_type = option(spec, "story_type", str, "top")
        if story_type not in STORY_TYPES:
            raise ConfigError(f"hackernews {spec.title!r}: story_type must be one of {', '.join(STORY_TYPES)}")
        return cls(spec, story_type=story_type, limit=positive_int(spec, "limit", 15))

    def refresh(self, ctx):
        return fetch_stories(ctx.session, self.story_type, self.limit, ctx.timeout)

    def item_text(self, item: HnStory) -> str:
        return f"{item.title} {item.by}"

    def item_lines(self, item: HnStory, width: int):
        rank = self.items.index(item) + 1 if item in self.items else 0
        return [
            (f" {rank:>2}. {item.title}", WHITE),
            (f"     ▲{item.score} by {item.by} · {item.comments} comments", DIM),
        ]

    def item_url(self, item: HnStory) -> str:
        return item.url

    def item_discussion_url(self, item: HnStory) -> str:
        return item.discussion_url
