"""Merged RSS/Atom headlines."""

from __future__ import annotations

from typing import Optional

from ..errors import ConfigError
from ..feeds.rss import FeedItem, fetch_feeds
from ..render.panel import DIM, WHITE
from .base import ListWidget, WidgetKind, option, positive_int


class RssWidget(ListWidget):
    kind = WidgetKind.RSS

    def __init__(self, spec, feeds: list[str], limit: int = 30):
        super().__init__(spec)
        self.feeds = feeds
        self.limit = limit

    @classmethod
    def from_spec(cls, spec):
        feeds = option(spec, "feeds", (list, tuple))
        if not feeds or not all(isinstance(f, str) and f for f in feeds):
            raise ConfigError(f"rss {spec.title!r}: feeds must be a non-empty list of URLs")
        return cls(spec, list(feeds), limit=positive_int(spec, "limit", 30))

    def refresh(self, ctx):
        return fetch_feeds(ctx.session, self.feeds, self.limit, ctx.timeout)

    def item_text(self, item: FeedItem) -> str:
        return f"{item.title} {item.source}"

    def item_lines(self, item: FeedItem, width: int):
        meta = " · ".join(part for part in (item.source, item.age_label) if part)
        return [(f" {item.title}", WHITE), (f"   {meta}", DIM)]

    def item_url(self, item: FeedItem) -> Optional[str]:
        return item.link or None
