"""Archived tweets of an account, from the Wayback Machine."""

from __future__ import annotations

from ..feeds.twitter_archive import ArchivedTweet, fetch_archived_tweets
from ..render.panel import CYAN, DIM
from .base import ListWidget, WidgetKind, option, positive_int


class TwitterArchiveWidget(ListWidget):
    kind = WidgetKind.TWITTER_ARCHIVE

    def __init__(self, spec, query: str, limit: int = 20):
        super().__init__(spec)
        self.query = query
        self.limit = limit

    @classmethod
    def from_spec(cls, spec):
        return cls(spec, option(spec, "query", str), limit=positive_int(spec, "limit", 20))

    def refresh(self, ctx):
        return fetch_archived_tweets(ctx.session, self.query, self.limit, ctx.timeout)

    def item_text(self, item: ArchivedTweet) -> str:
        return f"{item.author or ''} {item.original_url}"

    def item_lines(self, item: ArchivedTweet, width: int):
        return [
            (f" {item.author or '?'}  {item.date_display}", CYAN),
            (f"   {item.archive_url}", DIM),
        ]

    def item_url(self, item: ArchivedTweet) -> str:
        return item.archive_url
