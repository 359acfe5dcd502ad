"""GitHub notification inbox."""

from __future__ import annotations

import os
from typing import Optional

import requests

from ..errors import ConfigError, RefreshError
from ..feeds.github import GithubNotification, fetch_notifications
from ..render.panel import DIM, WHITE, YELLOW
from .base import ListWidget, WidgetKind, option, positive_int

TOKEN_ENV = "GITHUB_TOKEN"


class GithubWidget(ListWidget):
    kind = WidgetKind.GITHUB

    def __init__(self, spec, token: str, limit: int = 20):
        super().__init__(spec)
        self._token = token
        self.limit = limit

    @classmethod
    def from_spec(cls, spec):
        token = option(spec, "token", str, "") or os.environ.get(TOKEN_ENV, "")
        if not token:
            raise ConfigError(f"github {spec.title!r}: set the 'token' option or ${TOKEN_ENV}")
        return cls(spec, token, limit=positive_int(spec, "limit", 20))

    def refresh(self, ctx):
        try:
            return fetch_notifications(ctx.session, self._token, self.limit, ctx.timeout)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code in (401, 403):
                raise RefreshError(f"token rejected (HTTP {e.response.status_code})") from e
            raise

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.items if n.unread)

    @property
    def display_title(self) -> str:
        title = super().display_title
        if self.unread_count:
            title = f"{title} ({self.unread_count})"
        return title

    def item_text(self, item: GithubNotification) -> str:
        return f"{item.title} {item.repo} {item.reason}"

    def item_lines(self, item: GithubNotification, width: int):
        marker = "●" if item.unread else " "
        return [
            (f" {marker} {item.title}", YELLOW if item.unread else WHITE),
            (f"   {item.repo} · {item.kind} · {item.reason}", DIM),
        ]

    def item_url(self, item: GithubNotification) -> Optional[str]:
        return item.url or None
