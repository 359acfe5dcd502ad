"""Refresh results and the loop's inbox."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Iterator, Optional


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one refresh, tagged success or failure.

    ``seq`` increases strictly per widget; the loop discards any result whose
    sequence number is not newer than the one it last applied.
    """

    widget_id: str
    seq: int
    payload: Any = None
    error: Optional[str] = None
    failed_at: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, widget_id: str, seq: int, payload: Any) -> "RefreshResult":
        return cls(widget_id=widget_id, seq=seq, payload=payload)

    @classmethod
    def failure(cls, widget_id: str, seq: int, message: str, at: Optional[float] = None) -> "RefreshResult":
        return cls(
            widget_id=widget_id,
            seq=seq,
            error=message or "refresh failed",
            failed_at=at if at is not None else time.time(),
        )


class Inbox:
    """Ordered queue of results, written by the scheduler and drained by the loop.

    Both sides run on the event loop thread, so no locking is needed. Once
    closed, posts are silently dropped.
    """

    def __init__(self):
        self._items: deque[RefreshResult] = deque()
        self._closed = False

    def post(self, result: RefreshResult) -> bool:
        if self._closed:
            return False
        self._items.append(result)
        return True

    def drain(self) -> Iterator[RefreshResult]:
        """Yield pending results in arrival order."""
        while self._items and not self._closed:
            yield self._items.popleft()

    def close(self) -> None:
        self._closed = True
        self._items.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._items)
