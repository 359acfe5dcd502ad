"""Per-widget refresh scheduler running on the asyncio event loop.

Each refreshing widget gets one refresh unit driven by its own
``loop.call_later`` timer. Blocking ``refresh()`` calls run in a dedicated
thread pool and finish by posting an immutable ``RefreshResult`` to the
loop's inbox; nothing here touches widget or UI state.

At most one refresh is in flight per widget. A timer that fires while the
previous refresh is still running only re-arms itself. Every refresh is bounded
by ``timeout``: when it runs out the unit reports a failure right away, but
keeps its slot until the worker thread actually returns, so a hung widget
holds at most one pool worker and its late result is dropped.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

import requests

from ..companion.model import MIN_SPEED_FACTOR
from ..errors import RefreshError
from .results import Inbox, RefreshResult

logger = logging.getLogger(__name__)

USER_AGENT = "feedboard/0.3"


@dataclass
class RefreshContext:
    """What a widget's ``refresh`` gets to work with."""

    session: requests.Session
    timeout: float
    started_at: float = field(default_factory=time.time)


class Refreshable(Protocol):
    widget_id: str

    def refresh(self, ctx: RefreshContext) -> Any: ...


class _Unit:
    """Internal state of one widget's refresh unit."""

    __slots__ = (
        "widget_id",
        "refresh",
        "interval",
        "handle",
        "task",
        "in_flight",
        "seq",
        "session",
    )

    def __init__(self, widget_id: str, refresh: Callable[[RefreshContext], Any], interval: float):
        self.widget_id = widget_id
        self.refresh = refresh
        self.interval = interval
        self.handle: Optional[asyncio.TimerHandle] = None
        self.task: Optional[asyncio.Task] = None
        self.in_flight = False
        self.seq = 0
        self.session: Optional[requests.Session] = None


def _new_session() -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    return session


class RefreshScheduler:
    """Runs widget refreshes on independent cadences without blocking the loop.

    Usage::

        scheduler = RefreshScheduler(loop, inbox, default_interval=60, timeout=10)
        scheduler.register(widget)
        scheduler.start()       # every unit refreshes once, then on its cadence
        scheduler.request(widget.widget_id)   # manual refresh
        ...
        scheduler.stop()        # in-flight work is abandoned, not awaited
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        inbox: Inbox,
        default_interval: float = 60.0,
        timeout: float = 10.0,
        max_workers: int = 4,
        executor: Optional[Executor] = None,
        session_factory: Callable[[], requests.Session] = _new_session,
    ):
        self._loop = loop
        self._inbox = inbox
        self.default_interval = default_interval
        self.timeout = timeout
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="feedboard-refresh"
        )
        self._session_factory = session_factory
        self._units: dict[str, _Unit] = {}
        self._running = False
        self._speed_factor = 1.0

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, widget: Refreshable, interval: Optional[float] = None) -> None:
        """Register a widget's refresh.

        Args:
            widget: Anything with a ``widget_id`` and a blocking ``refresh(ctx)``.
            interval: Seconds between refreshes; defaults to ``default_interval``.
        """
        if widget.widget_id in self._units:
            raise ValueError(f"Widget '{widget.widget_id}' already registered")
        unit = _Unit(widget.widget_id, widget.refresh, interval or self.default_interval)
        self._units[widget.widget_id] = unit
        if self._running:
            self._dispatch(unit)
            self._schedule(unit)

    @property
    def widget_ids(self) -> list[str]:
        return list(self._units)

    def is_in_flight(self, widget_id: str) -> bool:
        unit = self._units.get(widget_id)
        return unit is not None and unit.in_flight

    @property
    def in_flight_count(self) -> int:
        return sum(1 for u in self._units.values() if u.in_flight)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Refresh every widget once now, then arm the cadence timers."""
        if self._running:
            return
        self._running = True
        for unit in self._units.values():
            self._dispatch(unit)
            self._schedule(unit)
        logger.info("Refresh scheduler started with %d widgets", len(self._units))

    def stop(self) -> None:
        """Stop scheduling. In-flight refreshes are abandoned, never awaited."""
        if not self._running:
            return
        self._running = False
        for unit in self._units.values():
            if unit.handle is not None:
                unit.handle.cancel()
                unit.handle = None
            if unit.task is not None and not unit.task.done():
                unit.task.cancel()
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Refresh scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Manual refresh and speed changes
    # ------------------------------------------------------------------

    def request(self, widget_id: str) -> bool:
        """Refresh one widget now.

        Returns:
            True if a refresh was started, False if one was already in
            flight (the request is dropped, not queued) or the widget is
            unknown.
        """
        unit = self._units.get(widget_id)
        if unit is None or not self._running or unit.in_flight:
            return False
        self._dispatch(unit)
        if unit.handle is not None:
            unit.handle.cancel()
        self._schedule(unit)
        return True

    @property
    def speed_factor(self) -> float:
        return self._speed_factor

    def set_speed_factor(self, factor: float) -> None:
        """Scale every refresh interval by ``factor`` and re-arm the timers."""
        factor = min(1.0, max(MIN_SPEED_FACTOR, factor))
        if factor == self._speed_factor:
            return
        logger.info("Refresh speed factor: %.2f -> %.2f", self._speed_factor, factor)
        self._speed_factor = factor
        if self._running:
            for unit in self._units.values():
                if unit.handle is not None:
                    unit.handle.cancel()
                self._schedule(unit)

    def interval_for(self, widget_id: str) -> float:
        return self._units[widget_id].interval * self._speed_factor

    # ------------------------------------------------------------------
    # Internal scheduling
    # ------------------------------------------------------------------

    def _schedule(self, unit: _Unit) -> None:
        """Arm the next timer for *unit*."""
        unit.handle = self._loop.call_later(unit.interval * self._speed_factor, self._fire, unit)

    def _fire(self, unit: _Unit) -> None:
        """Timer callback: start a refresh unless one is still running, then re-arm."""
        if not self._running:
            return
        if unit.in_flight:
            logger.debug("Refresh of %s still in flight; skipping this tick", unit.widget_id)
        else:
            self._dispatch(unit)
        self._schedule(unit)

    def _dispatch(self, unit: _Unit) -> None:
        unit.in_flight = True
        unit.seq += 1
        if unit.session is None:
            unit.session = self._session_factory()
        unit.task = self._loop.create_task(self._run(unit, unit.seq))

    async def _run(self, unit: _Unit, seq: int) -> None:
        """Run one refresh in the pool and post its result.

        The in-flight slot is released by the pool future's done callback,
        not here: after a timeout the worker thread may still be inside
        ``refresh()``, and the widget must not start a second one until it
        returns.
        """
        ctx = RefreshContext(session=unit.session, timeout=self.timeout)
        future = self._executor.submit(unit.refresh, ctx)
        future.add_done_callback(functools.partial(self._worker_done, unit))
        try:
            payload = await asyncio.wait_for(asyncio.wrap_future(future, loop=self._loop), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Refresh of %s timed out after %.1fs", unit.widget_id, self.timeout)
            result = RefreshResult.failure(unit.widget_id, seq, f"timed out after {self.timeout:g}s")
        except RefreshError as e:
            logger.warning("Refresh of %s failed: %s", unit.widget_id, e)
            result = RefreshResult.failure(unit.widget_id, seq, str(e))
        except Exception as e:
            logger.warning("Refresh of %s failed: %s: %s", unit.widget_id, type(e).__name__, e)
            result = RefreshResult.failure(unit.widget_id, seq, str(e) or type(e).__name__)
        else:
            result = RefreshResult.success(unit.widget_id, seq, payload)

        if self._running:
            self._inbox.post(result)

    def _worker_done(self, unit: _Unit, future: Future) -> None:
        """Pool future callback; runs on the worker thread that finished."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._release, unit)

    def _release(self, unit: _Unit) -> None:
        if unit.in_flight:
            logger.debug("Refresh slot of %s released", unit.widget_id)
        unit.in_flight = False
