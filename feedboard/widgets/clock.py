"""World clock with a stopwatch."""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import ConfigError
from ..render.panel import CYAN, DIM, GREEN, WHITE, YELLOW
from .base import Widget, WidgetKind, option

LOCAL = "local"


class StopwatchState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class Stopwatch:
    """Start/pause/reset stopwatch over a monotonic clock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.state = StopwatchState.STOPPED
        self._started_at: Optional[float] = None
        self._banked = 0.0

    def toggle(self) -> None:
        """Start when stopped or paused, pause when running."""
        if self.state is StopwatchState.RUNNING:
            self._banked += self._clock() - self._started_at
            self._started_at = None
            self.state = StopwatchState.PAUSED
        else:
            self._started_at = self._clock()
            self.state = StopwatchState.RUNNING

    def reset(self) -> None:
        self.state = StopwatchState.STOPPED
        self._started_at = None
        self._banked = 0.0

    @property
    def elapsed(self) -> float:
        if self.state is StopwatchState.RUNNING:
            return self._banked + self._clock() - self._started_at
        return self._banked


def format_duration(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 3600:02d}:{total % 3600 // 60:02d}:{total % 60:02d}"


class ClockWidget(Widget):
    kind = WidgetKind.CLOCK
    refreshes = False

    START_KEY = "s"
    RESET_KEY = "x"

    def __init__(self, spec, timezones: list[str], stopwatch: Optional[Stopwatch] = None,
                 now: Callable[[Optional[ZoneInfo]], datetime] = datetime.now):
        super().__init__(spec)
        self.timezones = timezones
        self._zones = [None if tz == LOCAL else ZoneInfo(tz) for tz in timezones]
        self.stopwatch = stopwatch or Stopwatch()
        self._now = now
        self._shown = ""

    @classmethod
    def from_spec(cls, spec):
        timezones = option(spec, "timezones", (list, tuple), [LOCAL])
        for tz in timezones:
            if not isinstance(tz, str):
                raise ConfigError(f"clock {spec.title!r}: timezones must be strings")
            if tz == LOCAL:
                continue
            try:
                ZoneInfo(tz)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigError(f"clock {spec.title!r}: unknown timezone {tz!r}") from e
        return cls(spec, list(timezones) or [LOCAL])

    def handle_input(self, key: str) -> bool:
        if key == self.START_KEY:
            self.stopwatch.toggle()
            return True
        if key == self.RESET_KEY:
            self.stopwatch.reset()
            return True
        return False

    def tick(self, elapsed: float) -> bool:
        # Redraw only when a visible second changes
        shown = self._snapshot()
        if shown == self._shown:
            return False
        self._shown = shown
        return True

    def _snapshot(self) -> str:
        return self._now(self._zones[0]).strftime("%H:%M:%S") + format_duration(self.stopwatch.elapsed)

    @property
    def hints(self) -> str:
        return "s start/pause · x reset"

    def draw(self, panel):
        y = 0
        for name, zone in zip(self.timezones, self._zones):
            now = self._now(zone)
            label = "Local" if zone is None else name.split("/")[-1].replace("_", " ")
            panel.put_text(0, y, f"{label:<14}", DIM)
            panel.put_text(15, y, now.strftime("%H:%M:%S"), WHITE)
            panel.put_text(24, y, now.strftime("%a %d %b"), DIM)
            y += 1

        y += 1
        color = {
            StopwatchState.RUNNING: GREEN,
            StopwatchState.PAUSED: YELLOW,
            StopwatchState.STOPPED: CYAN,
        }[self.stopwatch.state]
        panel.put_text(0, y, f"⏱ {format_duration(self.stopwatch.elapsed)}  {self.stopwatch.state.value}", color)
