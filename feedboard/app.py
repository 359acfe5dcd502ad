"""The dashboard: one asyncio loop that owns widgets, layout, companion and screen.

Each iteration polls for a key (on a dedicated input thread, so refresh
timers keep firing meanwhile), drains refresh results, advances widget
timers and redraws when something changed or the terminal was resized.
"""

from __future__ import annotations

import asyncio
import logging
import time
import webbrowser
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Protocol

from .companion.engine import CompanionEngine, UsageEvent
from .companion.store import CompanionStore
from .config import DashboardConfig
from .core.layout import Layout, compute_layout, resolve_grid
from .core.results import Inbox
from .core.scheduler import RefreshScheduler
from .render.panel import DIM, GRAY, RED, WHITE, YELLOW, Panel
from .widgets import CreatureWidget, ListWidget, Widget, build_widgets

logger = logging.getLogger(__name__)

# How long a warning stays in the footer
WARNING_SECONDS = 30.0


class Screen(Protocol):
    def size(self) -> tuple[int, int]: ...

    def read_key(self, timeout: float) -> Optional[str]: ...

    def draw(self, frame: Panel) -> None: ...

    def invalidate(self) -> None: ...


class WarningBanner(logging.Handler):
    """Remembers the latest WARNING-or-worse record for the footer."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        super().__init__(level=logging.WARNING)
        self._clock = clock
        self.message: Optional[str] = None
        self.at = 0.0

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        self.at = self._clock()

    def current(self) -> Optional[str]:
        if self.message and self._clock() - self.at < WARNING_SECONDS:
            return self.message
        return None


class Dashboard:
    """Wires config, widgets, scheduler and companion to a screen.

    Usage::

        with TerminalSession() as screen:
            asyncio.run(Dashboard(config, screen).run())
    """

    def __init__(
        self,
        config: DashboardConfig,
        screen: Screen,
        widgets: Optional[list[Widget]] = None,
        store: Optional[CompanionStore] = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler_factory: Optional[Callable[..., RefreshScheduler]] = None,
        url_opener: Callable[[str], bool] = webbrowser.open,
    ):
        self.config = config
        self.screen = screen
        self._clock = clock
        self._scheduler_factory = scheduler_factory or RefreshScheduler
        self._url_opener = url_opener

        self.banner = WarningBanner(clock)
        self._log_root = logging.getLogger("feedboard")
        self._log_root.addHandler(self.banner)

        if widgets is None:
            widgets = self._build_widgets()
        self.widgets = sorted(widgets, key=lambda w: (w.spec.position.row, w.spec.position.col))
        self._by_id = {w.widget_id: w for w in self.widgets}

        self.store = store or CompanionStore(config.companion.path, config.companion.flush_interval)
        companion = self.store.load(config.companion.species, config.companion.name)
        self.engine = CompanionEngine(companion, on_flush=self.store.request_flush, on_change=self.store.mark_dirty)
        for widget in self.widgets:
            if isinstance(widget, CreatureWidget):
                widget.attach(self.engine)

        self.inbox = Inbox()
        self.scheduler: Optional[RefreshScheduler] = None
        self._input_executor: Optional[ThreadPoolExecutor] = None
        self.running = False
        self.focus_index = 0
        self._layout: Optional[Layout] = None
        self._size: Optional[tuple[int, int]] = None
        self._last_tick = clock()
        self._dirty = True
        self._closed = False
        if self.widgets:
            self.widgets[0].focused = True

    def _build_widgets(self) -> list[Widget]:
        specs, _ = self.config.widget_specs()
        kept, _ = resolve_grid(specs)
        widgets, _ = build_widgets(kept)
        return widgets

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    @property
    def focused(self) -> Optional[Widget]:
        if not self.widgets:
            return None
        return self.widgets[self.focus_index]

    def move_focus(self, delta: int) -> None:
        if not self.widgets:
            return
        self.widgets[self.focus_index].focused = False
        self.focus_index = (self.focus_index + delta) % len(self.widgets)
        self.widgets[self.focus_index].focused = True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        self.scheduler = self._scheduler_factory(
            loop,
            self.inbox,
            default_interval=self.config.refresh_interval,
            timeout=self.config.refresh_timeout,
            max_workers=self.config.max_workers,
        )
        for widget in self.widgets:
            if widget.refreshes:
                self.scheduler.register(widget, widget.spec.refresh_interval)
        self.scheduler.set_speed_factor(self.engine.refresh_speed_factor())
        self.scheduler.start()
        self._input_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="feedboard-input")
        self.running = True
        logger.info("Dashboard started with %d widgets", len(self.widgets))

    async def run(self) -> None:
        """Run until quit. Always shuts down cleanly, even on TerminalError."""
        loop = asyncio.get_running_loop()
        self.start(loop)
        try:
            while self.running:
                await self.step()
        finally:
            self.shutdown()

    async def step(self) -> None:
        """One loop iteration."""
        loop = asyncio.get_running_loop()
        key = await loop.run_in_executor(self._input_executor, self.screen.read_key, self.config.input_timeout)
        changed = False
        if key is not None:
            changed |= self.handle_key(key)
            if not self.running:
                return

        changed |= self.apply_results()

        now = self._clock()
        elapsed, self._last_tick = now - self._last_tick, now
        for widget in self.widgets:
            changed |= widget.tick(elapsed)

        size = self.screen.size()
        if size != self._size:
            self._size = size
            self._layout = None
            self.screen.invalidate()
            changed = True

        if changed or self._dirty:
            self.draw()
        self.store.maybe_flush(self.engine.companion)

    def shutdown(self) -> None:
        """Stop refreshes and input, then write the companion one last time."""
        if self._closed:
            return
        self._closed = True
        self.running = False
        if self.scheduler is not None:
            self.scheduler.stop()
        self.inbox.close()
        if self._input_executor is not None:
            self._input_executor.shutdown(wait=False, cancel_futures=True)
        if self.store.dirty:
            self.store.flush(self.engine.companion)
        self._log_root.removeHandler(self.banner)
        logger.info("Dashboard stopped")

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def handle_key(self, key: str) -> bool:
        """Route one key. Returns True if anything visible changed."""
        self.engine.record(UsageEvent.KEYPRESS)
        focused = self.focused

        # A modal widget sees every key first; nothing global fires while it is open
        if focused is not None and focused.is_modal:
            focused.handle_input(key)
            self._after_companion_input()
            return True

        action = self.config.keys.action_for(key)
        if action == "quit":
            self.running = False
            return False
        if action == "focus_next":
            self.move_focus(1)
            return True
        if action == "focus_prev":
            self.move_focus(-1)
            return True
        if action in ("up", "down") and focused is not None:
            if focused.scroll(-1 if action == "up" else 1):
                self.engine.record(UsageEvent.FEED_INTERACTION)
                return True
        if action == "refresh" and focused is not None and focused.refreshes:
            return self.request_refresh(focused)
        if action in ("open", "open_discussion") and isinstance(focused, ListWidget):
            url = focused.selected_url if action == "open" else focused.selected_discussion_url
            if url and self.open_url(url):
                self.engine.record(UsageEvent.FEED_INTERACTION)
                return True

        if focused is not None and focused.handle_input(key):
            if isinstance(focused, ListWidget):
                self.engine.record(UsageEvent.FEED_INTERACTION)
            self._after_companion_input()
            return True
        return False

    def request_refresh(self, widget: Widget) -> bool:
        if self.scheduler is None:
            return False
        if self.scheduler.request(widget.widget_id):
            self.engine.record(UsageEvent.MANUAL_REFRESH)
            logger.debug("Manual refresh of %s", widget.widget_id)
            return True
        return False

    def open_url(self, url: str) -> bool:
        """Hand a link to the system browser. Returns True if one accepted it."""
        try:
            opened = self._url_opener(url)
        except webbrowser.Error as e:
            logger.warning("Could not open %s: %s", url, e)
            return False
        if not opened:
            logger.warning("No browser available to open %s", url)
        return bool(opened)

    def _after_companion_input(self) -> None:
        # Skill purchases can change the refresh cadence
        if self.scheduler is not None:
            self.scheduler.set_speed_factor(self.engine.refresh_speed_factor())

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def apply_results(self) -> bool:
        changed = False
        for result in self.inbox.drain():
            widget = self._by_id.get(result.widget_id)
            if widget is None:
                logger.debug("Result for unknown widget %s dropped", result.widget_id)
                continue
            changed |= widget.apply_result(result)
        return changed

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    @property
    def layout(self) -> Layout:
        if self._layout is None:
            width, height = self._size or self.screen.size()
            self._layout = compute_layout([w.spec for w in self.widgets], width, max(0, height - 1))
        return self._layout

    def compose(self) -> Panel:
        """Composite every widget and the footer into one full-screen frame."""
        width, height = self._size or self.screen.size()
        frame = Panel(width, height)
        if not self.widgets:
            frame.put_text(1, 1, "No widgets configured. Edit your config.yaml to add some.", DIM)

        for placement in self.layout.placements:
            widget = self._by_id[placement.spec.widget_id]
            outer, inner = placement.outer, placement.inner
            frame.box(
                outer.x, outer.y, outer.width, outer.height,
                title=widget.display_title,
                color=widget.border_color,
                focused=widget.focused,
            )
            if inner.width <= 0 or inner.height <= 0:
                continue
            try:
                content = widget.render(inner)
            except Exception:
                logger.exception("Rendering %s failed", widget.widget_id)
                content = Panel(inner.width, inner.height)
                content.put_text(0, 0, "render failed", RED)
            frame.blit(inner.x, inner.y, content)

        self._draw_footer(frame)
        return frame

    def draw(self) -> None:
        self.screen.draw(self.compose())
        self._dirty = False

    def _draw_footer(self, frame: Panel) -> None:
        y = frame.height - 1
        if y < 0:
            return
        frame.fill(0, y, frame.width, 1)
        x = 0
        focused = self.focused
        if focused is not None:
            x += frame.put_text(x, y, f" {focused.title} ", WHITE)
        warning = self.banner.current()
        if warning:
            x += frame.put_text(x, y, f"│ {warning} ", YELLOW)
        hints = "q quit · tab focus · r refresh"
        if focused is not None and focused.hints:
            hints = f"{focused.hints} · {hints}"
        frame.put_text(x, y, f"│ {hints}", GRAY)
