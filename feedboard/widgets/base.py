"""Widget base classes shared by every dashboard pane.

A widget owns all of its state. The dashboard loop is the only caller of
``apply_result``, ``handle_input``, ``tick`` and ``render``; the scheduler's
worker threads only ever call ``refresh``, which must not touch ``self``
beyond reading configuration.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, ClassVar, Optional

from ..core.layout import Rect
from ..core.results import RefreshResult
from ..core.scheduler import RefreshContext
from ..core.specs import WidgetSpec
from ..errors import ConfigError
from ..keys import KEY_BACKSPACE, KEY_ENTER, KEY_ESCAPE, is_printable
from ..render.panel import CYAN, DIM, GRAY, RED, WHITE, YELLOW, Panel

logger = logging.getLogger(__name__)


class WidgetKind(str, Enum):
    HACKERNEWS = "hackernews"
    STOCKS = "stocks"
    RSS = "rss"
    GITHUB = "github"
    TWITTER_ARCHIVE = "twitter_archive"
    CLOCK = "clock"
    PIXELART = "pixelart"
    CREATURE = "creature"


_MISSING = object()


def option(spec: WidgetSpec, name: str, kind: type | tuple[type, ...], default: Any = _MISSING) -> Any:
    """Read and type-check one entry of a spec's options bag.

    Raises:
        ConfigError: If the option is required and missing, or has the wrong type.
    """
    if name not in spec.options:
        if default is _MISSING:
            raise ConfigError(f"{spec.kind} {spec.title!r}: missing required option '{name}'")
        return default
    value = spec.options[name]
    if isinstance(value, bool) and bool not in (kind if isinstance(kind, tuple) else (kind,)):
        raise ConfigError(f"{spec.kind} {spec.title!r}: option '{name}' has the wrong type")
    if not isinstance(value, kind):
        raise ConfigError(f"{spec.kind} {spec.title!r}: option '{name}' has the wrong type")
    return value


def positive_int(spec: WidgetSpec, name: str, default: int) -> int:
    value = option(spec, name, int, default)
    if value <= 0:
        raise ConfigError(f"{spec.kind} {spec.title!r}: {name} must be positive")
    return value


class Widget:
    """One dashboard pane.

    Subclasses set ``kind``, implement ``draw`` and, if they have a data
    source, ``refresh``. Widgets without one set ``refreshes = False`` and are
    never registered with the scheduler.
    """

    kind: ClassVar[WidgetKind]
    refreshes: ClassVar[bool] = True

    def __init__(self, spec: WidgetSpec):
        self.spec = spec
        self.widget_id = spec.widget_id
        self.title = spec.title
        self.payload: Any = None
        self.error: Optional[str] = None
        self.error_at: Optional[float] = None
        self.applied_seq = 0
        self.focused = False

    @classmethod
    def from_spec(cls, spec: WidgetSpec) -> "Widget":
        """Validate the options bag and build the widget. Overridden per variant."""
        return cls(spec)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, ctx: RefreshContext) -> Any:
        """Fetch a fresh payload. Runs on a worker thread; may block."""
        raise NotImplementedError

    def apply_result(self, result: RefreshResult) -> bool:
        """Apply a refresh result unless it is older than what is showing.

        A failure keeps the last good payload (stale-but-available).

        Returns:
            True if the widget's state changed.
        """
        if result.seq <= self.applied_seq:
            logger.debug("Discarding stale result %d for %s (applied %d)", result.seq, self.widget_id, self.applied_seq)
            return False
        self.applied_seq = result.seq
        if result.ok:
            self.payload = result.payload
            self.error = None
            self.error_at = None
            self.on_payload(result.payload)
        else:
            self.error = result.error
            self.error_at = result.failed_at
        return True

    def on_payload(self, payload: Any) -> None:
        """Hook for widgets that derive state from a new payload."""

    # ------------------------------------------------------------------
    # Input and time
    # ------------------------------------------------------------------

    @property
    def is_modal(self) -> bool:
        return False

    def handle_input(self, key: str) -> bool:
        return False

    def scroll(self, delta: int) -> bool:
        return False

    def tick(self, elapsed: float) -> bool:
        return False

    @property
    def hints(self) -> str:
        return ""

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @property
    def display_title(self) -> str:
        return f"! {self.title}" if self.error else self.title

    @property
    def border_color(self) -> int:
        if self.error:
            return RED
        return CYAN if self.focused else GRAY

    def render(self, area: Rect) -> Panel:
        """Draw the pane's content for an inner area of the given size."""
        panel = Panel(area.width, area.height)
        if self.refreshes and self.payload is None:
            if self.error:
                panel.put_text(0, 0, f"Error: {self.error}", RED)
            else:
                panel.put_text(0, 0, "Loading…", DIM)
            return panel
        self.draw(panel)
        if self.error and panel.height > 1:
            panel.fill(0, panel.height - 1, panel.width, 1)
            panel.put_text(0, panel.height - 1, f"stale: {self.error}", YELLOW)
        return panel

    def draw(self, panel: Panel) -> None:
        raise NotImplementedError


class ListWidget(Widget):
    """A scrollable list of feed items with a ``/`` filter prompt.

    While the prompt is open the widget is modal and consumes every key.
    Subclasses provide ``items_from``, ``item_lines`` and ``item_text``, and
    ``item_url`` / ``item_discussion_url`` when entries link somewhere.
    """

    FILTER_KEY = "/"

    def __init__(self, spec: WidgetSpec):
        super().__init__(spec)
        self.items: list = []
        self.selected = 0
        self.filter_text = ""
        self._prompt: Optional[str] = None

    def on_payload(self, payload: Any) -> None:
        self.items = list(self.items_from(payload))
        self.selected = min(self.selected, max(0, len(self.visible_items()) - 1))

    def items_from(self, payload: Any) -> list:
        return payload

    def item_text(self, item: Any) -> str:
        return str(item)

    def item_lines(self, item: Any, width: int) -> list[tuple[str, int]]:
        return [(self.item_text(item), WHITE)]

    def item_url(self, item: Any) -> Optional[str]:
        return None

    def item_discussion_url(self, item: Any) -> Optional[str]:
        return None

    def visible_items(self) -> list:
        if not self.filter_text:
            return self.items
        needle = self.filter_text.lower()
        return [i for i in self.items if needle in self.item_text(i).lower()]

    @property
    def selected_item(self) -> Any:
        visible = self.visible_items()
        return visible[self.selected] if 0 <= self.selected < len(visible) else None

    @property
    def selected_url(self) -> Optional[str]:
        item = self.selected_item
        return self.item_url(item) if item is not None else None

    @property
    def selected_discussion_url(self) -> Optional[str]:
        item = self.selected_item
        return self.item_discussion_url(item) if item is not None else None

    # ------------------------------------------------------------------

    @property
    def is_modal(self) -> bool:
        return self._prompt is not None

    def scroll(self, delta: int) -> bool:
        visible = self.visible_items()
        if not visible:
            return False
        new = max(0, min(len(visible) - 1, self.selected + delta))
        if new == self.selected:
            return False
        self.selected = new
        return True

    def handle_input(self, key: str) -> bool:
        if self._prompt is None:
            if key == self.FILTER_KEY:
                self._prompt = self.filter_text
                return True
            return False

        if key == KEY_ESCAPE:
            self._prompt = None
        elif key == KEY_ENTER:
            self.filter_text = self._prompt.strip()
            self._prompt = None
            self.selected = 0
        elif key == KEY_BACKSPACE:
            self._prompt = self._prompt[:-1]
        elif is_printable(key):
            self._prompt += key
        return True

    @property
    def hints(self) -> str:
        if self.is_modal:
            return "type to filter · enter apply · esc cancel"
        if self.selected_url:
            return "/ filter · enter open"
        return "/ filter"

    @property
    def display_title(self) -> str:
        title = super().display_title
        if self.filter_text:
            title = f"{title} [/{self.filter_text}]"
        return title

    def draw(self, panel: Panel) -> None:
        y = 0
        bottom = panel.height - (1 if self._prompt is not None else 0)
        visible = self.visible_items()
        if not visible:
            panel.put_text(0, 0, "No items" if not self.filter_text else "No matches", DIM)

        # Keep the selection on screen: start from the first item whose block fits
        heights = [len(self.item_lines(item, panel.width)) for item in visible]
        start = 0
        while start < self.selected and sum(heights[start : self.selected + 1]) > bottom:
            start += 1

        for index in range(start, len(visible)):
            lines = self.item_lines(visible[index], panel.width)
            if y + len(lines) > bottom:
                break
            for line_no, (text, color) in enumerate(lines):
                if index == self.selected and self.focused:
                    panel.fill(0, y, panel.width, 1, " ", color)
                    if line_no == 0 and text.startswith(" "):
                        text = "▸" + text[1:]
                    panel.put_text(0, y, text, YELLOW)
                else:
                    panel.put_text(0, y, text, color)
                y += 1

        if self._prompt is not None:
            panel.fill(0, panel.height - 1, panel.width, 1)
            panel.put_text(0, panel.height - 1, f"/{self._prompt}▏", CYAN)


WidgetFactory = Callable[[WidgetSpec], Widget]
