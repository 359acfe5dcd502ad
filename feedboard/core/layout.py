"""Grid layout: widget specs + terminal size -> non-overlapping rectangles.

Everything here is a pure function of its inputs. The dashboard calls
``compute_layout`` again on every resize instead of caching results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .specs import GridPosition, WidgetSpec

logger = logging.getLogger(__name__)

# Cells reserved around each pane for its border
BORDER = 1


@dataclass(frozen=True)
class Rect:
    """Screen rectangle in character cells."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def shrink(self, margin: int) -> "Rect":
        """Rect inset by ``margin`` on every side (never negative)."""
        width = max(0, self.width - 2 * margin)
        height = max(0, self.height - 2 * margin)
        return Rect(self.x + min(margin, self.width), self.y + min(margin, self.height), width, height)

    def overlaps(self, other: "Rect") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


@dataclass(frozen=True)
class Placement:
    """Where one widget spec lands on screen."""

    spec: WidgetSpec
    outer: Rect
    inner: Rect


@dataclass(frozen=True)
class Layout:
    rows: int
    cols: int
    placements: tuple[Placement, ...]
    dropped: tuple[WidgetSpec, ...] = ()

    def placement_for(self, widget_id: str) -> Placement | None:
        for p in self.placements:
            if p.spec.widget_id == widget_id:
                return p
        return None


def grid_extent(specs: Sequence[WidgetSpec]) -> tuple[int, int]:
    """(rows, cols) implied by the specs; (0, 0) for an empty list."""
    if not specs:
        return 0, 0
    return (
        max(s.position.row for s in specs) + 1,
        max(s.position.col for s in specs) + 1,
    )


def _split(total: int, parts: int) -> list[tuple[int, int]]:
    """Split ``total`` cells into ``parts`` (offset, size) runs.

    Every run gets ``total // parts``; the remainder goes to the last run.
    """
    if parts <= 0:
        return []
    base = total // parts
    runs = [(i * base, base) for i in range(parts)]
    last_offset = (parts - 1) * base
    runs[-1] = (last_offset, total - last_offset)
    return runs


def grid_cells(rows: int, cols: int, width: int, height: int) -> dict[GridPosition, Rect]:
    """Rectangle for every cell of a rows x cols grid over width x height."""
    cells = {}
    for row, (y, h) in enumerate(_split(height, rows)):
        for col, (x, w) in enumerate(_split(width, cols)):
            cells[GridPosition(row, col)] = Rect(x, y, w, h)
    return cells


def resolve_grid(specs: Sequence[WidgetSpec]) -> tuple[list[WidgetSpec], list[WidgetSpec]]:
    """Drop specs that lose a grid-position conflict.

    The later-declared spec wins. Survivors keep their declaration order.

    Returns:
        (kept, dropped)
    """
    winner: dict[GridPosition, int] = {}
    for index, spec in enumerate(specs):
        winner[spec.position] = index

    kept, dropped = [], []
    for index, spec in enumerate(specs):
        if winner[spec.position] == index:
            kept.append(spec)
        else:
            later = specs[winner[spec.position]]
            logger.warning(
                "Widget %r at (%d, %d) is shadowed by later widget %r; dropping it",
                spec.title,
                spec.position.row,
                spec.position.col,
                later.title,
            )
            dropped.append(spec)
    return kept, dropped


def compute_layout(specs: Sequence[WidgetSpec], width: int, height: int) -> Layout:
    """Place each spec in its grid cell for a terminal of width x height cells."""
    kept, dropped = resolve_grid(specs)
    rows, cols = grid_extent(kept)
    cells = grid_cells(rows, cols, max(0, width), max(0, height))

    placements = tuple(
        Placement(spec=spec, outer=cells[spec.position], inner=cells[spec.position].shrink(BORDER))
        for spec in kept
    )
    return Layout(rows=rows, cols=cols, placements=placements, dropped=tuple(dropped))
