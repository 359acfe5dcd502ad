"""
Character/color cell buffers for widget output.

A Panel is what ``Widget.render`` returns: a rectangle of characters and
ANSI 256 color codes held in numpy arrays. The dashboard composites the
panels of all widgets into one full-screen Panel and hands that to the
terminal writer, so widgets never touch the terminal themselves.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np

SPACE = ord(" ")

# ANSI 256 colors used across widgets
WHITE = 7
GRAY = 8
RED = 9
GREEN = 10
YELLOW = 11
BLUE = 12
MAGENTA = 13
CYAN = 14
DIM = 240

ELLIPSIS = "…"

BOX_PLAIN = "┌┐└┘─│"
BOX_FOCUSED = "╔╗╚╝═║"


def rgb_to_ansi(r: int, g: int, b: int) -> int:
    """Nearest xterm 256-color cube index for an RGB triple."""
    def level(v: int) -> int:
        return 0 if v < 48 else 1 if v < 115 else (v - 35) // 40

    return 16 + 36 * level(r) + 6 * level(g) + level(b)


class Panel:
    """A width x height grid of characters and colors."""

    def __init__(self, width: int, height: int, color: int = WHITE):
        self.width = max(0, width)
        self.height = max(0, height)
        self.chars = np.full((self.height, self.width), SPACE, dtype=np.uint32)
        self.colors = np.full((self.height, self.width), color, dtype=np.uint8)

    def clear(self) -> None:
        self.chars.fill(SPACE)
        self.colors.fill(WHITE)

    def put(self, x: int, y: int, char: str, color: int = WHITE) -> None:
        """Put a single character at position. Out of bounds is ignored."""
        if 0 <= x < self.width and 0 <= y < self.height:
            self.chars[y, x] = ord(char)
            self.colors[y, x] = color

    def put_text(self, x: int, y: int, text: str, color: int = WHITE, max_width: int | None = None) -> int:
        """Write ``text`` on row ``y``, truncating with an ellipsis.

        Returns:
            Number of cells written.
        """
        if not text or y < 0 or y >= self.height or x >= self.width:
            return 0
        limit = self.width - max(0, x)
        if max_width is not None:
            limit = min(limit, max_width)
        if limit <= 0:
            return 0
        if len(text) > limit:
            text = text[: limit - 1] + ELLIPSIS if limit > 1 else text[:limit]
        start = max(0, -x)
        written = 0
        for i, ch in enumerate(text[start:], start=start):
            self.put(x + i, y, ch, color)
            written += 1
        return written

    def fill(self, x: int, y: int, w: int, h: int, char: str = " ", color: int = WHITE) -> None:
        """Fill a rectangle (clipped)."""
        x1, y1 = max(0, x), max(0, y)
        x2, y2 = min(self.width, x + w), min(self.height, y + h)
        if x1 < x2 and y1 < y2:
            self.chars[y1:y2, x1:x2] = ord(char)
            self.colors[y1:y2, x1:x2] = color

    def blit(self, x: int, y: int, other: "Panel") -> None:
        """Copy ``other`` onto this panel with its top-left at (x, y), clipped."""
        src_x1, src_y1 = max(0, -x), max(0, -y)
        src_x2 = min(other.width, self.width - x)
        src_y2 = min(other.height, self.height - y)
        if src_x1 >= src_x2 or src_y1 >= src_y2:
            return
        dst_x1, dst_y1 = x + src_x1, y + src_y1
        dst_x2 = dst_x1 + (src_x2 - src_x1)
        dst_y2 = dst_y1 + (src_y2 - src_y1)
        self.chars[dst_y1:dst_y2, dst_x1:dst_x2] = other.chars[src_y1:src_y2, src_x1:src_x2]
        self.colors[dst_y1:dst_y2, dst_x1:dst_x2] = other.colors[src_y1:src_y2, src_x1:src_x2]

    def box(self, x: int, y: int, w: int, h: int, title: str = "", color: int = GRAY, focused: bool = False) -> None:
        """Draw a border around a rectangle, with an optional title on the top edge."""
        if w < 2 or h < 2:
            return
        tl, tr, bl, br, hz, vt = BOX_FOCUSED if focused else BOX_PLAIN
        self.fill(x + 1, y, w - 2, 1, hz, color)
        self.fill(x + 1, y + h - 1, w - 2, 1, hz, color)
        self.fill(x, y + 1, 1, h - 2, vt, color)
        self.fill(x + w - 1, y + 1, 1, h - 2, vt, color)
        self.put(x, y, tl, color)
        self.put(x + w - 1, y, tr, color)
        self.put(x, y + h - 1, bl, color)
        self.put(x + w - 1, y + h - 1, br, color)
        if title and w > 4:
            self.put_text(x + 1, y, f" {title} ", color, max_width=w - 2)

    def row_text(self, y: int) -> str:
        return "".join(chr(c) for c in self.chars[y])

    def rows(self) -> list[str]:
        """Plain text of every row."""
        return [self.row_text(y) for y in range(self.height)]

    def runs(self, y: int) -> Iterator[tuple[int, str]]:
        """Yield (color, text) runs of equal color along row ``y``."""
        if self.width == 0:
            return
        row_chars = self.chars[y]
        row_colors = self.colors[y]
        start = 0
        for x in range(1, self.width + 1):
            if x == self.width or row_colors[x] != row_colors[start]:
                yield int(row_colors[start]), "".join(chr(c) for c in row_chars[start:x])
                start = x

    def render_plain(self) -> str:
        return "\n".join(self.rows())
