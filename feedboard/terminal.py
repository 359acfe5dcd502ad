"""Terminal boundary: raw-mode session, key polling and frame output via blessed."""

from __future__ import annotations

import contextlib
import logging
import sys
from typing import Optional

import numpy as np
from blessed import Terminal

from .errors import TerminalError
from .keys import normalize
from .render.panel import Panel

logger = logging.getLogger(__name__)


class TerminalSession:
    """Owns the real terminal for the lifetime of a ``with`` block.

    Entering switches to the alternate screen, cbreak mode and a hidden
    cursor; leaving restores all three on every exit path, including
    exceptions. Only rows that changed since the previous frame are written.
    """

    def __init__(self, term: Optional[Terminal] = None, stream=None):
        self.term = term or Terminal(stream=stream)
        self._stack: Optional[contextlib.ExitStack] = None
        self._previous: Optional[Panel] = None

    def __enter__(self) -> "TerminalSession":
        if not self.term.is_a_tty:
            raise TerminalError("feedboard needs an interactive terminal")
        stack = contextlib.ExitStack()
        try:
            stack.enter_context(self.term.fullscreen())
            stack.enter_context(self.term.cbreak())
            stack.enter_context(self.term.hidden_cursor())
        except Exception as e:
            stack.close()
            raise TerminalError(f"cannot set up terminal: {e}") from e
        self._stack = stack
        self._previous = None
        return self

    def __exit__(self, *exc_info) -> None:
        if self._stack is not None:
            self._write(self.term.normal)
            self._stack.close()
            self._stack = None

    def size(self) -> tuple[int, int]:
        return self.term.width, self.term.height

    def read_key(self, timeout: float) -> Optional[str]:
        """Wait up to ``timeout`` seconds for one key. Called from the input thread."""
        try:
            key = self.term.inkey(timeout=timeout)
        except OSError as e:
            raise TerminalError(f"cannot read from terminal: {e}") from e
        if not key:
            return None
        return normalize(str(key), key.name if key.is_sequence else None)

    def draw(self, frame: Panel) -> None:
        """Write ``frame`` to the screen, skipping rows identical to the last frame."""
        previous = self._previous
        full = previous is None or previous.chars.shape != frame.chars.shape
        out = []
        for y in range(frame.height):
            if not full and np.array_equal(previous.chars[y], frame.chars[y]) and np.array_equal(
                previous.colors[y], frame.colors[y]
            ):
                continue
            out.append(self.term.move_xy(0, y))
            for color, text in frame.runs(y):
                out.append(self.term.color(color))
                out.append(text)
        if full:
            out.insert(0, self.term.home + self.term.clear)
        out.append(self.term.normal)
        self._write("".join(out))
        self._previous = frame

    def invalidate(self) -> None:
        """Force the next draw to repaint everything."""
        self._previous = None

    def _write(self, text: str) -> None:
        stream = self.term.stream or sys.stdout
        try:
            stream.write(text)
            stream.flush()
        except OSError as e:
            raise TerminalError(f"cannot write to terminal: {e}") from e
