"""Key names and the configurable global key bindings.

Keys are plain strings: printable characters stand for themselves and
special keys use blessed's ``KEY_*`` names.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Optional

KEY_UP = "KEY_UP"
KEY_DOWN = "KEY_DOWN"
KEY_LEFT = "KEY_LEFT"
KEY_RIGHT = "KEY_RIGHT"
KEY_ENTER = "KEY_ENTER"
KEY_ESCAPE = "KEY_ESCAPE"
KEY_BACKSPACE = "KEY_BACKSPACE"
KEY_TAB = "KEY_TAB"
KEY_BTAB = "KEY_BTAB"
KEY_PGUP = "KEY_PGUP"
KEY_PGDOWN = "KEY_PGDOWN"

# Raw control characters some terminals send instead of a named sequence
_CONTROL_NAMES = {
    "\t": KEY_TAB,
    "\n": KEY_ENTER,
    "\r": KEY_ENTER,
    "\x1b": KEY_ESCAPE,
    "\x7f": KEY_BACKSPACE,
    "\x08": KEY_BACKSPACE,
}

_ALIASES = {
    "KEY_DELETE": KEY_BACKSPACE,
}


def normalize(raw: str, name: Optional[str] = None) -> str:
    """Map a keystroke to the single string form used everywhere else."""
    if name:
        return _ALIASES.get(name, name)
    return _CONTROL_NAMES.get(raw, raw)


def is_printable(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


@dataclass
class KeyBindings:
    """Global actions and the keys that trigger them."""

    quit: list[str] = field(default_factory=lambda: ["q"])
    focus_next: list[str] = field(default_factory=lambda: [KEY_TAB, KEY_RIGHT])
    focus_prev: list[str] = field(default_factory=lambda: [KEY_BTAB, KEY_LEFT])
    up: list[str] = field(default_factory=lambda: [KEY_UP, "k"])
    down: list[str] = field(default_factory=lambda: [KEY_DOWN, "j"])
    refresh: list[str] = field(default_factory=lambda: ["r"])
    open: list[str] = field(default_factory=lambda: [KEY_ENTER])
    open_discussion: list[str] = field(default_factory=lambda: ["c"])

    def action_for(self, key: str) -> Optional[str]:
        for f in fields(self):
            if key in getattr(self, f.name):
                return f.name
        return None

    def to_dict(self) -> dict:
        return {f.name: list(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: dict) -> "KeyBindings":
        if not isinstance(d, dict):
            return cls()
        known = {f.name for f in fields(cls)}
        overrides = {}
        for action, keys in d.items():
            if action not in known:
                continue
            if isinstance(keys, str):
                keys = [keys]
            overrides[action] = [normalize(k) if len(k) == 1 else k for k in keys if isinstance(k, str)]
        return cls(**overrides)
