"""Cell buffers that widgets draw into."""

from .panel import Panel, rgb_to_ansi

__all__ = ["Panel", "rgb_to_ansi"]
