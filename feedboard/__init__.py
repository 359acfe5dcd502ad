"""feedboard - a terminal dashboard of live feeds with a companion pet."""

__version__ = "0.3.0"
