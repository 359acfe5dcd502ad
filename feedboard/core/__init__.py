"""Core engine - widget specs, layout, refresh results and scheduling."""

from .specs import GridPosition, WidgetSpec
from .layout import Layout, Placement, Rect, compute_layout, grid_cells, resolve_grid
from .results import Inbox, RefreshResult
from .scheduler import RefreshContext, RefreshScheduler

__all__ = [
    # Specs
    "GridPosition",
    "WidgetSpec",
    # Layout
    "Rect",
    "Placement",
    "Layout",
    "compute_layout",
    "grid_cells",
    "resolve_grid",
    # Results
    "RefreshResult",
    "Inbox",
    # Scheduling
    "RefreshContext",
    "RefreshScheduler",
]
