"""Widget specifications as loaded from the dashboard config."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..errors import ConfigError


@dataclass(frozen=True, order=True)
class GridPosition:
    """A (row, col) cell in the dashboard grid."""

    row: int
    col: int

    @classmethod
    def from_dict(cls, d: Any) -> "GridPosition":
        if not isinstance(d, Mapping):
            raise ConfigError(f"position must be a mapping with row/col, got {d!r}")
        try:
            row, col = d["row"], d["col"]
        except KeyError as e:
            raise ConfigError(f"position is missing {e.args[0]!r}") from None
        for name, value in (("row", row), ("col", col)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"position {name} must be a non-negative integer, got {value!r}")
        return cls(row=row, col=col)

    def to_dict(self) -> dict:
        return {"row": self.row, "col": self.col}


@dataclass(frozen=True)
class WidgetSpec:
    """Immutable description of one dashboard pane.

    ``kind`` is kept as the raw type tag from the config; whether it names a
    known widget variant is decided by the registry, so an unknown tag only
    fails that one widget.
    """

    kind: str
    title: str
    position: GridPosition
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    refresh_interval: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.options, MappingProxyType):
            object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @property
    def widget_id(self) -> str:
        return f"{self.kind}-{self.position.row}-{self.position.col}"

    # Keys consumed by the spec itself; everything else is a per-type option
    _RESERVED = ("type", "title", "position", "refresh_interval")

    @classmethod
    def from_dict(cls, d: Any) -> "WidgetSpec":
        """Build a spec from one ``widgets:`` entry of the config.

        Raises:
            ConfigError: If the entry is structurally invalid.
        """
        if not isinstance(d, Mapping):
            raise ConfigError(f"widget entry must be a mapping, got {type(d).__name__}")

        kind = d.get("type")
        if not isinstance(kind, str) or not kind:
            raise ConfigError("widget entry is missing 'type'")

        title = d.get("title", kind.replace("_", " ").title())
        if not isinstance(title, str):
            raise ConfigError(f"{kind}: title must be a string")

        if "position" not in d:
            raise ConfigError(f"{kind}: missing 'position'")
        position = GridPosition.from_dict(d["position"])

        interval = d.get("refresh_interval")
        if interval is not None:
            if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
                raise ConfigError(f"{kind}: refresh_interval must be a positive number")
            interval = float(interval)

        options = {k: v for k, v in d.items() if k not in cls._RESERVED}
        return cls(kind=kind, title=title, position=position, options=options, refresh_interval=interval)

    def to_dict(self) -> dict:
        d = {"type": self.kind, "title": self.title, "position": self.position.to_dict()}
        if self.refresh_interval is not None:
            d["refresh_interval"] = self.refresh_interval
        d.update(self.options)
        return d
