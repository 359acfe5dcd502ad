"""Dashboard configuration loaded from YAML."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .companion.model import Species
from .companion.store import DEFAULT_PATH as DEFAULT_COMPANION_PATH
from .core.specs import GridPosition, WidgetSpec
from .errors import ConfigError
from .keys import KeyBindings

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("~/.config/feedboard/config.yaml")
LOG_PATH = Path("~/.cache/feedboard/feedboard.log")


def default_widgets() -> list[WidgetSpec]:
    return [
        WidgetSpec(kind="clock", title="Clock", position=GridPosition(0, 0)),
        WidgetSpec(kind="creature", title="Companion", position=GridPosition(0, 1)),
    ]


@dataclass
class CompanionConfig:
    """Where the companion is saved and what a fresh one looks like."""
    path: Path = DEFAULT_COMPANION_PATH
    species: str = Species.BLOB.value
    name: str = "Pixel"
    flush_interval: float = 60.0

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "species": self.species,
            "name": self.name,
            "flush_interval": self.flush_interval,
        }

    @classmethod
    def from_dict(cls, d: Any) -> "CompanionConfig":
        if not isinstance(d, dict):
            return cls()
        species = d.get("species", Species.BLOB.value)
        if species not in {s.value for s in Species}:
            raise ConfigError(f"unknown companion species {species!r}")
        return cls(
            path=Path(d.get("path", DEFAULT_COMPANION_PATH)),
            species=species,
            name=str(d.get("name", "Pixel")),
            flush_interval=_positive(d, "flush_interval", 60.0),
        )


@dataclass
class DashboardConfig:
    """Main configuration combining all sections.

    Widget entries are kept raw and parsed by ``widget_specs`` so that one
    malformed entry can be skipped without rejecting the whole file.
    """
    refresh_interval: float = 60.0
    refresh_timeout: float = 10.0
    max_workers: int = 4
    input_timeout: float = 0.1
    companion: CompanionConfig = field(default_factory=CompanionConfig)
    keys: KeyBindings = field(default_factory=KeyBindings)
    widgets: list[dict] = field(default_factory=lambda: [s.to_dict() for s in default_widgets()])

    def widget_specs(self) -> tuple[list[WidgetSpec], list[ConfigError]]:
        """Parse widget entries, collecting errors instead of raising."""
        specs, errors = [], []
        for index, entry in enumerate(self.widgets):
            try:
                specs.append(WidgetSpec.from_dict(entry))
            except ConfigError as e:
                logger.warning("Skipping widget entry #%d: %s", index + 1, e)
                errors.append(e)
        return specs, errors

    def to_dict(self) -> dict:
        return {
            "refresh_interval": self.refresh_interval,
            "refresh_timeout": self.refresh_timeout,
            "max_workers": self.max_workers,
            "input_timeout": self.input_timeout,
            "companion": self.companion.to_dict(),
            "keys": self.keys.to_dict(),
            "widgets": [dict(w) for w in self.widgets],
        }

    @classmethod
    def from_dict(cls, d: Any) -> "DashboardConfig":
        if d is None:
            return cls()
        if not isinstance(d, dict):
            raise ConfigError("config root must be a mapping")

        widgets = d.get("widgets")
        if widgets is None:
            widgets = [s.to_dict() for s in default_widgets()]
        elif not isinstance(widgets, list):
            raise ConfigError("'widgets' must be a list")

        max_workers = d.get("max_workers", 4)
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise ConfigError("max_workers must be a positive integer")

        return cls(
            refresh_interval=_positive(d, "refresh_interval", 60.0),
            refresh_timeout=_positive(d, "refresh_timeout", 10.0),
            max_workers=max_workers,
            input_timeout=_positive(d, "input_timeout", 0.1),
            companion=CompanionConfig.from_dict(d.get("companion", {})),
            keys=KeyBindings.from_dict(d.get("keys", {})),
            widgets=widgets,
        )

    def save(self, path: Path = CONFIG_PATH):
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        temp = path.with_suffix(".tmp")
        temp.write_text(yaml.safe_dump(self.to_dict(), sort_keys=False))
        temp.replace(path)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "DashboardConfig":
        """Load the config file; a missing file means defaults.

        Raises:
            ConfigError: If the file exists but cannot be read or parsed.
        """
        path = Path(path or CONFIG_PATH).expanduser()
        if not path.exists():
            logger.info("No config at %s; using defaults", path)
            return cls()
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
        return cls.from_dict(raw)


def _positive(d: dict, key: str, default: float) -> float:
    value = d.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{key} must be a positive number, got {value!r}")
    return float(value)
