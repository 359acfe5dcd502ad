"""Companion persistence: JSON file with atomic replace and debounced flushes."""

from __future__ import annotations

import json
import logging
import os
import time
from enum import Enum
from pathlib import Path
from typing import Optional

from ..errors import PersistenceError
from .model import Companion, Species

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path("~/.local/share/feedboard/companion.json")


class LoadStatus(str, Enum):
    LOADED = "loaded"
    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"


def load_companion(path: Path) -> tuple[LoadStatus, Optional[Companion]]:
    """Read a saved companion.

    Never raises: a missing file is NOT_FOUND, anything unreadable or
    invalid is CORRUPT.
    """
    path = Path(path).expanduser()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return LoadStatus.NOT_FOUND, None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read companion save %s: %s", path, e)
        return LoadStatus.CORRUPT, None

    try:
        return LoadStatus.LOADED, Companion.from_dict(json.loads(raw))
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("Companion save %s is corrupt: %s", path, e)
        return LoadStatus.CORRUPT, None


def save_companion(path: Path, companion: Companion) -> None:
    """Write ``companion`` via a temp file and atomic rename.

    Raises:
        PersistenceError: If the file could not be written.
    """
    path = Path(path).expanduser()
    temp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp.write_text(json.dumps(companion.to_dict(), indent=2), encoding="utf-8")
        os.replace(temp, path)
    except OSError as e:
        raise PersistenceError(f"cannot save companion to {path}: {e}") from e


class CompanionStore:
    """Dirty-flag writer for one companion save file.

    Only the dashboard loop calls into this, so there is a single writer.
    ``request_flush`` marks a change that should hit disk at the end of the
    current loop iteration (level-ups, purchases); plain ``mark_dirty``
    changes wait for the periodic flush.
    """

    def __init__(self, path: Path = DEFAULT_PATH, flush_interval: float = 60.0):
        self.path = Path(path).expanduser()
        self.flush_interval = flush_interval
        self.dirty = False
        self._urgent = False
        self._last_flush = time.monotonic()
        self.last_error: Optional[str] = None

    def load(self, species: Species | str = Species.BLOB, name: str = "Pixel") -> Companion:
        """Load the saved companion, or hatch a fresh one if there is none usable."""
        status, companion = load_companion(self.path)
        if companion is not None:
            logger.info("Loaded companion from %s (level %d)", self.path, companion.level)
            return companion
        if status is LoadStatus.CORRUPT:
            logger.warning("Starting a fresh companion; the old save was unusable")
        return Companion.new(species=species, name=name)

    def mark_dirty(self) -> None:
        self.dirty = True

    def request_flush(self, reason: str = "") -> None:
        self.dirty = True
        self._urgent = True
        if reason:
            logger.debug("Companion flush requested: %s", reason)

    def maybe_flush(self, companion: Companion, now: Optional[float] = None) -> bool:
        """Flush if a prompt flush was requested or the periodic interval has passed."""
        if not self.dirty:
            return False
        now = time.monotonic() if now is None else now
        if self._urgent or now - self._last_flush >= self.flush_interval:
            return self.flush(companion, now)
        return False

    def flush(self, companion: Companion, now: Optional[float] = None) -> bool:
        """Write now. On failure, log and stay dirty so the next flush point retries."""
        try:
            save_companion(self.path, companion)
        except PersistenceError as e:
            logger.warning("%s; will retry", e)
            self.last_error = str(e)
            self._urgent = False
            self._last_flush = time.monotonic() if now is None else now
            return False
        self.dirty = False
        self._urgent = False
        self.last_error = None
        self._last_flush = time.monotonic() if now is None else now
        return True
