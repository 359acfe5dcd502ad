"""Widget variants and the registry that builds them from specs."""

from __future__ import annotations

import logging
from typing import Iterable

from ..core.specs import WidgetSpec
from ..errors import ConfigError
from .base import ListWidget, Widget, WidgetKind, option
from .clock import ClockWidget, Stopwatch, StopwatchState
from .creature import CreatureWidget
from .github import GithubWidget
from .hackernews import HackerNewsWidget
from .pixelart import PixelArtWidget
from .rss import RssWidget
from .stocks import StocksWidget
from .twitter_archive import TwitterArchiveWidget

logger = logging.getLogger(__name__)

REGISTRY: dict[WidgetKind, type[Widget]] = {
    WidgetKind.HACKERNEWS: HackerNewsWidget,
    WidgetKind.STOCKS: StocksWidget,
    WidgetKind.RSS: RssWidget,
    WidgetKind.GITHUB: GithubWidget,
    WidgetKind.TWITTER_ARCHIVE: TwitterArchiveWidget,
    WidgetKind.CLOCK: ClockWidget,
    WidgetKind.PIXELART: PixelArtWidget,
    WidgetKind.CREATURE: CreatureWidget,
}


def instantiate(spec: WidgetSpec) -> Widget:
    """Build the widget variant named by ``spec.kind``.

    Raises:
        ConfigError: Unknown type tag or invalid options.
    """
    try:
        kind = WidgetKind(spec.kind)
    except ValueError:
        known = ", ".join(k.value for k in WidgetKind)
        raise ConfigError(f"unknown widget type {spec.kind!r} (known: {known})") from None
    return REGISTRY[kind].from_spec(spec)


def build_widgets(specs: Iterable[WidgetSpec]) -> tuple[list[Widget], list[ConfigError]]:
    """Instantiate every spec, skipping and logging the ones that fail."""
    widgets: list[Widget] = []
    errors: list[ConfigError] = []
    for spec in specs:
        try:
            widgets.append(instantiate(spec))
        except ConfigError as e:
            logger.warning("Skipping widget %r at (%d, %d): %s", spec.title, spec.position.row, spec.position.col, e)
            errors.append(e)
    return widgets, errors


__all__ = [
    "REGISTRY",
    "instantiate",
    "build_widgets",
    "Widget",
    "ListWidget",
    "WidgetKind",
    "option",
    "ClockWidget",
    "Stopwatch",
    "StopwatchState",
    "CreatureWidget",
    "GithubWidget",
    "HackerNewsWidget",
    "PixelArtWidget",
    "RssWidget",
    "StocksWidget",
    "TwitterArchiveWidget",
]
