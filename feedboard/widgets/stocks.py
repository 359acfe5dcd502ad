"""Stock ticker table."""

from __future__ import annotations

from ..feeds.stocks import Quote, fetch_quotes
from ..errors import ConfigError
from ..render.panel import GREEN, RED, WHITE
from .base import ListWidget, WidgetKind, option

QUOTE_PAGE = "https://finance.yahoo.com/quote/{symbol}"


class StocksWidget(ListWidget):
    kind = WidgetKind.STOCKS

    def __init__(self, spec, symbols: list[str]):
        super().__init__(spec)
        self.symbols = symbols

    @classmethod
    def from_spec(cls, spec):
        symbols = option(spec, "symbols", (list, tuple))
        if not symbols or not all(isinstance(s, str) and s for s in symbols):
            raise ConfigError(f"stocks {spec.title!r}: symbols must be a non-empty list of tickers")
        return cls(spec, [s.upper() for s in symbols])

    def refresh(self, ctx):
        return fetch_quotes(ctx.session, self.symbols, ctx.timeout)

    def item_text(self, item: Quote) -> str:
        return item.symbol

    def item_lines(self, item: Quote, width: int):
        if item.change > 0:
            color, arrow = GREEN, "▲"
        elif item.change < 0:
            color, arrow = RED, "▼"
        else:
            color, arrow = WHITE, " "
        return [(f" {item.symbol:<6} {item.price:>10.2f} {arrow} {item.change_percent:+6.2f}%", color)]

    def item_url(self, item: Quote) -> str:
        return QUOTE_PAGE.format(symbol=item.symbol)
