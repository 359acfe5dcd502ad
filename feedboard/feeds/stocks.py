"""Stock quotes from the Yahoo Finance chart endpoint."""

from __future__ import annotations

from dataclasses import dataclass

import requests

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"


@dataclass
class Quote:
    symbol: str
    price: float
    previous_close: float
    currency: str = "USD"

    @property
    def change(self) -> float:
        return self.price - self.previous_close

    @property
    def change_percent(self) -> float:
        if not self.previous_close:
            return 0.0
        return self.change / self.previous_close * 100


def fetch_quote(session: requests.Session, symbol: str, timeout: float = 10) -> Quote:
    response = session.get(
        CHART_URL.format(symbol=symbol),
        params={"interval": "1d", "range": "1d"},
        timeout=timeout,
    )
    response.raise_for_status()
    try:
        meta = response.json()["chart"]["result"][0]["meta"]
        price = float(meta["regularMarketPrice"])
        previous = float(meta.get("chartPreviousClose") or meta.get("previousClose") or price)
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError(f"unexpected quote payload for {symbol}") from e
    return Quote(symbol=symbol, price=price, previous_close=previous, currency=meta.get("currency", "USD"))


def fetch_quotes(session: requests.Session, symbols: list[str], timeout: float = 10) -> list[Quote]:
    """Quotes for every symbol, in the given order. Any failure fails the batch."""
    return [fetch_quote(session, s, timeout) for s in symbols]
