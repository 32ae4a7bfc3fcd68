#!/usr/bin/env python3
"""
stocktui - Domain Models

Value objects shared by the storage, caching, aggregation and ranking layers.

Classes:
    Market: The two market segments a symbol can belong to
    Holding: One line item of a portfolio file
    Quote: Price snapshot from a single fetch
    CacheEntry: A cached value tagged with its fetch time
    HistoricalSeries: Daily closes for the detail view
    Portfolio: A named portfolio file
    AggregatedPosition: One symbol merged across all portfolios

Exceptions:
    StockError: Base exception for stocktui errors
    StorageError: Holding file could not be read or written
    InvalidHoldingError: Holding or portfolio input failed validation
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Union

from stocktui.app_config import config


class StockError(Exception):
    """Base exception for stocktui errors."""
    pass


class StorageError(StockError):
    """Raised when a portfolio file cannot be read or written."""
    pass


class InvalidHoldingError(StockError):
    """Raised when holding or portfolio input is invalid."""
    pass


class Market(Enum):
    """
    Market segments.

    Values:
        PRIMARY: Taiwan listings, quoted in TWD (the display currency)
        SECONDARY: Everything else, quoted in USD
    """
    PRIMARY = "tw"
    SECONDARY = "us"

    @property
    def title(self) -> str:
        return "Taiwan" if self is Market.PRIMARY else "US"

    @property
    def currency(self) -> str:
        return "TWD" if self is Market.PRIMARY else "USD"


def classify_market(symbol: str) -> Market:
    """Classify a symbol by its exchange suffix. The only market rule in the app."""
    if config.PRIMARY_MARKET_SUFFIX in symbol:
        return Market.PRIMARY
    return Market.SECONDARY


@dataclass(frozen=True)
class Holding:
    """One line of a portfolio file."""
    symbol: str
    display: str
    name: str
    quantity: float = 0.0
    cost_basis: float = 0.0
    portfolio_name: str = ""

    @property
    def market(self) -> Market:
        return classify_market(self.symbol)

    @property
    def portfolio_label(self) -> str:
        return self.portfolio_name

    def to_line(self) -> str:
        return f"{self.symbol}|{self.display}|{self.name}|{_format_number(self.quantity)}|{_format_number(self.cost_basis)}"


@dataclass(frozen=True)
class Quote:
    """Price snapshot: price, absolute change and percent change vs previous close."""
    price: float
    change: float
    change_percent: float

    @classmethod
    def from_prices(cls, price: float, previous: float) -> "Quote":
        change = price - previous
        return cls(price=price, change=change, change_percent=change / previous * 100.0)

    def to_dict(self) -> dict:
        return {"price": self.price, "change": self.change, "change_percent": self.change_percent}

    @classmethod
    def from_dict(cls, data: dict) -> "Quote":
        return cls(
            price=float(data["price"]),
            change=float(data.get("change", 0.0)),
            change_percent=float(data.get("change_percent", 0.0)),
        )


@dataclass(frozen=True)
class HistoricalSeries:
    """Daily closes over the lookback window, oldest first."""
    timestamps: List[int]
    closes: List[float]

    def to_dict(self) -> dict:
        return {"timestamps": list(self.timestamps), "closes": list(self.closes)}

    @classmethod
    def from_dict(cls, data: dict) -> "HistoricalSeries":
        timestamps = [int(t) for t in data.get("timestamps", []) if isinstance(t, (int, float))]
        closes = [float(c) for c in data.get("closes", []) if isinstance(c, (int, float))]
        return cls(timestamps=timestamps, closes=closes)

    def is_empty(self) -> bool:
        return not self.timestamps or not self.closes


@dataclass(frozen=True)
class CacheEntry:
    value: Union[Quote, HistoricalSeries, Any]
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def is_fresh(self, now: float, window: float) -> bool:
        return self.age(now) < window


@dataclass(frozen=True)
class Portfolio:
    name: str
    file_path: Path


@dataclass(frozen=True)
class AggregatedPosition:
    """
    One symbol merged across every portfolio that holds it.

    cost_basis is the quantity-weighted average of the contributors, 0 when the
    combined quantity is 0.
    """
    symbol: str
    display: str
    name: str
    quantity: float
    cost_basis: float
    source_portfolios: List[str] = field(default_factory=list)

    @property
    def market(self) -> Market:
        return classify_market(self.symbol)

    @property
    def portfolio_label(self) -> str:
        return "+".join(self.source_portfolios)


def _format_number(value: float) -> str:
    """Write whole numbers without a trailing .0 so files stay hand-editable."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
