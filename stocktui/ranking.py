#!/usr/bin/env python3
"""
stocktui - Ranking Engine

Per-row metrics and stable, direction-aware orderings.

Rows are Holding or AggregatedPosition objects; quotes are looked up by
symbol in a single quotes map. Gain amounts of secondary-market rows are
converted into the primary currency with the current exchange rate, both for
comparison and for display.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from stocktui.models import Market, Quote


class SortColumn(Enum):
    PRICE = "price"
    CHANGE = "change"
    QUANTITY = "quantity"
    GAIN = "gain"
    GAIN_PERCENT = "gain_percent"


class SortDirection(Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    def flipped(self) -> "SortDirection":
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING

    @property
    def arrow(self) -> str:
        return "▲" if self is SortDirection.ASCENDING else "▼"


@dataclass
class SortState:
    """Selected column and direction. Defaults to change%, descending."""
    column: SortColumn = SortColumn.CHANGE
    direction: SortDirection = SortDirection.DESCENDING

    def toggle(self, column: SortColumn):
        """Same column flips direction; a new column starts descending."""
        if column is self.column:
            self.direction = self.direction.flipped()
        else:
            self.column = column
            self.direction = SortDirection.DESCENDING


def has_position(row) -> bool:
    return row.quantity > 0 and row.cost_basis > 0


def currency_factor(row, exchange_rate: float) -> float:
    """Multiplier taking an amount in the row's currency into the primary currency."""
    return 1.0 if row.market is Market.PRIMARY else exchange_rate


def gain_amount(row, quote: Optional[Quote], exchange_rate: float) -> float:
    """Unrealized gain in primary currency; 0 without a position or quote."""
    if quote is None or not has_position(row):
        return 0.0
    gain = row.quantity * quote.price - row.quantity * row.cost_basis
    return gain * currency_factor(row, exchange_rate)


def gain_percent(row, quote: Optional[Quote]) -> float:
    if quote is None or not has_position(row):
        return 0.0
    return (quote.price - row.cost_basis) / row.cost_basis * 100.0


def sort_key(column: SortColumn, quotes: Dict[str, Quote], exchange_rate: float) -> Callable:
    """Build the comparison key for a column."""
    if column is SortColumn.PRICE:
        return lambda row: quotes[row.symbol].price if row.symbol in quotes else 0.0
    if column is SortColumn.CHANGE:
        return lambda row: quotes[row.symbol].change_percent if row.symbol in quotes else float("-inf")
    if column is SortColumn.QUANTITY:
        return lambda row: row.quantity
    if column is SortColumn.GAIN:
        return lambda row: gain_amount(row, quotes.get(row.symbol), exchange_rate)
    if column is SortColumn.GAIN_PERCENT:
        return lambda row: gain_percent(row, quotes.get(row.symbol))
    raise ValueError(f"Unknown sort column: {column}")


def sort_rows(rows: Iterable, column: SortColumn, direction: SortDirection,
              quotes: Dict[str, Quote], exchange_rate: float) -> List:
    """
    Stable sort. Rows with equal keys keep their current relative order in
    both directions, so re-sorting unchanged data never reorders ties.
    """
    return sorted(rows, key=sort_key(column, quotes, exchange_rate),
                  reverse=direction is SortDirection.DESCENDING)
