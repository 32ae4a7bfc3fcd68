#!/usr/bin/env python3
"""
stocktui - Aggregator

Merges holdings of the same symbol across portfolios into one position with a
quantity-weighted cost basis. Rebuilt from the files on every call.
"""

from typing import Dict, Iterable, List

from stocktui.holding_store import HoldingStore
from stocktui.models import AggregatedPosition, Holding, Portfolio


def merge_cost_basis(quantity_a: float, cost_a: float, quantity_b: float, cost_b: float) -> float:
    total = quantity_a + quantity_b
    if total <= 0:
        return 0.0
    return (quantity_a * cost_a + quantity_b * cost_b) / total


def aggregate_holdings(holdings: Iterable[Holding]) -> Dict[str, AggregatedPosition]:
    """
    Fold holdings into positions keyed by symbol, in first-encounter order.

    Display label and description come from the first holding seen for the
    symbol. Contributing portfolio names keep encounter order.
    """
    positions: Dict[str, AggregatedPosition] = {}
    sources: Dict[str, List[str]] = {}

    for holding in holdings:
        names = sources.setdefault(holding.symbol, [])
        names.append(holding.portfolio_name)

        existing = positions.get(holding.symbol)
        if existing is None:
            positions[holding.symbol] = AggregatedPosition(
                symbol=holding.symbol,
                display=holding.display,
                name=holding.name,
                quantity=holding.quantity,
                cost_basis=merge_cost_basis(0.0, 0.0, holding.quantity, holding.cost_basis),
                source_portfolios=names,
            )
        else:
            positions[holding.symbol] = AggregatedPosition(
                symbol=existing.symbol,
                display=existing.display,
                name=existing.name,
                quantity=existing.quantity + holding.quantity,
                cost_basis=merge_cost_basis(existing.quantity, existing.cost_basis,
                                            holding.quantity, holding.cost_basis),
                source_portfolios=names,
            )

    return positions


def aggregate(portfolios: List[Portfolio], store: HoldingStore) -> Dict[str, AggregatedPosition]:
    """
    Load every portfolio and merge its holdings.

    Raises:
        StorageError: If any portfolio file cannot be read
    """
    def all_holdings():
        for portfolio in portfolios:
            yield from store.load(portfolio)

    return aggregate_holdings(all_holdings())
