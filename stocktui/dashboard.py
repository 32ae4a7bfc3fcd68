#!/usr/bin/env python3
"""
stocktui - Dashboard State

The consumer side of the pipeline and the single source of truth for what
the view layer shows:

- one quotes map (symbol -> Quote) shared by every view
- one exchange rate used for cross-market conversion
- four orderings, (portfolio, combined) x (primary, secondary), holding
  immutable rows that look their quote up by symbol

Every method here runs on the interactive loop. The background refresh
worker only produces messages; they are applied in process_fetch_results().
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from stocktui.aggregator import aggregate
from stocktui.app_config import AppConfig, config as default_config
from stocktui.holding_store import HoldingStore
from stocktui.market_data import MarketData
from stocktui.models import AggregatedPosition, HistoricalSeries, Holding, Market, Portfolio, Quote
from stocktui.ranking import SortColumn, SortState, currency_factor, sort_rows
from stocktui.refresh import BatchComplete, ExchangeRateResult, FetchMessage, PriceResult, RefreshOrchestrator


class ViewScope(Enum):
    PORTFOLIO = "portfolio"
    COMBINED = "combined"


ViewKey = Tuple[ViewScope, Market]


class Dashboard:
    """Holds portfolios, quotes and sorted views; applies refresh results."""

    def __init__(self, store: HoldingStore, market_data: MarketData,
                 orchestrator: Optional[RefreshOrchestrator] = None, config: AppConfig = None):
        self.config = config or default_config
        self.store = store
        self.market_data = market_data
        self.orchestrator = orchestrator or RefreshOrchestrator(market_data.fetch_uncached, self.config)
        self.logger = logging.getLogger(self.__class__.__name__)

        self.portfolios: List[Portfolio] = []
        self.current_index = 0
        self.view_combined = False

        self.holdings: List[Holding] = []
        self.combined: Dict[str, AggregatedPosition] = {}
        self.quotes: Dict[str, Quote] = {}
        self.exchange_rate = self.config.DEFAULT_EXCHANGE_RATE
        self.sort_state = SortState()
        self.orderings: Dict[ViewKey, List] = {
            (scope, market): [] for scope in ViewScope for market in Market
        }
        self.last_update: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_portfolios(self):
        """Discover portfolio files. Raises StorageError on directory failures."""
        previous = self.current_portfolio
        self.portfolios = self.store.discover_portfolios()
        names = [p.name for p in self.portfolios]
        if previous is not None and previous.name in names:
            self.current_index = names.index(previous.name)
        elif self.current_index >= len(self.portfolios):
            self.current_index = 0
        self.logger.info(f"Loaded {len(self.portfolios)} portfolios")

    @property
    def current_portfolio(self) -> Optional[Portfolio]:
        if 0 <= self.current_index < len(self.portfolios):
            return self.portfolios[self.current_index]
        return None

    def refresh_data(self):
        """
        Synchronous reload: holding files, combined positions, cached-or-fetched
        quotes and the exchange rate, then re-sort every view.

        Raises:
            StorageError: If a portfolio file cannot be read
        """
        self.exchange_rate = self.market_data.get_exchange_rate()

        portfolio = self.current_portfolio
        self.holdings = self.store.load(portfolio) if portfolio else []
        self.combined = aggregate(self.portfolios, self.store)

        for symbol in self._all_symbols():
            quote = self.market_data.get_quote(symbol)
            if quote is not None:
                self.quotes[symbol] = quote

        self._rebuild_orderings()
        self.last_update = datetime.now()

    def _all_symbols(self) -> List[str]:
        return list(dict.fromkeys([h.symbol for h in self.holdings] + list(self.combined)))

    def active_symbols(self) -> List[str]:
        """Symbols shown by the current view, in display-independent order."""
        if self.view_combined:
            return list(self.combined)
        return list(dict.fromkeys(h.symbol for h in self.holdings))

    # ------------------------------------------------------------------
    # Background refresh
    # ------------------------------------------------------------------

    @property
    def is_fetching(self) -> bool:
        return self.orchestrator.is_fetching

    def start_refresh(self, force: bool = False) -> bool:
        """
        Start a background batch for the active view.

        force drops the in-process cache tiers first. Returns False when a
        batch is already running (nothing is cleared in that case).
        """
        if self.orchestrator.is_fetching:
            return False
        if force:
            self.market_data.invalidate_all()
        return self.orchestrator.start(self.active_symbols())

    def process_fetch_results(self) -> bool:
        """Apply every pending refresh message. Returns True if anything arrived."""
        messages = self.orchestrator.drain()
        for message in messages:
            self.apply_message(message)
        return bool(messages)

    def apply_message(self, message: FetchMessage):
        if isinstance(message, PriceResult):
            if message.quote is not None:
                self.market_data.price_cache.put_memory(message.symbol, message.quote)
                self.quotes[message.symbol] = message.quote
        elif isinstance(message, ExchangeRateResult):
            self.exchange_rate = message.rate
        elif isinstance(message, BatchComplete):
            self.last_update = datetime.now()
            self.sort_all()

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def _rebuild_orderings(self):
        """Repopulate the four views from source data, then sort them."""
        for market in Market:
            self.orderings[(ViewScope.PORTFOLIO, market)] = [h for h in self.holdings if h.market is market]
            self.orderings[(ViewScope.COMBINED, market)] = [
                p for p in self.combined.values() if p.market is market
            ]
        self.sort_all()

    def sort_all(self):
        """Re-sort all four views with the current column and direction."""
        for key, rows in self.orderings.items():
            self.orderings[key] = sort_rows(rows, self.sort_state.column, self.sort_state.direction,
                                            self.quotes, self.exchange_rate)

    def toggle_sort(self, column: SortColumn):
        self.sort_state.toggle(column)
        self.sort_all()

    def rows(self, market: Market, combined: Optional[bool] = None) -> List:
        if combined is None:
            combined = self.view_combined
        scope = ViewScope.COMBINED if combined else ViewScope.PORTFOLIO
        return self.orderings[(scope, market)]

    def quote_for(self, symbol: str) -> Optional[Quote]:
        return self.quotes.get(symbol)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def select_portfolio(self, index: int) -> bool:
        if not 0 <= index < len(self.portfolios):
            return False
        self.view_combined = False
        self.current_index = index
        self.refresh_data()
        return True

    def next_portfolio(self, step: int = 1) -> bool:
        if self.view_combined or len(self.portfolios) < 2:
            return False
        return self.select_portfolio((self.current_index + step) % len(self.portfolios))

    def show_combined(self):
        self.view_combined = True

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def _summary_rows(self) -> List:
        if self.view_combined:
            return list(self.combined.values())
        return list(self.holdings)

    def calculate_summary(self) -> Dict[str, float]:
        """
        Totals in the primary currency over priced rows with quantity > 0.

        Returns:
            Dict with total_cost, total_value, total_gain, total_gain_percent,
            stock_count and holding_count
        """
        rows = self._summary_rows()
        total_cost = 0.0
        total_value = 0.0
        holding_count = 0

        for row in rows:
            quote = self.quotes.get(row.symbol)
            if row.quantity <= 0 or quote is None:
                continue
            factor = currency_factor(row, self.exchange_rate)
            total_cost += row.quantity * row.cost_basis * factor
            total_value += row.quantity * quote.price * factor
            holding_count += 1

        total_gain = total_value - total_cost
        return {
            "total_cost": total_cost,
            "total_value": total_value,
            "total_gain": total_gain,
            "total_gain_percent": total_gain / total_cost * 100.0 if total_cost > 0 else 0.0,
            "stock_count": len(rows),
            "holding_count": holding_count,
        }

    def calculate_market_summary(self) -> Dict[Market, Dict[str, float]]:
        """Value, gain and gain percent per market, in that market's own currency."""
        totals = {market: {"cost": 0.0, "value": 0.0} for market in Market}
        for row in self._summary_rows():
            quote = self.quotes.get(row.symbol)
            if row.quantity <= 0 or quote is None:
                continue
            totals[row.market]["cost"] += row.quantity * row.cost_basis
            totals[row.market]["value"] += row.quantity * quote.price

        summary = {}
        for market, t in totals.items():
            gain = t["value"] - t["cost"]
            summary[market] = {
                "value": t["value"],
                "gain": gain,
                "gain_percent": gain / t["cost"] * 100.0 if t["cost"] > 0 else 0.0,
            }
        return summary

    # ------------------------------------------------------------------
    # Editing (current portfolio only)
    # ------------------------------------------------------------------

    def add_holding(self, symbol: str, display: str, name: str, quantity: float, cost_basis: float):
        portfolio = self.current_portfolio
        if portfolio is None:
            return
        self.store.add_holding(portfolio, Holding(symbol, display, name, quantity, cost_basis, portfolio.name))
        self.refresh_data()

    def edit_holding(self, symbol: str, quantity: float, cost_basis: float) -> bool:
        portfolio = self.current_portfolio
        if portfolio is None:
            return False
        changed = self.store.edit_holding(portfolio, symbol, quantity, cost_basis)
        self.refresh_data()
        return changed

    def delete_holding(self, symbol: str) -> bool:
        portfolio = self.current_portfolio
        if portfolio is None:
            return False
        changed = self.store.delete_holding(portfolio, symbol)
        self.refresh_data()
        return changed

    def create_portfolio(self, name: str):
        self.store.create_portfolio(name)
        self.load_portfolios()

    # ------------------------------------------------------------------
    # Detail view
    # ------------------------------------------------------------------

    def get_historical(self, symbol: str) -> Optional[HistoricalSeries]:
        return self.market_data.get_historical(symbol)
