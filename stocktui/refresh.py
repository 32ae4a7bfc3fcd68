#!/usr/bin/env python3
"""
stocktui - Refresh Orchestrator

Runs a batch price refresh on a background thread and reports results to the
interactive loop through a queue. The loop drains the queue without ever
blocking; results may be applied one at a time and any partial state is a
valid state.

Message flow for one batch:
    ExchangeRateResult (only when the rate symbol returned a quote)
    PriceResult        (one per symbol, quote may be None)
    BatchComplete
"""

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from stocktui.app_config import AppConfig, config as default_config
from stocktui.models import Quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceResult:
    symbol: str
    quote: Optional[Quote]


@dataclass(frozen=True)
class ExchangeRateResult:
    rate: float


@dataclass(frozen=True)
class BatchComplete:
    symbol_count: int = 0


FetchMessage = Union[PriceResult, ExchangeRateResult, BatchComplete]


class RefreshState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class RefreshOrchestrator:
    """
    Coordinates non-blocking batch refreshes.

    Only one batch runs at a time; start() while fetching is a no-op. There is
    no cancellation, a batch always runs to completion.
    """

    def __init__(self, fetch: Callable[[str], Optional[Quote]], config: AppConfig = None):
        self.fetch = fetch
        self.config = config or default_config
        self.messages: "queue.Queue[FetchMessage]" = queue.Queue()
        self.state = RefreshState.IDLE
        self._thread: Optional[threading.Thread] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def is_fetching(self) -> bool:
        return self.state is RefreshState.FETCHING

    def start(self, symbols: List[str]) -> bool:
        """
        Start a batch for a snapshot of the given symbols.

        Returns:
            True if a batch was started, False if one is already in flight
        """
        if self.is_fetching:
            return False

        snapshot = list(dict.fromkeys(symbols))
        self.state = RefreshState.FETCHING
        self._thread = threading.Thread(target=self._run_batch, args=(snapshot,), daemon=True)
        self._thread.start()
        self.logger.info(f"Started refresh batch for {len(snapshot)} symbols")
        return True

    def _run_batch(self, symbols: List[str]):
        """Worker: exchange rate first, then each symbol independently."""
        rate_quote = self._safe_fetch(self.config.EXCHANGE_RATE_SYMBOL)
        if rate_quote is not None:
            self.messages.put(ExchangeRateResult(rate_quote.price))

        for symbol in symbols:
            self.messages.put(PriceResult(symbol, self._safe_fetch(symbol)))

        self.messages.put(BatchComplete(len(symbols)))

    def _safe_fetch(self, symbol: str) -> Optional[Quote]:
        try:
            return self.fetch(symbol)
        except Exception as e:
            self.logger.warning(f"Fetch for {symbol} failed: {e}")
            return None

    def drain(self) -> List[FetchMessage]:
        """Return every message currently available without waiting."""
        drained = []
        while True:
            try:
                message = self.messages.get_nowait()
            except queue.Empty:
                break
            if isinstance(message, BatchComplete):
                self.state = RefreshState.IDLE
                self.logger.info(f"Refresh batch complete ({message.symbol_count} symbols)")
            drained.append(message)
        return drained

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the worker thread. Returns True if no worker is still running."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()
