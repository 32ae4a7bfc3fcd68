#!/usr/bin/env python3
"""
stocktui - Market Data

Synchronous cache-then-fetch access used on the interactive path, plus the
uncached blocking fetch used by the background refresh worker.
"""

import logging
from typing import Optional

from stocktui.app_config import AppConfig, config as default_config
from stocktui.models import HistoricalSeries, Quote
from stocktui.price_cache import HistoricalCache, PriceCache
from stocktui.quote_fetcher import QuoteFetcher

logger = logging.getLogger(__name__)


class MarketData:
    """Owns the quote and historical caches and the fetcher."""

    def __init__(self, fetcher: Optional[QuoteFetcher] = None,
                 price_cache: Optional[PriceCache] = None,
                 historical_cache: Optional[HistoricalCache] = None,
                 config: AppConfig = None):
        self.config = config or default_config
        self.fetcher = fetcher or QuoteFetcher(self.config)
        self.price_cache = price_cache or PriceCache(self.config)
        self.historical_cache = historical_cache or HistoricalCache(self.config)

    def get_quote(self, symbol: str) -> Optional[Quote]:
        """Cached quote if fresh, otherwise fetch and store in both tiers."""
        quote = self.price_cache.get(symbol)
        if quote is not None:
            return quote

        quote = self.fetcher.fetch(symbol)
        if quote is not None:
            self.price_cache.put(symbol, quote)
        return quote

    def fetch_uncached(self, symbol: str) -> Optional[Quote]:
        """
        Blocking fetch for the background worker.

        Skips the cache read and writes only the disk tier; the in-process
        tier belongs to the interactive loop.
        """
        quote = self.fetcher.fetch(symbol)
        if quote is not None:
            self.price_cache.put_disk(symbol, quote)
        return quote

    def get_exchange_rate(self) -> float:
        quote = self.get_quote(self.config.EXCHANGE_RATE_SYMBOL)
        if quote is None:
            logger.warning(f"Exchange rate unavailable, using default {self.config.DEFAULT_EXCHANGE_RATE}")
            return self.config.DEFAULT_EXCHANGE_RATE
        return quote.price

    def get_historical(self, symbol: str) -> Optional[HistoricalSeries]:
        series = self.historical_cache.get(symbol)
        if series is not None:
            return series

        series = self.fetcher.fetch_historical(symbol)
        if series is not None:
            self.historical_cache.put(symbol, series)
        return series

    def invalidate_all(self):
        """Force refresh: drop in-process entries of both caches."""
        self.price_cache.invalidate_all()
        self.historical_cache.invalidate_all()
