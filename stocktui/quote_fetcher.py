#!/usr/bin/env python3
"""
stocktui - Quote Fetcher

Network access to the Yahoo Finance chart API. Holds no cache: every call
goes to the network. Endpoints are tried in priority order and the first
parseable response wins. Network errors, timeouts and malformed payloads all
come back as None; callers decide how to degrade.
"""

import logging
import math
import threading
from typing import Any, Optional

import requests
import yfinance as yf

from stocktui.app_config import AppConfig, config as default_config
from stocktui.models import HistoricalSeries, Quote

logger = logging.getLogger(__name__)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def _first_result(data: Any) -> Optional[dict]:
    try:
        result = data["chart"]["result"][0]
    except (KeyError, IndexError, TypeError):
        return None
    return result if isinstance(result, dict) else None


def parse_chart_quote(data: Any) -> Optional[Quote]:
    """
    Extract a quote from a chart API response body.

    The price is regularMarketPrice (or previousClose), the reference is
    previousClose (or chartPreviousClose). Both must be present and the
    reference non-zero.
    """
    result = _first_result(data)
    if result is None:
        return None
    meta = result.get("meta")
    if not isinstance(meta, dict):
        return None

    price = _as_number(meta.get("regularMarketPrice"))
    if price is None:
        price = _as_number(meta.get("previousClose"))
    previous = _as_number(meta.get("previousClose"))
    if previous is None:
        previous = _as_number(meta.get("chartPreviousClose"))

    if price is None or not previous:
        return None
    return Quote.from_prices(price, previous)


def parse_chart_history(data: Any) -> Optional[HistoricalSeries]:
    """Extract parallel timestamp/close arrays, dropping days without a close."""
    result = _first_result(data)
    if result is None:
        return None
    try:
        timestamps = result["timestamp"]
        closes = result["indicators"]["quote"][0]["close"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(timestamps, list) or not isinstance(closes, list):
        return None

    pairs = [
        (int(ts), _as_number(close))
        for ts, close in zip(timestamps, closes)
        if isinstance(ts, (int, float)) and _as_number(close) is not None
    ]
    if not pairs:
        return None
    return HistoricalSeries(timestamps=[p[0] for p in pairs], closes=[p[1] for p in pairs])


class QuoteFetcher:
    """
    Fetches live quotes and historical series; never consults a cache.

    The background refresh worker and the interactive loop both call into
    one fetcher, so each thread gets its own requests.Session unless a
    session is injected.
    """

    def __init__(self, config: AppConfig = None, session: Optional[requests.Session] = None):
        self.config = config or default_config
        self._shared_session = session
        self._local = threading.local()
        if session is not None:
            session.headers.update({"User-Agent": self.config.USER_AGENT})

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": self.config.USER_AGENT})
            self._local.session = session
        return session

    def fetch(self, symbol: str) -> Optional[Quote]:
        """Fetch a fresh quote, trying each endpoint in order."""
        for url_template in self.config.QUOTE_URLS:
            url = url_template.format(symbol=symbol)
            data = self._get_json(url, timeout=self.config.QUOTE_TIMEOUT)
            if data is None:
                continue
            quote = parse_chart_quote(data)
            if quote is not None:
                return quote
            logger.debug(f"Unparseable quote payload for {symbol} from {url}")

        if self.config.USE_YFINANCE_FALLBACK:
            quote = self._fetch_yfinance(symbol)
            if quote is not None:
                return quote

        logger.warning(f"No quote available for {symbol}")
        return None

    def fetch_historical(self, symbol: str) -> Optional[HistoricalSeries]:
        """Fetch daily closes over the configured range."""
        url = self.config.HISTORICAL_URL.format(symbol=symbol)
        params = {"interval": self.config.HISTORICAL_INTERVAL, "range": self.config.HISTORICAL_RANGE}
        data = self._get_json(url, timeout=self.config.HISTORICAL_TIMEOUT, params=params)
        if data is None:
            return None
        series = parse_chart_history(data)
        if series is None:
            logger.warning(f"No historical data available for {symbol}")
        return series

    def _get_json(self, url: str, timeout: float, params: Optional[dict] = None) -> Optional[Any]:
        try:
            response = self.session.get(url, params=params, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.debug(f"Request to {url} failed: {e}")
        except ValueError as e:
            logger.debug(f"Invalid JSON from {url}: {e}")
        return None

    def _fetch_yfinance(self, symbol: str) -> Optional[Quote]:
        """Last resort: the last two daily closes from yfinance, bounded by QUOTE_TIMEOUT."""
        try:
            history = yf.Ticker(symbol).history(period="5d", timeout=self.config.QUOTE_TIMEOUT)
            closes = [c for c in (_as_number(v) for v in history["Close"].tolist()) if c is not None]
        except Exception as e:
            logger.debug(f"yfinance lookup failed for {symbol}: {e}")
            return None
        if len(closes) < 2 or not closes[-2]:
            return None
        return Quote.from_prices(closes[-1], closes[-2])
