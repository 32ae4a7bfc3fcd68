#!/usr/bin/env python3
"""
stocktui - Application Configuration

Centralized configuration management for the stock dashboard.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class AppConfig:
    """Application configuration settings."""

    # Cache windows (seconds)
    CACHE_DURATION_SECONDS: float = 60.0
    HISTORICAL_CACHE_DURATION_SECONDS: float = 6 * 60 * 60

    # Quote service
    QUOTE_TIMEOUT: float = 5.0
    HISTORICAL_TIMEOUT: float = 10.0
    QUOTE_URLS: List[str] = field(default_factory=lambda: [
        "https://query2.finance.yahoo.com/v8/finance/chart/{symbol}",
        "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}",
    ])
    HISTORICAL_URL: str = "https://query2.finance.yahoo.com/v8/finance/chart/{symbol}"
    HISTORICAL_INTERVAL: str = "1d"
    HISTORICAL_RANGE: str = "1mo"
    USER_AGENT: str = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36"
    USE_YFINANCE_FALLBACK: bool = True

    # Exchange rate
    EXCHANGE_RATE_SYMBOL: str = "USDTWD=X"
    DEFAULT_EXCHANGE_RATE: float = 32.0

    # Markets
    PRIMARY_MARKET_SUFFIX: str = ".TW"

    # File paths
    CACHE_DIRECTORY: str = "/tmp/stock-tui"
    PORTFOLIO_DIRECTORY: str = os.path.join("~", ".config", "stock-tui", "portfolios")
    PORTFOLIO_EXTENSION: str = ".conf"
    DEFAULT_PORTFOLIO: str = "main"
    DEMO_FILENAME: str = "demo.conf"
    DEMO_MODE: bool = False
    LOG_FILENAME: str = "stocktui.log"

    # Interactive loop
    POLL_TIMEOUT_MS: int = 100
    LIVE_REFRESH_INTERVAL_SECONDS: float = 5.0

    def get_portfolio_path(self) -> str:
        """Get the expanded portfolio directory path."""
        return os.path.expanduser(self.PORTFOLIO_DIRECTORY)

    def get_cache_path(self) -> str:
        return os.path.expanduser(self.CACHE_DIRECTORY)

    def get_demo_file_path(self, search_dirs: Optional[List[str]] = None) -> Optional[str]:
        """Find demo.conf in the given directories, falling back to the working directory."""
        for directory in (search_dirs or []) + [os.getcwd()]:
            candidate = os.path.join(directory, self.DEMO_FILENAME)
            if os.path.exists(candidate):
                return candidate
        return None

    @classmethod
    def from_env(cls, environ=None) -> "AppConfig":
        """Build a configuration with STOCKTUI_* and DEMO environment overrides applied."""
        environ = os.environ if environ is None else environ
        cfg = cls()
        if environ.get("STOCKTUI_PORTFOLIO_DIR"):
            cfg.PORTFOLIO_DIRECTORY = environ["STOCKTUI_PORTFOLIO_DIR"]
        if environ.get("STOCKTUI_CACHE_DIR"):
            cfg.CACHE_DIRECTORY = environ["STOCKTUI_CACHE_DIR"]
        cfg.DEMO_MODE = environ.get("DEMO", "").lower() in ("1", "true")
        return cfg


# Global configuration instance
config = AppConfig.from_env()
