#!/usr/bin/env python3
"""
stocktui - Holding Store

Reads and writes the line-oriented portfolio files:

    # Stock Portfolio Configuration
    # Format: SYMBOL|Display Name|Description|Quantity|Cost Basis

    # Taiwan Stocks
    2330.TW|TSMC|Taiwan Semiconductor|1000|550

    # US Stocks
    AAPL|Apple|Apple Inc|10|150

Storage failures raise StorageError; a malformed line is skipped.
"""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from stocktui.app_config import AppConfig, config as default_config
from stocktui.models import Holding, InvalidHoldingError, Market, Portfolio, StorageError

logger = logging.getLogger(__name__)

FILE_HEADER = (
    "# Stock Portfolio Configuration\n"
    "# Format: SYMBOL|Display Name|Description|Quantity|Cost Basis\n"
)

_PORTFOLIO_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


def normalize_symbol(symbol: str) -> str:
    """
    Upper-case a user-entered symbol. A bare 4-6 digit code is a Taiwan
    listing and gets the primary market suffix appended (2330 -> 2330.TW).
    """
    symbol = symbol.strip().upper()
    if symbol.isascii() and symbol.isdigit() and 4 <= len(symbol) <= 6:
        symbol = f"{symbol}{default_config.PRIMARY_MARKET_SUFFIX}"
    return symbol


def default_display(symbol: str) -> str:
    """Display label used when none is given: the symbol without the market suffix."""
    return symbol.replace(default_config.PRIMARY_MARKET_SUFFIX, "")


def parse_holding_line(line: str, portfolio_name: str = "") -> Optional[Holding]:
    """
    Parse one portfolio file line.

    Returns None for comments, blank lines and lines with fewer than three
    fields. Quantity and cost basis default to 0 when missing or unparsable.
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    parts = line.split("|")
    if len(parts) < 3:
        logger.debug(f"Skipping malformed holding line: {line!r}")
        return None

    return Holding(
        symbol=parts[0].strip(),
        display=parts[1].strip(),
        name=parts[2].strip(),
        quantity=_parse_number(parts, 3),
        cost_basis=_parse_number(parts, 4),
        portfolio_name=portfolio_name,
    )


def _parse_number(parts: List[str], index: int) -> float:
    if index >= len(parts):
        return 0.0
    try:
        return float(parts[index].strip())
    except ValueError:
        return 0.0


def format_holdings(holdings: List[Holding]) -> str:
    """Render holdings in file format, grouped by market."""
    lines = [FILE_HEADER]
    sections = []
    for market in (Market.PRIMARY, Market.SECONDARY):
        group = [h for h in holdings if h.market is market]
        if group:
            body = "\n".join(h.to_line() for h in group)
            sections.append(f"# {market.title} Stocks\n{body}\n")
    if sections:
        lines.append("\n")
        lines.append("\n".join(sections))
    return "".join(lines)


class HoldingStore:
    """Manages portfolio discovery and holding file I/O."""

    def __init__(self, portfolio_dir: Optional[str] = None, config: AppConfig = None):
        self.config = config or default_config
        self.portfolio_dir = Path(portfolio_dir or self.config.get_portfolio_path())

    def path_for(self, name: str) -> Path:
        return self.portfolio_dir / f"{name}{self.config.PORTFOLIO_EXTENSION}"

    def exists(self, name: str) -> bool:
        return os.path.exists(self.path_for(name))

    def discover_portfolios(self) -> List[Portfolio]:
        """
        Scan the portfolio directory for portfolio files.

        The directory is created if missing, and a header-only default
        portfolio is written when no portfolio files exist.

        Returns:
            Portfolios with the default portfolio first, then alphabetical

        Raises:
            StorageError: If the directory cannot be created or read
        """
        if self.config.DEMO_MODE:
            demo_path = self.config.get_demo_file_path()
            if demo_path:
                logger.info(f"Demo mode: using {demo_path}")
                return [Portfolio(name="demo", file_path=Path(demo_path))]

        try:
            self.portfolio_dir.mkdir(parents=True, exist_ok=True)
            portfolios = [
                Portfolio(name=path.stem, file_path=path)
                for path in self.portfolio_dir.iterdir()
                if path.is_file() and path.suffix == self.config.PORTFOLIO_EXTENSION
            ]
        except OSError as e:
            raise StorageError(f"Cannot read portfolio directory {self.portfolio_dir}: {e}") from e

        default_name = self.config.DEFAULT_PORTFOLIO
        portfolios.sort(key=lambda p: (p.name != default_name, p.name))

        if not portfolios:
            portfolios.append(self.create_portfolio(default_name))
            logger.info(f"Created default portfolio at {portfolios[0].file_path}")

        return portfolios

    def create_portfolio(self, name: str) -> Portfolio:
        """Create an empty portfolio file containing only the header."""
        if not _PORTFOLIO_NAME_RE.match(name or ""):
            raise InvalidHoldingError(f"Invalid portfolio name: {name!r}")

        path = self.path_for(name)
        if path.exists():
            raise InvalidHoldingError(f"Portfolio {name} already exists")
        try:
            self.portfolio_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(FILE_HEADER, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot create portfolio {name}: {e}") from e
        return Portfolio(name=name, file_path=path)

    def load(self, portfolio: Portfolio) -> List[Holding]:
        """
        Load all holdings of a portfolio.

        A missing file yields an empty list.

        Raises:
            StorageError: If the file exists but cannot be read
        """
        if not portfolio.file_path.exists():
            return []

        try:
            with open(portfolio.file_path, "r", encoding="utf-8") as f:
                lines = f.readlines()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read portfolio {portfolio.name}: {e}") from e

        holdings = []
        for line in lines:
            holding = parse_holding_line(line, portfolio.name)
            if holding is not None:
                holdings.append(holding)
        return holdings

    def save(self, portfolio: Portfolio, holdings: List[Holding]) -> None:
        """Rewrite a portfolio file from holdings, grouped by market."""
        try:
            with open(portfolio.file_path, "w", encoding="utf-8") as f:
                f.write(format_holdings(holdings))
        except OSError as e:
            raise StorageError(f"Cannot write portfolio {portfolio.name}: {e}") from e
        logger.info(f"Saved {len(holdings)} holdings to {portfolio.file_path}")

    def add_holding(self, portfolio: Portfolio, holding: Holding) -> None:
        _validate_holding(holding)
        holdings = self.load(portfolio)
        holdings.append(holding)
        self.save(portfolio, holdings)

    def edit_holding(self, portfolio: Portfolio, symbol: str, quantity: float, cost_basis: float) -> bool:
        """Update quantity and cost of the first holding with this symbol. Returns False if absent."""
        if quantity < 0 or cost_basis < 0:
            raise InvalidHoldingError("Quantity and cost basis must not be negative")

        holdings = self.load(portfolio)
        for i, holding in enumerate(holdings):
            if holding.symbol == symbol:
                holdings[i] = Holding(holding.symbol, holding.display, holding.name,
                                      quantity, cost_basis, holding.portfolio_name)
                self.save(portfolio, holdings)
                return True
        return False

    def delete_holding(self, portfolio: Portfolio, symbol: str) -> bool:
        holdings = self.load(portfolio)
        remaining = [h for h in holdings if h.symbol != symbol]
        if len(remaining) == len(holdings):
            return False
        self.save(portfolio, remaining)
        return True


def _validate_holding(holding: Holding):
    if not holding.symbol:
        raise InvalidHoldingError("Symbol is required")
    for value in (holding.symbol, holding.display, holding.name):
        if "|" in value or "\n" in value:
            raise InvalidHoldingError(f"Field contains a reserved character: {value!r}")
    if holding.quantity < 0 or holding.cost_basis < 0:
        raise InvalidHoldingError("Quantity and cost basis must not be negative")
