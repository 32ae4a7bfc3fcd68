#!/usr/bin/env python3
"""
stocktui - UI Handler Classes

Base handler with prompt helpers, and one handler per modal screen (add,
edit, delete, new portfolio, detail view). Handlers run on the interactive
loop; storage errors are shown to the user rather than raised.
"""

import curses
import logging
from abc import ABC, abstractmethod
from typing import Optional

from stocktui.history import TREND_ARROWS, sparkline, summarize
from stocktui.holding_store import default_display, normalize_symbol
from stocktui.models import StockError
from stocktui.ui.display_utils import CYAN, GREEN, RED, YELLOW, color_for_value, safe_addstr

CLOSE_KEYS = (27, ord('q'), curses.KEY_ENTER, 10, 13)


class BaseUIHandler(ABC):
    """Base class for all UI handlers providing common functionality."""

    def __init__(self, stdscr, dashboard):
        self.stdscr = stdscr
        self.dashboard = dashboard
        self.logger = logging.getLogger(self.__class__.__name__)

    def safe_addstr(self, row: int, col: int, text: str, attr: int = 0) -> None:
        """Safely add string to screen, handling window boundary checks."""
        safe_addstr(self.stdscr, row, col, text or "", attr)

    def get_user_input(self, prompt: str, row: int, col: int = 0,
                       validator=None, default: str = "") -> Optional[str]:
        """Read a line of input. Empty input returns default; failed validation returns None."""
        self.safe_addstr(row, col, prompt)
        self.stdscr.refresh()

        curses.echo()
        curses.curs_set(1)
        self.stdscr.timeout(-1)
        try:
            user_input = self.stdscr.getstr().decode('utf-8').strip()
        except (ValueError, UnicodeDecodeError):
            return None
        finally:
            curses.noecho()
            curses.curs_set(0)
            self.stdscr.timeout(self.dashboard.config.POLL_TIMEOUT_MS)

        if not user_input:
            user_input = default
        if validator and not validator(user_input):
            return None
        return user_input

    def get_numeric_input(self, prompt: str, row: int, col: int = 0,
                          min_val: Optional[float] = None, default: Optional[float] = None) -> Optional[float]:
        """Get a float from the user, or None if invalid."""
        def validator(value: str) -> bool:
            try:
                num = float(value)
            except ValueError:
                return False
            return min_val is None or num >= min_val

        default_text = "" if default is None else f"{default:g}"
        result = self.get_user_input(prompt, row, col, validator, default_text)
        return None if result is None else float(result)

    def confirm_action(self, message: str, row: int, col: int = 0) -> bool:
        """Show confirmation prompt and return True if confirmed."""
        response = self.get_user_input(f"{message} (y/n): ", row, col)
        return (response or "").lower() in ('y', 'yes')

    def show_message(self, message: str, row: int = None, attr: int = 0) -> None:
        """Display a message and wait for a key press."""
        if row is None:
            row = self.stdscr.getmaxyx()[0] - 2
        self.safe_addstr(row, 0, message, attr)
        self.safe_addstr(row + 1, 0, "Press any key to continue...")
        self.stdscr.refresh()
        self.stdscr.timeout(-1)
        try:
            self.stdscr.getch()
        finally:
            self.stdscr.timeout(self.dashboard.config.POLL_TIMEOUT_MS)

    def clear_and_display_header(self, title: str) -> int:
        """Clear screen and display header, return next available row."""
        self.stdscr.clear()
        self.safe_addstr(0, 0, title, curses.A_BOLD)
        self.safe_addstr(1, 0, "-" * (len(title) + 10))
        return 3

    @abstractmethod
    def handle(self, *args) -> None:
        """Handle the main logic for this UI handler."""
        pass


class AddHoldingHandler(BaseUIHandler):
    """Prompts for a new holding in the current portfolio."""

    def handle(self) -> None:
        portfolio = self.dashboard.current_portfolio
        row = self.clear_and_display_header(f"Add Stock to '{portfolio.name}'")

        symbol = self.get_user_input("Symbol (e.g. 2330 or 2330.TW, AAPL): ", row)
        if not symbol:
            self.show_message("Invalid symbol.", row + 2)
            return
        symbol = normalize_symbol(symbol)

        display = self.get_user_input(f"Display name [{default_display(symbol)}]: ", row + 1,
                                      default=default_display(symbol))
        name = self.get_user_input(f"Description [{symbol}]: ", row + 2, default=symbol)
        quantity = self.get_numeric_input("Quantity: ", row + 3, min_val=0, default=0.0)
        cost_basis = self.get_numeric_input("Cost basis: ", row + 4, min_val=0, default=0.0)
        if quantity is None or cost_basis is None:
            self.show_message("Quantity and cost basis must be non-negative numbers.", row + 6)
            return

        try:
            self.dashboard.add_holding(symbol, display or default_display(symbol), name or symbol, quantity, cost_basis)
        except StockError as e:
            self.logger.error(f"Failed to add {symbol}: {e}")
            self.show_message(f"Failed to add {symbol}: {e}", row + 6, curses.color_pair(RED))
            return
        self.logger.info(f"Added {symbol} to {portfolio.name}")


class EditHoldingHandler(BaseUIHandler):
    """Edits quantity and cost basis of the selected holding."""

    def handle(self, holding) -> None:
        row = self.clear_and_display_header(f"Edit {holding.symbol} ({holding.display})")
        self.safe_addstr(row, 0, "Press Enter to keep the current value.")

        quantity = self.get_numeric_input(f"Quantity [{holding.quantity:g}]: ", row + 2,
                                          min_val=0, default=holding.quantity)
        cost_basis = self.get_numeric_input(f"Cost basis [{holding.cost_basis:g}]: ", row + 3,
                                            min_val=0, default=holding.cost_basis)
        if quantity is None or cost_basis is None:
            self.show_message("Quantity and cost basis must be non-negative numbers.", row + 5)
            return

        try:
            self.dashboard.edit_holding(holding.symbol, quantity, cost_basis)
        except StockError as e:
            self.logger.error(f"Failed to edit {holding.symbol}: {e}")
            self.show_message(f"Failed to edit {holding.symbol}: {e}", row + 5, curses.color_pair(RED))


class DeleteHoldingHandler(BaseUIHandler):
    """Confirms and deletes the selected holding."""

    def handle(self, holding) -> None:
        row = self.clear_and_display_header("Delete Stock")
        if not self.confirm_action(f"Delete {holding.symbol} ({holding.display})?", row):
            return
        try:
            self.dashboard.delete_holding(holding.symbol)
        except StockError as e:
            self.logger.error(f"Failed to delete {holding.symbol}: {e}")
            self.show_message(f"Failed to delete {holding.symbol}: {e}", row + 2, curses.color_pair(RED))


class NewPortfolioHandler(BaseUIHandler):
    """Creates an empty portfolio file."""

    def handle(self) -> None:
        row = self.clear_and_display_header("New Portfolio")
        name = self.get_user_input("Portfolio name (letters, digits, _): ", row)
        if not name:
            return
        try:
            self.dashboard.create_portfolio(name)
        except StockError as e:
            self.show_message(str(e), row + 2, curses.color_pair(RED))
            return
        self.logger.info(f"Created portfolio {name}")


class DetailViewHandler(BaseUIHandler):
    """Shows the historical trend of one symbol until a key is pressed."""

    def handle(self, row_item) -> None:
        symbol = row_item.symbol
        row = self.clear_and_display_header(f"{symbol}  {row_item.display}  {row_item.name}")
        self.safe_addstr(row, 0, "Loading history...", curses.color_pair(YELLOW))
        self.stdscr.refresh()

        history = self.dashboard.get_historical(symbol)
        quote = self.dashboard.quote_for(symbol)
        self.stdscr.move(row, 0)
        self.stdscr.clrtoeol()

        if quote is not None:
            self.safe_addstr(row, 0, f"Price: {quote.price:.2f}  Change: {quote.change:+.2f} "
                                     f"({quote.change_percent:+.2f}%)", color_for_value(quote.change))
        row += 2

        stats = summarize(history) if history is not None else None
        if stats is None:
            self.safe_addstr(row, 0, "No historical data available.", curses.color_pair(RED))
        else:
            arrow = TREND_ARROWS[stats["trend"]]
            trend_color = {"up": GREEN, "down": RED}.get(stats["trend"], CYAN)
            self.safe_addstr(row, 0, f"Trend ({stats['start']} to {stats['end']}, {stats['days']} days): {arrow}",
                             curses.color_pair(trend_color))
            self.safe_addstr(row + 1, 0, f"First: {stats['first']:.2f}  Last: {stats['last']:.2f}  "
                                         f"High: {stats['high']:.2f}  Low: {stats['low']:.2f}")
            self.safe_addstr(row + 2, 0, f"Period change: {stats['change_percent']:+.2f}%",
                             color_for_value(stats["change_percent"]))
            width = max(10, self.stdscr.getmaxyx()[1] - 4)
            self.safe_addstr(row + 4, 2, sparkline(history.closes, width), curses.color_pair(trend_color))

        height = self.stdscr.getmaxyx()[0]
        self.safe_addstr(height - 2, 0, "Esc/Enter/q to return.")
        self.stdscr.refresh()
        self.wait_for_close()

    def wait_for_close(self) -> None:
        """Block until Esc, Enter or q is pressed."""
        self.stdscr.timeout(-1)
        try:
            while self.stdscr.getch() not in CLOSE_KEYS:
                pass
        finally:
            self.stdscr.timeout(self.dashboard.config.POLL_TIMEOUT_MS)
