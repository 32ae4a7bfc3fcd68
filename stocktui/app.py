#!/usr/bin/env python3
"""
stocktui - Main Application Class

Provides the interactive loop for the terminal dashboard. The loop never
blocks on the network: it drains background refresh results, redraws, and
polls the keyboard with a short timeout.
"""

import curses
import logging
from typing import Callable, Dict

from stocktui.app_config import AppConfig, config as default_config
from stocktui.dashboard import Dashboard
from stocktui.holding_store import HoldingStore
from stocktui.market_data import MarketData
from stocktui.models import StockError
from stocktui.ui.dashboard_view import render_dashboard
from stocktui.ui.display_utils import CYAN, GREEN, MAGENTA, RED, YELLOW
from stocktui.ui.handlers import (
    AddHoldingHandler, DeleteHoldingHandler, DetailViewHandler, EditHoldingHandler, NewPortfolioHandler,
)
from stocktui.ui.key_handler import DashboardKeyHandler
from stocktui.ui.view_state import ViewState


class StockTuiApp:
    """Main application class for the stock dashboard."""

    def __init__(self, config: AppConfig = None, dashboard: Dashboard = None):
        self.config = config or default_config
        self.stdscr = None
        self.logger = logging.getLogger(self.__class__.__name__)
        self.dashboard = dashboard or Dashboard(
            HoldingStore(config=self.config), MarketData(config=self.config), config=self.config)
        self.view_state = ViewState()
        self.key_handler = DashboardKeyHandler(self.dashboard, self.logger)
        self.actions: Dict[str, Callable[[dict], bool]] = {}

    def _initialize_curses(self, stdscr):
        """Initialize curses settings and colors."""
        self.stdscr = stdscr

        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(GREEN, curses.COLOR_GREEN, -1)
        curses.init_pair(RED, curses.COLOR_RED, -1)
        curses.init_pair(YELLOW, curses.COLOR_YELLOW, -1)
        curses.init_pair(CYAN, curses.COLOR_CYAN, -1)
        curses.init_pair(MAGENTA, curses.COLOR_MAGENTA, -1)

        stdscr.clear()
        curses.curs_set(0)
        stdscr.keypad(True)
        stdscr.timeout(self.config.POLL_TIMEOUT_MS)

        self.logger.info("Curses initialized successfully")

    def _initialize_dashboard(self):
        """Load portfolios and the first synchronous price snapshot."""
        if self.stdscr:
            self.stdscr.addstr(0, 0, "Initializing stock dashboard...")
            self.stdscr.addstr(1, 0, "Loading portfolios...")
            self.stdscr.refresh()

        self.dashboard.load_portfolios()

        if self.stdscr:
            self.stdscr.addstr(2, 0, f"Fetching prices for {len(self.dashboard.portfolios)} portfolios...")
            self.stdscr.refresh()

        self.dashboard.refresh_data()
        self.logger.info(f"Dashboard ready: {len(self.dashboard.holdings)} holdings in "
                         f"'{self.dashboard.current_portfolio.name}', {len(self.dashboard.combined)} combined")

    def _setup_actions(self):
        """Set up action handlers mapping. Each returns False to quit."""
        self.actions = {
            'quit': lambda result: False,
            'refresh': self._on_refresh,
            'view_combined': lambda result: self._continue(self.dashboard.show_combined()),
            'select_portfolio': lambda result: self._continue(self.dashboard.select_portfolio(result['index'])),
            'next_portfolio': lambda result: self._continue(self.dashboard.next_portfolio(result['step'])),
            'sort': lambda result: self._continue(self.dashboard.toggle_sort(result['column'])),
            'add': lambda result: self._continue(AddHoldingHandler(self.stdscr, self.dashboard).handle()),
            'edit': lambda result: self._with_selection(EditHoldingHandler),
            'delete': lambda result: self._with_selection(DeleteHoldingHandler),
            'new_portfolio': lambda result: self._continue(NewPortfolioHandler(self.stdscr, self.dashboard).handle()),
            'detail': lambda result: self._with_selection(DetailViewHandler),
        }

    @staticmethod
    def _continue(_result=None) -> bool:
        return True

    def _on_refresh(self, result) -> bool:
        """Force refresh: clear in-process caches and start a background batch."""
        if self.dashboard.start_refresh(force=True):
            self.logger.info("Manual refresh started")
        return True

    def _with_selection(self, handler_class) -> bool:
        selected = self.key_handler.selected_row(self.view_state)
        if selected is not None:
            handler_class(self.stdscr, self.dashboard).handle(selected)
        return True

    def _dispatch(self, result: dict) -> bool:
        action = result['action']
        if action == 'none':
            return True
        handler = self.actions.get(action)
        if handler is None:
            return True
        try:
            return handler(result)
        except StockError as e:
            self.logger.error(f"Action '{action}' failed: {e}")
            self._show_error_message(str(e))
            return True

    def _show_error_message(self, message: str):
        """Show an error message and wait for a key."""
        self.stdscr.clear()
        self.stdscr.addstr(0, 0, "ERROR", curses.color_pair(RED) | curses.A_BOLD)
        self.stdscr.addstr(1, 0, "-" * 40)
        width = max(10, self.stdscr.getmaxyx()[1] - 1)
        for i in range(0, min(len(message), width * 10), width):
            self.stdscr.addstr(3 + i // width, 0, message[i:i + width])
        self.stdscr.addstr(min(15, self.stdscr.getmaxyx()[0] - 2), 0, "Press any key to continue...")
        self.stdscr.refresh()
        self.stdscr.timeout(-1)
        self.stdscr.getch()
        self.stdscr.timeout(self.config.POLL_TIMEOUT_MS)

    def _main_loop(self):
        """Poll, draw, maybe start a live refresh, handle one key."""
        self.logger.info("Starting main application loop")

        while True:
            self.dashboard.process_fetch_results()

            render_dashboard(self.stdscr, self.dashboard, self.view_state)
            self.stdscr.refresh()

            if (not self.dashboard.is_fetching
                    and self.view_state.live_refresh_due(self.config.LIVE_REFRESH_INTERVAL_SECONDS)):
                self.dashboard.start_refresh()

            try:
                key = self.stdscr.getch()
            except KeyboardInterrupt:
                break

            result = self.key_handler.handle_key(key, self.view_state)
            if not self._dispatch(result):
                break

    def run(self, stdscr):
        """Main entry point for the application inside curses.wrapper."""
        try:
            self._initialize_curses(stdscr)
            self._initialize_dashboard()
            self._setup_actions()
            self._main_loop()
        finally:
            self.logger.info("Application shutting down")

    @classmethod
    def main(cls, config: AppConfig = None):
        """Run the application with curses wrapper."""
        app = cls(config)
        curses.wrapper(app.run)
