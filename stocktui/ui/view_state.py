#!/usr/bin/env python3
"""
View state management for the dashboard screen.
Centralizes all UI-only state variables for better organization and testability.
"""

import time
from dataclasses import dataclass, field
from typing import Dict

from stocktui.models import Market


@dataclass
class ViewState:
    """Encapsulates all view state for the dashboard screen."""

    # Table focus and row selection
    active_market: Market = Market.PRIMARY
    selected: Dict[Market, int] = field(default_factory=lambda: {m: 0 for m in Market})

    # Display toggles
    hide_positions: bool = False
    show_gain_amount: bool = False

    # Live mode (periodic background refresh)
    live_mode: bool = False
    last_live_refresh: float = 0.0

    def reset_selection(self):
        """Select the first row of both tables."""
        for market in Market:
            self.selected[market] = 0

    def switch_section(self):
        self.active_market = Market.SECONDARY if self.active_market is Market.PRIMARY else Market.PRIMARY

    def move_selection(self, step: int, row_count: int):
        """Move the active table's selection, clamped to the rows present."""
        if row_count == 0:
            self.selected[self.active_market] = 0
            return
        index = self.selected[self.active_market] + step
        self.selected[self.active_market] = max(0, min(index, row_count - 1))

    def toggle_hide_positions(self):
        self.hide_positions = not self.hide_positions

    def toggle_gain_display(self):
        self.show_gain_amount = not self.show_gain_amount

    def toggle_live_mode(self, now: float = None):
        self.live_mode = not self.live_mode
        if self.live_mode:
            self.last_live_refresh = time.monotonic() if now is None else now

    def live_refresh_due(self, interval: float, now: float = None) -> bool:
        """True when live mode is on and the interval has elapsed; restarts the timer."""
        if not self.live_mode:
            return False
        now = time.monotonic() if now is None else now
        if now - self.last_live_refresh >= interval:
            self.last_live_refresh = now
            return True
        return False

    def live_seconds_remaining(self, interval: float, now: float = None) -> int:
        now = time.monotonic() if now is None else now
        return max(0, int(interval - (now - self.last_live_refresh)))
