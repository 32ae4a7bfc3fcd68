#!/usr/bin/env python3
"""
Key handler for the dashboard screen.
Centralizes all keyboard input handling logic.
"""

import curses
from typing import Any, Dict

from stocktui.ranking import SortColumn
from stocktui.ui.view_state import ViewState

SORT_KEYS = {
    ord('p'): SortColumn.PRICE,
    ord('c'): SortColumn.CHANGE,
    ord('y'): SortColumn.QUANTITY,
    ord('g'): SortColumn.GAIN,
    ord('G'): SortColumn.GAIN_PERCENT,
    curses.KEY_F1: SortColumn.PRICE,
    curses.KEY_F2: SortColumn.CHANGE,
    curses.KEY_F3: SortColumn.QUANTITY,
    curses.KEY_F4: SortColumn.GAIN,
    curses.KEY_F5: SortColumn.GAIN_PERCENT,
}

ENTER_KEYS = (curses.KEY_ENTER, 10, 13)


class DashboardKeyHandler:
    """Handles keyboard input for the dashboard screen."""

    def __init__(self, dashboard, logger):
        self.dashboard = dashboard
        self.logger = logger

    def handle_key(self, key: int, view_state: ViewState) -> Dict[str, Any]:
        """
        Process a keypress and return the action to take.

        View-only toggles (hide, live, title mode, selection) are applied to
        view_state directly. Anything touching data or files is returned as
        an action for the application loop.

        Returns:
            Dict with:
            {
                'action': 'none' | 'quit' | 'refresh' | 'select_portfolio' |
                          'next_portfolio' | 'view_combined' | 'sort' | 'add' |
                          'edit' | 'delete' | 'new_portfolio' | 'detail',
                'needs_redraw': bool,
                'index' / 'step' / 'column': action argument where relevant
            }
        """
        result = {'action': 'none', 'needs_redraw': False}
        if key == -1:
            return result

        result['needs_redraw'] = True
        combined = self.dashboard.view_combined

        if key == ord('q'):
            result['action'] = 'quit'
        elif key == ord('0'):
            view_state.reset_selection()
            result['action'] = 'view_combined'
        elif ord('1') <= key <= ord('9'):
            index = key - ord('1')
            if index < len(self.dashboard.portfolios):
                view_state.reset_selection()
                result['action'] = 'select_portfolio'
                result['index'] = index
        elif key == ord('\t'):
            view_state.switch_section()
        elif key in (curses.KEY_DOWN, ord('j')):
            view_state.move_selection(1, len(self.dashboard.rows(view_state.active_market)))
        elif key in (curses.KEY_UP, ord('k')):
            view_state.move_selection(-1, len(self.dashboard.rows(view_state.active_market)))
        elif key in (curses.KEY_RIGHT, ord('l')):
            view_state.reset_selection()
            result['action'] = 'next_portfolio'
            result['step'] = 1
        elif key in (curses.KEY_LEFT, ord('h')):
            view_state.reset_selection()
            result['action'] = 'next_portfolio'
            result['step'] = -1
        elif key == ord('r'):
            result['action'] = 'refresh'
        elif key == ord('a') and not combined:
            result['action'] = 'add'
        elif key == ord('e') and not combined:
            result['action'] = 'edit'
        elif key == ord('d') and not combined:
            result['action'] = 'delete'
        elif key == ord('n'):
            result['action'] = 'new_portfolio'
        elif key in SORT_KEYS:
            result['action'] = 'sort'
            result['column'] = SORT_KEYS[key]
        elif key == ord('H'):
            view_state.toggle_hide_positions()
        elif key == ord('L'):
            view_state.toggle_live_mode()
            self.logger.info(f"Live mode {'enabled' if view_state.live_mode else 'disabled'}")
        elif key == ord('T'):
            view_state.toggle_gain_display()
        elif key in ENTER_KEYS:
            result['action'] = 'detail'
        else:
            result['needs_redraw'] = False

        return result

    def selected_row(self, view_state: ViewState):
        rows = self.dashboard.rows(view_state.active_market)
        index = view_state.selected[view_state.active_market]
        if 0 <= index < len(rows):
            return rows[index]
        return None
