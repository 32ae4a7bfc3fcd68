#!/usr/bin/env python3
"""
Dashboard screen rendering: portfolio tabs, one table per market, the
summary block and the key footer.
"""

import curses

from stocktui.models import Market
from stocktui.ui.display_utils import (
    CYAN, MAGENTA, YELLOW, color_for_value, format_header, format_row_cells,
    market_title, safe_addstr, table_columns,
)

SUMMARY_LINES = 5
FOOTER_LINES = 1


def render_dashboard(stdscr, dashboard, view_state):
    """Draw the full dashboard. The caller refreshes the screen."""
    stdscr.erase()
    height, _ = stdscr.getmaxyx()

    render_tabs(stdscr, dashboard, 0)

    table_top = 2
    table_space = max(0, height - table_top - SUMMARY_LINES - FOOTER_LINES)
    primary_height = table_space // 2
    market_summary = dashboard.calculate_market_summary()

    render_table(stdscr, dashboard, view_state, Market.PRIMARY, table_top, primary_height, market_summary)
    render_table(stdscr, dashboard, view_state, Market.SECONDARY, table_top + primary_height,
                 table_space - primary_height, market_summary)

    render_summary(stdscr, dashboard, view_state, height - SUMMARY_LINES - FOOTER_LINES)
    render_footer(stdscr, view_state, height - FOOTER_LINES)


def render_tabs(stdscr, dashboard, row):
    col = 0
    label = " [0] ALL "
    attr = curses.color_pair(MAGENTA) | curses.A_REVERSE if dashboard.view_combined else 0
    safe_addstr(stdscr, row, col, label, attr)
    col += len(label) + 1

    for i, portfolio in enumerate(dashboard.portfolios):
        label = f" [{i + 1}] {portfolio.name} "
        active = not dashboard.view_combined and i == dashboard.current_index
        safe_addstr(stdscr, row, col, label, curses.A_REVERSE if active else 0)
        col += len(label) + 1


def render_table(stdscr, dashboard, view_state, market, top, height, market_summary):
    if height < 3:
        return

    combined = dashboard.view_combined
    columns = table_columns(combined, view_state.hide_positions)
    title, title_value = market_title(market, combined, market_summary,
                                      view_state.hide_positions, view_state.show_gain_amount)
    is_active = view_state.active_market is market

    safe_addstr(stdscr, top, 0, title, (curses.color_pair(CYAN) if is_active else 0) | curses.A_BOLD)
    if title_value is not None:
        gain_text = title.rsplit("  ", 1)[-1]
        safe_addstr(stdscr, top, len(title) - len(gain_text), gain_text, color_for_value(title_value))
    safe_addstr(stdscr, top + 1, 0, format_header(columns, dashboard.sort_state),
                curses.color_pair(YELLOW) | curses.A_BOLD)

    rows = dashboard.rows(market)
    visible = height - 2
    selected = view_state.selected[market]
    offset = max(0, selected - visible + 1)

    for line, index in enumerate(range(offset, min(len(rows), offset + visible))):
        row_item = rows[index]
        cells, price_value, gain_value = format_row_cells(
            row_item, dashboard.quote_for(row_item.symbol), dashboard.exchange_rate,
            combined, view_state.hide_positions)
        highlight = curses.A_REVERSE if is_active and index == selected else 0
        _draw_cells(stdscr, top + 2 + line, columns, cells, price_value, gain_value, highlight)


def _draw_cells(stdscr, y, columns, cells, price_value, gain_value, highlight):
    x = 0
    for (title, width, _, right), text in zip(columns, cells):
        text = text[:width]
        text = text.rjust(width) if right else text.ljust(width)
        if title in ("Price", "Change"):
            attr = color_for_value(price_value) if price_value is not None else 0
        elif title in ("Gain", "Gain %"):
            attr = color_for_value(gain_value) if gain_value is not None else 0
        elif title == "Portfolio":
            attr = curses.A_DIM
        else:
            attr = 0
        safe_addstr(stdscr, y, x, text, attr | highlight)
        x += width + 1


def render_summary(stdscr, dashboard, view_state, top):
    title = "Combined Summary (All Portfolios)" if dashboard.view_combined else "Summary"
    safe_addstr(stdscr, top, 0, title, curses.A_BOLD | (curses.color_pair(MAGENTA) if dashboard.view_combined else 0))

    updated = dashboard.last_update.strftime("%H:%M:%S") if dashboard.last_update else "--:--:--"
    status = f"Updated: {updated}  |  USD/TWD: {dashboard.exchange_rate:.2f}"
    safe_addstr(stdscr, top + 1, 0, status, curses.A_DIM)

    if dashboard.is_fetching:
        indicator, attr = "  |  Updating...", curses.color_pair(YELLOW) | curses.A_BOLD
    elif view_state.live_mode:
        remaining = view_state.live_seconds_remaining(dashboard.config.LIVE_REFRESH_INTERVAL_SECONDS)
        indicator, attr = f"  |  LIVE ({remaining}s)", color_for_value(1) | curses.A_BOLD
    else:
        indicator, attr = "", 0
    safe_addstr(stdscr, top + 1, len(status), indicator, attr)

    if view_state.hide_positions:
        safe_addstr(stdscr, top + 2, 2, "Positions hidden (press H to show)", curses.color_pair(YELLOW))
        return

    summary = dashboard.calculate_summary()
    safe_addstr(stdscr, top + 2, 2, f"Total Cost: {summary['total_cost']:>15,.2f} TWD   "
                                    f"Total Value: {summary['total_value']:>15,.2f} TWD")
    safe_addstr(stdscr, top + 3, 2, f"Total Gain: {summary['total_gain']:>15,.2f} TWD "
                                    f"({summary['total_gain_percent']:+.2f}%)",
                color_for_value(summary['total_gain']))
    safe_addstr(stdscr, top + 4, 2, f"Stocks: {summary['stock_count']}  |  Holdings: {summary['holding_count']}",
                curses.A_DIM)


def render_footer(stdscr, view_state, row):
    hide_key = "H=Show" if view_state.hide_positions else "H=Hide"
    live_key = "L=Live:ON" if view_state.live_mode else "L=Live"
    title_key = "T=$" if view_state.show_gain_amount else "T=%"
    footer = (f" 0-9=Portfolio | jk=Nav Tab=Market | Enter=Detail | Sort:pcygG | a=Add e=Edit d=Del n=New | "
              f"{hide_key} {title_key} | {live_key} | r=Refresh | q=Quit ")
    safe_addstr(stdscr, row, 0, footer, curses.color_pair(YELLOW))
