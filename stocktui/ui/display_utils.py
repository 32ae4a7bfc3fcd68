import curses

from stocktui.models import Market
from stocktui.ranking import SortColumn, gain_amount, gain_percent

# curses color pairs, initialised in StockTuiApp._initialize_curses
GREEN = 1
RED = 2
YELLOW = 3
CYAN = 4
MAGENTA = 5


def color_for_value(value):
    """
    Returns a curses color pair number based on the value:
    - Green for positive or zero
    - Red for negative
    - Yellow for None
    """
    if value is None:
        return curses.color_pair(YELLOW)
    try:
        v = float(value)
    except (TypeError, ValueError):
        return curses.color_pair(YELLOW)
    return curses.color_pair(GREEN) if v >= 0 else curses.color_pair(RED)


def safe_addstr(stdscr, row, col, text, attr=0):
    """Add a string, truncated to the window and ignoring writes off-screen."""
    if row < 0 or col < 0:
        return
    height, width = stdscr.getmaxyx()
    if row >= height or col >= width:
        return
    remaining = width - col - 1
    if remaining <= 0:
        return
    try:
        stdscr.addstr(row, col, str(text)[:remaining], attr)
    except curses.error:
        pass


def table_columns(combined, hide_positions):
    """
    Column layout as (title, width, sort column or None, right aligned).
    """
    columns = [
        ("Symbol", 10, None, False),
        ("Name", 12 if not combined else 10, None, False),
        ("Price", 10, SortColumn.PRICE, True),
        ("Change", 9, SortColumn.CHANGE, True),
    ]
    if not hide_positions:
        columns += [
            ("Qty", 8, SortColumn.QUANTITY, True),
            ("Cost", 9, None, True),
            ("Gain", 12, SortColumn.GAIN, True),
            ("Gain %", 9, SortColumn.GAIN_PERCENT, True),
        ]
    if combined:
        columns.append(("Portfolio", 14, None, False))
    return columns


def format_header(columns, sort_state):
    cells = []
    for title, width, column, right in columns:
        if column is not None and column is sort_state.column:
            title = f"{title}{sort_state.direction.arrow}"
        cells.append(title.rjust(width) if right else title.ljust(width))
    return " ".join(cells)


def format_row_cells(row, quote, exchange_rate, combined, hide_positions):
    """
    Cell texts for one table row plus the color of the price cells and of the
    gain cells. A row without a quote shows blank numeric fields.
    """
    name_width = 8 if combined else 10
    cells = [row.display, row.name[:name_width]]

    if quote is None:
        cells += ["", ""]
        price_value = None
    else:
        arrow = "↑" if quote.change_percent >= 0 else "↓"
        cells += [f"{quote.price:.2f}", f"{arrow}{quote.change_percent:.1f}%"]
        price_value = quote.change_percent

    gain_value = None
    if not hide_positions:
        gain = gain_amount(row, quote, exchange_rate)
        pct = gain_percent(row, quote)
        cells += [f"{row.quantity:.0f}", f"{row.cost_basis:.1f}"]
        if quote is None:
            cells += ["", ""]
        else:
            cells += [f"{gain:+.0f}", f"{pct:+.1f}%"]
            gain_value = gain

    if combined:
        cells.append(row.portfolio_label)
    return cells, price_value, gain_value


def market_title(market, combined, market_summary, hide_positions, show_gain_amount):
    base = f"{market.title} Stocks" + (" (All)" if combined else "")
    if hide_positions:
        return base, None
    summary = market_summary[market]
    if market is Market.PRIMARY:
        value = f"{summary['value']:.0f} {market.currency}"
        gain_amount_text = f"{summary['gain']:+.0f} {market.currency}"
    else:
        value = f"{summary['value']:.2f} {market.currency}"
        gain_amount_text = f"{summary['gain']:+.2f} {market.currency}"
    gain_text = gain_amount_text if show_gain_amount else f"{summary['gain_percent']:+.2f}%"
    return f"{base}  {value}  {gain_text}", summary["gain"]
