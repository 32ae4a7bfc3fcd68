#!/usr/bin/env python3
"""
stocktui - Historical Trend Analysis

Statistics for the detail view, computed from a HistoricalSeries with pandas.
"""

from typing import Dict, Optional

import pandas as pd

from stocktui.models import HistoricalSeries

TREND_WINDOW = 5
TREND_THRESHOLD_PERCENT = 1.0
SPARK_CHARS = "▁▂▃▄▅▆▇█"


def to_series(history: HistoricalSeries) -> pd.Series:
    """Closes indexed by trading date."""
    index = pd.to_datetime(history.timestamps[:len(history.closes)], unit="s")
    return pd.Series(history.closes[:len(index)], index=index, name="close", dtype=float)


def calculate_trend(closes) -> str:
    """
    Compare the mean of the first five closes with the mean of the last five.

    Returns:
        "up", "down" or "flat" (also "flat" for fewer than ten closes)
    """
    series = pd.Series(list(closes), dtype=float)
    if len(series) < TREND_WINDOW * 2:
        return "flat"

    first_avg = series.head(TREND_WINDOW).mean()
    last_avg = series.tail(TREND_WINDOW).mean()
    if first_avg == 0:
        return "flat"

    change_pct = (last_avg - first_avg) / first_avg * 100.0
    if change_pct > TREND_THRESHOLD_PERCENT:
        return "up"
    if change_pct < -TREND_THRESHOLD_PERCENT:
        return "down"
    return "flat"


TREND_ARROWS = {"up": "⬆", "down": "⬇", "flat": "→"}


def summarize(history: HistoricalSeries) -> Optional[Dict[str, object]]:
    """Period statistics for the detail view, or None for an empty series."""
    series = to_series(history)
    if series.empty:
        return None

    first = float(series.iloc[0])
    last = float(series.iloc[-1])
    return {
        "start": series.index[0].date(),
        "end": series.index[-1].date(),
        "first": first,
        "last": last,
        "high": float(series.max()),
        "low": float(series.min()),
        "change_percent": (last - first) / first * 100.0 if first else 0.0,
        "trend": calculate_trend(series.tolist()),
        "days": int(series.size),
    }


def sparkline(closes, width: int = 60) -> str:
    """Render closes as a one-line block chart, resampled to at most width points."""
    series = pd.Series(list(closes), dtype=float)
    if series.empty:
        return ""
    if len(series) > width:
        buckets = pd.cut(list(range(len(series))), bins=width, labels=False)
        series = series.groupby(buckets).mean()

    low, high = series.min(), series.max()
    span = high - low
    if span == 0:
        return SPARK_CHARS[len(SPARK_CHARS) // 2] * len(series)

    last = len(SPARK_CHARS) - 1
    return "".join(SPARK_CHARS[int(round((value - low) / span * last))] for value in series)
