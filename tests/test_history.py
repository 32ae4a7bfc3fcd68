"""Tests for trend detection and detail view statistics."""

import pytest

from stocktui.history import SPARK_CHARS, calculate_trend, sparkline, summarize, to_series
from stocktui.models import HistoricalSeries

DAY = 86400
START = 1_700_006_400  # 2023-11-15 00:00 UTC


def series(closes):
    return HistoricalSeries([START + i * DAY for i in range(len(closes))], list(closes))


class TestCalculateTrend:

    def test_up(self):
        assert calculate_trend([100] * 5 + [102] * 5) == "up"

    def test_down(self):
        assert calculate_trend([100] * 5 + [98] * 5) == "down"

    def test_within_threshold_is_flat(self):
        assert calculate_trend([100] * 5 + [100.5] * 5) == "flat"

    def test_too_few_points(self):
        assert calculate_trend([1, 2, 3, 4, 5, 6, 7, 8, 9]) == "flat"

    def test_uses_outer_windows_only(self):
        closes = [100] * 5 + [500] * 10 + [100] * 5
        assert calculate_trend(closes) == "flat"


class TestSummarize:

    def test_statistics(self):
        stats = summarize(series([10.0, 12.0, 8.0, 11.0]))
        assert stats["first"] == 10.0
        assert stats["last"] == 11.0
        assert stats["high"] == 12.0
        assert stats["low"] == 8.0
        assert stats["change_percent"] == pytest.approx(10.0)
        assert stats["days"] == 4
        assert stats["trend"] == "flat"
        assert str(stats["start"]) == "2023-11-15"
        assert str(stats["end"]) == "2023-11-18"

    def test_empty(self):
        assert summarize(HistoricalSeries([], [])) is None

    def test_series_index(self):
        s = to_series(series([1.0, 2.0]))
        assert list(s) == [1.0, 2.0]
        assert (s.index[1] - s.index[0]).days == 1


class TestSparkline:

    def test_empty(self):
        assert sparkline([]) == ""

    def test_constant(self):
        assert sparkline([5.0, 5.0, 5.0]) == SPARK_CHARS[4] * 3

    def test_range_maps_to_extremes(self):
        line = sparkline([1.0, 2.0, 3.0])
        assert line[0] == SPARK_CHARS[0]
        assert line[-1] == SPARK_CHARS[-1]
        assert len(line) == 3

    def test_resampled_to_width(self):
        line = sparkline([float(i) for i in range(100)], width=20)
        assert len(line) == 20
        assert line[0] == SPARK_CHARS[0]
        assert line[-1] == SPARK_CHARS[-1]
