"""Tests for the two-tier quote and history caches."""

import json
import os

import pytest

from stocktui.models import CacheEntry, HistoricalSeries, Quote
from stocktui.price_cache import HistoricalCache, PriceCache, TimedCache, cache_filename

QUOTE = Quote(price=15.0, change=5.0, change_percent=50.0)


class TestCacheEntry:

    def test_fresh_strictly_inside_window(self):
        entry = CacheEntry(QUOTE, fetched_at=1000.0)
        assert entry.is_fresh(1059.9, 60)
        assert not entry.is_fresh(1060.0, 60)
        assert not entry.is_fresh(1061.0, 60)


class TestPriceCache:

    def test_payload_format_is_abstract(self, tmp_path):
        with pytest.raises(TypeError):
            TimedCache(60, str(tmp_path))

    def test_cache_filename(self):
        assert cache_filename("2330.TW", ".cache") == "2330_TW.cache"
        assert cache_filename("AAPL", "_history.json") == "AAPL_history.json"

    def test_miss_when_empty(self, app_config, clock):
        assert PriceCache(app_config, clock=clock).get("AAPL") is None

    def test_put_then_get(self, app_config, clock):
        cache = PriceCache(app_config, clock=clock)
        cache.put("AAPL", QUOTE)
        assert cache.get("AAPL") == QUOTE

    def test_expires_at_window_boundary(self, app_config, clock):
        cache = PriceCache(app_config, clock=clock)
        cache.put("AAPL", QUOTE)

        clock.advance(59)
        assert cache.get("AAPL") == QUOTE
        clock.advance(1)
        assert cache.get("AAPL") is None

    def test_disk_tier_survives_new_instance(self, app_config, clock):
        PriceCache(app_config, clock=clock).put("2330.TW", QUOTE)

        fresh_process = PriceCache(app_config, clock=clock)
        assert fresh_process.get("2330.TW") == QUOTE
        assert os.path.exists(os.path.join(app_config.CACHE_DIRECTORY, "2330_TW.cache"))

    def test_disk_hit_keeps_stored_fetch_time(self, app_config, clock):
        PriceCache(app_config, clock=clock).put("AAPL", QUOTE)
        clock.advance(30)

        cache = PriceCache(app_config, clock=clock)
        assert cache.get("AAPL") == QUOTE
        clock.advance(30)
        assert cache.get("AAPL") is None

    def test_put_disk_does_not_touch_memory(self, app_config, clock, tmp_path):
        cache = PriceCache(app_config, clock=clock)
        cache.put_disk("AAPL", QUOTE)
        assert "AAPL" not in cache._memory

        with open(cache.file_path("AAPL")) as f:
            payload = json.load(f)
        assert payload == {"price": 15.0, "change": 5.0, "change_percent": 50.0, "fetched_at": clock.now}

    def test_put_memory_wins_over_disk(self, app_config, clock):
        cache = PriceCache(app_config, clock=clock)
        newer = Quote(16.0, 6.0, 60.0)
        cache.put_disk("AAPL", QUOTE)
        cache.put_memory("AAPL", newer)
        assert cache.get("AAPL") == newer

    def test_invalidate_all_clears_memory_only(self, app_config, clock):
        cache = PriceCache(app_config, clock=clock)
        cache.put("AAPL", QUOTE)
        cache.invalidate_all()

        assert cache._memory == {}
        # Disk tier still fresh, so the next read repopulates memory
        assert cache.get("AAPL") == QUOTE
        assert "AAPL" in cache._memory

    def test_corrupt_file_is_a_miss(self, app_config, clock):
        cache = PriceCache(app_config, clock=clock)
        os.makedirs(app_config.CACHE_DIRECTORY, exist_ok=True)
        with open(cache.file_path("AAPL"), "w") as f:
            f.write("{not json")
        assert cache.get("AAPL") is None

    def test_missing_price_field_is_a_miss(self, app_config, clock):
        cache = PriceCache(app_config, clock=clock)
        os.makedirs(app_config.CACHE_DIRECTORY, exist_ok=True)
        with open(cache.file_path("AAPL"), "w") as f:
            json.dump({"change": 1.0, "fetched_at": clock.now}, f)
        assert cache.get("AAPL") is None

    def test_file_without_fetch_time_uses_mtime(self, app_config, clock):
        cache = PriceCache(app_config, clock=clock)
        os.makedirs(app_config.CACHE_DIRECTORY, exist_ok=True)
        path = cache.file_path("AAPL")
        with open(path, "w") as f:
            json.dump(QUOTE.to_dict(), f)

        os.utime(path, (clock.now - 10, clock.now - 10))
        assert cache.get("AAPL") == QUOTE

        os.utime(path, (clock.now - 120, clock.now - 120))
        cache.invalidate_all()
        assert cache.get("AAPL") is None

    def test_unwritable_cache_dir_is_ignored(self, app_config, clock, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        cache = PriceCache(app_config, cache_dir=str(blocker / "cache"), clock=clock)

        cache.put("AAPL", QUOTE)
        assert cache.get("AAPL") == QUOTE


class TestHistoricalCache:

    def test_long_window(self, app_config, clock):
        cache = HistoricalCache(app_config, clock=clock)
        series = HistoricalSeries([1, 2, 3], [10.0, 11.0, 12.0])
        cache.put("AAPL", series)

        clock.advance(6 * 60 * 60 - 1)
        assert HistoricalCache(app_config, clock=clock).get("AAPL") == series
        clock.advance(1)
        assert HistoricalCache(app_config, clock=clock).get("AAPL") is None

    def test_history_file_name(self, app_config, clock):
        cache = HistoricalCache(app_config, clock=clock)
        assert cache.file_path("2330.TW").endswith("2330_TW_history.json")

    def test_empty_series_on_disk_is_a_miss(self, app_config, clock):
        cache = HistoricalCache(app_config, clock=clock)
        cache.put_disk("AAPL", HistoricalSeries([], []))
        assert cache.get("AAPL") is None
