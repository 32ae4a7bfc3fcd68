#!/usr/bin/env python3
"""
stocktui - Price Cache

Two-tier time-boxed caches keyed by symbol:

- an in-process dict, cleared only by invalidate_all() (force refresh)
- one JSON file per symbol under the cache directory, surviving restarts

An entry is reusable while now - fetched_at < window. The fetch time is
stored inside the cached payload; files written without it fall back to the
file's modification time. Disk failures count as a miss or a no-op write.
"""

import json
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Generic, Optional, TypeVar

from stocktui.app_config import AppConfig, config as default_config
from stocktui.models import CacheEntry, HistoricalSeries, Quote

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cache_filename(symbol: str, suffix: str) -> str:
    """Filesystem-safe cache file name for a symbol."""
    return symbol.replace(".", "_") + suffix


class TimedCache(ABC, Generic[T]):
    """Shared freshness and storage logic; subclasses define the payload format."""

    FILE_SUFFIX = ".cache"

    def __init__(self, window: float, cache_dir: str, clock: Callable[[], float] = time.time):
        self.window = window
        self.cache_dir = cache_dir
        self.clock = clock
        self._memory: Dict[str, CacheEntry] = {}

    @abstractmethod
    def _encode(self, value: T) -> dict:
        """Payload written to the cache file, without the fetch time."""
        pass

    @abstractmethod
    def _decode(self, data: dict) -> Optional[T]:
        """Value from a cache file payload, or None if unusable."""
        pass

    def file_path(self, symbol: str) -> str:
        return os.path.join(self.cache_dir, cache_filename(symbol, self.FILE_SUFFIX))

    def get(self, symbol: str) -> Optional[T]:
        """Return a fresh cached value, or None if the caller must fetch."""
        now = self.clock()
        entry = self._memory.get(symbol)
        if entry is not None and entry.is_fresh(now, self.window):
            return entry.value

        entry = self._read_disk(symbol)
        if entry is not None and entry.is_fresh(now, self.window):
            self._memory[symbol] = entry
            return entry.value
        return None

    def put(self, symbol: str, value: T) -> None:
        """Store in both tiers tagged with the current time."""
        fetched_at = self.clock()
        self.put_memory(symbol, value, fetched_at)
        self.put_disk(symbol, value, fetched_at)

    def put_memory(self, symbol: str, value: T, fetched_at: Optional[float] = None) -> None:
        self._memory[symbol] = CacheEntry(value, self.clock() if fetched_at is None else fetched_at)

    def put_disk(self, symbol: str, value: T, fetched_at: Optional[float] = None) -> None:
        payload = self._encode(value)
        payload["fetched_at"] = self.clock() if fetched_at is None else fetched_at
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            with open(self.file_path(symbol), "w") as f:
                json.dump(payload, f)
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Failed to write cache file for {symbol}: {e}")

    def invalidate_all(self) -> None:
        """Clear the in-process tier; disk entries age out on their own."""
        self._memory.clear()

    def _read_disk(self, symbol: str) -> Optional[CacheEntry]:
        path = self.file_path(symbol)
        try:
            with open(path, "r") as f:
                data = json.load(f)
            fetched_at = data.get("fetched_at")
            if not isinstance(fetched_at, (int, float)):
                fetched_at = os.path.getmtime(path)
            value = self._decode(data)
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.debug(f"Ignoring unreadable cache file {path}: {e}")
            return None
        if value is None:
            return None
        return CacheEntry(value, float(fetched_at))


class PriceCache(TimedCache[Quote]):
    """Quote cache with the short freshness window."""

    FILE_SUFFIX = ".cache"

    def __init__(self, config: AppConfig = None, cache_dir: Optional[str] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config or default_config
        super().__init__(self.config.CACHE_DURATION_SECONDS,
                         cache_dir or self.config.get_cache_path(), clock)

    def _encode(self, value: Quote) -> dict:
        return value.to_dict()

    def _decode(self, data: dict) -> Optional[Quote]:
        return Quote.from_dict(data)


class HistoricalCache(TimedCache[HistoricalSeries]):
    """Historical series cache with the long freshness window."""

    FILE_SUFFIX = "_history.json"

    def __init__(self, config: AppConfig = None, cache_dir: Optional[str] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config or default_config
        super().__init__(self.config.HISTORICAL_CACHE_DURATION_SECONDS,
                         cache_dir or self.config.get_cache_path(), clock)

    def _encode(self, value: HistoricalSeries) -> dict:
        return value.to_dict()

    def _decode(self, data: dict) -> Optional[HistoricalSeries]:
        series = HistoricalSeries.from_dict(data)
        return None if series.is_empty() else series
