import pytest

from stocktui.app_config import AppConfig
from stocktui.holding_store import HoldingStore
from stocktui.market_data import MarketData
from stocktui.models import Quote
from stocktui.price_cache import HistoricalCache, PriceCache


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeFetcher:
    """QuoteFetcher stand-in: quotes come from a dict, every call is recorded."""

    def __init__(self, quotes=None, history=None):
        self.quotes = dict(quotes or {})
        self.history = dict(history or {})
        self.calls = []
        self.historical_calls = []

    def fetch(self, symbol):
        self.calls.append(symbol)
        return self.quotes.get(symbol)

    def fetch_historical(self, symbol):
        self.historical_calls.append(symbol)
        return self.history.get(symbol)


@pytest.fixture
def app_config(tmp_path):
    """Configuration pointing every directory into tmp_path."""
    cfg = AppConfig()
    cfg.PORTFOLIO_DIRECTORY = str(tmp_path / "portfolios")
    cfg.CACHE_DIRECTORY = str(tmp_path / "cache")
    cfg.USE_YFINANCE_FALLBACK = False
    return cfg


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(app_config):
    return HoldingStore(config=app_config)


@pytest.fixture
def fetcher():
    return FakeFetcher({
        "USDTWD=X": Quote.from_prices(31.0, 31.0),
        "AAA": Quote.from_prices(15.0, 10.0),
        "BBB.TW": Quote.from_prices(100.0, 100.0),
    })


@pytest.fixture
def market_data(app_config, fetcher, clock):
    return MarketData(
        fetcher=fetcher,
        price_cache=PriceCache(app_config, clock=clock),
        historical_cache=HistoricalCache(app_config, clock=clock),
        config=app_config,
    )


@pytest.fixture
def portfolio_dir(app_config, tmp_path):
    path = tmp_path / "portfolios"
    path.mkdir(parents=True, exist_ok=True)
    return path
