"""Tests for the Yahoo chart API fetcher. The HTTP session and yfinance are mocked."""

import threading
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from stocktui.models import HistoricalSeries, Quote
from stocktui.quote_fetcher import QuoteFetcher, parse_chart_history, parse_chart_quote


def chart_payload(**meta):
    return {"chart": {"result": [{"meta": meta}], "error": None}}


def json_response(payload):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


class TestParseChartQuote:

    def test_regular_market_price(self):
        quote = parse_chart_quote(chart_payload(regularMarketPrice=15.0, previousClose=10.0))
        assert quote == Quote(15.0, 5.0, 50.0)

    def test_falls_back_to_previous_close_for_price(self):
        quote = parse_chart_quote(chart_payload(previousClose=10.0))
        assert quote == Quote(10.0, 0.0, 0.0)

    def test_falls_back_to_chart_previous_close(self):
        quote = parse_chart_quote(chart_payload(regularMarketPrice=11.0, chartPreviousClose=10.0))
        assert quote.change == pytest.approx(1.0)
        assert quote.change_percent == pytest.approx(10.0)

    def test_zero_previous_close_is_a_failure(self):
        assert parse_chart_quote(chart_payload(regularMarketPrice=11.0, previousClose=0)) is None

    @pytest.mark.parametrize("payload", [
        None,
        {},
        {"chart": {"result": []}},
        {"chart": {"result": None}},
        {"chart": {"result": [{"meta": None}]}},
        chart_payload(regularMarketPrice="15", chartPreviousClose="10"),
        chart_payload(regularMarketPrice=15.0),
    ])
    def test_malformed_payloads(self, payload):
        assert parse_chart_quote(payload) is None


class TestParseChartHistory:

    def test_parallel_arrays(self):
        payload = {"chart": {"result": [{
            "timestamp": [100, 200, 300],
            "indicators": {"quote": [{"close": [1.0, None, 3.0]}]},
        }]}}
        assert parse_chart_history(payload) == HistoricalSeries([100, 300], [1.0, 3.0])

    def test_missing_indicators(self):
        assert parse_chart_history({"chart": {"result": [{"timestamp": [1]}]}}) is None

    def test_all_closes_missing(self):
        payload = {"chart": {"result": [{
            "timestamp": [100],
            "indicators": {"quote": [{"close": [None]}]},
        }]}}
        assert parse_chart_history(payload) is None


class TestQuoteFetcher:

    def test_sets_user_agent(self, app_config):
        session = MagicMock()
        session.headers = {}
        QuoteFetcher(app_config, session=session)
        assert session.headers["User-Agent"] == app_config.USER_AGENT

    def test_first_endpoint_wins(self, app_config):
        session = MagicMock()
        session.get.return_value = json_response(chart_payload(regularMarketPrice=15.0, previousClose=10.0))

        quote = QuoteFetcher(app_config, session=session).fetch("AAPL")

        assert quote == Quote(15.0, 5.0, 50.0)
        assert session.get.call_count == 1
        url = session.get.call_args[0][0]
        assert url == "https://query2.finance.yahoo.com/v8/finance/chart/AAPL"
        assert session.get.call_args[1]["timeout"] == app_config.QUOTE_TIMEOUT

    def test_falls_back_to_second_endpoint_on_error(self, app_config):
        session = MagicMock()
        session.get.side_effect = [
            requests.exceptions.Timeout("slow"),
            json_response(chart_payload(regularMarketPrice=15.0, previousClose=10.0)),
        ]

        quote = QuoteFetcher(app_config, session=session).fetch("2330.TW")

        assert quote == Quote(15.0, 5.0, 50.0)
        urls = [c[0][0] for c in session.get.call_args_list]
        assert urls == [
            "https://query2.finance.yahoo.com/v8/finance/chart/2330.TW",
            "https://query1.finance.yahoo.com/v8/finance/chart/2330.TW",
        ]

    def test_falls_back_on_unparseable_payload(self, app_config):
        session = MagicMock()
        session.get.side_effect = [
            json_response({"chart": {"result": None}}),
            json_response(chart_payload(regularMarketPrice=20.0, previousClose=10.0)),
        ]
        assert QuoteFetcher(app_config, session=session).fetch("AAPL").price == 20.0

    def test_http_error_and_bad_json_give_none(self, app_config):
        bad_status = MagicMock()
        bad_status.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        bad_json = MagicMock()
        bad_json.raise_for_status.return_value = None
        bad_json.json.side_effect = ValueError("no json")
        session = MagicMock()
        session.get.side_effect = [bad_status, bad_json]

        assert QuoteFetcher(app_config, session=session).fetch("AAPL") is None

    def test_yfinance_fallback(self, app_config):
        app_config.USE_YFINANCE_FALLBACK = True
        app_config.QUOTE_TIMEOUT = 0.2
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("offline")

        with patch("stocktui.quote_fetcher.yf.Ticker") as ticker:
            ticker.return_value.history.return_value = pd.DataFrame({"Close": [9.0, 10.0, float("nan"), 15.0]})
            quote = QuoteFetcher(app_config, session=session).fetch("AAPL")

        ticker.assert_called_once_with("AAPL")
        ticker.return_value.history.assert_called_once_with(period="5d", timeout=0.2)
        assert quote == Quote(15.0, 5.0, 50.0)

    def test_yfinance_needs_two_closes(self, app_config):
        app_config.USE_YFINANCE_FALLBACK = True
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("offline")

        with patch("stocktui.quote_fetcher.yf.Ticker") as ticker:
            ticker.return_value.history.return_value = pd.DataFrame({"Close": [15.0]})
            assert QuoteFetcher(app_config, session=session).fetch("AAPL") is None

    def test_yfinance_failure_gives_none(self, app_config):
        app_config.USE_YFINANCE_FALLBACK = True
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("offline")

        with patch("stocktui.quote_fetcher.yf.Ticker", side_effect=RuntimeError("blocked")):
            assert QuoteFetcher(app_config, session=session).fetch("AAPL") is None

    def test_fetch_historical(self, app_config):
        session = MagicMock()
        session.get.return_value = json_response({"chart": {"result": [{
            "timestamp": [1700000000, 1700086400],
            "indicators": {"quote": [{"close": [10.0, 11.0]}]},
        }]}})

        series = QuoteFetcher(app_config, session=session).fetch_historical("AAPL")

        assert series == HistoricalSeries([1700000000, 1700086400], [10.0, 11.0])
        kwargs = session.get.call_args[1]
        assert kwargs["params"] == {"interval": "1d", "range": "1mo"}
        assert kwargs["timeout"] == app_config.HISTORICAL_TIMEOUT

    def test_fetch_historical_network_error(self, app_config):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("offline")
        assert QuoteFetcher(app_config, session=session).fetch_historical("AAPL") is None


class TestSessionPerThread:

    def test_each_thread_gets_its_own_session(self, app_config):
        fetcher = QuoteFetcher(app_config)
        with patch("stocktui.quote_fetcher.requests.Session", side_effect=lambda: MagicMock(headers={})):
            main_session = fetcher.session
            assert fetcher.session is main_session

            worker_sessions = []
            worker = threading.Thread(target=lambda: worker_sessions.append(fetcher.session))
            worker.start()
            worker.join()

        assert worker_sessions[0] is not main_session
        assert main_session.headers["User-Agent"] == app_config.USER_AGENT
        assert worker_sessions[0].headers["User-Agent"] == app_config.USER_AGENT

    def test_injected_session_is_shared(self, app_config):
        session = MagicMock()
        fetcher = QuoteFetcher(app_config, session=session)

        seen = []
        worker = threading.Thread(target=lambda: seen.append(fetcher.session))
        worker.start()
        worker.join()
        assert seen == [session]
        assert fetcher.session is session
