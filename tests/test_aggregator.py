"""Tests for cross-portfolio aggregation."""

import pytest

from stocktui.aggregator import aggregate, aggregate_holdings, merge_cost_basis
from stocktui.models import Holding, Portfolio


class TestMergeCostBasis:

    def test_weighted_average(self):
        assert merge_cost_basis(10, 100, 30, 140) == pytest.approx(130.0)

    def test_zero_total_quantity(self):
        assert merge_cost_basis(0, 100, 0, 140) == 0.0

    def test_first_contribution(self):
        assert merge_cost_basis(0, 0, 5, 42) == 42.0


class TestAggregateHoldings:

    def test_same_symbol_across_portfolios(self):
        positions = aggregate_holdings([
            Holding("AAPL", "Apple", "Apple Inc", 10, 100, "main"),
            Holding("AAPL", "Apple (alt)", "Apple", 30, 140, "alt"),
        ])

        position = positions["AAPL"]
        assert position.quantity == 40
        assert position.cost_basis == pytest.approx(130.0)
        assert position.display == "Apple"
        assert position.source_portfolios == ["main", "alt"]
        assert position.portfolio_label == "main+alt"

    def test_zero_quantity_has_zero_cost(self):
        positions = aggregate_holdings([
            Holding("BBB.TW", "Beta", "Beta Co", 0, 55, "main"),
            Holding("BBB.TW", "Beta", "Beta Co", 0, 60, "alt"),
        ])
        assert positions["BBB.TW"].quantity == 0
        assert positions["BBB.TW"].cost_basis == 0.0

    def test_zero_quantity_contributor_does_not_change_cost(self):
        positions = aggregate_holdings([
            Holding("AAA", "Alpha", "Alpha Inc", 10, 100, "main"),
            Holding("AAA", "Alpha", "Alpha Inc", 0, 999, "alt"),
        ])

        position = positions["AAA"]
        assert position.quantity == 10
        assert position.cost_basis == pytest.approx(100.0)
        assert position.source_portfolios == ["main", "alt"]

    def test_first_encounter_order(self):
        positions = aggregate_holdings([
            Holding("MSFT", "MS", "Microsoft", 1, 1, "main"),
            Holding("2330.TW", "TSMC", "TSMC", 1, 1, "main"),
            Holding("MSFT", "MS", "Microsoft", 1, 1, "alt"),
            Holding("AAPL", "Apple", "Apple Inc", 1, 1, "alt"),
        ])
        assert list(positions) == ["MSFT", "2330.TW", "AAPL"]

    def test_empty(self):
        assert aggregate_holdings([]) == {}


class TestAggregate:

    def write(self, directory, name, body):
        path = directory / f"{name}.conf"
        path.write_text(body, encoding="utf-8")
        return Portfolio(name, path)

    def test_reads_every_portfolio(self, store, portfolio_dir):
        portfolios = [
            self.write(portfolio_dir, "main", "AAPL|Apple|Apple Inc|10|100\n"),
            self.write(portfolio_dir, "alt", "AAPL|Apple|Apple Inc|30|140\n2330.TW|TSMC|TSMC|5|500\n"),
        ]

        positions = aggregate(portfolios, store)

        assert positions["AAPL"].quantity == 40
        assert positions["AAPL"].cost_basis == pytest.approx(130.0)
        assert positions["2330.TW"].portfolio_label == "alt"

    def test_idempotent(self, store, portfolio_dir):
        portfolios = [
            self.write(portfolio_dir, "main", "AAPL|Apple|Apple Inc|10|100\n"),
            self.write(portfolio_dir, "alt", "AAPL|Apple|Apple Inc|30|140\n"),
        ]
        assert aggregate(portfolios, store) == aggregate(portfolios, store)
