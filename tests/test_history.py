"""Tests for the portfolio P&L history."""

from datetime import date
from decimal import Decimal

import pytest

from stocktracker.config import TimeRange
from stocktracker.history import (
    portfolio_history,
    portfolio_start_date,
    start_date_for_range,
)
from stocktracker.models import Holding, Transaction, TransactionKind
from stocktracker.portfolio import Portfolio

JAN_1 = date(2025, 1, 1)
JAN_2 = date(2025, 1, 2)
JAN_3 = date(2025, 1, 3)
JAN_4 = date(2025, 1, 4)

CLOSES = {"AAPL": {JAN_2: Decimal("100"), JAN_3: Decimal("110")}}


class TestStartDateForRange:
    TODAY = date(2026, 3, 31)
    FIRST = date(2020, 1, 1)

    @pytest.mark.parametrize(
        "time_range, expected",
        [
            (TimeRange.FIVE_DAY, date(2026, 3, 26)),
            (TimeRange.ONE_MONTH, date(2026, 2, 28)),
            (TimeRange.THREE_MONTH, date(2025, 12, 31)),
            (TimeRange.SIX_MONTH, date(2025, 9, 30)),
            (TimeRange.ONE_YEAR, date(2025, 3, 31)),
            (TimeRange.FIVE_YEAR, date(2021, 3, 31)),
            (TimeRange.ALL, date(2020, 1, 1)),
        ],
    )
    def test_ranges(self, time_range, expected):
        assert start_date_for_range(time_range, self.FIRST, self.TODAY) == expected

    def test_never_before_portfolio_start(self):
        first = date(2026, 3, 30)
        assert start_date_for_range(TimeRange.ONE_YEAR, first, self.TODAY) == first


class TestPortfolioStartDate:
    def test_earliest_of_trades_and_cash(self):
        portfolio = Portfolio()
        portfolio.deposit(Decimal("100"), JAN_3)
        portfolio.record_transaction(
            "AAPL", Transaction(JAN_2, TransactionKind.BUY, 1, Decimal("10"))
        )
        holdings = list(portfolio.holdings.values())
        assert portfolio_start_date(holdings, portfolio.cash_transactions) == JAN_2

    def test_empty(self):
        assert portfolio_start_date([], []) is None


class TestPortfolioHistory:
    def test_empty_ledger(self):
        assert portfolio_history([], [], {}, JAN_1, JAN_4) == []

    def test_trades_without_cash_ledger(self):
        apple = Holding(
            "AAPL",
            "Apple",
            "AAPL",
            Decimal("0"),
            (Transaction(JAN_2, TransactionKind.BUY, 10, Decimal("100")),),
        )
        points = portfolio_history([apple], [], CLOSES, JAN_1, JAN_4)

        assert [p.date for p in points] == [JAN_1, JAN_2, JAN_3, JAN_4]
        assert [p.total_assets for p in points] == [0, 1000, 1100, 1100]
        assert [p.net_investment for p in points] == [0, 1000, 1000, 1000]
        assert [p.pl_percent for p in points] == [0, 0, 10, 10]

    def test_trades_funded_from_cash(self):
        portfolio = Portfolio()
        portfolio.deposit(Decimal("2000"), JAN_1)
        portfolio.record_transaction(
            "AAPL", Transaction(JAN_2, TransactionKind.BUY, 10, Decimal("100"))
        )
        points = portfolio_history(
            list(portfolio.holdings.values()),
            portfolio.cash_transactions,
            CLOSES,
            JAN_1,
            JAN_3,
        )

        assert [p.total_assets for p in points] == [2000, 2000, 2100]
        assert [p.net_investment for p in points] == [2000, 2000, 2000]
        assert points[-1].pl_percent == Decimal("5")

    def test_missing_closes_value_at_zero(self):
        apple = Holding(
            "AAPL",
            "Apple",
            "AAPL",
            Decimal("0"),
            (Transaction(JAN_1, TransactionKind.BUY, 10, Decimal("100")),),
        )
        points = portfolio_history([apple], [], {}, JAN_1, JAN_2)
        assert [p.total_assets for p in points] == [0, 0]
        assert [p.pl_percent for p in points] == [-100, -100]
