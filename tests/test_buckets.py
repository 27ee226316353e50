"""Tests for concentration buckets."""

from datetime import date
from decimal import Decimal

from stocktracker.buckets import concentration_buckets
from stocktracker.config import ChartConfig
from stocktracker.models import Holding, Transaction, TransactionKind
from stocktracker.valuation import valuate_holding


def valued(name, market_value, sold=False):
    transactions = [Transaction(date(2025, 1, 1), TransactionKind.BUY, 1, Decimal("1"))]
    if sold:
        transactions.append(
            Transaction(date(2025, 2, 1), TransactionKind.SELL, 1, Decimal("2"))
        )
    return valuate_holding(
        Holding(name, name, name, Decimal(market_value), tuple(transactions))
    )


class TestConcentrationBuckets:
    def test_four_holdings_no_other(self):
        valuations = [valued(n, v) for n, v in [("A", 100), ("B", 400), ("C", 300), ("D", 200)]]
        buckets = concentration_buckets(valuations)

        assert [b.label for b in buckets] == ["B", "C", "D", "A"]
        assert all(b.label != "Other" for b in buckets)

    def test_five_holdings_folds_smallest_into_other(self):
        valuations = [
            valued(n, v)
            for n, v in [("A", 100), ("B", 500), ("C", 300), ("D", 400), ("E", 200)]
        ]
        buckets = concentration_buckets(valuations)

        assert [b.label for b in buckets] == ["B", "D", "C", "E", "Other"]
        assert buckets[-1].value == Decimal("100")
        assert buckets[0].share_percent == Decimal("500") / Decimal("1500") * 100

    def test_shares_sum_to_hundred(self):
        valuations = [valued(n, v) for n, v in [("A", 1), ("B", 1), ("C", 1)]]
        total = sum(b.share_percent for b in concentration_buckets(valuations))
        assert abs(total - 100) < Decimal("1e-20")

    def test_ties_keep_input_order(self):
        valuations = [valued(n, 100) for n in ["A", "B", "C", "D", "E", "F"]]
        buckets = concentration_buckets(valuations)

        assert [b.label for b in buckets] == ["A", "B", "C", "D", "Other"]
        assert buckets[-1].value == Decimal("200")

    def test_zero_total_returns_no_buckets(self):
        valuations = [valued("A", 0), valued("B", 0)]
        assert concentration_buckets(valuations) == []

    def test_empty(self):
        assert concentration_buckets([]) == []

    def test_closed_positions_excluded(self):
        valuations = [valued("A", 100), valued("B", 100, sold=True)]
        buckets = concentration_buckets(valuations)

        assert [b.label for b in buckets] == ["A"]
        assert buckets[0].share_percent == Decimal("100")

    def test_oversold_holding_excluded(self):
        oversold = valuate_holding(
            Holding(
                "X",
                "X",
                "X",
                Decimal("10"),
                (
                    Transaction(date(2025, 1, 1), TransactionKind.BUY, 5, Decimal("10")),
                    Transaction(date(2025, 2, 1), TransactionKind.SELL, 8, Decimal("10")),
                ),
            )
        )
        buckets = concentration_buckets([valued("Y", 10), oversold])

        assert [(b.label, b.share_percent) for b in buckets] == [("Y", Decimal("100"))]

    def test_custom_config(self):
        valuations = [valued(n, v) for n, v in [("A", 300), ("B", 200), ("C", 100)]]
        buckets = concentration_buckets(valuations, ChartConfig(TOP_N=1, OTHER_LABEL="Rest"))

        assert [(b.label, b.value) for b in buckets] == [
            ("A", Decimal("300")),
            ("Rest", Decimal("300")),
        ]

    def test_str_representation(self):
        bucket = concentration_buckets([valued("A", 100)])[0]
        assert str(bucket) == "A: $100.00 (100.00%)"
