"""Tests for ledger import and export."""

import json
from datetime import date
from decimal import Decimal

import pytest

from stocktracker.loaders import (
    dump_ledger_json,
    load_ledger_json,
    load_transactions_csv,
    parse_transaction,
)
from stocktracker.models import CashTransactionKind, Transaction, TransactionKind
from stocktracker.portfolio import Portfolio


class TestParseTransaction:
    def test_valid_record(self):
        t = parse_transaction(
            {"date": "2025-09-05", "kind": "BUY", "quantity": "10", "price": "164.67"}
        )
        assert t.date == date(2025, 9, 5)
        assert t.kind is TransactionKind.BUY
        assert t.quantity == 10
        assert t.price == Decimal("164.67")
        assert t.fee == Decimal("0")

    def test_keeps_given_id(self):
        t = parse_transaction(
            {"id": "abc", "date": "2025-09-05", "kind": "sell", "quantity": 1, "price": 2}
        )
        assert t.id == "abc"

    def test_missing_field(self):
        with pytest.raises(ValueError, match="Missing field: price"):
            parse_transaction({"date": "2025-09-05", "kind": "buy", "quantity": "1"})

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown kind: 'split'"):
            parse_transaction(
                {"date": "2025-09-05", "kind": "split", "quantity": "2", "price": "1"}
            )

    def test_invalid_number(self):
        with pytest.raises(ValueError, match="Invalid price"):
            parse_transaction(
                {"date": "2025-09-05", "kind": "buy", "quantity": "2", "price": "abc"}
            )

    @pytest.mark.parametrize("price", ["nan", "sNaN", "inf", "-Infinity"])
    def test_non_finite_number(self, price):
        with pytest.raises(ValueError, match="Invalid price"):
            parse_transaction(
                {"date": "2025-09-05", "kind": "buy", "quantity": "2", "price": price}
            )

    def test_negative_fee(self):
        with pytest.raises(ValueError, match="non-negative"):
            parse_transaction(
                {"date": "2025-09-05", "kind": "buy", "quantity": "2", "price": "1", "fee": "-1"}
            )


class TestLoadTransactionsCsv:
    def test_skips_malformed_rows(self, tmp_path, caplog):
        path = tmp_path / "trades.csv"
        path.write_text(
            "date,kind,quantity,price,fee\n"
            "2025-09-05,buy,10,164.67\n"
            "2025-09-09,buy,20,167.48,1.5\n"
            "\n"
            "2025-09-10,sell,5\n"
            "09/10/2025,sell,5,178.09\n"
            '"2025-09-10","sell","5","178.09","0"\n'
            "2025-09-11,transfer,5,178.09\n",
            encoding="utf-8",
        )
        transactions, skipped = load_transactions_csv(path)

        assert [t.kind for t in transactions] == [
            TransactionKind.BUY,
            TransactionKind.BUY,
            TransactionKind.SELL,
        ]
        assert transactions[1].fee == Decimal("1.5")
        assert skipped == 3
        assert "Skipping malformed CSV line 5" in caplog.text

    def test_skips_non_finite_numbers(self, tmp_path):
        path = tmp_path / "trades.csv"
        path.write_text(
            "date,kind,quantity,price,fee\n"
            "2025-01-01,buy,1,nan,0\n"
            "2025-01-02,buy,1,10,inf\n"
            "2025-01-03,buy,2,10,0\n",
            encoding="utf-8",
        )
        transactions, skipped = load_transactions_csv(path)

        assert skipped == 2
        assert len(transactions) == 1
        assert transactions[0].quantity == 2

    def test_header_only(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("date,kind,quantity,price\n", encoding="utf-8")
        assert load_transactions_csv(path) == ([], 0)


class TestLedgerJson:
    def test_round_trip(self, tmp_path):
        portfolio = Portfolio()
        portfolio.deposit(Decimal("10000"), date(2025, 9, 1))
        portfolio.record_transaction(
            "tsla",
            Transaction(date(2025, 9, 5), TransactionKind.BUY, 10, Decimal("164.67"), Decimal("1")),
            name="Tesla",
            ticker="NASDAQ:TSLA",
        )
        path = tmp_path / "ledger.json"
        dump_ledger_json(portfolio, path)

        loaded = load_ledger_json(path)

        assert loaded.holdings == portfolio.holdings
        assert loaded.cash_transactions == portfolio.cash_transactions
        assert loaded.cash_balance() == Decimal("8352.30")

    def test_hand_written_document(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(
            json.dumps(
                {
                    "holdings": [
                        {
                            "id": "nvda",
                            "current_price": "177.56",
                            "transactions": [
                                {"date": "2025-09-04", "kind": "buy", "quantity": 2, "price": "170.67"}
                            ],
                        }
                    ],
                    "cash": [{"date": "2025-09-01", "kind": "deposit", "amount": "500"}],
                }
            ),
            encoding="utf-8",
        )
        portfolio = load_ledger_json(path)

        nvda = portfolio.get_holding("NVDA")
        assert nvda.name == "nvda"
        assert nvda.current_price == Decimal("177.56")
        assert portfolio.cash_transactions[0].kind is CashTransactionKind.DEPOSIT
        assert portfolio.cash_balance() == Decimal("500")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid ledger file"):
            load_ledger_json(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError, match="expected an object"):
            load_ledger_json(path)

    def test_holding_without_id(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"holdings": [{"name": "Nameless"}]}), encoding="utf-8")
        with pytest.raises(ValueError, match="missing an id"):
            load_ledger_json(path)
