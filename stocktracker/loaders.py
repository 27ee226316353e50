"""Loaders for importing and exporting ledger data."""

import csv
import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from .models import (
    CashTransaction,
    CashTransactionKind,
    Holding,
    Transaction,
    TransactionKind,
)
from .portfolio import Portfolio

logger = logging.getLogger(__name__)

CSV_FIELDS = ("date", "kind", "quantity", "price", "fee")


def _parse_decimal(value: Any, field_name: str) -> Decimal:
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid {field_name}: {value!r}") from None
    if not d.is_finite():
        raise ValueError(f"Invalid {field_name}: {value!r}")
    return d


def _parse_int(value: Any, field_name: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid {field_name}: {value!r}") from None


def _parse_date(value: Any) -> date:
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid date: {value!r}") from None


def _parse_kind(value: Any, kinds: type) -> Any:
    try:
        return kinds(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(k.value for k in kinds)
        raise ValueError(f"Unknown kind: {value!r}. Valid kinds are: {valid}") from None


def parse_transaction(record: dict[str, Any]) -> Transaction:
    """Build a Transaction from a loosely typed mapping.

    Raises:
        ValueError: If a required field is missing or malformed.
    """
    try:
        fields = dict(
            date=_parse_date(record["date"]),
            kind=_parse_kind(record["kind"], TransactionKind),
            quantity=_parse_int(record["quantity"], "quantity"),
            price=_parse_decimal(record["price"], "price"),
            fee=_parse_decimal(record.get("fee") or "0", "fee"),
        )
    except KeyError as e:
        raise ValueError(f"Missing field: {e.args[0]}") from None

    if record.get("id"):
        fields["id"] = str(record["id"])
    return Transaction(**fields)


def load_transactions_csv(path: str | Path) -> tuple[list[Transaction], int]:
    """Load transactions from a CSV file with a header row.

    Columns are ``date,kind,quantity,price`` with an optional trailing ``fee``.
    Dates are ISO formatted; kinds are ``buy``, ``sell`` or ``dividend``.

    Args:
        path: CSV file to read.

    Returns:
        The parsed transactions in file order and the number of rows skipped
        because they were malformed.
    """
    transactions: list[Transaction] = []
    skipped = 0

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        next(reader, None)

        for line_no, row in enumerate(reader, start=2):
            values = [v.strip() for v in row]
            if not any(values):
                continue
            if len(values) < 4:
                logger.warning("Skipping malformed CSV line %d: %s", line_no, row)
                skipped += 1
                continue

            try:
                transactions.append(parse_transaction(dict(zip(CSV_FIELDS, values))))
            except ValueError as e:
                logger.warning("Skipping CSV line %d: %s", line_no, e)
                skipped += 1

    logger.info("Imported %d transactions from %s, skipped %d", len(transactions), path, skipped)
    return transactions, skipped


def _parse_cash_transaction(record: dict[str, Any]) -> CashTransaction:
    try:
        fields = dict(
            date=_parse_date(record["date"]),
            kind=_parse_kind(record["kind"], CashTransactionKind),
            amount=_parse_decimal(record["amount"], "amount"),
            stock_transaction_id=record.get("stock_transaction_id"),
        )
    except KeyError as e:
        raise ValueError(f"Missing field: {e.args[0]}") from None

    if record.get("id"):
        fields["id"] = str(record["id"])
    return CashTransaction(**fields)


def _parse_holding(record: dict[str, Any]) -> Holding:
    try:
        holding_id = str(record["id"])
    except KeyError:
        raise ValueError("Holding is missing an id") from None

    return Holding(
        id=holding_id,
        name=record.get("name") or holding_id,
        ticker=record.get("ticker") or holding_id,
        current_price=_parse_decimal(record.get("current_price", "0"), "current_price"),
        transactions=tuple(parse_transaction(t) for t in record.get("transactions", [])),
    )


def load_ledger_json(path: str | Path) -> Portfolio:
    """Load a full ledger (holdings and cash movements) from a JSON document.

    The document has the shape ``{"holdings": [...], "cash": [...]}``. Cash
    entries are taken as the complete cash ledger; no movements are derived
    from the holdings' transactions.

    Raises:
        ValueError: If the document is not a valid ledger.
    """
    with open(path, encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid ledger file {path}: {e}") from None

    if not isinstance(document, dict):
        raise ValueError(f"Invalid ledger file {path}: expected an object")

    portfolio = Portfolio()
    for record in document.get("holdings", []):
        portfolio.add_holding(_parse_holding(record))
    portfolio.cash_transactions = [
        _parse_cash_transaction(record) for record in document.get("cash", [])
    ]
    return portfolio


def _transaction_record(t: Transaction) -> dict[str, Any]:
    return {
        "id": t.id,
        "date": t.date.isoformat(),
        "kind": t.kind.value,
        "quantity": t.quantity,
        "price": str(t.price),
        "fee": str(t.fee),
    }


def dump_ledger_json(portfolio: Portfolio, path: str | Path) -> None:
    """Write a ledger in the format read by ``load_ledger_json``."""
    document = {
        "holdings": [
            {
                "id": h.id,
                "name": h.name,
                "ticker": h.ticker,
                "current_price": str(h.current_price),
                "transactions": [_transaction_record(t) for t in h.transactions],
            }
            for h in portfolio.holdings.values()
        ],
        "cash": [
            {
                "id": c.id,
                "date": c.date.isoformat(),
                "kind": c.kind.value,
                "amount": str(c.amount),
                "stock_transaction_id": c.stock_transaction_id,
            }
            for c in portfolio.cash_transactions
        ],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)
