import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from .daily import daily_pl
from .fifo import lot_cost, sale_proceeds
from .models import (
    ZERO,
    CashTransaction,
    CashTransactionKind,
    Holding,
    HoldingValuation,
    PortfolioSummary,
    PriceQuote,
    Transaction,
    TransactionKind,
    normalize_holding_id,
)
from .valuation import HUNDRED, valuate_holding

logger = logging.getLogger(__name__)


def back_solved_percent(total: Decimal, total_market_value: Decimal) -> Decimal:
    """``total`` relative to the value it was earned on, ``market value - total``."""
    base = total_market_value - total
    if base != 0:
        return total / base * HUNDRED
    return ZERO


def active_holdings(valuations: Iterable[HoldingValuation]) -> list[HoldingValuation]:
    """Holdings with shares still held. An oversold ledger counts as closed."""
    return [v for v in valuations if v.is_open]


def closed_positions(valuations: Iterable[HoldingValuation]) -> list[HoldingValuation]:
    """Positions fully sold that still carry a result, most recently traded first."""
    closed = [
        v
        for v in valuations
        if not v.is_open and (v.total_pl != 0 or v.total_sold_value != 0)
    ]
    return sorted(closed, key=lambda v: v.last_trade_date or date.min, reverse=True)


def aggregate(
    valuations: Iterable[HoldingValuation], cash_balance: Decimal
) -> PortfolioSummary:
    """Roll open holdings up into portfolio totals.

    Cash is carried through for display and takes no part in P&L.
    """
    active = active_holdings(valuations)

    market_value = sum((v.market_value for v in active), start=ZERO)
    daily = sum((v.daily_pl for v in active), start=ZERO)
    holding = sum((v.holding_pl for v in active), start=ZERO)
    total = sum((v.total_pl for v in active), start=ZERO)

    return PortfolioSummary(
        total_market_value=market_value,
        total_daily_pl=daily,
        total_daily_pl_percent=back_solved_percent(daily, market_value),
        total_holding_pl=holding,
        total_holding_pl_percent=back_solved_percent(holding, market_value),
        total_pl=total,
        total_pl_percent=back_solved_percent(total, market_value),
        cash_balance=cash_balance,
    )


@dataclass(frozen=True)
class PortfolioSnapshot:
    """A consistent, read-only view of the ledger at one point in time."""

    holdings: tuple[Holding, ...]
    cash_balance: Decimal = ZERO

    def valuations(
        self,
        quotes: Optional[dict[str, PriceQuote]] = None,
        today: Optional[date] = None,
    ) -> list[HoldingValuation]:
        """Value every holding, pricing quoted ones at their quote.

        Daily P&L is derived only for quoted holdings and only when ``today``
        is given; other holdings keep their stored price and a daily P&L of 0.
        """
        quotes = quotes or {}
        result = []
        for holding in self.holdings:
            quote = quotes.get(holding.id)
            if quote is None:
                result.append(valuate_holding(holding))
                continue

            holding = holding.with_price(quote.current_price)
            if today is None:
                result.append(valuate_holding(holding))
            else:
                result.append(valuate_holding(holding, *daily_pl(holding, quote, today)))
        return result

    def summarize(
        self,
        quotes: Optional[dict[str, PriceQuote]] = None,
        today: Optional[date] = None,
    ) -> tuple[list[HoldingValuation], PortfolioSummary]:
        valuations = self.valuations(quotes, today)
        return valuations, aggregate(valuations, self.cash_balance)


class Portfolio:
    """In-memory ledger of holdings and cash movements."""

    def __init__(self) -> None:
        self.holdings: dict[str, Holding] = {}
        self.cash_transactions: list[CashTransaction] = []

    def add_holding(self, holding: Holding) -> None:
        self.holdings[holding.id] = holding

    def get_holding(self, holding_id: str) -> Optional[Holding]:
        return self.holdings.get(normalize_holding_id(holding_id))

    def remove_holding(self, holding_id: str) -> Optional[Holding]:
        holding = self.holdings.pop(normalize_holding_id(holding_id), None)
        if holding is not None:
            linked = {t.id for t in holding.transactions}
            self.cash_transactions = [
                c for c in self.cash_transactions if c.stock_transaction_id not in linked
            ]
        return holding

    def record_transaction(
        self,
        holding_id: str,
        transaction: Transaction,
        name: Optional[str] = None,
        ticker: Optional[str] = None,
    ) -> Holding:
        """Append a transaction to a holding and book its cash movement.

        A holding that does not exist yet is created, priced at the trade price
        until a quote arrives. A holding first seen through a dividend starts
        at a price of 0. Recording a transaction whose id is already in the
        ledger replaces the earlier version.
        """
        holding_id = normalize_holding_id(holding_id)
        if not holding_id:
            raise ValueError("Holding id must not be empty")

        self._discard_transaction(transaction.id)

        holding = self.holdings.get(holding_id)
        if holding is None:
            holding = Holding(
                id=holding_id,
                name=name or holding_id,
                ticker=ticker or holding_id,
                current_price=ZERO
                if transaction.kind is TransactionKind.DIVIDEND
                else transaction.price,
            )
        elif name:
            holding = replace(holding, name=name, ticker=ticker or holding.ticker)

        holding = holding.with_transaction(transaction)
        self.holdings[holding_id] = holding

        cash = self._linked_cash_transaction(transaction)
        if cash is not None:
            self.cash_transactions.append(cash)
        return holding

    def delete_transaction(self, transaction_id: str) -> None:
        if not self._discard_transaction(transaction_id):
            raise ValueError(f"Unknown transaction: {transaction_id}")

    def deposit(self, amount: Decimal, on: date) -> CashTransaction:
        return self._book_cash(CashTransactionKind.DEPOSIT, amount, on)

    def withdraw(self, amount: Decimal, on: date) -> CashTransaction:
        return self._book_cash(CashTransactionKind.WITHDRAWAL, amount, on)

    def delete_cash_transaction(self, cash_transaction_id: str) -> None:
        remaining = [c for c in self.cash_transactions if c.id != cash_transaction_id]
        if len(remaining) == len(self.cash_transactions):
            raise ValueError(f"Unknown cash transaction: {cash_transaction_id}")
        self.cash_transactions = remaining

    def cash_balance(self) -> Decimal:
        return sum((c.signed_amount for c in self.cash_transactions), start=ZERO)

    def apply_quotes(self, quotes: dict[str, PriceQuote]) -> None:
        for holding_id, quote in quotes.items():
            holding = self.get_holding(holding_id)
            if holding is not None:
                self.holdings[holding.id] = holding.with_price(quote.current_price)

    def snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot(
            holdings=tuple(self.holdings.values()),
            cash_balance=self.cash_balance(),
        )

    def _book_cash(
        self, kind: CashTransactionKind, amount: Decimal, on: date
    ) -> CashTransaction:
        if amount <= 0:
            raise ValueError(f"Cash amount must be positive, got {amount}")
        cash = CashTransaction(date=on, kind=kind, amount=amount)
        self.cash_transactions.append(cash)
        return cash

    def _discard_transaction(self, transaction_id: str) -> bool:
        found = False
        for holding_id, holding in list(self.holdings.items()):
            if any(t.id == transaction_id for t in holding.transactions):
                self.holdings[holding_id] = holding.without_transaction(transaction_id)
                found = True
        self.cash_transactions = [
            c for c in self.cash_transactions if c.stock_transaction_id != transaction_id
        ]
        return found

    def _linked_cash_transaction(self, transaction: Transaction) -> Optional[CashTransaction]:
        if transaction.kind is TransactionKind.BUY:
            kind, amount = CashTransactionKind.BUY, lot_cost(transaction)
        elif transaction.kind is TransactionKind.SELL:
            kind, amount = CashTransactionKind.SELL, sale_proceeds(transaction)
        elif transaction.kind is TransactionKind.DIVIDEND:
            kind, amount = CashTransactionKind.DIVIDEND, transaction.gross_amount
        else:
            raise ValueError(f"Unknown transaction kind: {transaction.kind}")

        if amount == 0:
            return None
        if amount < 0:
            logger.warning(
                "Transaction %s nets %s after fees; booking as a debit", transaction.id, amount
            )
            kind, amount = CashTransactionKind.BUY, -amount

        return CashTransaction(
            date=transaction.date,
            kind=kind,
            amount=amount,
            stock_transaction_id=transaction.id,
        )

    def __repr__(self) -> str:
        return (
            f"Portfolio(holdings={list(self.holdings.keys())}, "
            f"cash_balance={self.cash_balance()})"
        )
