"""Data models for the stock tracker."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0")


def _new_id() -> str:
    return uuid.uuid4().hex


def normalize_holding_id(ticker: str) -> str:
    return ticker.strip().upper()


class TransactionKind(Enum):
    """Kinds of ledger events recorded against a holding."""

    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"


class CashTransactionKind(Enum):
    """Kinds of movements in the cash account."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"


CASH_CREDITS = frozenset(
    {CashTransactionKind.DEPOSIT, CashTransactionKind.SELL, CashTransactionKind.DIVIDEND}
)


@dataclass(frozen=True)
class Transaction:
    """One ledger event.

    For dividends, ``price`` is the per-share amount paid and ``quantity`` the
    number of shares it was paid on.
    """

    date: date
    kind: TransactionKind
    quantity: int
    price: Decimal
    fee: Decimal = ZERO
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Quantity must be non-negative, got {self.quantity}")
        if self.price < 0:
            raise ValueError(f"Price must be non-negative, got {self.price}")
        if self.fee < 0:
            raise ValueError(f"Fee must be non-negative, got {self.fee}")

    @property
    def gross_amount(self) -> Decimal:
        return Decimal(self.quantity) * self.price


@dataclass(frozen=True)
class Holding:
    """One security's full position: display metadata, latest price and ledger."""

    id: str
    name: str
    ticker: str
    current_price: Decimal = ZERO
    transactions: tuple[Transaction, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", normalize_holding_id(self.id))
        object.__setattr__(self, "transactions", tuple(self.transactions))

    def with_price(self, price: Decimal) -> "Holding":
        return replace(self, current_price=price)

    def with_transaction(self, transaction: Transaction) -> "Holding":
        return replace(self, transactions=self.transactions + (transaction,))

    def without_transaction(self, transaction_id: str) -> "Holding":
        return replace(
            self,
            transactions=tuple(t for t in self.transactions if t.id != transaction_id),
        )


@dataclass(frozen=True)
class PriceQuote:
    """Latest and previous closing price for a ticker, as supplied by a price feed."""

    current_price: Decimal
    previous_close: Decimal


@dataclass(frozen=True)
class CashTransaction:
    """A movement in the cash account, optionally linked to a stock transaction."""

    date: date
    kind: CashTransactionKind
    amount: Decimal
    stock_transaction_id: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Cash amount must be non-negative, got {self.amount}")

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.kind in CASH_CREDITS else -self.amount


@dataclass(frozen=True)
class HoldingValuation:
    """Derived P&L figures for one holding at one price."""

    holding_id: str
    name: str
    ticker: str
    current_price: Decimal
    total_quantity: int
    total_cost: Decimal
    total_sold_value: Decimal
    cost_of_current_holdings: Decimal
    cost_basis: Decimal
    market_value: Decimal
    holding_pl: Decimal
    holding_pl_percent: Decimal
    total_pl: Decimal
    total_pl_percent: Decimal
    cumulative_dividend: Decimal
    daily_pl: Decimal = ZERO
    daily_pl_percent: Decimal = ZERO
    last_trade_date: Optional[date] = None

    @property
    def is_open(self) -> bool:
        return self.total_quantity > 0


@dataclass(frozen=True)
class PortfolioSummary:
    """Portfolio-level totals over open holdings."""

    total_market_value: Decimal
    total_daily_pl: Decimal
    total_daily_pl_percent: Decimal
    total_holding_pl: Decimal
    total_holding_pl_percent: Decimal
    total_pl: Decimal
    total_pl_percent: Decimal
    cash_balance: Decimal

    @property
    def total_assets(self) -> Decimal:
        return self.total_market_value + self.cash_balance


@dataclass(frozen=True)
class ChartBucket:
    """One slice of the concentration chart."""

    label: str
    value: Decimal
    share_percent: Decimal

    def __str__(self) -> str:
        return f"{self.label}: ${self.value:,.2f} ({self.share_percent:.2f}%)"
