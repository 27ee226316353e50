"""
Stock Tracker - FIFO cost basis and P&L valuation for a portfolio of stock holdings.

Exports:
    Transaction: Dataclass representing one buy, sell or dividend event
    Holding: Dataclass representing one security's position and ledger
    PriceQuote: Dataclass holding a ticker's current price and previous close
    CashTransaction: Dataclass representing a movement in the cash account
    HoldingValuation: Derived P&L figures for one holding
    PortfolioSummary: Derived totals for the whole portfolio
    ChartBucket: One slice of the concentration chart
    cost_of_current_holdings: FIFO cost of the shares still held
    valuate_holding: Full P&L breakdown for one holding
    daily_pl: Today's P&L for a holding from a price quote
    aggregate: Portfolio totals over valuated holdings
    concentration_buckets: Top holdings plus "Other" for charting
    Portfolio: In-memory ledger of holdings and cash
    PortfolioSnapshot: Read-only view of a ledger for valuation
"""

from .buckets import concentration_buckets
from .config import ChartConfig, TimeRange, YahooConfig
from .daily import daily_pl
from .fifo import cost_of_current_holdings
from .models import (
    CashTransaction,
    CashTransactionKind,
    ChartBucket,
    Holding,
    HoldingValuation,
    PortfolioSummary,
    PriceQuote,
    Transaction,
    TransactionKind,
)
from .portfolio import Portfolio, PortfolioSnapshot, aggregate, closed_positions
from .valuation import valuate_holding

__all__ = [
    "CashTransaction",
    "CashTransactionKind",
    "ChartBucket",
    "ChartConfig",
    "Holding",
    "HoldingValuation",
    "Portfolio",
    "PortfolioSnapshot",
    "PortfolioSummary",
    "PriceQuote",
    "TimeRange",
    "Transaction",
    "TransactionKind",
    "YahooConfig",
    "aggregate",
    "closed_positions",
    "concentration_buckets",
    "cost_of_current_holdings",
    "daily_pl",
    "valuate_holding",
]
