"""Portfolio P&L history over a date range."""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from . import fifo
from .config import TimeRange
from .models import (
    ZERO,
    CashTransaction,
    CashTransactionKind,
    Holding,
    TransactionKind,
)
from .valuation import HUNDRED

RANGE_DAYS: dict[TimeRange, int] = {
    TimeRange.FIVE_DAY: 5,
}

RANGE_MONTHS: dict[TimeRange, int] = {
    TimeRange.ONE_MONTH: 1,
    TimeRange.THREE_MONTH: 3,
    TimeRange.SIX_MONTH: 6,
    TimeRange.ONE_YEAR: 12,
    TimeRange.FIVE_YEAR: 60,
}


@dataclass(frozen=True)
class HistoryPoint:
    date: date
    total_assets: Decimal
    net_investment: Decimal
    pl_percent: Decimal


def _months_before(day: date, months: int) -> date:
    month_index = day.year * 12 + day.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    # Clamp to the last day of the target month
    next_month = date(year + month // 12, month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))


def start_date_for_range(
    time_range: TimeRange, portfolio_start: date, today: date
) -> date:
    """First day of the window, never earlier than the portfolio's first entry."""
    if time_range in RANGE_DAYS:
        start = today - timedelta(days=RANGE_DAYS[time_range])
    elif time_range in RANGE_MONTHS:
        start = _months_before(today, RANGE_MONTHS[time_range])
    elif time_range is TimeRange.ALL:
        start = portfolio_start
    else:
        raise ValueError(f"Unknown time range: {time_range}")
    return max(start, portfolio_start)


def portfolio_start_date(
    holdings: Iterable[Holding], cash_transactions: Iterable[CashTransaction]
) -> Optional[date]:
    dates = [t.date for h in holdings for t in h.transactions]
    dates += [c.date for c in cash_transactions]
    return min(dates, default=None)


def _net_stock_cost(holding: Holding, on: date, cash_funded: set[str]) -> Decimal:
    """Net cost of trades up to ``on`` that were not paid through the cash ledger."""
    cost = ZERO
    for t in holding.transactions:
        if t.date > on or t.id in cash_funded:
            continue
        if t.kind is TransactionKind.BUY:
            cost += fifo.lot_cost(t)
        elif t.kind is TransactionKind.SELL:
            cost -= fifo.sale_proceeds(t)
    return cost


def portfolio_history(
    holdings: list[Holding],
    cash_transactions: list[CashTransaction],
    closes: dict[str, dict[date, Decimal]],
    start: date,
    end: date,
) -> list[HistoryPoint]:
    """One point per calendar day from ``start`` to ``end`` inclusive.

    Args:
        holdings: Every holding in the ledger, closed ones included.
        cash_transactions: The full cash ledger.
        closes: Closing prices by holding id and date. Days without a close
            reuse the last one seen in the window, or 0 before the first.
        start: First day of the series.
        end: Last day of the series.

    Returns:
        HistoryPoints whose ``pl_percent`` compares total assets (stock value
        plus cash) with net money invested; 0 while nothing is invested.
        Money invested is deposits less withdrawals, plus the net cost of any
        trade with no linked cash entry.
    """
    if not any(h.transactions for h in holdings) and not cash_transactions:
        return []

    cash_funded = {
        c.stock_transaction_id for c in cash_transactions if c.stock_transaction_id
    }
    points: list[HistoryPoint] = []
    last_close: dict[str, Decimal] = {h.id: ZERO for h in holdings}

    day = start
    while day <= end:
        booked = [c for c in cash_transactions if c.date <= day]
        cash_balance = sum((c.signed_amount for c in booked), start=ZERO)
        net_investment = sum(
            (
                c.signed_amount
                for c in booked
                if c.kind in (CashTransactionKind.DEPOSIT, CashTransactionKind.WITHDRAWAL)
            ),
            start=ZERO,
        )

        market_value = ZERO
        for holding in holdings:
            net_investment += _net_stock_cost(holding, day, cash_funded)
            price = closes.get(holding.id, {}).get(day)
            if price is not None:
                last_close[holding.id] = price
            quantity = fifo.quantity_on_date(holding.transactions, day)
            market_value += Decimal(quantity) * last_close[holding.id]

        total_assets = market_value + cash_balance
        if net_investment > 0:
            pl_percent = (total_assets - net_investment) / net_investment * HUNDRED
        else:
            pl_percent = ZERO

        points.append(HistoryPoint(day, total_assets, net_investment, pl_percent))
        day += timedelta(days=1)

    return points
