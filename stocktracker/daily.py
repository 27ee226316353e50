"""Daily P&L from a price quote.

The valuator takes daily figures as inputs. This module derives them from the
previous close and today's trades, the way a caller wiring a price feed into
the engine is expected to.
"""

from datetime import date, timedelta
from decimal import Decimal

from . import fifo
from .models import ZERO, Holding, PriceQuote, TransactionKind
from .valuation import HUNDRED


def net_cash_invested_on(holding: Holding, on: date) -> Decimal:
    """Cash put into the position by buys on ``on`` minus cash taken out by sells."""
    invested = ZERO
    for t in holding.transactions:
        if t.date != on:
            continue
        if t.kind is TransactionKind.BUY:
            invested += fifo.lot_cost(t)
        elif t.kind is TransactionKind.SELL:
            invested -= fifo.sale_proceeds(t)
    return invested


def dividends_on(holding: Holding, on: date) -> Decimal:
    return sum(
        (
            t.gross_amount
            for t in holding.transactions
            if t.date == on and t.kind is TransactionKind.DIVIDEND
        ),
        start=ZERO,
    )


def daily_pl(holding: Holding, quote: PriceQuote, today: date) -> tuple[Decimal, Decimal]:
    """Return ``(daily_pl, daily_pl_percent)`` for ``today``.

    Today's P&L is the change from last night's position valued at the previous
    close, after removing the cash moved by today's trades and crediting
    today's dividends. The percentage base is last night's value, or the cash
    moved today when there was no overnight position.
    """
    overnight_quantity = fifo.quantity_on_date(holding.transactions, today - timedelta(days=1))
    overnight_value = Decimal(overnight_quantity) * quote.previous_close
    invested_today = net_cash_invested_on(holding, today)
    market_value = Decimal(fifo.total_quantity(holding.transactions)) * quote.current_price

    pl = market_value - overnight_value - invested_today + dividends_on(holding, today)

    if overnight_value != 0:
        base = overnight_value
    elif invested_today != 0:
        base = abs(invested_today)
    else:
        return pl, ZERO

    return pl, pl / base * HUNDRED
