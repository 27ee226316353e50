"""Per-holding P&L valuation."""

from decimal import Decimal

from . import fifo
from .models import ZERO, Holding, HoldingValuation, TransactionKind

HUNDRED = Decimal("100")


def percent_of(amount: Decimal, base: Decimal) -> Decimal:
    """``amount`` as a percentage of a positive ``base``; 0 otherwise."""
    if base > 0:
        return amount / base * HUNDRED
    return ZERO


def cumulative_dividend(holding: Holding) -> Decimal:
    return sum(
        (
            t.gross_amount
            for t in fifo.of_kind(holding.transactions, TransactionKind.DIVIDEND)
        ),
        start=ZERO,
    )


def valuate_holding(
    holding: Holding,
    daily_pl: Decimal = ZERO,
    daily_pl_percent: Decimal = ZERO,
) -> HoldingValuation:
    """Compute the full P&L breakdown of a holding at its current price.

    Args:
        holding: The holding snapshot. A zero or stale ``current_price`` is
            valid and simply values the position accordingly.
        daily_pl: Today's P&L, computed by the caller from the price feed.
        daily_pl_percent: Today's P&L percentage, computed by the caller.

    Returns:
        HoldingValuation with unrealized (``holding_pl``) and realized plus
        unrealized (``total_pl``) figures kept distinct.
    """
    transactions = holding.transactions
    quantity = fifo.total_quantity(transactions)
    total_cost = fifo.total_cost(transactions)
    total_sold_value = fifo.total_sold_value(transactions)
    current_cost = fifo.cost_of_current_holdings(transactions)

    market_value = Decimal(quantity) * holding.current_price

    if quantity > 0:
        cost_basis = current_cost / Decimal(quantity)
        holding_pl = market_value - current_cost
    else:
        cost_basis = ZERO
        holding_pl = ZERO

    total_pl = (market_value + total_sold_value) - total_cost

    return HoldingValuation(
        holding_id=holding.id,
        name=holding.name,
        ticker=holding.ticker,
        current_price=holding.current_price,
        total_quantity=quantity,
        total_cost=total_cost,
        total_sold_value=total_sold_value,
        cost_of_current_holdings=current_cost,
        cost_basis=cost_basis,
        market_value=market_value,
        holding_pl=holding_pl,
        holding_pl_percent=percent_of(holding_pl, current_cost),
        total_pl=total_pl,
        total_pl_percent=percent_of(total_pl, total_cost),
        cumulative_dividend=cumulative_dividend(holding),
        daily_pl=daily_pl,
        daily_pl_percent=daily_pl_percent,
        last_trade_date=max((t.date for t in transactions), default=None),
    )
