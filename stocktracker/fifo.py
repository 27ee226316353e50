"""FIFO cost matching over a holding's ledger.

Remaining shares are valued by retiring the earliest buy lots first. Only the
aggregate sell quantity matters: sells are matched against the buy queue as a
whole, not one by one. A lot's fee is retired in proportion to the fraction of
the lot sold.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable

from .models import ZERO, Transaction, TransactionKind

logger = logging.getLogger(__name__)


def signed_quantity(transaction: Transaction) -> int:
    """Effect of a transaction on the number of shares held."""
    if transaction.kind is TransactionKind.BUY:
        return transaction.quantity
    if transaction.kind is TransactionKind.SELL:
        return -transaction.quantity
    if transaction.kind is TransactionKind.DIVIDEND:
        return 0
    raise ValueError(f"Unknown transaction kind: {transaction.kind}")


def lot_cost(transaction: Transaction) -> Decimal:
    """Cash spent on a buy, fee included."""
    return transaction.gross_amount + transaction.fee


def sale_proceeds(transaction: Transaction) -> Decimal:
    """Cash received from a sell, net of fee."""
    return transaction.gross_amount - transaction.fee


def sort_by_date(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Ascending by date; same-day transactions keep their insertion order."""
    return sorted(transactions, key=lambda t: t.date)


def of_kind(
    transactions: Iterable[Transaction], kind: TransactionKind
) -> list[Transaction]:
    return [t for t in transactions if t.kind is kind]


def total_quantity(transactions: Iterable[Transaction]) -> int:
    return sum(signed_quantity(t) for t in transactions)


def quantity_on_date(transactions: Iterable[Transaction], on: date) -> int:
    """Net shares held at the end of ``on``."""
    return sum(signed_quantity(t) for t in transactions if t.date <= on)


def total_cost(transactions: Iterable[Transaction]) -> Decimal:
    return sum(
        (lot_cost(t) for t in of_kind(transactions, TransactionKind.BUY)),
        start=ZERO,
    )


def total_sold_value(transactions: Iterable[Transaction]) -> Decimal:
    return sum(
        (sale_proceeds(t) for t in of_kind(transactions, TransactionKind.SELL)),
        start=ZERO,
    )


def cost_of_current_holdings(transactions: Iterable[Transaction]) -> Decimal:
    """Cost, fees included, attributable to the shares still held.

    Args:
        transactions: The holding's ledger, in any order.

    Returns:
        Total buy cost minus the cost retired by sells under FIFO, or 0 when
        no shares are held. Selling more shares than were bought never fails;
        such a ledger holds nothing and is valued at 0.
    """
    transactions = list(transactions)
    held = total_quantity(transactions)
    if held < 0:
        logger.debug("Ledger sells %d more shares than it buys", -held)
    if held <= 0:
        return ZERO

    buys = sort_by_date(of_kind(transactions, TransactionKind.BUY))
    shares_to_retire = sum(t.quantity for t in of_kind(transactions, TransactionKind.SELL))

    retired_cost = ZERO
    for buy in buys:
        if shares_to_retire == 0:
            break
        if buy.quantity == 0:
            continue

        retired = min(buy.quantity, shares_to_retire)
        retired_cost += lot_cost(buy) * Decimal(retired) / Decimal(buy.quantity)
        shares_to_retire -= retired

    return total_cost(buys) - retired_cost
