"""Concentration buckets for the holdings chart."""

from decimal import Decimal
from typing import Iterable, Optional

from .config import ChartConfig
from .models import ZERO, ChartBucket, HoldingValuation
from .valuation import HUNDRED


def concentration_buckets(
    valuations: Iterable[HoldingValuation],
    config: Optional[ChartConfig] = None,
) -> list[ChartBucket]:
    """Reduce open holdings to at most ``TOP_N`` named buckets plus one "Other".

    Holdings are ranked by market value, largest first; equal values keep
    their input order. Returns an empty list when the total value is 0.
    """
    config = config or ChartConfig()
    ranked = sorted(
        (v for v in valuations if v.is_open),
        key=lambda v: v.market_value,
        reverse=True,
    )

    slices: list[tuple[str, Decimal]] = [(v.name, v.market_value) for v in ranked]
    if len(slices) > config.TOP_N:
        other = sum((value for _, value in slices[config.TOP_N:]), start=ZERO)
        slices = slices[: config.TOP_N] + [(config.OTHER_LABEL, other)]

    total = sum((value for _, value in slices), start=ZERO)
    if total == 0:
        return []

    return [
        ChartBucket(label=label, value=value, share_percent=value / total * HUNDRED)
        for label, value in slices
    ]
