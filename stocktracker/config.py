"""Configuration constants for the stock tracker."""

from dataclasses import dataclass
from enum import Enum


class TimeRange(Enum):
    """Windows available for the portfolio history chart."""

    FIVE_DAY = "5D"
    ONE_MONTH = "1M"
    THREE_MONTH = "3M"
    SIX_MONTH = "6M"
    ONE_YEAR = "1Y"
    FIVE_YEAR = "5Y"
    ALL = "ALL"


@dataclass(frozen=True)
class YahooConfig:
    """Configuration for the Yahoo Finance chart endpoint."""

    CHART_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
    REQUEST_TIMEOUT_S: int = 10


@dataclass(frozen=True)
class ChartConfig:
    """Configuration for the concentration chart."""

    TOP_N: int = 4
    OTHER_LABEL: str = "Other"
