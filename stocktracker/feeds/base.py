"""Abstract base class for price feeds."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..models import PriceQuote, normalize_holding_id


class BasePriceFeed(ABC):
    """Abstract base class for sources of live and historical prices."""

    @abstractmethod
    def fetch_quote(self, ticker: str) -> Optional[PriceQuote]:
        """Fetch the latest price and previous close for a ticker.

        Args:
            ticker: Symbol as understood by the source.

        Returns:
            PriceQuote, or None if the source could not supply one.
        """
        pass

    @abstractmethod
    def fetch_history(self, ticker: str, start: date, end: date) -> dict[date, Decimal]:
        """Fetch daily closing prices between two dates inclusive.

        Returns:
            Dictionary mapping trading days to closing prices, empty on failure.
        """
        pass

    def fetch_quotes(self, tickers: Iterable[str]) -> dict[str, PriceQuote]:
        """Quotes keyed by holding id, omitting tickers the source could not price."""
        quotes: dict[str, PriceQuote] = {}
        for ticker in tickers:
            quote = self.fetch_quote(ticker)
            if quote is not None:
                quotes[normalize_holding_id(ticker)] = quote
        return quotes
