"""Price feed backed by the Yahoo Finance chart endpoint."""

import json
import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional
from urllib.parse import quote as url_quote
from urllib.request import Request, urlopen

from ..config import YahooConfig
from ..models import PriceQuote
from .base import BasePriceFeed

logger = logging.getLogger(__name__)


def _epoch_seconds(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


class YahooPriceFeed(BasePriceFeed):
    """Fetches quotes and daily closes from Yahoo Finance."""

    def __init__(self, config: Optional[YahooConfig] = None) -> None:
        self.config = config or YahooConfig()

    def _chart_url(self, ticker: str, params: str = "") -> str:
        url = f"{self.config.CHART_URL}/{url_quote(ticker, safe='')}"
        return f"{url}?{params}" if params else url

    def _get_chart(self, url: str) -> dict:
        req = Request(url, headers={"User-Agent": self.config.USER_AGENT})
        payload = json.loads(urlopen(req, timeout=self.config.REQUEST_TIMEOUT_S).read())
        return payload["chart"]["result"][0]

    def fetch_quote(self, ticker: str) -> Optional[PriceQuote]:
        try:
            meta = self._get_chart(self._chart_url(ticker))["meta"]
            current = Decimal(str(meta["regularMarketPrice"]))
            previous = Decimal(str(meta["previousClose"]))
        except Exception as e:
            logger.warning("Failed to fetch quote for %s: %s", ticker, e)
            return None

        if current <= 0 or previous <= 0:
            logger.warning(
                "Ignoring quote for %s: price %s, previous close %s", ticker, current, previous
            )
            return None

        return PriceQuote(current_price=current, previous_close=previous)

    def fetch_history(self, ticker: str, start: date, end: date) -> dict[date, Decimal]:
        params = (
            f"period1={_epoch_seconds(start)}"
            f"&period2={_epoch_seconds(end + timedelta(days=1))}"
            "&interval=1d"
        )
        try:
            result = self._get_chart(self._chart_url(ticker, params))
            timestamps = result.get("timestamp") or []
            closes = result["indicators"]["quote"][0]["close"]
        except Exception as e:
            logger.warning("Failed to fetch history for %s: %s", ticker, e)
            return {}

        return self._parse_closes(timestamps, closes)

    def _parse_closes(self, timestamps: list, closes: list) -> dict[date, Decimal]:
        history: dict[date, Decimal] = {}
        last: Optional[Decimal] = None

        for ts, close in zip(timestamps, closes):
            day = datetime.fromtimestamp(ts, tz=timezone.utc).date()
            if close is not None:
                last = Decimal(str(close))
            if last is None:
                continue
            history[day] = last

        return history
