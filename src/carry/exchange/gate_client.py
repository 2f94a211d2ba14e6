"""Gate client via ccxt async: Uni (simple earn) lending rates.

GET /api/v4/earn/uni/currencies returns a bare list of
{currency, min_lend_amount, max_lend_amount, max_rate, min_rate}
with rates as daily decimals encoded as strings.
"""

from typing import Any

import ccxt
import ccxt.async_support as ccxt_async

from carry.exceptions import FeedUnavailableError
from carry.exchange.client import RateFeed
from carry.logging import get_logger

logger = get_logger(__name__)


class GateClient(RateFeed):
    """Gate Uni lending-rate feed. Public endpoint, no credentials."""

    name = "gate"

    def __init__(self) -> None:
        self._exchange = ccxt_async.gate({"enableRateLimit": True})

    @property
    def exchange(self) -> ccxt_async.gate:
        return self._exchange

    async def fetch_raw_rates(self) -> list[dict[str, Any]]:
        try:
            response = await self._exchange.public_earn_get_uni_currencies()
        except ccxt.BaseError as e:
            raise FeedUnavailableError(self.name, str(e)) from e

        if not isinstance(response, list):
            raise FeedUnavailableError(self.name, "expected a list of currencies")

        logger.info("feed_fetched", feed=self.name, count=len(response))
        return response

    async def close(self) -> None:
        await self._exchange.close()
