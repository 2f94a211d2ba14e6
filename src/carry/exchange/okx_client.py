"""OKX client via ccxt async: public borrow rates and signed max-loan lookup.

Borrow rates come from the public interest-rate-loan-quota endpoint, which
needs no credentials. The flexible-loan max-loan endpoint is private; ccxt
signs it when OKX credentials are configured, otherwise the lookup is skipped.
"""

from typing import Any

import ccxt
import ccxt.async_support as ccxt_async

from carry.config import OkxSettings
from carry.exceptions import FeedUnavailableError
from carry.exchange.client import RateFeed
from carry.logging import get_logger
from carry.models import LoanLimits

logger = get_logger(__name__)


class OkxClient(RateFeed):
    """OKX borrow-rate feed."""

    name = "okx"

    def __init__(self, settings: OkxSettings) -> None:
        self._settings = settings

        config: dict = {"enableRateLimit": True}
        if settings.is_configured:
            config.update(
                apiKey=settings.api_key.get_secret_value(),
                secret=settings.api_secret.get_secret_value(),
                password=settings.api_passphrase.get_secret_value(),
            )

        self._exchange = ccxt_async.okx(config)

    @property
    def exchange(self) -> ccxt_async.okx:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    @property
    def can_fetch_max_loan(self) -> bool:
        return self._settings.is_configured

    async def fetch_raw_rates(self) -> list[dict[str, Any]]:
        """Fetch per-currency borrow rates.

        OKX nests the per-currency rows under data[].basic[]; flat rows
        carrying ccy/rate directly are accepted as well.
        """
        try:
            response = await self._exchange.public_get_public_interest_rate_loan_quota()
        except ccxt.BaseError as e:
            raise FeedUnavailableError(self.name, str(e)) from e

        if not isinstance(response, dict):
            raise FeedUnavailableError(self.name, "unexpected response envelope")

        data = response.get("data")
        rows: list[dict[str, Any]] = []
        for entry in data if isinstance(data, list) else []:
            if isinstance(entry, dict) and isinstance(entry.get("basic"), list):
                rows.extend(entry["basic"])
            else:
                rows.append(entry)

        logger.info("feed_fetched", feed=self.name, count=len(rows))
        return rows

    async def fetch_max_loan(self, ccy: str) -> LoanLimits | None:
        """Look up flexible-loan capacity for one currency.

        Returns None when credentials are not configured or OKX returns no
        row for the currency.

        Raises:
            FeedUnavailableError: the signed request failed.
        """
        if not self.can_fetch_max_loan:
            logger.debug("max_loan_not_configured", ccy=ccy)
            return None

        try:
            response = await self._exchange.private_post_finance_flexible_loan_max_loan(
                {"borrowCcy": ccy}
            )
        except ccxt.BaseError as e:
            raise FeedUnavailableError("okx-max-loan", str(e)) from e

        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None

        row = data[0]
        return LoanLimits(
            max_loan=row.get("maxLoan"),
            remaining_quota=row.get("remainingQuota"),
        )

    async def close(self) -> None:
        await self._exchange.close()
        logger.debug("okx_connection_closed")
