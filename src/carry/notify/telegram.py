"""Telegram alert sink and spread alert formatting.

Alerts are plain text, one line per currency, percentages to two decimals:

  OKX × Gate APR spread:
  BTC: Gate 18.25% - OKX 10.95% = Spread 7.30%
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import aiohttp

from carry.config import TelegramSettings
from carry.logging import get_logger
from carry.models import Opportunity

logger = get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
ALERT_HEADER = "OKX × Gate APR spread:"


@dataclass(frozen=True)
class SendResult:
    """Outcome of a send. skipped=True means the sink is not configured."""

    ok: bool
    skipped: bool = False
    status: int | None = None
    response: Any = None


def format_spread_alert(
    opportunities: Sequence[Opportunity], threshold: float, max_rows: int = 5
) -> str | None:
    """Build alert text for ranked rows whose spread is >= threshold.

    Returns None when no row qualifies.
    """
    top = [o for o in opportunities if o.spread >= threshold][:max_rows]
    if not top:
        return None

    lines = [
        f"{o.coin}: Gate {o.gate_earn_apr:.2f}% - OKX {o.okx_borrow_apr:.2f}%"
        f" = Spread {o.spread:.2f}%"
        for o in top
    ]
    return "\n".join([ALERT_HEADER, *lines])


class TelegramNotifier:
    """Sends plain-text messages through the Telegram Bot API."""

    def __init__(
        self,
        settings: TelegramSettings,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def send(self, text: str) -> SendResult:
        if not self.is_configured:
            return SendResult(ok=False, skipped=True)

        token = self._settings.bot_token.get_secret_value()
        url = f"{TELEGRAM_API_URL}/bot{token}/sendMessage"
        payload = {
            "chat_id": self._settings.chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }

        try:
            async with self._get_session().post(url, json=payload) as resp:
                status = resp.status
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("telegram_send_failed", error=str(e))
            return SendResult(ok=False)

        ok = status < 400
        if ok:
            logger.info("alert_sent", chars=len(text))
        else:
            logger.warning("telegram_send_rejected", status=status)
        return SendResult(ok=ok, status=status, response=body)

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
