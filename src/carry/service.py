"""Spread service -- wires feeds, normalizers, ranker and sinks together.

One ranking pass:
  1. FETCH: OKX borrow and Gate earn feeds concurrently
  2. NORMALIZE: both raw sets to APR %
  3. RANK: join on currency, sort by spread, truncate
  4. ENRICH (optional): OKX max-loan per ranked currency, one request at a
     time with a fixed delay (OKX allows 5 requests / 2 seconds)

The poll cycle additionally stores the snapshot in the cache and sends a
spread alert. A feed failure raises FeedUnavailableError; an empty ranking
is a normal result.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from carry.cache.upstash import UpstashCache
from carry.config import AppSettings
from carry.exceptions import CarryError
from carry.exchange.client import RateFeed
from carry.exchange.okx_client import OkxClient
from carry.logging import get_logger
from carry.models import (
    LoanLimits,
    NormalizedBorrowRate,
    NormalizedEarnRate,
    Opportunity,
    RankingSnapshot,
    now_iso,
)
from carry.notify.telegram import TelegramNotifier, format_spread_alert
from carry.rates.normalizer import normalize_borrow_rates, normalize_earn_rates
from carry.rates.ranker import OpportunityRanker

logger = get_logger(__name__)

MAX_LOAN_UNAVAILABLE_NOTE = "OKX max-loan not available (check API env/perm)"

_DEBUG_SAMPLE_SIZE = 5
_DEBUG_KEY_LIMIT = 50


class SpreadService:
    """Produces ranked borrow/earn spread snapshots.

    Args:
        settings: Application settings (ranking bounds, poll and alert config).
        okx: OKX client, used as borrow feed and max-loan provider.
        gate: Earn-rate feed.
        cache: Snapshot cache sink.
        notifier: Alert sink.
        ranker: Opportunity ranker.
    """

    def __init__(
        self,
        settings: AppSettings,
        okx: OkxClient,
        gate: RateFeed,
        cache: UpstashCache,
        notifier: TelegramNotifier,
        ranker: OpportunityRanker,
    ) -> None:
        self._settings = settings
        self._okx = okx
        self._gate = gate
        self._cache = cache
        self._notifier = notifier
        self._ranker = ranker

    async def fetch_rates(
        self,
    ) -> tuple[list[NormalizedBorrowRate], list[NormalizedEarnRate]]:
        """Fetch both feeds concurrently and normalize them."""
        # Let both fetches settle so neither failure goes unobserved
        raw_borrow, raw_earn = await asyncio.gather(
            self._okx.fetch_raw_rates(),
            self._gate.fetch_raw_rates(),
            return_exceptions=True,
        )
        for result in (raw_borrow, raw_earn):
            if isinstance(result, BaseException):
                raise result
        return normalize_borrow_rates(raw_borrow), normalize_earn_rates(raw_earn)

    async def rank(
        self,
        top_n: int | None = None,
        allowlist: Iterable[str] | None = None,
        with_max_loan: bool = False,
    ) -> list[Opportunity]:
        """Fetch live rates and return the ranked opportunities.

        Raises:
            FeedUnavailableError: either feed failed.
        """
        borrow_rates, earn_rates = await self.fetch_rates()
        allowed = set(allowlist) if allowlist else None

        opportunities = self._ranker.rank(
            borrow_rates, earn_rates, allowlist=allowed, top_n=top_n
        )

        if with_max_loan and opportunities:
            limits, unavailable = await self._collect_max_loans(
                [o.coin for o in opportunities]
            )
            opportunities = [
                replace(o, note=MAX_LOAN_UNAVAILABLE_NOTE) if o.coin in unavailable else o
                for o in self._ranker.rank(
                    borrow_rates,
                    earn_rates,
                    limits=limits,
                    allowlist=allowed,
                    top_n=top_n,
                )
            ]

        logger.info(
            "ranking_ready",
            rows=len(opportunities),
            top_spread=opportunities[0].spread if opportunities else None,
            with_max_loan=with_max_loan,
        )
        return opportunities

    async def _collect_max_loans(
        self, coins: list[str]
    ) -> tuple[dict[str, LoanLimits], set[str]]:
        """Look up max-loan per coin, serialized with a fixed delay.

        A failed lookup marks that coin unavailable and moves on.
        """
        if not self._okx.can_fetch_max_loan:
            logger.info("max_loan_skipped", reason="okx_not_configured")
            return {}, set(coins)

        delay = self._settings.ranking.max_loan_delay_seconds
        limits: dict[str, LoanLimits] = {}
        unavailable: set[str] = set()

        for i, coin in enumerate(coins):
            if i > 0 and delay > 0:
                await asyncio.sleep(delay)
            try:
                result = await self._okx.fetch_max_loan(coin)
            except CarryError as e:
                logger.warning("max_loan_unavailable", ccy=coin, error=str(e))
                result = None

            if result is None:
                unavailable.add(coin)
            else:
                limits[coin] = result

        return limits, unavailable

    async def debug_summary(self) -> dict[str, Any]:
        """Live feed counts, samples and key lists for troubleshooting joins."""
        borrow_rates, earn_rates = await self.fetch_rates()

        borrow_keys = {br.ccy for br in borrow_rates}
        intersection = [er.ccy for er in earn_rates if er.ccy in borrow_keys]

        return {
            "okxCount": len(borrow_rates),
            "gateCount": len(earn_rates),
            "okxSample": [
                {"ccy": br.ccy, "borrowAprPct": br.borrow_apr_pct}
                for br in borrow_rates[:_DEBUG_SAMPLE_SIZE]
            ],
            "gateSample": [
                {"ccy": er.ccy, "earnAprPct": er.earn_apr_pct, "dailyRate": er.daily_rate}
                for er in earn_rates[:_DEBUG_SAMPLE_SIZE]
            ],
            "okxKeys": [br.ccy for br in borrow_rates[:_DEBUG_KEY_LIMIT]],
            "gateKeys": [er.ccy for er in earn_rates[:_DEBUG_KEY_LIMIT]],
            "intersectionSample": intersection[:_DEBUG_KEY_LIMIT],
        }

    async def cached_snapshot(self) -> dict[str, Any] | None:
        """Return the last stored snapshot payload, if any."""
        payload = await self._cache.get_json(self._settings.cache.key)
        return payload if isinstance(payload, dict) else None

    async def poll(self) -> RankingSnapshot:
        """Run one refresh cycle: rank, cache the snapshot, send an alert."""
        opportunities = await self.rank(top_n=self._settings.poll.top_n)
        snapshot = RankingSnapshot(data=tuple(opportunities), as_of=now_iso())

        cached = await self._cache.set_json(
            self._settings.cache.key,
            snapshot.to_dict(),
            self._settings.cache.ttl_seconds,
        )

        alert = self._settings.alert
        text = format_spread_alert(opportunities, alert.spread_pct, alert.max_rows)
        alerted = False
        if text is not None:
            result = await self._notifier.send(text)
            alerted = result.ok

        logger.info(
            "poll_completed",
            rows=len(opportunities),
            cached=cached,
            alerted=alerted,
        )
        return snapshot

    async def close(self) -> None:
        """Release all HTTP sessions."""
        await self._okx.close()
        await self._gate.close()
        await self._cache.close()
        await self._notifier.close()
