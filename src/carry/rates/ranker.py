"""Opportunity ranking engine for OKX borrow -> Gate earn carry.

Joins normalized borrow and earn rates on currency and ranks by spread:

  spread = gate_earn_apr - okx_borrow_apr

Only currencies quoted on both sides produce a row. Ranking is a pure
function of its inputs: no I/O, no shared state.
"""

from collections.abc import Iterable, Mapping

from carry.config import RankingSettings
from carry.logging import get_logger
from carry.models import LoanLimits, NormalizedBorrowRate, NormalizedEarnRate, Opportunity
from carry.rates.normalizer import normalize_ccy

logger = get_logger(__name__)


def clamp_top_n(top_n: int | None, settings: RankingSettings) -> int:
    """Clamp a requested row count to [min_top_n, max_top_n].

    None falls back to default_top_n.
    """
    if top_n is None:
        top_n = settings.default_top_n
    return max(settings.min_top_n, min(settings.max_top_n, top_n))


class OpportunityRanker:
    """Ranks currencies by earn APR minus borrow APR.

    Args:
        settings: Row count bounds. top_n is clamped here as well as at the
            API boundary so direct callers get the same limits.
    """

    def __init__(self, settings: RankingSettings) -> None:
        self._settings = settings

    def rank(
        self,
        borrow_rates: Iterable[NormalizedBorrowRate],
        earn_rates: Iterable[NormalizedEarnRate],
        limits: Mapping[str, LoanLimits] | None = None,
        allowlist: Iterable[str] | None = None,
        top_n: int | None = None,
    ) -> list[Opportunity]:
        """Join, filter, sort and truncate.

        1. Build ccy -> APR maps (later duplicates overwrite earlier ones)
        2. Keep currencies present in both maps, in earn-feed order
        3. Restrict to the allow-list when it is non-empty
        4. Attach loan limits when known
        5. Stable sort by spread descending, truncate to top_n

        Args:
            borrow_rates: Normalized OKX borrow rates.
            earn_rates: Normalized Gate earn rates.
            limits: Optional ccy -> LoanLimits enrichment. Never gates a row.
            allowlist: Optional currency codes to restrict output to.
            top_n: Maximum rows, clamped to the configured bounds.

        Returns:
            List of Opportunity sorted by spread descending.
        """
        borrow_map: dict[str, float] = {}
        for br in borrow_rates:
            borrow_map[br.ccy] = br.borrow_apr_pct

        earn_map: dict[str, float] = {}
        for er in earn_rates:
            earn_map[er.ccy] = er.earn_apr_pct

        allowed = {normalize_ccy(c) for c in allowlist or ()}
        allowed.discard("")
        limits = limits or {}

        rows: list[Opportunity] = []
        for coin, earn_apr in earn_map.items():
            borrow_apr = borrow_map.get(coin)
            if borrow_apr is None:
                continue
            if allowed and coin not in allowed:
                continue

            loan = limits.get(coin)
            rows.append(
                Opportunity(
                    coin=coin,
                    okx_borrow_apr=borrow_apr,
                    gate_earn_apr=earn_apr,
                    spread=earn_apr - borrow_apr,
                    okx_max_loan=loan.max_loan if loan else None,
                    okx_remaining_quota=loan.remaining_quota if loan else None,
                )
            )

        # list.sort is stable: equal spreads keep earn-feed order
        rows.sort(key=lambda o: o.spread, reverse=True)

        limit = clamp_top_n(top_n, self._settings)
        logger.debug(
            "ranking_computed",
            borrow_count=len(borrow_map),
            earn_count=len(earn_map),
            matched=len(rows),
            top_n=limit,
        )
        return rows[:limit]
