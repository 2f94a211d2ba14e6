"""Shared data models for the borrow/earn spread service.

All rates are annualized percentages (APR %) stored as float. Every model is
immutable and built fresh for each ranking pass.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class NormalizedBorrowRate:
    """OKX borrow rate for one currency, annualized."""

    ccy: str  # trimmed, upper-case
    borrow_apr_pct: float  # always > 0


@dataclass(frozen=True)
class NormalizedEarnRate:
    """Gate Uni lending rate for one currency, annualized."""

    ccy: str
    earn_apr_pct: float  # always > 0
    daily_rate: float  # fractional daily rate the APR was derived from


@dataclass(frozen=True)
class LoanLimits:
    """OKX flexible-loan capacity for one currency.

    Values are passed through exactly as OKX reports them (usually strings).
    """

    max_loan: Any = None
    remaining_quota: Any = None


@dataclass(frozen=True)
class Opportunity:
    """One ranked row: borrow on OKX, lend on Gate."""

    coin: str
    okx_borrow_apr: float
    gate_earn_apr: float
    spread: float  # gate_earn_apr - okx_borrow_apr, may be negative
    okx_max_loan: Any = None
    okx_remaining_quota: Any = None
    note: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Wire representation used by the API and the cache payload."""
        return {
            "coin": self.coin,
            "okxBorrowApr": self.okx_borrow_apr,
            "gateEarnApr": self.gate_earn_apr,
            "spread": self.spread,
            "okxMaxLoan": self.okx_max_loan,
            "okxRemainingQuota": self.okx_remaining_quota,
            "note": self.note,
        }


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass(frozen=True)
class RankingSnapshot:
    """Point-in-time ranking as stored in the cache."""

    data: tuple[Opportunity, ...]
    as_of: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "asOf": self.as_of,
            "data": [opp.to_dict() for opp in self.data],
        }
