"""Rate normalization -- converts raw feed records into annualized APR %.

The two feeds encode rates differently:

  OKX borrow:  a single daily rate, either a fraction (0.0003) or an
               already-scaled daily percent (1.2). There is no field telling
               the two apart, so the unit is inferred from magnitude:
               0 < r < 1 is a fraction, anything else is a percent.
  Gate earn:   daily fractional rates as strings (max_rate / min_rate).

Core formulas:
  borrow_apr_pct = daily_pct * 365
  earn_apr_pct   = daily_rate * 365 * 100

KNOWN AMBIGUITY: a genuine daily percent below 1% (e.g. 0.5 meaning 0.5%/day)
is indistinguishable from a fraction and gets scaled by 100. Keep the
threshold until OKX exposes the unit explicitly.

Records that cannot produce a positive finite APR are dropped, never
defaulted to zero and never raised.
"""

import math
from collections.abc import Iterable, Mapping
from typing import Any

from carry.logging import get_logger
from carry.models import NormalizedBorrowRate, NormalizedEarnRate

logger = get_logger(__name__)

_DAYS_PER_YEAR = 365

_BORROW_CCY_FIELDS = ("ccy", "currency")
_BORROW_RATE_FIELDS = ("interestRate", "ir", "rate")
_EARN_CCY_FIELDS = ("currency", "ccy")


def to_number(value: Any) -> float | None:
    """Coerce a raw feed value to a finite float, or None.

    Digit-group underscores ("1_000") are rejected; float() accepts them but
    no feed emits them.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and "_" in value:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def normalize_ccy(value: Any) -> str:
    """Trim and upper-case a currency code. Missing values become ""."""
    if value is None:
        return ""
    return str(value).strip().upper()


def _first_truthy(row: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if row.get(key):
            return row[key]
    return None


def _first_present(row: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


def normalize_borrow_rates(
    rows: Iterable[Mapping[str, Any]],
) -> list[NormalizedBorrowRate]:
    """Normalize OKX borrow-rate records to annual APR %.

    Duplicate currencies are kept; the ranker resolves them last-wins.
    """
    out: list[NormalizedBorrowRate] = []
    dropped = 0

    for row in rows:
        if not isinstance(row, Mapping):
            dropped += 1
            continue

        ccy = normalize_ccy(_first_truthy(row, _BORROW_CCY_FIELDS))
        daily = to_number(_first_present(row, _BORROW_RATE_FIELDS))
        if not ccy or daily is None:
            logger.debug("borrow_record_dropped", ccy=ccy, reason="missing_field")
            dropped += 1
            continue

        # Fractional daily rate -> daily percent
        if 0 < daily < 1:
            daily *= 100

        apr_pct = daily * _DAYS_PER_YEAR
        if not math.isfinite(apr_pct) or apr_pct <= 0:
            logger.debug("borrow_record_dropped", ccy=ccy, reason="non_positive")
            dropped += 1
            continue

        out.append(NormalizedBorrowRate(ccy=ccy, borrow_apr_pct=apr_pct))

    logger.debug("borrow_rates_normalized", kept=len(out), dropped=dropped)
    return out


def normalize_earn_rates(
    rows: Iterable[Mapping[str, Any]],
) -> list[NormalizedEarnRate]:
    """Normalize Gate Uni lending records to annual APR %.

    max_rate is preferred; min_rate is the fallback when max_rate is
    missing, non-numeric or not positive.
    """
    out: list[NormalizedEarnRate] = []
    dropped = 0

    for row in rows:
        if not isinstance(row, Mapping):
            dropped += 1
            continue

        ccy = normalize_ccy(_first_truthy(row, _EARN_CCY_FIELDS))
        max_rate = to_number(row.get("max_rate"))
        min_rate = to_number(row.get("min_rate"))

        if max_rate is not None and max_rate > 0:
            daily = max_rate
        elif min_rate is not None and min_rate > 0:
            daily = min_rate
        else:
            daily = None

        if not ccy or daily is None:
            logger.debug("earn_record_dropped", ccy=ccy, reason="missing_field")
            dropped += 1
            continue

        apr_pct = daily * _DAYS_PER_YEAR * 100
        if not math.isfinite(apr_pct) or apr_pct <= 0:
            logger.debug("earn_record_dropped", ccy=ccy, reason="non_positive")
            dropped += 1
            continue

        out.append(NormalizedEarnRate(ccy=ccy, earn_apr_pct=apr_pct, daily_rate=daily))

    logger.debug("earn_rates_normalized", kept=len(out), dropped=dropped)
    return out
