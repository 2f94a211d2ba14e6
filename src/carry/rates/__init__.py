"""Rate layer -- feed normalization and opportunity ranking."""

from carry.rates.normalizer import normalize_borrow_rates, normalize_earn_rates
from carry.rates.ranker import OpportunityRanker, clamp_top_n

__all__ = [
    "OpportunityRanker",
    "clamp_top_n",
    "normalize_borrow_rates",
    "normalize_earn_rates",
]
