"""Reward APR estimate from a single accrual reading.

Each reward token's accrued amount for the probe account is read once and
treated as a per-second emission rate (scale 1e18), then extrapolated over a
year. This assumes a constant emission rate and is only an estimate.
"""

from __future__ import annotations

from collections.abc import Mapping

from pendle_core.fixed_point import SECONDS_PER_YEAR, descale
from pendle_core.metrics.safe import SafeValue
from pendle_core.models import RewardApr

DEFAULT_MAX_APR = 10.0  # 1000%


def annualize(rate_per_second: int, max_apr: float = DEFAULT_MAX_APR) -> SafeValue:
    """rate * seconds-per-year, rejected outside [0, max_apr]."""
    return (SafeValue(descale(rate_per_second)) * SECONDS_PER_YEAR).within(0.0, max_apr, "reward apr")


def estimate_reward_apr(accruals: Mapping[str, int], *, max_apr: float = DEFAULT_MAX_APR) -> RewardApr:
    """Per-token and total annualized reward rate.

    The total is unavailable if any single token is, or if the sum itself
    leaves the sanity bound.
    """
    by_token: dict[str, float | None] = {}
    total = SafeValue(0.0)
    for token, accrued in accruals.items():
        apr = annualize(accrued, max_apr)
        by_token[token] = apr.value
        total = total + apr
    total = total.within(0.0, max_apr, "total reward apr")
    return RewardApr(total=total.value, by_token=by_token)
