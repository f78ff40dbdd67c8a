"""Market metrics — safe arithmetic, pure formulas, and the engine entry point."""

from pendle_core.metrics.engine import compute_metrics
from pendle_core.metrics.formulas import (
    fee_adjusted_apy,
    implied_apy,
    liquidity,
    maturity_progress,
    pt_price,
    time_to_expiry_years,
    tvl,
    utilization_rate,
    yt_balance_estimate,
    yt_price,
    yt_yield_rate,
)
from pendle_core.metrics.rewards import estimate_reward_apr
from pendle_core.metrics.safe import SafeValue

__all__ = [
    "SafeValue",
    "compute_metrics",
    "estimate_reward_apr",
    "fee_adjusted_apy",
    "implied_apy",
    "liquidity",
    "maturity_progress",
    "pt_price",
    "time_to_expiry_years",
    "tvl",
    "utilization_rate",
    "yt_balance_estimate",
    "yt_price",
    "yt_yield_rate",
]
