"""Derived indicator models — output of the metrics engine."""

from __future__ import annotations

from pydantic import BaseModel

from pendle_core.models.market import MarketInfo


class RewardApr(BaseModel):
    """Annualized reward rate as fractions (0.05 == 5%).

    ``None`` marks a value that failed the sanity bound.
    """

    total: float | None = None
    by_token: dict[str, float | None] = {}


class DerivedMetrics(BaseModel):
    """Indicators for one snapshot. ``None`` means "not available".

    Rates and prices are fractions; ``tvl``, ``liquidity`` and
    ``yt_balance_estimate`` are in underlying-asset units (descaled).
    ``yt_balance_estimate`` is a heuristic, not an on-chain balance.
    """

    implied_apy: float | None = None
    fee_adjusted_apy: float | None = None
    yt_yield_rate: float | None = None
    pt_price: float | None = None
    yt_price: float | None = None
    utilization_rate: float | None = None
    yt_balance_estimate: float | None = None
    tvl: float | None = None
    liquidity: float | None = None
    maturity_progress: float | None = None
    time_to_expiry_years: float = 0.0
    reward_apr: RewardApr | None = None


class MarketRecord(BaseModel):
    """A discovered market together with its freshly computed metrics."""

    info: MarketInfo
    metrics: DerivedMetrics
