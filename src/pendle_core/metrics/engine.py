"""Metrics engine — one MarketState plus a clock reading in, DerivedMetrics out."""

from __future__ import annotations

from collections.abc import Mapping

from pendle_core.fixed_point import descale
from pendle_core.logging import get_logger
from pendle_core.metrics import formulas
from pendle_core.metrics.rewards import DEFAULT_MAX_APR, estimate_reward_apr
from pendle_core.metrics.safe import SafeValue
from pendle_core.models import DerivedMetrics, MarketState

log = get_logger(__name__)


def _settle(fields: dict[str, SafeValue | None], market: str | None) -> dict[str, float | None]:
    """Unwrap SafeValues, logging each degenerate field."""
    out: dict[str, float | None] = {}
    for name, safe in fields.items():
        if safe is None:
            out[name] = None
            continue
        if not safe.valid:
            log.debug("metric_degenerate", market=market, field=name, reason=safe.reason)
        out[name] = safe.value
    return out


def compute_metrics(
    state: MarketState,
    now: int,
    *,
    created_at: int | None = None,
    reward_accruals: Mapping[str, int] | None = None,
    reward_max_apr: float = DEFAULT_MAX_APR,
    market: str | None = None,
) -> DerivedMetrics:
    """Derive every indicator for *state* as of unix time *now*.

    Pure apart from debug logging. *created_at* enables maturity progress;
    *reward_accruals* (token -> raw accrued amount) enables the reward APR.
    """
    years = formulas.time_to_expiry_years(state.expiry, now)

    apy = formulas.implied_apy(state.last_ln_implied_rate)
    pt = formulas.pt_price(state.last_ln_implied_rate, years)
    yt = formulas.yt_price(pt)

    fields = _settle(
        {
            "implied_apy": apy,
            "fee_adjusted_apy": formulas.fee_adjusted_apy(apy, state.reserve_fee_percent),
            "yt_yield_rate": formulas.yt_yield_rate(apy, yt),
            "pt_price": pt,
            "yt_price": yt,
            "utilization_rate": formulas.utilization_rate(state.total_pt, state.total_sy),
            "tvl": formulas.tvl(state.total_sy, state.total_pt, state.total_lp, state.sy_exchange_rate),
            "liquidity": formulas.liquidity(state.total_sy, state.total_pt, pt, state.sy_exchange_rate),
            "maturity_progress": formulas.maturity_progress(now, created_at, state.expiry),
        },
        market,
    )

    reward_apr = None
    if reward_accruals is not None:
        reward_apr = estimate_reward_apr(reward_accruals, max_apr=reward_max_apr)

    return DerivedMetrics(
        **fields,
        yt_balance_estimate=descale(formulas.yt_balance_estimate(state.total_pt, state.total_sy)),
        time_to_expiry_years=years,
        reward_apr=reward_apr,
    )
