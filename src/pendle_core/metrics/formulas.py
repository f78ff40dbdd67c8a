"""Pure metric formulas — no I/O, no chain access.

Inputs are raw scaled integers from ``readState``; outputs are SafeValues so
a degenerate result surfaces as "not available" instead of a wrong number.
"""

from __future__ import annotations

from pendle_core.fixed_point import SECONDS_PER_YEAR, descale, mul_scaled
from pendle_core.metrics.safe import SafeValue

# Plausible yield band: -100% .. 1000%
MIN_YIELD = -1.0
MAX_YIELD = 10.0

# Slack allowed above 1.0 for a PT price before it is rejected.
PT_PRICE_EPSILON = 1e-9


def ln_rate(last_ln_implied_rate: int) -> SafeValue:
    """Continuously-compounded annual rate as a real number."""
    return SafeValue(descale(last_ln_implied_rate))


def implied_apy(last_ln_implied_rate: int) -> SafeValue:
    """exp(r) - 1."""
    return (ln_rate(last_ln_implied_rate).exp() - 1).within(MIN_YIELD, MAX_YIELD, "implied apy")


def fee_adjusted_apy(apy: SafeValue, reserve_fee_percent: int) -> SafeValue:
    """Implied APY net of the protocol's reserve fee share."""
    if not 0 <= reserve_fee_percent <= 100:
        return SafeValue.na(f"reserve fee {reserve_fee_percent}% outside [0, 100]")
    return apy * (1 - reserve_fee_percent / 100)


def time_to_expiry_years(expiry: int, now: int) -> float:
    """Remaining life in years; 0 once expired."""
    return max(expiry - now, 0) / SECONDS_PER_YEAR


def pt_price(last_ln_implied_rate: int, years: float) -> SafeValue:
    """Discount factor exp(-r * t), in underlying units per PT."""
    price = (-ln_rate(last_ln_implied_rate) * years).exp()
    price = price.within(0.0, 1.0 + PT_PRICE_EPSILON, "pt price")
    return price.clamp(0.0, 1.0)


def yt_price(pt: SafeValue) -> SafeValue:
    """1 - PT price, so the pair always sums to one."""
    return 1 - pt


def yt_yield_rate(apy: SafeValue, yt: SafeValue) -> SafeValue:
    """Implied yield earned per unit of capital spent on YT."""
    return (apy / yt).within(MIN_YIELD, MAX_YIELD, "yt yield rate")


def utilization_rate(total_pt: int, total_sy: int) -> SafeValue:
    """PT / SY reserve ratio; defined as 0 for an empty SY side."""
    if total_sy == 0:
        return SafeValue(0.0)
    return (SafeValue(descale(total_pt)) / descale(total_sy)).within(0.0, float("inf"), "utilization")


def yt_balance_estimate(total_pt: int, total_sy: int) -> int:
    """max(PT - SY, 0).

    Approximates net YT exposure from pool reserves. It is not the YT
    supply and must be reported as an estimate.
    """
    return max(total_pt - total_sy, 0)


def tvl(total_sy: int, total_pt: int, total_lp: int, sy_exchange_rate: int) -> SafeValue:
    """Pooled SY + PT + estimated YT + LP, valued at the SY exchange rate.

    Treats every pooled unit as worth one SY, which overstates PT and LP
    once their value drifts from SY.
    """
    pooled = total_sy + total_pt + yt_balance_estimate(total_pt, total_sy) + total_lp
    value = mul_scaled(pooled, sy_exchange_rate)
    return SafeValue(descale(value)).within(0.0, float("inf"), "tvl")


def liquidity(total_sy: int, total_pt: int, pt: SafeValue, sy_exchange_rate: int) -> SafeValue:
    """Pool depth in underlying terms: (SY + PT * pt_price) * exchange rate."""
    rate = descale(sy_exchange_rate)
    depth = (SafeValue(descale(total_pt)) * pt + descale(total_sy)) * rate
    return depth.within(0.0, float("inf"), "liquidity")


def maturity_progress(now: int, created_at: int | None, expiry: int) -> SafeValue | None:
    """Elapsed share of the market's life, clamped to [0, 1].

    Returns None when the creation time is unknown.
    """
    if created_at is None:
        return None
    if expiry <= created_at:
        return SafeValue(1.0)
    return (SafeValue(now - created_at) / (expiry - created_at)).clamp(0.0, 1.0)
