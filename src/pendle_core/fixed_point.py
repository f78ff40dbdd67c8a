"""Fixed-point conventions shared by every on-chain quantity.

Market balances, implied rates and SY exchange rates are signed integers
scaled by 1e18. Nothing outside this module should divide by the scale.
"""

from __future__ import annotations

from decimal import Decimal, localcontext

SCALE = 10**18
DECIMALS = 18
SECONDS_PER_YEAR = 31_536_000
SECONDS_PER_DAY = 86_400


def to_decimal(raw: int) -> Decimal:
    """Exact Decimal value of a scaled integer."""
    with localcontext() as ctx:
        ctx.prec = 80
        return Decimal(int(raw)) / Decimal(SCALE)


def descale(raw: int) -> float:
    """Float value of a scaled integer, for formulas and display."""
    return float(to_decimal(raw))


def to_scaled(value: float | Decimal | str) -> int:
    """Inverse of :func:`descale`, truncating toward zero."""
    with localcontext() as ctx:
        ctx.prec = 80
        return int(Decimal(str(value)) * SCALE)


def mul_scaled(a: int, b: int) -> int:
    """Product of two scaled integers, kept at the shared scale."""
    return a * b // SCALE


def format_units(raw: int, places: int = 6) -> str:
    """Human readable amount, e.g. ``1234.5 * 1e18 -> '1,234.500000'``."""
    return f"{to_decimal(raw):,.{places}f}"
