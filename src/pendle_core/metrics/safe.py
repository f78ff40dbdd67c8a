"""SafeValue — a float that remembers whether it is still meaningful.

Formulas chain SafeValues instead of raw floats. The first NaN, infinity or
failed range check turns the value invalid, and every later operation passes
the invalid value through untouched, so a metric either comes out as a real
number or as ``None`` with a reason attached.
"""

from __future__ import annotations

import operator
from typing import Callable, Union

import numpy as np

Number = Union[int, float, np.floating]


class SafeValue:
    """Immutable float wrapper with validity tracking."""

    __slots__ = ("_value", "reason")

    def __init__(self, value: Number | None, reason: str | None = None) -> None:
        self.reason: str | None
        if value is None:
            self._value = float("nan")
            self.reason = reason or "missing input"
            return
        try:
            v = float(value)
        except OverflowError:
            v = float("inf") if value > 0 else float("-inf")
        self._value = v
        if reason is not None:
            self.reason = reason
        elif np.isnan(v):
            self.reason = "not a number"
        elif np.isinf(v):
            self.reason = "infinite"
        else:
            self.reason = None

    @classmethod
    def na(cls, reason: str) -> SafeValue:
        return cls(None, reason)

    @property
    def valid(self) -> bool:
        return self.reason is None

    @property
    def value(self) -> float | None:
        """The float, or None once invalid."""
        return self._value if self.valid else None

    # ── arithmetic ────────────────────────────────────────────

    def _apply(self, other: SafeValue | Number, op: Callable, reflected: bool = False) -> SafeValue:
        if not self.valid:
            return self
        rhs = other if isinstance(other, SafeValue) else SafeValue(other)
        if not rhs.valid:
            return rhs
        a, b = np.float64(self._value), np.float64(rhs._value)
        if reflected:
            a, b = b, a
        with np.errstate(all="ignore"):
            return SafeValue(op(a, b))

    def __add__(self, other):
        return self._apply(other, operator.add)

    def __radd__(self, other):
        return self._apply(other, operator.add, reflected=True)

    def __sub__(self, other):
        return self._apply(other, operator.sub)

    def __rsub__(self, other):
        return self._apply(other, operator.sub, reflected=True)

    def __mul__(self, other):
        return self._apply(other, operator.mul)

    def __rmul__(self, other):
        return self._apply(other, operator.mul, reflected=True)

    def __truediv__(self, other):
        rhs = other if isinstance(other, SafeValue) else SafeValue(other)
        if self.valid and rhs.valid and rhs._value == 0:
            return SafeValue.na("division by zero")
        return self._apply(rhs, operator.truediv)

    def __rtruediv__(self, other):
        if self.valid and self._value == 0:
            return SafeValue.na("division by zero")
        return self._apply(other, operator.truediv, reflected=True)

    def __neg__(self) -> SafeValue:
        if not self.valid:
            return self
        return SafeValue(-self._value)

    # ── transcendental / bounds ───────────────────────────────

    def exp(self) -> SafeValue:
        if not self.valid:
            return self
        with np.errstate(all="ignore"):
            return SafeValue(np.exp(np.float64(self._value)))

    def within(self, lo: float, hi: float, what: str = "value") -> SafeValue:
        """Invalidate if outside ``[lo, hi]``."""
        if not self.valid:
            return self
        if self._value < lo or self._value > hi:
            return SafeValue.na(f"{what} {self._value:.6g} outside [{lo:g}, {hi:g}]")
        return self

    def clamp(self, lo: float, hi: float) -> SafeValue:
        if not self.valid:
            return self
        return SafeValue(min(max(self._value, lo), hi))

    def __repr__(self) -> str:
        if self.valid:
            return f"SafeValue({self._value!r})"
        return f"SafeValue(N/A: {self.reason})"
