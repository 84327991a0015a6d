"""Generic fuzzy membership functions.

Every membership curve used by the scorer is built from ``triangular`` or
``trapezoid``; neither knows anything about places or budgets.
"""
from __future__ import annotations


def triangular(x: float, a: float, b: float, c: float) -> float:
    """Triangle with feet at ``a``/``c`` and its peak (1.0) at ``b``."""
    if x <= a or x >= c:
        return 0.0
    if x == b:
        return 1.0
    if x < b:
        return (x - a) / (b - a)
    return (c - x) / (c - b)


def trapezoid(x: float, a: float, b: float, c: float, d: float) -> float:
    """Trapezoid: 0 outside ``(a, d)``, 1 on ``[b, c]``, linear ramps between."""
    if x <= a or x >= d:
        return 0.0
    if b <= x <= c:
        return 1.0
    if x < b:
        return (x - a) / (b - a)
    return (d - x) / (d - c)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
