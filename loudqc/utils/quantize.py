from __future__ import annotations
import math


def q(x: float | None, step: float) -> float | None:
    """Quantize a float to the nearest step, rounding halves away from zero."""
    if x is None or math.isnan(x) or math.isinf(x):
        return x
    inv = 1.0 / step
    y = x * inv
    if y >= 0:
        yq = math.floor(y + 0.5)
    else:
        yq = -math.floor(-y + 0.5)
    return yq / inv


def q2(x: float | None) -> float | None:
    """Round to two decimals (report precision)."""
    return q(x, 0.01)
