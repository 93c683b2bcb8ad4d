"""
Guarded Numerics

Shared guards for every indicator and scorer. Short input, zero denominators
and NaN resolve to documented sentinels here instead of being repeated inline.
"""

import math
from typing import Optional, Sequence

import numpy as np

INSUFFICIENT_DATA = "Insufficient Data"


def is_finite(value) -> bool:
    """True for real, non-NaN, non-infinite numbers."""
    if value is None:
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Division that returns `default` for zero or non-finite operands."""
    if not is_finite(numerator) or not is_finite(denominator) or denominator == 0:
        return default
    result = numerator / denominator
    return result if math.isfinite(result) else default


def safe_divide_arrays(
    numerator: np.ndarray, denominator: np.ndarray, default: float = 0.0
) -> np.ndarray:
    """Element-wise division; zero denominators yield `default`."""
    numerator = np.asarray(numerator, dtype=float)
    denominator = np.asarray(denominator, dtype=float)
    out = np.full(np.broadcast(numerator, denominator).shape, default, dtype=float)
    np.divide(numerator, denominator, out=out, where=denominator != 0)
    return out


def pct_change(current: float, previous: float, default: float = 0.0) -> float:
    """Percent change from `previous` to `current`."""
    return safe_div(current - previous, previous, default / 100) * 100


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp to [low, high]; non-finite input collapses to the midpoint."""
    if not is_finite(value):
        return (low + high) / 2
    return max(low, min(high, float(value)))


def last_valid(values: Sequence[float], default: Optional[float] = None) -> Optional[float]:
    """Last finite value of a sequence, or `default`."""
    if values is None:
        return default
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return default
    valid = arr[np.isfinite(arr)]
    return float(valid[-1]) if valid.size > 0 else default


def previous_valid(values: Sequence[float], default: Optional[float] = None) -> Optional[float]:
    """Second-to-last finite value of a sequence, or `default`."""
    if values is None:
        return default
    arr = np.asarray(values, dtype=float)
    valid = arr[np.isfinite(arr)]
    return float(valid[-2]) if valid.size > 1 else default


def finite_or_none(value) -> Optional[float]:
    """Float value if finite, else None."""
    return float(value) if is_finite(value) else None


def as_array(values) -> np.ndarray:
    """Float64 array view of any numeric sequence."""
    return np.asarray(values, dtype=float)
