"""
Correlation Statistics

Pearson correlation (optionally weighted), its two-tailed Student-t p-value
and annualized volatility.
"""

import math
from typing import Optional

import numpy as np
from scipy import stats

from cryptoscan.services.indicators.safe import as_array, safe_divide_arrays

TRADING_DAYS = 252


def pearson_correlation(x, y, weights: Optional[np.ndarray] = None) -> float:
    """Pearson r in [-1, 1]; 0 when either side has no variance."""
    x, y = as_array(x), as_array(y)
    n = min(len(x), len(y))
    if n < 2:
        return 0.0
    x, y = x[:n], y[:n]

    if weights is None:
        w = np.ones(n)
    else:
        w = as_array(weights)[:n]
        if w.sum() <= 0:
            w = np.ones(n)

    total = w.sum()
    mean_x = float(np.dot(w, x) / total)
    mean_y = float(np.dot(w, y) / total)
    dx, dy = x - mean_x, y - mean_y

    covariance = float(np.dot(w, dx * dy))
    var_x = float(np.dot(w, dx * dx))
    var_y = float(np.dot(w, dy * dy))
    if var_x <= 0 or var_y <= 0:
        return 0.0

    r = covariance / math.sqrt(var_x * var_y)
    return max(-1.0, min(1.0, r))


def t_statistic(r: float, n: int) -> float:
    """t = r * sqrt((n - 2) / (1 - r^2)); infinite for |r| = 1."""
    r = max(-1.0, min(1.0, r))
    denominator = 1 - r * r
    if denominator <= 1e-12:
        return math.copysign(math.inf, r) if r != 0 else 0.0
    return r * math.sqrt((n - 2) / denominator)


def correlation_p_value(r: float, n: int) -> float:
    """Two-tailed p-value for Pearson r over n points (Student t, n - 2 df)."""
    if n < 3:
        return 1.0
    t = t_statistic(r, n)
    if math.isinf(t):
        return 0.0

    p = float(stats.t.sf(abs(t), n - 2) * 2)
    return max(0.0, min(1.0, p))


def significance_label(p_value: float) -> str:
    if p_value <= 0.01:
        return "High"
    if p_value <= 0.05:
        return "Medium"
    return "Low"


def strength_label(r: float) -> str:
    magnitude = abs(r)
    if magnitude > 0.9:
        return "Very Strong"
    if magnitude > 0.7:
        return "Strong"
    if magnitude > 0.5:
        return "Moderate"
    if magnitude > 0.3:
        return "Weak"
    return "Very Weak"


def annualized_volatility(closes) -> float:
    """Std of daily log returns scaled by sqrt(252)."""
    closes = as_array(closes)
    if len(closes) < 2:
        return 0.0

    ratios = safe_divide_arrays(closes[1:], closes[:-1], default=1.0)
    ratios = np.where(ratios > 0, ratios, 1.0)
    log_returns = np.log(ratios)
    return float(np.std(log_returns) * math.sqrt(TRADING_DAYS))
