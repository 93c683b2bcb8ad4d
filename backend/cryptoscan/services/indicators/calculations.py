"""
Technical Indicator Calculations

Pure NumPy implementations of the series utilities and indicators.
All math is deterministic and reproducible.

Windowed functions return the trailing-window sequence only, i.e. an array of
length `len(values) - (period - 1)`, and an empty array when the input is too
short. Nothing here raises for short input, zero ranges or zero volume.
Ichimoku is the one full-length (NaN padded) series, because its spans are
projected forward.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from cryptoscan.services.indicators.safe import as_array, safe_divide_arrays

EMPTY = np.array([], dtype=float)


def _window(values: np.ndarray, period: int) -> np.ndarray:
    """Trailing windows of `period` values, one row per window."""
    return np.lib.stride_tricks.sliding_window_view(values, period)


def _too_short(values: np.ndarray, period: int) -> bool:
    return period <= 0 or len(values) < period


# =============================================================================
# SERIES UTILITIES
# =============================================================================


def sma(values, period: int) -> np.ndarray:
    """Simple Moving Average."""
    values = as_array(values)
    if _too_short(values, period):
        return EMPTY.copy()
    return _window(values, period).mean(axis=1)


def ema(values, period: int) -> np.ndarray:
    """Exponential Moving Average, seeded by the SMA of the first `period` values."""
    values = as_array(values)
    if _too_short(values, period):
        return EMPTY.copy()

    k = 2 / (period + 1)
    result = np.empty(len(values) - period + 1)
    result[0] = np.mean(values[:period])

    for i in range(1, len(result)):
        result[i] = values[period - 1 + i] * k + result[i - 1] * (1 - k)

    return result


def rolling_std(values, period: int) -> np.ndarray:
    """Population standard deviation of each trailing window."""
    values = as_array(values)
    if _too_short(values, period):
        return EMPTY.copy()
    return _window(values, period).std(axis=1)


def roc(values, period: int = 14) -> np.ndarray:
    """Rate of Change in percent. Zero bases map to 0."""
    values = as_array(values)
    if period <= 0 or len(values) <= period:
        return EMPTY.copy()
    base = values[:-period]
    return safe_divide_arrays(values[period:] - base, base) * 100


def wilder_smooth(values, period: int) -> np.ndarray:
    """Wilder's smoothing: seeded by the mean, then (prev*(p-1) + v) / p."""
    values = as_array(values)
    if _too_short(values, period):
        return EMPTY.copy()

    result = np.empty(len(values) - period + 1)
    result[0] = np.mean(values[:period])

    for i in range(1, len(result)):
        result[i] = (result[i - 1] * (period - 1) + values[period - 1 + i]) / period

    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def rsi(closes, period: int = 14) -> np.ndarray:
    """Relative Strength Index (Wilder)."""
    closes = as_array(closes)
    if period <= 0 or len(closes) < period + 1:
        return EMPTY.copy()

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])

    result = np.empty(len(deltas) - period + 1)
    result[0] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i - period + 1] = _rsi_from_averages(avg_gain, avg_loss)

    return result


def macd(
    closes,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    MACD (Moving Average Convergence Divergence).

    Returns: (macd_line, signal_line, histogram), all aligned to the signal line.
    """
    closes = as_array(closes)
    fast_ema = ema(closes, fast_period)
    slow_ema = ema(closes, slow_period)
    if len(slow_ema) == 0 or len(fast_ema) == 0:
        return EMPTY.copy(), EMPTY.copy(), EMPTY.copy()

    macd_line = fast_ema[-len(slow_ema):] - slow_ema
    signal_line = ema(macd_line, signal_period)
    if len(signal_line) == 0:
        return EMPTY.copy(), EMPTY.copy(), EMPTY.copy()

    macd_line = macd_line[-len(signal_line):]
    histogram = macd_line - signal_line

    return macd_line, signal_line, histogram


def stochastic(
    highs,
    lows,
    closes,
    k_period: int = 14,
    d_period: int = 3,
    smooth_k: int = 1,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Stochastic Oscillator. A flat range resolves to 50.

    Returns: (k, d). With smooth_k > 1 this is the slow stochastic.
    """
    highs, lows, closes = as_array(highs), as_array(lows), as_array(closes)
    if _too_short(closes, k_period):
        return EMPTY.copy(), EMPTY.copy()

    highest = _window(highs, k_period).max(axis=1)
    lowest = _window(lows, k_period).min(axis=1)
    price = closes[k_period - 1:]

    k = safe_divide_arrays(price - lowest, highest - lowest, default=0.5) * 100

    if smooth_k > 1:
        k = sma(k, smooth_k)
    d = sma(k, d_period)

    return k, d


def stoch_rsi(
    closes,
    rsi_period: int = 14,
    stoch_period: int = 14,
    k_period: int = 3,
    d_period: int = 3,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Stochastic RSI on a 0-100 scale. A flat RSI range resolves to 50.

    Returns: (k, d)
    """
    rsi_values = rsi(closes, rsi_period)
    if _too_short(rsi_values, stoch_period):
        return EMPTY.copy(), EMPTY.copy()

    windows = _window(rsi_values, stoch_period)
    highest = windows.max(axis=1)
    lowest = windows.min(axis=1)
    current = rsi_values[stoch_period - 1:]

    raw = safe_divide_arrays(current - lowest, highest - lowest, default=0.5) * 100
    k = sma(raw, k_period)
    d = sma(k, d_period)

    return k, d


def williams_r(highs, lows, closes, period: int = 14) -> np.ndarray:
    """Williams %R. A flat range resolves to -50."""
    highs, lows, closes = as_array(highs), as_array(lows), as_array(closes)
    if _too_short(closes, period):
        return EMPTY.copy()

    highest = _window(highs, period).max(axis=1)
    lowest = _window(lows, period).min(axis=1)
    price = closes[period - 1:]

    return safe_divide_arrays(highest - price, highest - lowest, default=0.5) * -100


def cci(highs, lows, closes, period: int = 20) -> np.ndarray:
    """Commodity Channel Index. Zero mean deviation maps to 0."""
    highs, lows, closes = as_array(highs), as_array(lows), as_array(closes)
    if _too_short(closes, period):
        return EMPTY.copy()

    typical_price = (highs + lows + closes) / 3
    windows = _window(typical_price, period)
    tp_sma = windows.mean(axis=1)
    mean_dev = np.abs(windows - tp_sma[:, None]).mean(axis=1)

    return safe_divide_arrays(typical_price[period - 1:] - tp_sma, 0.015 * mean_dev)


def mfi(highs, lows, closes, volumes, period: int = 14) -> np.ndarray:
    """Money Flow Index."""
    highs, lows, closes = as_array(highs), as_array(lows), as_array(closes)
    volumes = as_array(volumes)
    if period <= 0 or len(closes) < period + 1:
        return EMPTY.copy()

    typical_price = (highs + lows + closes) / 3
    raw_money_flow = typical_price * volumes
    direction = np.diff(typical_price)

    pos_flow = np.where(direction > 0, raw_money_flow[1:], 0.0)
    neg_flow = np.where(direction < 0, raw_money_flow[1:], 0.0)

    pos_sum = _window(pos_flow, period).sum(axis=1)
    neg_sum = _window(neg_flow, period).sum(axis=1)

    result = np.empty(len(pos_sum))
    for i in range(len(result)):
        if neg_sum[i] == 0:
            result[i] = 100.0 if pos_sum[i] > 0 else 50.0
        else:
            result[i] = 100 - (100 / (1 + pos_sum[i] / neg_sum[i]))

    return result


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def true_range(highs, lows, closes) -> np.ndarray:
    """True Range from the second candle on (needs a previous close)."""
    highs, lows, closes = as_array(highs), as_array(lows), as_array(closes)
    if len(closes) < 2:
        return EMPTY.copy()

    prev_close = closes[:-1]
    return np.maximum.reduce(
        [
            highs[1:] - lows[1:],
            np.abs(highs[1:] - prev_close),
            np.abs(lows[1:] - prev_close),
        ]
    )


def atr(highs, lows, closes, period: int = 14) -> np.ndarray:
    """Average True Range (Wilder)."""
    return wilder_smooth(true_range(highs, lows, closes), period)


def bollinger_bands(
    closes, period: int = 20, std_dev: float = 2.0
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Bollinger Bands.

    Returns: (upper, middle, lower)
    """
    middle = sma(closes, period)
    std = rolling_std(closes, period)

    upper = middle + (std_dev * std)
    lower = middle - (std_dev * std)

    return upper, middle, lower


def historical_volatility(closes, period: int = 14) -> float:
    """Population std of the last `period` daily % changes."""
    closes = as_array(closes)
    if len(closes) < 2:
        return 0.0

    changes = safe_divide_arrays(np.diff(closes), closes[:-1]) * 100
    return float(np.std(changes[-period:]))


# =============================================================================
# VOLUME INDICATORS
# =============================================================================


def obv(closes, volumes) -> np.ndarray:
    """On-Balance Volume."""
    closes, volumes = as_array(closes), as_array(volumes)
    if len(closes) == 0:
        return EMPTY.copy()

    direction = np.sign(np.diff(closes))
    signed = np.concatenate(([volumes[0]], direction * volumes[1:]))
    return np.cumsum(signed)


def volume_oscillator(volumes, short_period: int = 7, long_period: int = 30) -> np.ndarray:
    """(VMA short - VMA long) / VMA long * 100."""
    short_ma = sma(volumes, short_period)
    long_ma = sma(volumes, long_period)
    if len(long_ma) == 0 or len(short_ma) == 0:
        return EMPTY.copy()

    short_ma = short_ma[-len(long_ma):]
    return safe_divide_arrays(short_ma - long_ma, long_ma) * 100


# =============================================================================
# TREND INDICATORS
# =============================================================================


def adx(
    highs, lows, closes, period: int = 14
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Average Directional Index.

    Returns: (adx, plus_di, minus_di). The DI lines are longer than ADX;
    both end at the last candle.
    """
    highs, lows, closes = as_array(highs), as_array(lows), as_array(closes)
    if len(closes) < period + 1:
        return EMPTY.copy(), EMPTY.copy(), EMPTY.copy()

    up_move = highs[1:] - highs[:-1]
    down_move = lows[:-1] - lows[1:]

    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)

    smoothed_tr = wilder_smooth(true_range(highs, lows, closes), period)
    smoothed_plus_dm = wilder_smooth(plus_dm, period)
    smoothed_minus_dm = wilder_smooth(minus_dm, period)

    plus_di = 100 * safe_divide_arrays(smoothed_plus_dm, smoothed_tr)
    minus_di = 100 * safe_divide_arrays(smoothed_minus_dm, smoothed_tr)

    dx = 100 * safe_divide_arrays(np.abs(plus_di - minus_di), plus_di + minus_di)
    adx_result = wilder_smooth(dx, period)

    return adx_result, plus_di, minus_di


@dataclass
class IchimokuSeries:
    """Full Ichimoku series. Senkou spans are `displacement` longer than the input."""

    tenkan: np.ndarray
    kijun: np.ndarray
    senkou_a: np.ndarray
    senkou_b: np.ndarray
    chikou: np.ndarray
    displacement: int = 26


def _rolling_midpoint(highs: np.ndarray, lows: np.ndarray, period: int) -> np.ndarray:
    result = np.full(len(highs), np.nan)
    if len(highs) < period:
        return result
    highest = _window(highs, period).max(axis=1)
    lowest = _window(lows, period).min(axis=1)
    result[period - 1:] = (highest + lowest) / 2
    return result


def ichimoku(
    highs,
    lows,
    closes,
    tenkan_period: int = 9,
    kijun_period: int = 26,
    senkou_b_period: int = 52,
    displacement: int = 26,
) -> IchimokuSeries:
    """Ichimoku Cloud, NaN padded where a line is not yet defined."""
    highs, lows, closes = as_array(highs), as_array(lows), as_array(closes)
    n = len(closes)

    tenkan = _rolling_midpoint(highs, lows, tenkan_period)
    kijun = _rolling_midpoint(highs, lows, kijun_period)
    span_b = _rolling_midpoint(highs, lows, senkou_b_period)

    senkou_a = np.full(n + displacement, np.nan)
    senkou_b = np.full(n + displacement, np.nan)
    senkou_a[displacement:] = (tenkan + kijun) / 2
    senkou_b[displacement:] = span_b

    chikou = np.full(n, np.nan)
    if n > displacement:
        chikou[: n - displacement] = closes[displacement:]

    return IchimokuSeries(
        tenkan=tenkan,
        kijun=kijun,
        senkou_a=senkou_a,
        senkou_b=senkou_b,
        chikou=chikou,
        displacement=displacement,
    )


# =============================================================================
# SUPPORT/RESISTANCE (LOCAL EXTREMA)
# =============================================================================


@dataclass
class ExtremaLevel:
    """A cluster of local extrema closes."""

    price: float
    type: str  # support / resistance
    strength: int
    members: list[float] = field(default_factory=list, repr=False)


def find_local_extrema(closes, lookback: int = 10) -> list[tuple[float, str]]:
    """Closes strictly above (below) every close within `lookback` bars on both sides."""
    closes = as_array(closes)
    extrema = []

    for i in range(lookback, len(closes) - lookback):
        left = closes[i - lookback : i]
        right = closes[i + 1 : i + lookback + 1]
        price = closes[i]

        if price > left.max() and price > right.max():
            extrema.append((float(price), "resistance"))
        elif price < left.min() and price < right.min():
            extrema.append((float(price), "support"))

    return extrema


def find_support_resistance(
    closes, lookback: int = 10, cluster_percent: float = 0.01
) -> list[ExtremaLevel]:
    """
    Local-extrema support/resistance.

    Extrema of the same type closer than `cluster_percent` of the last close
    are merged; clusters are ranked by size.
    """
    closes = as_array(closes)
    if lookback <= 0 or len(closes) < 2 * lookback + 1:
        return []

    extrema = sorted(find_local_extrema(closes, lookback), key=lambda e: e[0])
    if not extrema:
        return []

    threshold = abs(closes[-1]) * cluster_percent
    clusters: list[ExtremaLevel] = []
    current = [extrema[0][0]]
    current_type = extrema[0][1]

    for price, level_type in extrema[1:]:
        if price - current[-1] < threshold and level_type == current_type:
            current.append(price)
            continue
        clusters.append(
            ExtremaLevel(float(np.mean(current)), current_type, len(current), current)
        )
        current = [price]
        current_type = level_type

    clusters.append(ExtremaLevel(float(np.mean(current)), current_type, len(current), current))

    return sorted(clusters, key=lambda c: c.strength, reverse=True)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def detect_divergence(prices, indicator, lookback: int = 14) -> Optional[str]:
    """
    Compare the highs of the last two `lookback` blocks of price and indicator.

    Returns: "bearish", "bullish", "none", or None when there is not enough data.
    """
    prices, indicator = as_array(prices), as_array(indicator)
    if len(indicator) < lookback * 2 or len(prices) < lookback * 2:
        return None

    price_up = prices[-lookback:].max() > prices[-2 * lookback : -lookback].max()
    indicator_up = indicator[-lookback:].max() > indicator[-2 * lookback : -lookback].max()

    if price_up and not indicator_up:
        return "bearish"
    if not price_up and indicator_up:
        return "bullish"
    return "none"
