"""
Indicator Snapshots & Labels

Turns indicator series into the latest-value structures and the text labels
the dashboard, scorer and trend monitor key on. Short series resolve to the
placeholder models, never to an exception.
"""

import numpy as np

from cryptoscan.schemas.indicators import (
    ADXData,
    ATRAnalysis,
    BollingerBandsData,
    CrossoverSignal,
    EMACross,
    IchimokuData,
    MACDData,
    MACDTrend,
    StochasticData,
    StochRSIData,
    VolatilityIndexData,
)
from cryptoscan.services.indicators.calculations import (
    adx,
    atr,
    bollinger_bands,
    detect_divergence,
    ichimoku,
    macd,
    stoch_rsi,
    stochastic,
)
from cryptoscan.services.indicators.safe import (
    INSUFFICIENT_DATA,
    as_array,
    finite_or_none,
    is_finite,
    last_valid,
    safe_div,
    safe_divide_arrays,
)

MACD_MIN_POINTS = 35
ICHIMOKU_MIN_POINTS = 78


# =============================================================================
# MACD
# =============================================================================


def classify_macd_trend(macd_line, signal_line, histogram) -> MACDTrend:
    """Rule table over the last two MACD/signal points."""
    if len(macd_line) < 2 or len(signal_line) < 2 or len(histogram) < 1:
        return MACDTrend.INSUFFICIENT_DATA

    current_macd, prev_macd = macd_line[-1], macd_line[-2]
    current_signal, prev_signal = signal_line[-1], signal_line[-2]
    hist = histogram[-1]

    macd_change = current_macd - prev_macd
    signal_change = current_signal - prev_signal
    above = current_macd > current_signal
    prev_above = prev_macd > prev_signal

    if above and hist > 0 and macd_change > 0 and signal_change > 0:
        return MACDTrend.STRONG_UPTREND
    if not above and hist < 0 and macd_change < 0 and signal_change < 0:
        return MACDTrend.STRONG_DOWNTREND

    bullish_cross = not prev_above and above
    bearish_cross = prev_above and not above

    if bullish_cross or (above and hist > 0):
        return MACDTrend.WEAK_UPTREND
    if bearish_cross or (not above and hist < 0):
        return MACDTrend.WEAK_DOWNTREND
    return MACDTrend.NEUTRAL


def classify_macd_crossover(macd_line, signal_line) -> CrossoverSignal:
    """Sign change of MACD - signal between the last two points."""
    if len(macd_line) < 2 or len(signal_line) < 2:
        return CrossoverSignal.INSUFFICIENT_DATA

    current = macd_line[-1] - signal_line[-1]
    previous = macd_line[-2] - signal_line[-2]

    if current > 0 and previous <= 0:
        return CrossoverSignal.BULLISH
    if current < 0 and previous >= 0:
        return CrossoverSignal.BEARISH
    return CrossoverSignal.NONE


def macd_snapshot(closes) -> tuple[MACDData, MACDTrend, CrossoverSignal]:
    """Latest MACD values plus trend and crossover labels."""
    closes = as_array(closes)
    if len(closes) < MACD_MIN_POINTS:
        return MACDData(), MACDTrend.INSUFFICIENT_DATA, CrossoverSignal.INSUFFICIENT_DATA

    macd_line, signal_line, histogram = macd(closes)
    data = MACDData(
        macd=float(macd_line[-1]),
        signal=float(signal_line[-1]),
        histogram=float(histogram[-1]),
    )
    return (
        data,
        classify_macd_trend(macd_line, signal_line, histogram),
        classify_macd_crossover(macd_line, signal_line),
    )


# =============================================================================
# MOMENTUM
# =============================================================================


def rsi_divergence_label(closes, rsi_values, lookback: int = 14) -> str:
    result = detect_divergence(closes, rsi_values, lookback)
    if result is None:
        return INSUFFICIENT_DATA
    if result == "bearish":
        return "Bearish Divergence"
    if result == "bullish":
        return "Bullish Divergence"
    return "No Divergence"


def stochastic_snapshot(highs, lows, closes) -> StochasticData:
    """Fast stochastic (14, 3) with its signal."""
    k, d = stochastic(highs, lows, closes, k_period=14, d_period=3)
    if len(k) == 0 or len(d) == 0:
        return StochasticData()

    latest_k, latest_d = float(k[-1]), float(d[-1])
    signal = "Neutral"
    if latest_k > 80 and latest_d > 80:
        signal = "Overbought"
    elif latest_k < 20 and latest_d < 20:
        signal = "Oversold"
    elif len(d) > 1:
        prev_k, prev_d = k[-2], d[-2]
        if latest_k > latest_d and prev_k <= prev_d:
            signal = "Bullish Crossover"
        elif latest_k < latest_d and prev_k >= prev_d:
            signal = "Bearish Crossover"

    return StochasticData(k=latest_k, d=latest_d, signal=signal)


def stoch_rsi_snapshot(closes) -> StochRSIData:
    k, d = stoch_rsi(closes)
    return StochRSIData(k=last_valid(k), d=last_valid(d))


# =============================================================================
# VOLATILITY
# =============================================================================


def price_position(price: float, upper: float, middle: float, lower: float) -> str:
    if price > upper:
        return "Overbought"
    if price < lower:
        return "Oversold"
    if price > middle:
        return "Above Middle"
    if price < middle:
        return "Below Middle"
    return "At Middle"


def bollinger_snapshot(closes, period: int = 20, std_dev: float = 2.0) -> BollingerBandsData:
    closes = as_array(closes)
    upper, middle, lower = bollinger_bands(closes, period, std_dev)
    if len(middle) == 0:
        return BollingerBandsData()

    price = float(closes[-1])
    up, mid, low = float(upper[-1]), float(middle[-1]), float(lower[-1])
    bandwidth = safe_div(up - low, mid) * 100
    percent_b = safe_div(price - low, up - low, default=0.5)

    if price > up:
        signal = "Strong Overbought" if bandwidth > 20 else "Overbought"
    elif price < low:
        signal = "Strong Oversold" if bandwidth > 20 else "Oversold"
    elif price > mid:
        signal = "Above Middle Band"
    else:
        signal = "Below Middle Band"

    return BollingerBandsData(
        upper=up,
        middle=mid,
        lower=low,
        bandwidth=bandwidth,
        percent_b=percent_b,
        signal=signal,
        price_position=price_position(price, up, mid, low),
    )


def atr_volatility_label(normalized_atr: float) -> str:
    if normalized_atr < 0.5:
        return "Very Low"
    if normalized_atr < 1:
        return "Low"
    if normalized_atr < 3:
        return "Medium"
    if normalized_atr < 5:
        return "High"
    return "Very High"


def atr_snapshot(highs, lows, closes, period: int = 14) -> ATRAnalysis:
    closes = as_array(closes)
    latest = last_valid(atr(highs, lows, closes, period))
    if latest is None or len(closes) == 0:
        return ATRAnalysis()

    normalized = safe_div(latest, closes[-1]) * 100
    return ATRAnalysis(
        atr=latest,
        normalized_atr=normalized,
        volatility=atr_volatility_label(normalized),
    )


def volatility_index(closes, atr_values, period: int = 14) -> VolatilityIndexData:
    """(ATR/price + mean |daily change|) * 100, labelled by direction."""
    closes = as_array(closes)
    atr_values = as_array(atr_values)
    if len(closes) < period * 2 or len(atr_values) < period:
        return VolatilityIndexData()

    changes = np.abs(safe_divide_arrays(np.diff(closes), closes[:-1]))
    avg_change = float(np.mean(changes[-period:]))
    normalized_atr = safe_div(atr_values[-1], closes[-1])
    value = (normalized_atr + avg_change) * 100

    recent = closes[-period:]
    direction = int(np.sum(np.where(np.diff(recent) > 0, 1, -1)))

    if value > 5:
        trend = "Volatile Uptrend" if direction > 0 else "Volatile Downtrend"
    elif value < 1:
        trend = "Low Volatility"
    else:
        trend = "Moderate Uptrend" if direction > 0 else "Moderate Downtrend"

    return VolatilityIndexData(value=value, trend=trend)


# =============================================================================
# TREND
# =============================================================================


def trend_strength_label(adx_value: float, plus_di: float, minus_di: float) -> str:
    if adx_value > 25:
        if plus_di > minus_di:
            return "Strong Uptrend" if adx_value > 40 else "Moderate Uptrend"
        return "Strong Downtrend" if adx_value > 40 else "Moderate Downtrend"
    if adx_value > 20:
        return "Weak Uptrend" if plus_di > minus_di else "Weak Downtrend"
    return "No Clear Trend"


def adx_snapshot(highs, lows, closes, period: int = 14) -> ADXData:
    adx_arr, plus_di_arr, minus_di_arr = adx(highs, lows, closes, period)
    adx_val = last_valid(adx_arr)
    plus_di = last_valid(plus_di_arr)
    minus_di = last_valid(minus_di_arr)
    if adx_val is None or plus_di is None or minus_di is None:
        return ADXData()

    return ADXData(
        adx=adx_val,
        plus_di=plus_di,
        minus_di=minus_di,
        trend_strength=trend_strength_label(adx_val, plus_di, minus_di),
    )


def ma_trend_label(short_ma, long_ma) -> str:
    """Trend from the % gap between a short and a long moving average."""
    if not is_finite(short_ma) or not is_finite(long_ma) or long_ma == 0:
        return INSUFFICIENT_DATA

    diff = (short_ma - long_ma) / long_ma * 100
    if diff > 2:
        return "Strong Uptrend"
    if diff > 0.5:
        return "Weak Uptrend"
    if diff < -2:
        return "Strong Downtrend"
    if diff < -0.5:
        return "Weak Downtrend"
    return "Neutral"


def ema_cross(ema_50, ema_200) -> EMACross:
    if not is_finite(ema_50) or not is_finite(ema_200):
        return EMACross.INSUFFICIENT_DATA
    return EMACross.GOLDEN if ema_50 > ema_200 else EMACross.DEATH


def advanced_trend(price, macd_data: MACDData, macd_available: bool, rsi_value, ema_50, ema_200) -> str:
    """Score ladder over MACD, RSI and the EMA50/EMA200 stack."""
    if not macd_available or not all(is_finite(v) for v in (price, rsi_value, ema_50, ema_200)):
        return INSUFFICIENT_DATA

    score = 0
    if macd_data.macd > 0:
        score += 1
    if macd_data.macd > macd_data.signal:
        score += 1
    if macd_data.histogram > 0:
        score += 1
    if rsi_value > 50:
        score += 1
    if rsi_value > 60:
        score += 1
    if price > ema_50:
        score += 2
    if ema_50 > ema_200:
        score += 2
    if price > ema_200:
        score += 1

    if score >= 8:
        return "Strong Uptrend"
    if score >= 6:
        return "Uptrend"
    if score <= 2:
        return "Strong Downtrend"
    if score <= 4:
        return "Downtrend"
    return "Neutral/Sideways"


def ichimoku_snapshot(highs, lows, closes) -> IchimokuData:
    closes = as_array(closes)
    if len(closes) < ICHIMOKU_MIN_POINTS:
        return IchimokuData()

    series = ichimoku(highs, lows, closes)
    n = len(closes)
    price = float(closes[-1])

    span_a = finite_or_none(series.senkou_a[n - 1])
    span_b = finite_or_none(series.senkou_b[n - 1])
    tenkan = finite_or_none(series.tenkan[-1])
    kijun = finite_or_none(series.kijun[-1])

    cloud_signal = "Neutral"
    if span_a is not None and span_b is not None:
        if price > span_a and price > span_b:
            cloud_signal = "Strong Bullish"
        elif price < span_a and price < span_b:
            cloud_signal = "Strong Bearish"
        elif span_a > span_b:
            cloud_signal = "Bullish"
        else:
            cloud_signal = "Bearish"

    tk_cross = "None"
    prev_tenkan, prev_kijun = series.tenkan[-2], series.kijun[-2]
    if tenkan is not None and kijun is not None and is_finite(prev_tenkan) and is_finite(prev_kijun):
        if tenkan > kijun and prev_tenkan <= prev_kijun:
            tk_cross = "Bullish TK Cross"
        elif tenkan < kijun and prev_tenkan >= prev_kijun:
            tk_cross = "Bearish TK Cross"

    chikou_index = n - 1 - series.displacement
    chikou = finite_or_none(series.chikou[chikou_index]) if chikou_index >= 0 else None

    return IchimokuData(
        tenkan=tenkan,
        kijun=kijun,
        senkou_a=span_a,
        senkou_b=span_b,
        chikou=chikou,
        cloud_signal=cloud_signal,
        tk_cross=tk_cross,
        senkou_a_projection=[finite_or_none(v) for v in series.senkou_a[n:]],
        senkou_b_projection=[finite_or_none(v) for v in series.senkou_b[n:]],
    )
