"""
Composite Scorer

Deterministic rule-based scores built from already computed indicator
values. Each score starts from a neutral 0.5 and is clamped to [0, 1].
Missing or non-finite inputs skip their rule.
"""

from typing import Optional

from cryptoscan.schemas.analysis import CompositeScores
from cryptoscan.schemas.indicators import IndicatorSnapshot, MACDTrend
from cryptoscan.services.indicators.safe import clamp, is_finite

NEUTRAL = 0.5

ENHANCED_WEIGHTS = {
    "rsi": 0.15,
    "macd": 0.20,
    "volume": 0.10,
    "price": 0.15,
    "moving_averages": 0.20,
    "volatility": 0.10,
    "distance_from_high": 0.10,
}


# =============================================================================
# SHORT / LONG / RISK-ADJUSTED
# =============================================================================


def short_term_score(
    rsi: Optional[float],
    macd_histogram: Optional[float],
    sma_7: Optional[float],
    sma_30: Optional[float],
    stoch_rsi_k: Optional[float],
    momentum: Optional[float],
) -> float:
    score = NEUTRAL

    if is_finite(rsi):
        if rsi > 70:
            score -= 0.1
        elif rsi < 30:
            score += 0.1
        else:
            score += 0.1 * ((rsi - 30) / 40 - 0.5)

    if is_finite(macd_histogram):
        if macd_histogram > 0:
            score += 0.1
        elif macd_histogram < 0:
            score -= 0.1

    if is_finite(sma_7) and is_finite(sma_30):
        if sma_7 > sma_30:
            score += 0.1
        elif sma_7 < sma_30:
            score -= 0.1

    if is_finite(stoch_rsi_k):
        if stoch_rsi_k > 80:
            score -= 0.1
        elif stoch_rsi_k < 20:
            score += 0.1

    if is_finite(momentum) and momentum != 0:
        magnitude = 0.1 * min(abs(momentum) / 10, 1)
        score += magnitude if momentum > 0 else -magnitude

    return clamp(score)


def long_term_score(
    sma_50: Optional[float],
    sma_200: Optional[float],
    percent_from_high: Optional[float],
    percent_from_low: Optional[float],
    adx: Optional[float],
) -> float:
    score = NEUTRAL

    if is_finite(sma_50) and is_finite(sma_200):
        if sma_50 > sma_200:
            score += 0.15
        elif sma_50 < sma_200:
            score -= 0.15

    if is_finite(percent_from_high) and is_finite(percent_from_low):
        from_high, from_low = abs(percent_from_high), abs(percent_from_low)
        total = from_high + from_low
        if total > 0:
            score += 0.2 * (from_low - from_high) / total

    if is_finite(adx):
        if adx > 50:
            score += 0.15
        elif adx > 25:
            score += 0.1
        elif adx < 20:
            score -= 0.1

    return clamp(score)


def risk_adjusted_score(
    short_term: float,
    long_term: float,
    volatility: Optional[float],
    normalized_atr: Optional[float],
) -> float:
    base = (clamp(short_term) + clamp(long_term)) / 2
    volatility_factor = max(0.0, 1 - volatility / 100) if is_finite(volatility) else 1.0
    atr_factor = max(0.0, 1 - normalized_atr / 100) if is_finite(normalized_atr) else 1.0
    volatility_factor = min(1.0, volatility_factor)
    atr_factor = min(1.0, atr_factor)
    return clamp(base * (volatility_factor + atr_factor) / 2)


# =============================================================================
# ENHANCED SCORE
# =============================================================================


def _rsi_factor(rsi) -> float:
    if not is_finite(rsi):
        return NEUTRAL
    if rsi > 70:
        return 0.1
    if rsi < 30:
        return 0.9
    return 0.5 + (rsi - 50) / 40


def _macd_factor(trend) -> float:
    return {
        MACDTrend.STRONG_UPTREND: 0.9,
        MACDTrend.WEAK_UPTREND: 0.7,
        MACDTrend.WEAK_DOWNTREND: 0.3,
        MACDTrend.STRONG_DOWNTREND: 0.1,
    }.get(trend, NEUTRAL)


def _volume_factor(volume_oscillator) -> float:
    if not is_finite(volume_oscillator):
        return NEUTRAL
    if volume_oscillator > 15:
        return 0.8
    if volume_oscillator > 0:
        return 0.6
    if volume_oscillator < -15:
        return 0.2
    if volume_oscillator < 0:
        return 0.4
    return NEUTRAL


def _price_factor(daily_change) -> float:
    if not is_finite(daily_change):
        return NEUTRAL
    if daily_change > 10:
        return 0.9
    if daily_change > 5:
        return 0.7
    if daily_change < -10:
        return 0.1
    if daily_change < -5:
        return 0.3
    return 0.5 + daily_change / 10


def _moving_average_factor(sma_7, sma_30, sma_50, sma_200) -> float:
    if not all(is_finite(v) for v in (sma_7, sma_30, sma_50, sma_200)):
        return NEUTRAL
    short_up = sma_7 > sma_30
    long_up = sma_50 > sma_200
    if short_up and long_up:
        return 0.9
    if short_up:
        return 0.7
    if long_up:
        return 0.6
    return 0.1


def _volatility_factor(normalized_atr) -> float:
    if not is_finite(normalized_atr):
        return NEUTRAL
    if normalized_atr < 1:
        return 0.9
    if normalized_atr < 2:
        return 0.7
    if normalized_atr > 5:
        return 0.1
    if normalized_atr > 3:
        return 0.3
    return 0.5 - (normalized_atr - 2) / 6


def _distance_from_high_factor(percent_from_high) -> float:
    if not is_finite(percent_from_high):
        return NEUTRAL
    if percent_from_high < -50:
        return 0.9
    if percent_from_high > -10:
        return 0.2
    return 0.5 + ((abs(percent_from_high) - 10) / 80) * 0.7


def enhanced_score(
    rsi: Optional[float],
    macd_trend,
    volume_oscillator: Optional[float],
    daily_change: Optional[float],
    sma_7: Optional[float],
    sma_30: Optional[float],
    sma_50: Optional[float],
    sma_200: Optional[float],
    normalized_atr: Optional[float],
    percent_from_high: Optional[float],
) -> float:
    """7-factor weighted blend; each factor is a [0, 1] threshold ladder."""
    factors = {
        "rsi": _rsi_factor(rsi),
        "macd": _macd_factor(macd_trend),
        "volume": _volume_factor(volume_oscillator),
        "price": _price_factor(daily_change),
        "moving_averages": _moving_average_factor(sma_7, sma_30, sma_50, sma_200),
        "volatility": _volatility_factor(normalized_atr),
        "distance_from_high": _distance_from_high_factor(percent_from_high),
    }
    return clamp(sum(ENHANCED_WEIGHTS[name] * clamp(value) for name, value in factors.items()))


def compute_scores(
    indicators: IndicatorSnapshot,
    daily_change: Optional[float],
    percent_from_high: Optional[float],
    percent_from_low: Optional[float],
) -> CompositeScores:
    """All four scores for one pair."""
    ma = indicators.moving_averages
    short = short_term_score(
        indicators.rsi,
        indicators.macd.histogram,
        ma.sma_7,
        ma.sma_30,
        indicators.stoch_rsi.k,
        indicators.momentum,
    )
    long = long_term_score(
        ma.sma_50, ma.sma_200, percent_from_high, percent_from_low, indicators.adx.adx
    )
    risk = risk_adjusted_score(
        short, long, indicators.volatility, indicators.atr.normalized_atr
    )
    enhanced = enhanced_score(
        indicators.rsi,
        indicators.macd_trend,
        indicators.volume_oscillator,
        daily_change,
        ma.sma_7,
        ma.sma_30,
        ma.sma_50,
        ma.sma_200,
        indicators.atr.normalized_atr,
        percent_from_high,
    )
    return CompositeScores(short_term=short, long_term=long, risk_adjusted=risk, enhanced=enhanced)
