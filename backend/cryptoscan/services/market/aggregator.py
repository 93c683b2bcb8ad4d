"""
Market Aggregator

Market breadth over one analysis batch: advances/declines, sentiment,
MACD-trend and RSI distributions, top movers and USD volume change.
"""

import logging
from typing import Sequence

import numpy as np

from cryptoscan.schemas.analysis import PairAnalysis
from cryptoscan.schemas.indicators import MACDTrend
from cryptoscan.schemas.summary import (
    MarketSummary,
    RSIDistribution,
    Sentiment,
    TopMover,
    TrendDistribution,
)
from cryptoscan.services.indicators.safe import is_finite, safe_div

logger = logging.getLogger(__name__)


def classify_sentiment(advance_decline_ratio: float, average_rsi: float) -> Sentiment:
    if advance_decline_ratio > 3 and average_rsi > 60:
        return Sentiment.STRONGLY_BULLISH
    if advance_decline_ratio > 1.5 and average_rsi > 50:
        return Sentiment.BULLISH
    if advance_decline_ratio < 0.33 and average_rsi < 40:
        return Sentiment.STRONGLY_BEARISH
    if advance_decline_ratio < 0.67 and average_rsi < 50:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


def trend_distribution(analyses: Sequence[PairAnalysis]) -> TrendDistribution:
    distribution = TrendDistribution()
    for analysis in analyses:
        trend = analysis.indicators.macd_trend
        if trend == MACDTrend.STRONG_UPTREND:
            distribution.strong_uptrend += 1
        elif trend == MACDTrend.WEAK_UPTREND:
            distribution.weak_uptrend += 1
        elif trend == MACDTrend.WEAK_DOWNTREND:
            distribution.weak_downtrend += 1
        elif trend == MACDTrend.STRONG_DOWNTREND:
            distribution.strong_downtrend += 1
        else:
            distribution.neutral += 1
    return distribution


def rsi_distribution(analyses: Sequence[PairAnalysis]) -> RSIDistribution:
    distribution = RSIDistribution()
    for analysis in analyses:
        value = analysis.indicators.rsi
        if not is_finite(value):
            continue
        if value >= 70:
            distribution.overbought += 1
        elif value <= 30:
            distribution.oversold += 1
        else:
            distribution.neutral += 1
    return distribution


def _mover(analysis: PairAnalysis) -> TopMover:
    return TopMover(
        pair=analysis.pair,
        price=analysis.current_price,
        change=analysis.daily_change,
        volume_usd=analysis.current_volume_usd,
    )


def summarize_market(analyses: Sequence[PairAnalysis], top_n: int = 5) -> MarketSummary:
    """
    Breadth over `analyses`.

    Args:
        analyses: Successful analyses of one batch
        top_n: Number of gainers and losers to report

    Returns:
        MarketSummary; an empty batch gives zero counts and Neutral sentiment
    """
    total = len(analyses)
    if total == 0:
        return MarketSummary()

    changes = [a.daily_change for a in analyses]
    advances = sum(1 for c in changes if c > 0)
    declines = sum(1 for c in changes if c < 0)
    unchanged = total - advances - declines
    ratio = advances / max(declines, 1)

    rsi_values = [a.indicators.rsi for a in analyses if is_finite(a.indicators.rsi)]
    average_rsi = float(np.mean(rsi_values)) if rsi_values else 50.0
    average_macd = float(np.mean([a.indicators.macd.macd for a in analyses]))

    trends = trend_distribution(analyses)

    by_change = sorted(analyses, key=lambda a: a.daily_change, reverse=True)
    gainers = [_mover(a) for a in by_change[:top_n] if a.daily_change > 0]
    losers = [_mover(a) for a in reversed(by_change[-top_n:]) if a.daily_change < 0]

    total_volume = sum(a.current_volume_usd for a in analyses)
    baseline_volume = sum(a.volume_analysis.vma_7 or 0.0 for a in analyses)
    volume_change = safe_div(total_volume - baseline_volume, baseline_volume) * 100

    sentiment = classify_sentiment(ratio, average_rsi)
    logger.debug(
        f"Market summary: {total} pairs, A/D={advances}/{declines}, "
        f"avg RSI={average_rsi:.1f}, sentiment={sentiment.value}"
    )

    return MarketSummary(
        total_pairs=total,
        advances=advances,
        declines=declines,
        unchanged=unchanged,
        advance_decline_ratio=ratio,
        average_rsi=average_rsi,
        average_macd=average_macd,
        strong_uptrend_percent=trends.strong_uptrend / total * 100,
        strong_downtrend_percent=trends.strong_downtrend / total * 100,
        sentiment=sentiment,
        trend_distribution=trends,
        rsi_distribution=rsi_distribution(analyses),
        top_gainers=gainers,
        top_losers=losers,
        total_volume_usd=total_volume,
        volume_change_percent=volume_change,
    )
