"""
CONTRACT 5: Market Summary

Input: list[PairAnalysis] from one run
Output: MarketSummary, AnalysisBatch

Derived and ephemeral; rebuilt on every batch.
"""

from enum import Enum

from pydantic import BaseModel, Field

from cryptoscan.schemas.analysis import PairAnalysis


class Sentiment(str, Enum):
    STRONGLY_BULLISH = "Strongly Bullish"
    BULLISH = "Bullish"
    NEUTRAL = "Neutral"
    BEARISH = "Bearish"
    STRONGLY_BEARISH = "Strongly Bearish"


class TopMover(BaseModel):
    pair: str
    price: float
    change: float = Field(..., description="Day-over-day close change %")
    volume_usd: float


class TrendDistribution(BaseModel):
    """Pair counts by MACD trend label. Insufficient Data counts as neutral."""

    strong_uptrend: int = 0
    weak_uptrend: int = 0
    neutral: int = 0
    weak_downtrend: int = 0
    strong_downtrend: int = 0


class RSIDistribution(BaseModel):
    overbought: int = Field(default=0, description="RSI > 70")
    neutral: int = Field(default=0, description="30 <= RSI <= 70")
    oversold: int = Field(default=0, description="RSI < 30")


class MarketSummary(BaseModel):
    """Market breadth over one analysis batch."""

    total_pairs: int = 0
    advances: int = 0
    declines: int = 0
    unchanged: int = 0
    advance_decline_ratio: float = 0.0
    average_rsi: float = 0.0
    average_macd: float = 0.0
    strong_uptrend_percent: float = 0.0
    strong_downtrend_percent: float = 0.0
    sentiment: Sentiment = Sentiment.NEUTRAL
    trend_distribution: TrendDistribution = Field(default_factory=TrendDistribution)
    rsi_distribution: RSIDistribution = Field(default_factory=RSIDistribution)
    top_gainers: list[TopMover] = Field(default_factory=list)
    top_losers: list[TopMover] = Field(default_factory=list)
    total_volume_usd: float = 0.0
    volume_change_percent: float = Field(
        default=0.0, description="Total USD volume vs the sum of 7-day USD volume MAs"
    )


class AnalysisBatch(BaseModel):
    """Primary output of analyze_pairs."""

    pairs: list[PairAnalysis] = Field(default_factory=list)
    market_summary: MarketSummary = Field(default_factory=MarketSummary)
