"""
Cryptoscan Schema Contracts

This module defines all JSON contracts between system components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from cryptoscan.schemas.market import Candle, CandleSeries
from cryptoscan.schemas.indicators import (
    IndicatorSnapshot,
    MACDData,
    MACDTrend,
    CrossoverSignal,
    EMACross,
    MovingAverages,
)
from cryptoscan.schemas.levels import (
    PriceLevel,
    PriceLevels,
    LevelType,
    FibonacciAnalysis,
)
from cryptoscan.schemas.analysis import (
    PairAnalysis,
    CompositeScores,
    PumpDumpResult,
    VolumeProfile,
    VolumeAnalysis,
    MarketStructure,
)
from cryptoscan.schemas.summary import (
    MarketSummary,
    AnalysisBatch,
    Sentiment,
    TopMover,
)
from cryptoscan.schemas.correlation import CorrelationRecord, Significance
from cryptoscan.schemas.trends import TrendChangeEvent, TrendIndicator

__all__ = [
    # Market
    "Candle",
    "CandleSeries",
    # Indicators
    "IndicatorSnapshot",
    "MACDData",
    "MACDTrend",
    "CrossoverSignal",
    "EMACross",
    "MovingAverages",
    # Levels
    "PriceLevel",
    "PriceLevels",
    "LevelType",
    "FibonacciAnalysis",
    # Analysis
    "PairAnalysis",
    "CompositeScores",
    "PumpDumpResult",
    "VolumeProfile",
    "VolumeAnalysis",
    "MarketStructure",
    # Summary
    "MarketSummary",
    "AnalysisBatch",
    "Sentiment",
    "TopMover",
    # Correlation / trends
    "CorrelationRecord",
    "Significance",
    "TrendChangeEvent",
    "TrendIndicator",
]
