"""
CONTRACT 7: Trend Change Events

Input: current PairAnalysis vs the previously stored PairAnalysis for a pair
Output: list[TrendChangeEvent]

The first observation of a pair only establishes a baseline.
"""

from enum import Enum

from pydantic import BaseModel, Field

from cryptoscan.schemas.correlation import Significance


class TrendIndicator(str, Enum):
    MACD_TREND = "MACD Trend"
    RSI = "RSI"
    PRICE = "Price"
    EMA_CROSS = "EMA Cross"


class TrendChangeEvent(BaseModel):
    pair: str
    indicator: TrendIndicator
    previous_value: str
    new_value: str
    significance: Significance
    timestamp: int = Field(..., description="Unix seconds of the run that detected the change")
