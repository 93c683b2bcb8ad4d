"""
CONTRACT 6: Correlation

Input: two or more pair symbols, canonical timeframe in days
Output: list[CorrelationRecord], one per unordered pair meeting the volume floor
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Significance(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


SIGNIFICANCE_RANK = {
    Significance.HIGH: 0,
    Significance.MEDIUM: 1,
    Significance.LOW: 2,
}


class TimeframeCorrelations(BaseModel):
    """Pearson r over the trailing 7/30/90 aligned points; None when too few points."""

    d7: Optional[float] = None
    d30: Optional[float] = None
    d90: Optional[float] = None


class CorrelationRecord(BaseModel):
    """Correlation of one unordered pair of symbols."""

    pair_a: str
    pair_b: str
    correlation: float = Field(..., ge=-1, le=1)
    p_value: float = Field(..., ge=0, le=1)
    significance: Significance
    strength: str = Field(..., description="Very Strong / Strong / Moderate / Weak / Very Weak")
    timeframe_correlations: TimeframeCorrelations = Field(default_factory=TimeframeCorrelations)
    volatility: float = Field(default=0.0, ge=0, description="Mean annualized volatility of both legs")
    volatility_adjusted_correlation: float = 0.0
    average_daily_volume: float = Field(default=0.0, ge=0, description="Mean USD volume of both legs")
    data_points: int = Field(..., ge=0)
    volume_weighted: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "pair_a": "BTC-USD",
                "pair_b": "ETH-USD",
                "correlation": 0.87,
                "p_value": 0.0001,
                "significance": "High",
                "strength": "Strong",
                "timeframe_correlations": {"d7": 0.91, "d30": 0.87, "d90": 0.82},
                "volatility": 0.55,
                "volatility_adjusted_correlation": 0.39,
                "average_daily_volume": 25000000000.0,
                "data_points": 30,
                "volume_weighted": False,
            }
        }
