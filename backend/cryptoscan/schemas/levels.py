"""
CONTRACT 3: Price Levels

Input: CandleSeries (level lookback window)
Output: PriceLevels, FibonacciAnalysis

Levels are recomputed from scratch on every analysis call and carry no
identity across calls.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class LevelType(str, Enum):
    SUPPORT = "support"
    RESISTANCE = "resistance"


# =============================================================================
# SUPPORT / RESISTANCE
# =============================================================================


class PriceLevel(BaseModel):
    """Ranked support or resistance level."""

    price: float
    strength: float = Field(..., ge=0, le=100)
    type: LevelType
    touches: int = Field(..., ge=2)
    description: str = ""


class FallbackLevel(BaseModel):
    """Synthetic level used when a side has no detected levels."""

    price: float
    description: str


class BrokenLevel(BaseModel):
    """A side whose levels were all broken through."""

    price: float
    strength: float = 1.0
    break_time: int = Field(..., description="Unix seconds of the analysis")
    price_at_break: float
    volume_24h_at_break: float = Field(..., description="USD volume of the last candle")
    description: str = ""


class BrokenLevels(BaseModel):
    broken_supports: list[BrokenLevel] = Field(default_factory=list)
    broken_resistances: list[BrokenLevel] = Field(default_factory=list)


class PriceLevels(BaseModel):
    """
    Price-Level Analyzer output.
    At most 3 supports and 3 resistances, strongest first.
    """

    supports: list[PriceLevel] = Field(default_factory=list, max_length=3)
    resistances: list[PriceLevel] = Field(default_factory=list, max_length=3)
    nearest_support: float
    nearest_resistance: float
    fallback_support: FallbackLevel
    fallback_resistance: FallbackLevel
    broken_levels: BrokenLevels = Field(default_factory=BrokenLevels)
    is_new_pair: bool = False
    tolerance: Optional[float] = Field(default=None, description="Bucket merge tolerance used")

    # Channel metrics (percent of current price)
    channel_width_percent: float = 0.0
    channel_position_percent: Optional[float] = Field(
        default=None, description="0 at nearest support, 100 at nearest resistance"
    )
    distance_to_support_percent: float = 0.0
    distance_to_resistance_percent: float = 0.0


# =============================================================================
# FIBONACCI
# =============================================================================


class FibonacciLevel(BaseModel):
    level: float = Field(..., description="Ratio, e.g. 0.618")
    price: float


class FibonacciAnalysis(BaseModel):
    """Retracement/extension levels from the recent swing high and low."""

    swing_high: Optional[float] = None
    swing_low: Optional[float] = None
    levels: list[FibonacciLevel] = Field(default_factory=list)
    position_type: str = "Insufficient Data"
    position_description: str = "Insufficient Data"
