"""
CONTRACT 4: Pair Analysis

Input: pair symbol (+ candle store)
Output: PairAnalysis

One explicit record per pair per run, assembled by the Pair Analyzer from the
indicator snapshot, price levels, composite scores and pump/dump result.
Records are replaced on the next run, never mutated.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from cryptoscan.schemas.indicators import IndicatorSnapshot
from cryptoscan.schemas.levels import FibonacciAnalysis, PriceLevels


# =============================================================================
# ENUMS
# =============================================================================


class LiquidityType(str, Enum):
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"


class MovementType(str, Enum):
    LOW_LIQUIDITY_PUMP = "Low Liquidity Pump"
    VOLUME_DRIVEN_PUMP = "Volume Driven Pump"
    LOW_LIQUIDITY_DUMP = "Low Liquidity Dump"
    VOLUME_DRIVEN_DUMP = "Volume Driven Dump"
    NORMAL = "Normal"


# =============================================================================
# COMPOSITE SCORES
# =============================================================================


class CompositeScores(BaseModel):
    """Rule-based scores, each clamped to [0, 1]."""

    short_term: float = Field(default=0.5, ge=0, le=1)
    long_term: float = Field(default=0.5, ge=0, le=1)
    risk_adjusted: float = Field(default=0.5, ge=0, le=1)
    enhanced: float = Field(default=0.5, ge=0, le=1)


# =============================================================================
# PUMP / DUMP
# =============================================================================


class PumpDumpResult(BaseModel):
    """Pump/dump likelihood for the last candle. All zero on short input."""

    is_pumping: bool = False
    is_dumping: bool = False
    pump_score: float = Field(default=0.0, ge=0)
    dump_score: float = Field(default=0.0, ge=0)
    threshold: float = 0.0
    volume_increase: float = Field(default=0.0, description="% above the 20-day volume SMA")
    price_change: float = Field(default=0.0, description="Day-over-day close change %")
    price_velocity: float = 0.0
    intraday_pump: float = Field(default=0.0, description="% from the day's low to close")
    intraday_dump: float = Field(default=0.0, description="% from the day's high to close")
    low_liquidity_multiplier: float = Field(default=1.0, ge=1, le=2)
    liquidity_type: LiquidityType = LiquidityType.NORMAL
    volume_score: float = 0.0
    movement_type: MovementType = MovementType.NORMAL


# =============================================================================
# VOLUME & MARKET STRUCTURE
# =============================================================================


class VolumeNode(BaseModel):
    price: float
    volume: float


class VolumeSpike(BaseModel):
    timestamp: int
    volume: float
    type: str = Field(..., description="buy / sell")


class VolumeLevel(BaseModel):
    price: float
    type: str = Field(..., description="Support / Resistance")


class VolumeProfile(BaseModel):
    """Volume-at-price distribution over the lookback window."""

    poc: Optional[float] = Field(default=None, description="Point of Control")
    value_area_high: Optional[float] = None
    value_area_low: Optional[float] = None
    max_volume: float = 0.0
    hv_nodes: list[VolumeNode] = Field(default_factory=list)
    trend: str = "Neutral"
    trend_strength: float = 0.0
    spikes: list[VolumeSpike] = Field(default_factory=list)
    levels: list[VolumeLevel] = Field(default_factory=list)


class VolumeAnalysis(BaseModel):
    """USD-volume moving averages and price/volume agreement."""

    volume_oscillator: Optional[float] = None
    vma_7: Optional[float] = None
    vma_30: Optional[float] = None
    trend: str = "Neutral"
    trend_strength: float = 0.0
    signal: str = "Insufficient Data"
    price_volume_correlation: float = 0.0


class SwingPoint(BaseModel):
    type: str = Field(..., description="High / Low")
    price: float
    timestamp: int
    significance: float = Field(..., ge=0, le=100)
    description: str = ""


class PivotLevel(BaseModel):
    type: str = Field(..., description="Support / Resistance")
    price: float
    strength: float = Field(..., ge=0, le=100)
    description: str = ""


class MarketPhase(BaseModel):
    current: str = "Accumulation"
    confidence: float = Field(default=0.0, ge=0, le=100)
    description: str = ""


class StructureFlags(BaseModel):
    higher_highs: bool = False
    higher_lows: bool = False
    lower_highs: bool = False
    lower_lows: bool = False
    last_swing_high: float = 0.0
    last_swing_low: float = 0.0


class MarketStructure(BaseModel):
    trend: str = "Sideways"
    strength: float = Field(default=0.0, ge=0, le=100)
    swing_points: list[SwingPoint] = Field(default_factory=list)
    pivot_levels: list[PivotLevel] = Field(default_factory=list)
    phase: MarketPhase = Field(default_factory=MarketPhase)
    structure: StructureFlags = Field(default_factory=StructureFlags)


# =============================================================================
# OUTPUT: PairAnalysis
# =============================================================================


class PairAnalysis(BaseModel):
    """
    Full per-pair analysis record.
    Returned by: Pair Analyzer
    Consumed by: Market Aggregator, Trend Monitor, API
    """

    pair: str
    timestamp: int = Field(..., description="Unix seconds of the last candle")
    first_seen_timestamp: Optional[int] = Field(
        default=None, description="First candle in the long window"
    )

    # Price
    current_price: float
    current_volume_usd: float = Field(..., ge=0)
    daily_change: float = Field(default=0.0, description="Day-over-day close change %")
    three_month_change: Optional[float] = None
    all_time_high: float
    all_time_low: float
    percent_from_high: float
    percent_from_low: float

    indicators: IndicatorSnapshot = Field(default_factory=IndicatorSnapshot)
    price_levels: PriceLevels
    fibonacci: FibonacciAnalysis = Field(default_factory=FibonacciAnalysis)
    volume_profile: VolumeProfile = Field(default_factory=VolumeProfile)
    volume_analysis: VolumeAnalysis = Field(default_factory=VolumeAnalysis)
    market_structure: MarketStructure = Field(default_factory=MarketStructure)
    scores: CompositeScores = Field(default_factory=CompositeScores)
    pump_dump: PumpDumpResult = Field(default_factory=PumpDumpResult)

    class Config:
        json_schema_extra = {
            "example": {
                "pair": "BTC-USD",
                "timestamp": 1718841600,
                "current_price": 64850.12,
                "current_volume_usd": 1250000000.0,
                "daily_change": 1.84,
                "all_time_high": 73750.07,
                "all_time_low": 38505.0,
                "percent_from_high": -12.07,
                "percent_from_low": 68.42,
                "indicators": {"rsi": 58.3, "macd_trend": "Weak Uptrend"},
                "scores": {"short_term": 0.62, "long_term": 0.71},
                "pump_dump": {"is_pumping": False, "pump_score": 12.0},
            }
        }
