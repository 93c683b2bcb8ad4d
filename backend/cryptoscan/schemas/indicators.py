"""
CONTRACT 2: Indicator Results

Input: CandleSeries (short and long windows)
Output: latest-value snapshots of each indicator

Every field that can be undefined on a short series is Optional, and every
label falls back to "Insufficient Data".
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class MACDTrend(str, Enum):
    STRONG_UPTREND = "Strong Uptrend"
    WEAK_UPTREND = "Weak Uptrend"
    NEUTRAL = "Neutral"
    WEAK_DOWNTREND = "Weak Downtrend"
    STRONG_DOWNTREND = "Strong Downtrend"
    INSUFFICIENT_DATA = "Insufficient Data"


class CrossoverSignal(str, Enum):
    BULLISH = "Bullish Crossover"
    BEARISH = "Bearish Crossover"
    NONE = "No Crossover"
    INSUFFICIENT_DATA = "Insufficient Data"


class EMACross(str, Enum):
    GOLDEN = "Above (Golden Cross)"
    DEATH = "Below (Death Cross)"
    INSUFFICIENT_DATA = "Insufficient Data"


# =============================================================================
# MOMENTUM
# =============================================================================


class MACDData(BaseModel):
    """MACD values at the last candle. Zeros when the series is too short."""

    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


class StochasticData(BaseModel):
    """Fast stochastic snapshot: raw %K and its 3-period SMA %D."""

    k: Optional[float] = None
    d: Optional[float] = None
    signal: str = "Insufficient Data"


class StochRSIData(BaseModel):
    """Stochastic RSI on a 0-100 scale."""

    k: Optional[float] = None
    d: Optional[float] = None


# =============================================================================
# VOLATILITY
# =============================================================================


class BollingerBandsData(BaseModel):
    """Bollinger Bands snapshot. Neutral placeholder on short input."""

    upper: Optional[float] = None
    middle: Optional[float] = None
    lower: Optional[float] = None
    bandwidth: Optional[float] = Field(default=None, description="(upper-lower)/middle*100")
    percent_b: float = Field(default=0.5, description="Price position within the bands")
    signal: str = "Insufficient Data"
    price_position: str = "Insufficient Data"


class ATRAnalysis(BaseModel):
    """ATR with its price-normalized form and volatility label."""

    atr: Optional[float] = None
    normalized_atr: Optional[float] = Field(default=None, description="ATR as % of price")
    volatility: str = "Insufficient Data"


class VolatilityIndexData(BaseModel):
    """Normalized ATR plus mean absolute change, in percent."""

    value: float = 0.0
    trend: str = "Insufficient Data"


# =============================================================================
# TREND
# =============================================================================


class ADXData(BaseModel):
    adx: Optional[float] = None
    plus_di: Optional[float] = None
    minus_di: Optional[float] = None
    trend_strength: str = "Insufficient Data"


class MovingAverages(BaseModel):
    """SMA/EMA tiers. The 7/30 tiers come from the short window, 50/200 from the long one."""

    sma_7: Optional[float] = None
    sma_30: Optional[float] = None
    sma_50: Optional[float] = None
    sma_200: Optional[float] = None
    ema_7: Optional[float] = None
    ema_30: Optional[float] = None
    ema_50: Optional[float] = None
    ema_200: Optional[float] = None
    short_trend: str = Field(default="Insufficient Data", description="SMA7 vs SMA30")
    long_trend: str = Field(default="Insufficient Data", description="SMA50 vs SMA200")
    ema_cross: EMACross = EMACross.INSUFFICIENT_DATA


class IchimokuData(BaseModel):
    """
    Ichimoku snapshot at the last candle.

    `senkou_a`/`senkou_b` are the spans that sit under the current candle,
    i.e. projected from `displacement` bars ago. The projections hold the
    forward spans for the next `displacement` bars.
    """

    tenkan: Optional[float] = None
    kijun: Optional[float] = None
    senkou_a: Optional[float] = None
    senkou_b: Optional[float] = None
    chikou: Optional[float] = None
    cloud_signal: str = "Insufficient Data"
    tk_cross: str = "None"
    senkou_a_projection: list[Optional[float]] = Field(default_factory=list)
    senkou_b_projection: list[Optional[float]] = Field(default_factory=list)


class LocalExtremaLevel(BaseModel):
    price: float
    type: str = Field(..., description="support / resistance")
    strength: int = Field(..., ge=1, description="Number of clustered extrema")


# =============================================================================
# OUTPUT: IndicatorSnapshot
# =============================================================================


class IndicatorSnapshot(BaseModel):
    """
    All indicator results for one pair.
    Produced by: Pair Analyzer
    Consumed by: Composite Scorer, Market Aggregator, Trend Monitor
    """

    moving_averages: MovingAverages = Field(default_factory=MovingAverages)

    rsi: Optional[float] = Field(default=None, ge=0, le=100)
    rsi_30: Optional[float] = Field(default=None, ge=0, le=100)
    rsi_divergence: str = "Insufficient Data"
    macd: MACDData = Field(default_factory=MACDData)
    macd_trend: MACDTrend = MACDTrend.INSUFFICIENT_DATA
    macd_crossover: CrossoverSignal = CrossoverSignal.INSUFFICIENT_DATA
    stochastic: StochasticData = Field(default_factory=StochasticData)
    stoch_rsi: StochRSIData = Field(default_factory=StochRSIData)
    williams_r: Optional[float] = None
    cci: Optional[float] = None
    mfi: Optional[float] = Field(default=None, ge=0, le=100)
    momentum: Optional[float] = Field(default=None, description="ROC(14) of closes")

    bollinger_bands: BollingerBandsData = Field(default_factory=BollingerBandsData)
    atr: ATRAnalysis = Field(default_factory=ATRAnalysis)
    volatility: float = Field(default=0.0, ge=0, description="Std of daily % changes")
    volatility_index: VolatilityIndexData = Field(default_factory=VolatilityIndexData)

    adx: ADXData = Field(default_factory=ADXData)
    ichimoku: IchimokuData = Field(default_factory=IchimokuData)
    advanced_trend: str = "Insufficient Data"

    obv: Optional[float] = None
    obv_change: Optional[float] = Field(default=None, description="OBV % change over the short window")
    volume_oscillator: Optional[float] = None

    local_levels: list[LocalExtremaLevel] = Field(default_factory=list)
