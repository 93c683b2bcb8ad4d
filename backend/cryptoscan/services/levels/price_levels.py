"""
Price-Level Analyzer

Detects support and resistance levels by bucketing every high/low touch in
the lookback window, then scoring each bucket by volume, touch count,
recency, rejection strength and round-number proximity.

Levels are stateless: every call rebuilds the buckets from the candles.
Buckets are held under an integer id assigned at creation, so merging a touch
moves the bucket center without changing its key.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from cryptoscan.schemas.levels import (
    BrokenLevel,
    BrokenLevels,
    FallbackLevel,
    LevelType,
    PriceLevel,
    PriceLevels,
)
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.services.indicators.calculations import atr
from cryptoscan.services.indicators.safe import last_valid, safe_div

logger = logging.getLogger(__name__)

MIN_CANDLES = 7
MAX_LEVELS_PER_SIDE = 3
BEHAVIOR_WINDOW = 5
RECENCY_DECAY_DAYS = 30
MIN_STRENGTH = 0.15
MIN_TOUCHES = 2
FALLBACK_SUPPORT_RATIO = 0.85
FALLBACK_RESISTANCE_RATIO = 1.15

# Strength weights
W_VOLUME = 0.25
W_TOUCHES = 0.20
W_RECENCY = 0.20
W_REJECTION = 0.25
W_PSYCHOLOGICAL = 0.10


@dataclass
class Touch:
    """One high or low that reached a bucket."""

    index: int
    price: float
    volume: float
    behavior: str  # support / resistance / unknown
    rejection: float  # in ATR multiples


@dataclass
class PriceBucket:
    bucket_id: int
    center: float
    total_volume: float = 0.0
    touches: list[Touch] = field(default_factory=list)

    @property
    def touch_count(self) -> int:
        return len(self.touches)

    @property
    def last_index(self) -> int:
        return max(t.index for t in self.touches)

    @property
    def net_behavior(self) -> int:
        """Support touches minus resistance touches."""
        support = sum(1 for t in self.touches if t.behavior == "support")
        resistance = sum(1 for t in self.touches if t.behavior == "resistance")
        return support - resistance

    def add(self, touch: Touch) -> None:
        """Merge a touch, moving the center to the volume-weighted mean."""
        combined = self.total_volume + touch.volume
        if combined > 0:
            self.center = (self.center * self.total_volume + touch.price * touch.volume) / combined
        else:
            n = len(self.touches)
            self.center = (self.center * n + touch.price) / (n + 1)
        self.total_volume = combined
        self.touches.append(touch)


# =============================================================================
# HELPERS
# =============================================================================


def grouping_tolerance(price: float, atr_value: Optional[float]) -> float:
    """Half an ATR, or 1% of price for sub-cent assets or when ATR is unusable."""
    if price < 0.01 or atr_value is None or atr_value <= 0:
        return abs(price) * 0.01
    return atr_value * 0.5


def is_tight_range(price: float, atr_value: Optional[float]) -> bool:
    if price < 0.01 or atr_value is None:
        return True
    return safe_div(atr_value, price) < 0.01


def is_psychological_level(price: float) -> bool:
    """Within 0.5% of a half-magnitude round number (50, 100, 0.5, 25000...)."""
    if price <= 0 or not math.isfinite(price):
        return False
    magnitude = 10 ** math.floor(math.log10(price))
    step = magnitude / 2
    nearest = round(price / step) * step
    return abs(price - nearest) <= price * 0.005


def classify_touch(price: float, future_closes: np.ndarray, atr_value: float) -> tuple[str, float]:
    """
    Judge a touch from the next closes: a rebound above the touch is support
    behavior, a rejection below it is resistance behavior.
    """
    if len(future_closes) == 0:
        return "unknown", 0.0

    rebound = float(future_closes.max()) - price
    rejection = price - float(future_closes.min())

    if rebound > rejection and rebound > 0:
        return "support", safe_div(rebound, atr_value)
    if rejection > rebound and rejection > 0:
        return "resistance", safe_div(rejection, atr_value)
    return "unknown", 0.0


def build_buckets(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    volumes: np.ndarray,
    tolerance: float,
    atr_value: float,
) -> dict[int, PriceBucket]:
    """Merge every high and low into the first bucket within tolerance."""
    buckets: dict[int, PriceBucket] = {}
    next_id = 0

    for i in range(len(closes)):
        future = closes[i + 1 : i + 1 + BEHAVIOR_WINDOW]
        for price in (float(highs[i]), float(lows[i])):
            behavior, rejection = classify_touch(price, future, atr_value)
            touch = Touch(i, price, float(volumes[i]), behavior, rejection)

            target = next(
                (b for b in buckets.values() if abs(b.center - price) <= tolerance),
                None,
            )
            if target is None:
                target = PriceBucket(bucket_id=next_id, center=price)
                buckets[next_id] = target
                next_id += 1
            target.add(touch)

    return buckets


def score_bucket(bucket: PriceBucket, max_volume: float, last_index: int) -> float:
    """Weighted strength in [0, 1]."""
    volume_score = safe_div(bucket.total_volume, max_volume)
    touch_score = min(1.0, bucket.touch_count / 5)
    age = last_index - bucket.last_index
    recency_score = math.exp(-age / RECENCY_DECAY_DAYS)
    avg_rejection = float(np.mean([t.rejection for t in bucket.touches])) if bucket.touches else 0.0
    rejection_score = min(1.0, avg_rejection / 2)
    psychological = 1.0 if is_psychological_level(bucket.center) else 0.0

    strength = (
        W_VOLUME * volume_score
        + W_TOUCHES * touch_score
        + W_RECENCY * recency_score
        + W_REJECTION * rejection_score
        + W_PSYCHOLOGICAL * psychological
    )
    return max(0.0, min(1.0, strength))


def _classify_bucket(bucket: PriceBucket, price: float, tight_range: bool) -> Optional[LevelType]:
    net = bucket.net_behavior
    if bucket.center < price and net >= 0:
        return LevelType.SUPPORT
    if bucket.center > price and net <= 0:
        return LevelType.RESISTANCE
    if tight_range:
        if bucket.center < price:
            return LevelType.SUPPORT
        if bucket.center > price:
            return LevelType.RESISTANCE
    return None


def _fallbacks(price: float, supports_broken: bool, resistances_broken: bool) -> tuple[FallbackLevel, FallbackLevel]:
    support_price = price * FALLBACK_SUPPORT_RATIO
    resistance_price = price * FALLBACK_RESISTANCE_RATIO
    support = FallbackLevel(
        price=support_price,
        description=(
            f"Support broken - Next target {support_price:.8f}"
            if supports_broken
            else "No support level established yet"
        ),
    )
    resistance = FallbackLevel(
        price=resistance_price,
        description=(
            f"Resistance broken - Next target {resistance_price:.8f}"
            if resistances_broken
            else "No resistance level established yet"
        ),
    )
    return support, resistance


def _channel_metrics(price: float, nearest_support: float, nearest_resistance: float) -> dict:
    width = nearest_resistance - nearest_support
    return {
        "channel_width_percent": safe_div(width, price) * 100,
        "channel_position_percent": (
            safe_div(price - nearest_support, width) * 100 if width > 0 else None
        ),
        "distance_to_support_percent": safe_div(price - nearest_support, price) * 100,
        "distance_to_resistance_percent": safe_div(nearest_resistance - price, price) * 100,
    }


def new_pair_levels(price: float) -> PriceLevels:
    """Result for pairs with too little history to detect levels."""
    support = price * FALLBACK_SUPPORT_RATIO
    resistance = price * FALLBACK_RESISTANCE_RATIO
    return PriceLevels(
        nearest_support=support,
        nearest_resistance=resistance,
        fallback_support=FallbackLevel(
            price=support, description="New pair - establishing support levels"
        ),
        fallback_resistance=FallbackLevel(
            price=resistance, description="New pair - establishing resistance levels"
        ),
        is_new_pair=True,
        **_channel_metrics(price, support, resistance),
    )


# =============================================================================
# ANALYZER
# =============================================================================


def analyze_price_levels(
    series: CandleSeries,
    lookback: int = 180,
    as_of: Optional[int] = None,
) -> PriceLevels:
    """
    Up to 3 supports and 3 resistances from the last `lookback` candles.

    Args:
        series: Candles for one pair, ascending
        lookback: Number of trailing candles to scan
        as_of: Unix seconds recorded as the break time of broken levels

    Returns:
        PriceLevels with nearest levels, fallbacks and channel metrics
    """
    window = series.tail(lookback)
    if not window:
        raise ValueError(f"No candles for {series.pair}")

    price = float(window.closes[-1])
    if len(window) < MIN_CANDLES:
        return new_pair_levels(price)

    highs, lows, closes, volumes = window.highs, window.lows, window.closes, window.volumes
    atr_value = last_valid(atr(highs, lows, closes, 14))
    tolerance = grouping_tolerance(price, atr_value)
    tight_range = is_tight_range(price, atr_value)
    atr_base = atr_value if atr_value and atr_value > 0 else tolerance * 2

    buckets = build_buckets(highs, lows, closes, volumes, tolerance, atr_base)
    max_volume = max((b.total_volume for b in buckets.values()), default=0.0)
    last_index = len(closes) - 1

    supports: list[tuple[float, PriceBucket]] = []
    resistances: list[tuple[float, PriceBucket]] = []

    for bucket in buckets.values():
        if bucket.touch_count < MIN_TOUCHES:
            continue
        strength = score_bucket(bucket, max_volume, last_index)
        if strength <= MIN_STRENGTH:
            continue

        level_type = _classify_bucket(bucket, price, tight_range)
        if level_type == LevelType.SUPPORT:
            supports.append((strength, bucket))
        elif level_type == LevelType.RESISTANCE:
            resistances.append((strength, bucket))

    nearest_support = max((b.center for _, b in supports), default=price * FALLBACK_SUPPORT_RATIO)
    nearest_resistance = min(
        (b.center for _, b in resistances), default=price * FALLBACK_RESISTANCE_RATIO
    )

    def to_levels(entries, level_type: LevelType) -> list[PriceLevel]:
        ranked = sorted(entries, key=lambda e: e[0], reverse=True)[:MAX_LEVELS_PER_SIDE]
        label = "Support" if level_type == LevelType.SUPPORT else "Resistance"
        return [
            PriceLevel(
                price=bucket.center,
                strength=strength * 100,
                type=level_type,
                touches=bucket.touch_count,
                description=f"{label} level with {bucket.touch_count} touches",
            )
            for strength, bucket in ranked
        ]

    support_levels = to_levels(supports, LevelType.SUPPORT)
    resistance_levels = to_levels(resistances, LevelType.RESISTANCE)

    break_time = as_of if as_of is not None else int(time.time())
    volume_24h = float(window.volumes_usd[-1])
    broken = BrokenLevels()
    if not support_levels:
        broken.broken_supports.append(
            BrokenLevel(
                price=price * FALLBACK_SUPPORT_RATIO,
                break_time=break_time,
                price_at_break=price,
                volume_24h_at_break=volume_24h,
                description=f"Support broken down with {volume_24h:.2f} volume",
            )
        )
    if not resistance_levels:
        logger.debug(f"{series.pair}: no resistances detected, treating as broken")
        broken.broken_resistances.append(
            BrokenLevel(
                price=price * FALLBACK_RESISTANCE_RATIO,
                break_time=break_time,
                price_at_break=price,
                volume_24h_at_break=volume_24h,
                description=f"Resistance broken up with {volume_24h:.2f} volume",
            )
        )

    fallback_support, fallback_resistance = _fallbacks(
        price, bool(broken.broken_supports), bool(broken.broken_resistances)
    )

    return PriceLevels(
        supports=support_levels,
        resistances=resistance_levels,
        nearest_support=nearest_support,
        nearest_resistance=nearest_resistance,
        fallback_support=fallback_support,
        fallback_resistance=fallback_resistance,
        broken_levels=broken,
        is_new_pair=False,
        tolerance=tolerance,
        **_channel_metrics(price, nearest_support, nearest_resistance),
    )
