"""
Pump/Dump Detector

Scores abnormal volume + price + volatility combinations on the last daily
candle. Point buckets are capped per component and amplified by a
low-liquidity multiplier; the trigger threshold drops for volatile or thin
markets but never below 50.
"""

import logging

from cryptoscan.schemas.analysis import LiquidityType, MovementType, PumpDumpResult
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.services.indicators.calculations import atr, bollinger_bands, macd, rsi, sma
from cryptoscan.services.indicators.safe import last_valid, previous_valid, safe_div

logger = logging.getLogger(__name__)

MIN_CANDLES = 30
VOLUME_BASELINE_PERIOD = 20


def _ladder(value: float, steps: tuple[tuple[float, float], ...]) -> float:
    """Points of the first (threshold, points) step that `value` exceeds."""
    for threshold, points in steps:
        if value > threshold:
            return points
    return 0.0


VOLUME_STEPS = ((300, 20), (200, 15), (100, 10), (50, 5))
PRICE_STEPS = ((20, 35), (15, 30), (10, 25), (5, 20))
VELOCITY_STEPS = ((5, 10), (3, 7), (1, 5))
RSI_PUMP_STEPS = ((80, 10), (70, 7), (60, 5))
BOLLINGER_STEPS = ((100, 7), (75, 5), (50, 3))


def _intraday_points(move: float, day_range: float) -> float:
    if move > day_range:
        return 15
    if move > day_range * 0.75:
        return 10
    if move > day_range * 0.5:
        return 5
    return 0


def _rsi_dump_points(value: float) -> float:
    if value < 20:
        return 10
    if value < 30:
        return 7
    if value < 40:
        return 5
    return 0


def detect_pump_dump(series: CandleSeries) -> PumpDumpResult:
    """
    Pump/dump likelihood for the last candle of `series`.

    Args:
        series: At least 30 daily candles, ascending

    Returns:
        PumpDumpResult; the all-zero result when history is too short
    """
    current = series.last
    previous = series.previous
    if current is None or previous is None or len(series) < MIN_CANDLES:
        return PumpDumpResult()

    closes, highs, lows, volumes = series.closes, series.highs, series.lows, series.volumes

    avg_volume = last_valid(sma(volumes, VOLUME_BASELINE_PERIOD), 0.0)
    volume_ratio = safe_div(current.volume, avg_volume)
    volume_increase = safe_div(current.volume - avg_volume, avg_volume) * 100

    price_change = safe_div(current.close - previous.close, previous.close) * 100
    price_velocity = safe_div(price_change, volume_ratio)
    low_liquidity_multiplier = min(2.0, max(1.0, 2 - volume_ratio)) if avg_volume > 0 else 1.0

    current_atr = last_valid(atr(highs, lows, closes, 14), 0.0)
    normalized_atr = safe_div(current_atr, current.close) * 100

    day_high = max(current.high, previous.high)
    day_low = min(current.low, previous.low)
    day_over_day_range = safe_div(day_high - day_low, day_low) * 100
    intraday_pump = safe_div(current.close - current.low, current.low) * 100
    intraday_dump = safe_div(current.high - current.close, current.high) * 100

    current_rsi = last_valid(rsi(closes, 14), 50.0)

    upper, middle, _ = bollinger_bands(closes, 20, 2)
    bb_deviation = 0.0
    if len(middle) > 0:
        bb_deviation = safe_div(current.close - middle[-1], upper[-1] - middle[-1]) * 100

    _, _, histogram = macd(closes)
    macd_slope = 0.0
    if len(histogram) >= 2:
        macd_slope = last_valid(histogram, 0.0) - previous_valid(histogram, 0.0)

    volume_points = _ladder(volume_increase, VOLUME_STEPS)

    pump_score = (
        volume_points
        + _ladder(price_change, PRICE_STEPS)
        + _ladder(price_velocity, VELOCITY_STEPS)
        + _intraday_points(intraday_pump, day_over_day_range)
        + _ladder(current_rsi, RSI_PUMP_STEPS)
        + _ladder(bb_deviation, BOLLINGER_STEPS)
        + (3 if macd_slope > 0 else 0)
    ) * low_liquidity_multiplier

    dump_score = (
        volume_points
        + _ladder(-price_change, PRICE_STEPS)
        + _ladder(-price_velocity, VELOCITY_STEPS)
        + _intraday_points(intraday_dump, day_over_day_range)
        + _rsi_dump_points(current_rsi)
        + _ladder(-bb_deviation, BOLLINGER_STEPS)
        + (3 if macd_slope < 0 else 0)
    ) * low_liquidity_multiplier

    volatility_adjustment = min(normalized_atr / 2, 10)
    liquidity_adjustment = max(0.0, 10 * (1 - volume_ratio))
    threshold = max(50.0, 70 - volatility_adjustment - liquidity_adjustment)

    if volume_increase > 200:
        liquidity_type = LiquidityType.HIGH
    elif current.volume < avg_volume * 0.5:
        liquidity_type = LiquidityType.LOW
    else:
        liquidity_type = LiquidityType.NORMAL

    is_pumping = pump_score >= threshold and price_change > 0
    is_dumping = dump_score >= threshold and price_change < 0

    if is_pumping:
        movement = (
            MovementType.LOW_LIQUIDITY_PUMP
            if liquidity_type == LiquidityType.LOW
            else MovementType.VOLUME_DRIVEN_PUMP
        )
    elif is_dumping:
        movement = (
            MovementType.LOW_LIQUIDITY_DUMP
            if liquidity_type == LiquidityType.LOW
            else MovementType.VOLUME_DRIVEN_DUMP
        )
    else:
        movement = MovementType.NORMAL

    if is_pumping or is_dumping:
        logger.info(
            f"{series.pair}: {movement.value} (pump={pump_score:.1f}, "
            f"dump={dump_score:.1f}, threshold={threshold:.1f})"
        )

    return PumpDumpResult(
        is_pumping=is_pumping,
        is_dumping=is_dumping,
        pump_score=pump_score,
        dump_score=dump_score,
        threshold=threshold,
        volume_increase=volume_increase,
        price_change=price_change,
        price_velocity=price_velocity,
        intraday_pump=intraday_pump,
        intraday_dump=intraday_dump,
        low_liquidity_multiplier=low_liquidity_multiplier,
        liquidity_type=liquidity_type,
        volume_score=volume_points,
        movement_type=movement,
    )
