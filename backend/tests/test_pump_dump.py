"""
Tests for pump/dump detection.
"""

from cryptoscan.schemas.analysis import LiquidityType, MovementType, PumpDumpResult
from cryptoscan.schemas.market import Candle, CandleSeries
from cryptoscan.services.pump_dump import detect_pump_dump

from conftest import AS_OF, DAY


def _flat_then(last_open, last_high, last_low, last_close, last_volume, flat_days=60):
    candles = [
        Candle(
            pair="PUMP-USD",
            timestamp=AS_OF - (flat_days - i) * DAY,
            open=100.0,
            high=101.0,
            low=99.0,
            close=100.0,
            volume=1000.0,
        )
        for i in range(flat_days)
    ]
    candles.append(
        Candle(
            pair="PUMP-USD",
            timestamp=AS_OF,
            open=last_open,
            high=last_high,
            low=last_low,
            close=last_close,
            volume=last_volume,
        )
    )
    return CandleSeries("PUMP-USD", candles)


def test_short_history_returns_zero_result():
    series = _flat_then(100, 126, 99, 125, 5000, flat_days=10)
    assert detect_pump_dump(series) == PumpDumpResult()


def test_volume_driven_pump():
    result = detect_pump_dump(_flat_then(100, 126, 99, 125, 5000))

    assert result.is_pumping
    assert not result.is_dumping
    assert result.pump_score >= 70
    assert result.threshold >= 50
    assert result.price_change == 25.0
    assert result.volume_score == 20
    assert result.low_liquidity_multiplier == 1.0
    assert result.liquidity_type == LiquidityType.HIGH
    assert result.movement_type == MovementType.VOLUME_DRIVEN_PUMP


def test_volume_driven_dump():
    result = detect_pump_dump(_flat_then(100, 101, 74, 75, 5000))

    assert result.is_dumping
    assert not result.is_pumping
    assert result.dump_score >= result.threshold
    assert result.price_change == -25.0
    assert result.movement_type == MovementType.VOLUME_DRIVEN_DUMP


def test_quiet_market_is_normal():
    result = detect_pump_dump(_flat_then(100, 101, 99, 100, 1000))

    assert not result.is_pumping
    assert not result.is_dumping
    assert result.movement_type == MovementType.NORMAL
    assert result.threshold >= 50


def test_thin_market_amplifies_scores():
    result = detect_pump_dump(_flat_then(100, 109, 99, 108, 100))

    assert result.low_liquidity_multiplier > 1.0
    assert result.liquidity_type == LiquidityType.LOW
