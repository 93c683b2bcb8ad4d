"""
Tests for indicator snapshots and labels.
"""

import numpy as np
import pytest

from cryptoscan.schemas.indicators import CrossoverSignal, EMACross, MACDData, MACDTrend
from cryptoscan.services.indicators.safe import INSUFFICIENT_DATA
from cryptoscan.services.indicators.signals import (
    adx_snapshot,
    advanced_trend,
    atr_snapshot,
    atr_volatility_label,
    bollinger_snapshot,
    classify_macd_crossover,
    classify_macd_trend,
    ema_cross,
    ichimoku_snapshot,
    ma_trend_label,
    macd_snapshot,
    price_position,
    stochastic_snapshot,
    trend_strength_label,
)

from conftest import uptrend_closes, wave_closes


def test_macd_snapshot_short_series_is_insufficient():
    data, trend, crossover = macd_snapshot([100.0] * 20)
    assert data == MACDData()
    assert trend == MACDTrend.INSUFFICIENT_DATA
    assert crossover == CrossoverSignal.INSUFFICIENT_DATA


def test_macd_snapshot_in_steady_uptrend():
    data, trend, crossover = macd_snapshot(uptrend_closes(80))
    assert data.macd > 0
    assert data.histogram > 0
    assert trend == MACDTrend.STRONG_UPTREND
    assert crossover == CrossoverSignal.NONE


def test_classify_macd_trend_rules():
    hist = np.array([0.5])
    assert classify_macd_trend([1.0, 2.0], [0.5, 1.5], hist) == MACDTrend.STRONG_UPTREND
    assert (
        classify_macd_trend([-1.0, -2.0], [-0.5, -1.5], np.array([-0.5]))
        == MACDTrend.STRONG_DOWNTREND
    )
    # Bullish cross with a falling signal line
    assert classify_macd_trend([0.0, 1.0], [0.5, 0.4], np.array([0.6])) == MACDTrend.WEAK_UPTREND
    assert classify_macd_trend([1.0], [1.0], hist) == MACDTrend.INSUFFICIENT_DATA


def test_classify_macd_crossover():
    assert classify_macd_crossover([-1.0, 1.0], [0.0, 0.0]) == CrossoverSignal.BULLISH
    assert classify_macd_crossover([1.0, -1.0], [0.0, 0.0]) == CrossoverSignal.BEARISH
    assert classify_macd_crossover([1.0, 2.0], [0.0, 0.0]) == CrossoverSignal.NONE


def test_ema_cross_labels():
    assert ema_cross(110.0, 100.0) == EMACross.GOLDEN
    assert ema_cross(90.0, 100.0) == EMACross.DEATH
    assert ema_cross(None, 100.0) == EMACross.INSUFFICIENT_DATA
    assert ema_cross(float("nan"), 100.0) == EMACross.INSUFFICIENT_DATA


def test_ma_trend_label_ladder():
    assert ma_trend_label(103.0, 100.0) == "Strong Uptrend"
    assert ma_trend_label(101.0, 100.0) == "Weak Uptrend"
    assert ma_trend_label(100.2, 100.0) == "Neutral"
    assert ma_trend_label(99.0, 100.0) == "Weak Downtrend"
    assert ma_trend_label(95.0, 100.0) == "Strong Downtrend"
    assert ma_trend_label(None, 100.0) == INSUFFICIENT_DATA


def test_advanced_trend():
    bullish = MACDData(macd=1.0, signal=0.5, histogram=0.5)
    assert advanced_trend(120.0, bullish, True, 65.0, 110.0, 100.0) == "Strong Uptrend"

    bearish = MACDData(macd=-1.0, signal=-0.5, histogram=-0.5)
    assert advanced_trend(80.0, bearish, True, 35.0, 90.0, 100.0) == "Strong Downtrend"

    assert advanced_trend(120.0, bullish, False, 65.0, 110.0, 100.0) == INSUFFICIENT_DATA
    assert advanced_trend(120.0, bullish, True, None, 110.0, 100.0) == INSUFFICIENT_DATA


def test_price_position_and_volatility_labels():
    assert price_position(111, 110, 100, 90) == "Overbought"
    assert price_position(89, 110, 100, 90) == "Oversold"
    assert price_position(105, 110, 100, 90) == "Above Middle"
    assert price_position(100, 110, 100, 90) == "At Middle"

    assert atr_volatility_label(0.2) == "Very Low"
    assert atr_volatility_label(2.0) == "Medium"
    assert atr_volatility_label(7.0) == "Very High"

    assert trend_strength_label(45, 30, 10) == "Strong Uptrend"
    assert trend_strength_label(30, 10, 30) == "Moderate Downtrend"
    assert trend_strength_label(10, 30, 10) == "No Clear Trend"


def test_short_series_snapshots_fall_back_to_placeholders():
    closes = np.array([100.0, 101.0, 102.0])
    assert bollinger_snapshot(closes).signal == INSUFFICIENT_DATA
    assert stochastic_snapshot(closes, closes, closes).k is None
    assert atr_snapshot(closes, closes, closes).atr is None
    assert adx_snapshot(closes, closes, closes).adx is None
    assert ichimoku_snapshot(closes, closes, closes).cloud_signal == INSUFFICIENT_DATA


def test_stochastic_snapshot_uses_unsmoothed_k():
    closes = np.array([float(c) for c in range(1, 30)] + [17.0])
    snapshot = stochastic_snapshot(closes + 1, closes - 1, closes)
    # last 14 bars span lows 16 to highs 30 and close at 17
    assert snapshot.k == pytest.approx(100 / 14)
    assert snapshot.d == pytest.approx((2 * 1400 / 15 + 100 / 14) / 3)


def test_bollinger_snapshot_percent_b_in_band():
    snapshot = bollinger_snapshot(wave_closes(60))
    assert snapshot.upper > snapshot.middle > snapshot.lower
    assert snapshot.bandwidth > 0
    assert snapshot.price_position != INSUFFICIENT_DATA


def test_ichimoku_snapshot_projects_forward_spans():
    closes = np.array(wave_closes(120))
    snapshot = ichimoku_snapshot(closes * 1.01, closes * 0.99, closes)
    assert snapshot.tenkan is not None
    assert snapshot.senkou_a is not None
    assert len(snapshot.senkou_a_projection) == 26
    assert len(snapshot.senkou_b_projection) == 26
    assert snapshot.cloud_signal != INSUFFICIENT_DATA
