"""
Tests for the indicator library and series utilities.
"""

import numpy as np

from cryptoscan.services.indicators.calculations import (
    adx,
    atr,
    bollinger_bands,
    cci,
    ema,
    find_support_resistance,
    ichimoku,
    macd,
    mfi,
    obv,
    roc,
    rsi,
    sma,
    stoch_rsi,
    stochastic,
    williams_r,
)
from cryptoscan.services.indicators.safe import clamp, last_valid, safe_div

from conftest import downtrend_closes, uptrend_closes, wave_closes


def test_sma_and_ema_stay_within_input_bounds():
    rng = np.random.default_rng(7)
    values = rng.uniform(10, 200, size=120)

    for period in (7, 30, 50):
        for series in (sma(values, period), ema(values, period)):
            assert len(series) == len(values) - period + 1
            assert series.min() >= values.min() - 1e-9
            assert series.max() <= values.max() + 1e-9


def test_sma_matches_trailing_mean():
    values = [1, 2, 3, 4, 5]
    assert list(sma(values, 3)) == [2.0, 3.0, 4.0]


def test_series_functions_return_empty_on_short_input():
    short = [1.0, 2.0, 3.0]
    assert len(sma(short, 7)) == 0
    assert len(ema(short, 7)) == 0
    assert len(rsi(short, 14)) == 0
    assert len(roc(short, 14)) == 0
    assert len(atr(short, short, short, 14)) == 0
    assert all(len(part) == 0 for part in macd(short))
    assert all(len(part) == 0 for part in bollinger_bands(short))


def test_roc_is_percent_change_over_period():
    values = [100, 110, 121]
    assert np.allclose(roc(values, 1), [10.0, 10.0])


def test_rsi_bounds_and_extremes():
    rng = np.random.default_rng(11)
    noisy = 100 + np.cumsum(rng.normal(0, 2, size=200))
    values = rsi(noisy, 14)
    assert values.min() >= 0
    assert values.max() <= 100

    assert rsi(uptrend_closes(60), 14)[-1] == 100
    assert rsi(downtrend_closes(60), 14)[-1] == 0


def test_rsi_flat_series_is_neutral():
    assert rsi([50.0] * 30, 14)[-1] == 50


def test_macd_histogram_is_macd_minus_signal():
    closes = wave_closes(120)
    macd_line, signal, histogram = macd(closes)
    assert len(macd_line) == len(signal) == len(histogram)
    assert np.allclose(histogram, macd_line - signal)


def test_bollinger_band_ordering():
    upper, middle, lower = bollinger_bands(wave_closes(60), 20, 2)
    assert np.all(upper >= middle)
    assert np.all(middle >= lower)


def test_oscillators_stay_in_range():
    closes = np.array(wave_closes(90))
    highs, lows = closes * 1.01, closes * 0.99
    volumes = np.full(len(closes), 1000.0)

    k, d = stochastic(highs, lows, closes, 14, 3, 3)
    assert k.min() >= 0 and k.max() <= 100
    assert d.min() >= 0 and d.max() <= 100

    wr = williams_r(highs, lows, closes, 14)
    assert wr.min() >= -100 and wr.max() <= 0

    money_flow = mfi(highs, lows, closes, volumes, 14)
    assert money_flow.min() >= 0 and money_flow.max() <= 100

    srsi_k, _ = stoch_rsi(closes)
    assert srsi_k.min() >= 0 and srsi_k.max() <= 100

    assert np.all(np.isfinite(cci(highs, lows, closes, 20)))


def test_flat_market_does_not_divide_by_zero():
    flat = np.full(60, 100.0)
    assert stochastic(flat, flat, flat, 14, 3, 1)[0][-1] == 50
    assert williams_r(flat, flat, flat, 14)[-1] == -50
    assert cci(flat, flat, flat, 20)[-1] == 0
    assert np.all(np.isfinite(adx(flat, flat, flat, 14)[0]))


def test_obv_accumulates_signed_volume():
    result = obv([10, 11, 10, 10], [100, 50, 30, 70])
    assert list(result) == [100, 150, 120, 120]


def test_adx_in_strong_trend():
    closes = np.array(uptrend_closes(80))
    adx_values, plus_di, minus_di = adx(closes * 1.01, closes * 0.99, closes, 14)
    assert last_valid(adx_values) > 25
    assert plus_di[-1] > minus_di[-1]


def test_ichimoku_projects_senkou_forward():
    closes = np.array(wave_closes(100))
    result = ichimoku(closes * 1.01, closes * 0.99, closes)
    assert len(result.tenkan) == len(closes)
    assert len(result.senkou_a) == len(closes) + 26
    assert len(result.senkou_b) == len(closes) + 26
    assert np.isnan(result.senkou_a[0])


def test_local_extrema_levels_ranked_by_cluster_size():
    levels = find_support_resistance(wave_closes(200), lookback=5)
    assert levels
    strengths = [level.strength for level in levels]
    assert strengths == sorted(strengths, reverse=True)
    assert {level.type for level in levels} <= {"support", "resistance"}


def test_safe_helpers():
    assert safe_div(1, 0) == 0.0
    assert safe_div(1, 0, default=5) == 5
    assert clamp(1.7) == 1.0
    assert clamp(-3) == 0.0
    assert clamp(float("nan")) == 0.5
    assert last_valid([1.0, 2.0, float("nan")]) == 2.0
    assert last_valid([], 9.0) == 9.0
