"""
Tests for support/resistance detection and Fibonacci levels.
"""

import numpy as np
import pytest

from cryptoscan.schemas.levels import LevelType
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.services.levels.fibonacci import analyze_fibonacci, fibonacci_levels, fibonacci_position
from cryptoscan.services.levels.price_levels import (
    analyze_price_levels,
    build_buckets,
    classify_touch,
    grouping_tolerance,
    is_psychological_level,
    new_pair_levels,
    PriceBucket,
    Touch,
)

from conftest import AS_OF, make_series, wave_closes


def test_empty_window_raises():
    with pytest.raises(ValueError):
        analyze_price_levels(CandleSeries("EMPTY-USD", []))


def test_new_pair_uses_fixed_offsets():
    levels = analyze_price_levels(make_series("NEW-USD", [10.0, 10.5, 11.0]))
    assert levels.is_new_pair
    assert levels.supports == []
    assert levels.resistances == []
    assert levels.nearest_support == pytest.approx(11.0 * 0.85)
    assert levels.nearest_resistance == pytest.approx(11.0 * 1.15)
    assert "New pair" in levels.fallback_support.description


def test_new_pair_channel_metrics():
    levels = new_pair_levels(100.0)
    assert levels.channel_width_percent == pytest.approx(30.0)
    assert levels.channel_position_percent == pytest.approx(50.0)
    assert levels.distance_to_support_percent == pytest.approx(15.0)
    assert levels.distance_to_resistance_percent == pytest.approx(15.0)


def test_oscillating_market_has_levels_on_both_sides():
    series = make_series("WAVE-USD", wave_closes(180))
    price = series.last.close
    levels = analyze_price_levels(series, lookback=180, as_of=AS_OF)

    assert not levels.is_new_pair
    assert 0 < len(levels.supports) <= 3
    assert 0 < len(levels.resistances) <= 3

    for level in levels.supports:
        assert level.type == LevelType.SUPPORT
        assert level.price < price
        assert level.touches >= 2
        assert 0 <= level.strength <= 100
    for level in levels.resistances:
        assert level.type == LevelType.RESISTANCE
        assert level.price > price

    strengths = [level.strength for level in levels.supports]
    assert strengths == sorted(strengths, reverse=True)

    assert levels.nearest_support < price < levels.nearest_resistance
    assert levels.broken_levels.broken_supports == []
    assert levels.broken_levels.broken_resistances == []


def test_grouping_tolerance():
    assert grouping_tolerance(100.0, 4.0) == 2.0
    assert grouping_tolerance(100.0, None) == pytest.approx(1.0)
    # Sub-cent assets always use 1% of price
    assert grouping_tolerance(0.005, 0.001) == pytest.approx(0.00005)


def test_psychological_levels():
    assert is_psychological_level(100.0)
    assert is_psychological_level(25_000.0)
    assert is_psychological_level(0.5)
    assert not is_psychological_level(137.0)
    assert not is_psychological_level(0.0)


def test_classify_touch():
    assert classify_touch(100.0, np.array([101.0, 104.0]), 2.0) == ("support", 2.0)
    assert classify_touch(100.0, np.array([99.0, 97.0]), 2.0) == ("resistance", 1.5)
    assert classify_touch(100.0, np.array([]), 2.0) == ("unknown", 0.0)


def test_fibonacci_levels_and_position():
    levels = fibonacci_levels(200.0, 100.0)
    by_ratio = {lvl.level: lvl.price for lvl in levels}
    assert by_ratio[0] == 100.0
    assert by_ratio[0.618] == pytest.approx(161.8)
    assert by_ratio[1.618] == pytest.approx(261.8)

    kind, description = fibonacci_position(150.0, levels)
    assert kind == "Retracement"
    assert description.startswith("Between 50.0% and 61.8%")

    kind, _ = fibonacci_position(250.0, levels)
    assert kind == "Extension"


def test_analyze_fibonacci_uses_recent_swing():
    analysis = analyze_fibonacci(make_series("WAVE-USD", wave_closes(60)), lookback=30)
    assert analysis.swing_high > analysis.swing_low
    assert len(analysis.levels) == 10
    assert analysis.position_type in {"Retracement", "Extension"}


def test_buckets_keep_their_ids_as_centers_move():
    highs = np.array([100.0, 100.4, 110.0])
    lows = np.array([99.8, 100.2, 109.0])
    closes = np.array([99.9, 100.3, 109.5])
    volumes = np.array([10.0, 30.0, 5.0])

    early = build_buckets(highs[:2], lows[:2], closes[:2], volumes[:2], tolerance=1.0, atr_value=1.0)
    buckets = build_buckets(highs, lows, closes, volumes, tolerance=1.0, atr_value=1.0)

    assert set(early) == {0}
    assert set(buckets) == {0, 1}
    assert all(key == bucket.bucket_id for key, bucket in buckets.items())

    first = buckets[0]
    assert first.touch_count == 4
    assert first.total_volume == pytest.approx(80.0)
    weighted = sum(t.price * t.volume for t in first.touches) / first.total_volume
    assert first.center == pytest.approx(weighted)
    assert first.center == pytest.approx(100.2)
    assert [t.index for t in first.touches] == [t.index for t in early[0].touches]
    assert buckets[1].center == pytest.approx(109.5)


def test_zero_volume_touches_average_plainly():
    bucket = PriceBucket(bucket_id=7, center=10.0)
    for index, price in enumerate((10.0, 11.0, 12.0)):
        bucket.add(Touch(index, price, 0.0, "unknown", 0.0))

    assert bucket.bucket_id == 7
    assert bucket.total_volume == 0.0
    assert bucket.center == pytest.approx(11.0)
