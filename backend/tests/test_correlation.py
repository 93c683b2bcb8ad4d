"""
Tests for correlation statistics and the correlation service.
"""

import asyncio
import math

import numpy as np
import pytest
from scipy import stats

from cryptoscan.schemas.correlation import Significance
from cryptoscan.services.base import UpstreamFetchError
from cryptoscan.services.candles import InMemoryCandleStore
from cryptoscan.services.correlation import CorrelationService
from cryptoscan.services.correlation.service import AlignedPair
from cryptoscan.services.correlation.statistics import (
    annualized_volatility,
    correlation_p_value,
    pearson_correlation,
    significance_label,
    strength_label,
    t_statistic,
)

from conftest import AS_OF, make_candles, make_series


def _cycle(n=120, base=100.0, amplitude=5.0):
    return [base + amplitude * math.sin(i / 5) for i in range(n)]


# =============================================================================
# STATISTICS
# =============================================================================


def test_pearson_self_and_symmetry():
    rng = np.random.default_rng(3)
    x = rng.normal(size=50)
    y = 0.5 * x + rng.normal(size=50)

    assert pearson_correlation(x, x) == pytest.approx(1.0)
    assert pearson_correlation(x, -x) == pytest.approx(-1.0)
    assert pearson_correlation(x, y) == pytest.approx(pearson_correlation(y, x))
    assert -1.0 <= pearson_correlation(x, y) <= 1.0


def test_pearson_constant_series_is_zero():
    assert pearson_correlation([5.0] * 10, list(range(10))) == 0.0
    assert pearson_correlation([1.0], [2.0]) == 0.0


def test_weighted_pearson_with_uniform_weights_matches_unweighted():
    rng = np.random.default_rng(5)
    x, y = rng.normal(size=30), rng.normal(size=30)
    assert pearson_correlation(x, y, np.full(30, 7.0)) == pytest.approx(pearson_correlation(x, y))


def test_p_value_agrees_with_pearsonr():
    rng = np.random.default_rng(11)
    for n in (8, 30, 90):
        x = rng.normal(size=n)
        y = 0.4 * x + rng.normal(size=n)
        expected = stats.pearsonr(x, y).pvalue
        assert correlation_p_value(pearson_correlation(x, y), n) == pytest.approx(expected, rel=1e-9)


def test_p_value_matches_student_t():
    # r = 0.5 over 10 points: t = 1.633 with 8 degrees of freedom
    assert t_statistic(0.5, 10) == pytest.approx(1.63299, rel=1e-4)
    assert correlation_p_value(0.5, 10) == pytest.approx(0.1411, abs=2e-3)
    assert correlation_p_value(0.0, 30) == pytest.approx(1.0)
    assert correlation_p_value(1.0, 30) == 0.0
    assert correlation_p_value(0.9, 2) == 1.0


def test_labels():
    assert significance_label(0.001) == "High"
    assert significance_label(0.03) == "Medium"
    assert significance_label(0.2) == "Low"
    assert strength_label(-0.95) == "Very Strong"
    assert strength_label(0.75) == "Strong"
    assert strength_label(0.1) == "Very Weak"


def test_annualized_volatility():
    assert annualized_volatility([100.0] * 20) == 0.0
    assert annualized_volatility([100.0]) == 0.0
    # log returns [l, -l, l] have mean l/3, so the population std is l * sqrt(8/9)
    expected = math.log(1.1) * math.sqrt(8 / 9) * math.sqrt(252)
    assert annualized_volatility([100.0, 110.0, 100.0, 110.0]) == pytest.approx(expected)


def test_aligned_pair_keeps_common_timestamps_only():
    first = make_series("A-USD", [1.0, 2.0, 3.0, 4.0], end_ts=AS_OF)
    second = make_series("B-USD", [10.0, 20.0, 30.0], end_ts=AS_OF - 86_400)
    aligned = AlignedPair(first, second)
    assert len(aligned) == 3
    assert list(aligned.closes_a) == [1.0, 2.0, 3.0]
    assert list(aligned.closes_b) == [10.0, 20.0, 30.0]


# =============================================================================
# SERVICE
# =============================================================================


@pytest.fixture
def correlated_store():
    closes = _cycle()
    store = InMemoryCandleStore()
    store.add_candles(make_candles("AAA-USD", closes, volumes=10_000.0))
    store.add_candles(make_candles("BBB-USD", closes, volumes=10_000.0))
    store.add_candles(make_candles("INV-USD", [200 - c for c in closes], volumes=10_000.0))
    store.add_candles(make_candles("THIN-USD", closes, volumes=10.0))
    return store


def test_identical_pairs_are_highly_correlated(correlated_store, settings):
    service = CorrelationService(correlated_store, settings)
    records = asyncio.run(
        service.analyze_correlations(["AAA-USD", "BBB-USD"], timeframe_days=30, as_of=AS_OF)
    )

    assert len(records) == 1
    record = records[0]
    assert record.correlation == pytest.approx(1.0)
    assert record.p_value == pytest.approx(0.0, abs=1e-9)
    assert record.significance == Significance.HIGH
    assert record.strength == "Very Strong"
    assert record.data_points == 30
    assert record.timeframe_correlations.d7 == pytest.approx(1.0)
    assert record.timeframe_correlations.d90 == pytest.approx(1.0)
    assert record.average_daily_volume > settings.correlation_min_volume_usd


def test_volume_floor_excludes_thin_pairs(correlated_store, settings):
    service = CorrelationService(correlated_store, settings)
    records = asyncio.run(
        service.analyze_correlations(["AAA-USD", "BBB-USD", "THIN-USD"], as_of=AS_OF)
    )

    assert len(records) == 1
    assert "THIN-USD" not in {records[0].pair_a, records[0].pair_b}


def test_records_sorted_by_significance_then_magnitude(correlated_store, settings):
    service = CorrelationService(correlated_store, settings)
    records = asyncio.run(
        service.analyze_correlations(["AAA-USD", "BBB-USD", "INV-USD"], as_of=AS_OF)
    )

    assert len(records) == 3
    assert all(rec.significance == Significance.HIGH for rec in records)
    inverse = [rec for rec in records if "INV-USD" in (rec.pair_a, rec.pair_b)]
    assert all(rec.correlation == pytest.approx(-1.0) for rec in inverse)
    magnitudes = [abs(rec.correlation) for rec in records]
    assert magnitudes == sorted(magnitudes, reverse=True)


def test_short_overlap_produces_no_record(settings):
    store = InMemoryCandleStore()
    store.add_candles(make_candles("AAA-USD", _cycle(5), volumes=10_000.0))
    store.add_candles(make_candles("BBB-USD", _cycle(5), volumes=10_000.0))
    service = CorrelationService(store, settings)

    assert asyncio.run(service.analyze_correlations(["AAA-USD", "BBB-USD"], as_of=AS_OF)) == []


def test_missing_timeframes_are_none(settings):
    store = InMemoryCandleStore()
    store.add_candles(make_candles("AAA-USD", _cycle(20), volumes=10_000.0))
    store.add_candles(make_candles("BBB-USD", _cycle(20), volumes=10_000.0))
    service = CorrelationService(store, settings)

    records = asyncio.run(service.analyze_correlations(["AAA-USD", "BBB-USD"], as_of=AS_OF))
    assert len(records) == 1
    assert records[0].data_points == 20
    assert records[0].timeframe_correlations.d7 is not None
    assert records[0].timeframe_correlations.d30 is None
    assert records[0].timeframe_correlations.d90 is None


class _FlakyStore(InMemoryCandleStore):
    async def get_candles(self, pair, start_ts, end_ts):
        if pair == "DOWN-USD":
            raise UpstreamFetchError("FlakyStore", "connection reset")
        return await super().get_candles(pair, start_ts, end_ts)


def test_upstream_failure_skips_pair(settings):
    store = _FlakyStore()
    for pair in ("AAA-USD", "BBB-USD"):
        store.add_candles(make_candles(pair, _cycle(), volumes=10_000.0))
    service = CorrelationService(store, settings)

    records = asyncio.run(
        service.analyze_correlations(["AAA-USD", "DOWN-USD", "BBB-USD", "NONE-USD"], as_of=AS_OF)
    )
    assert len(records) == 1
    assert {records[0].pair_a, records[0].pair_b} == {"AAA-USD", "BBB-USD"}
