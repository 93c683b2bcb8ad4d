"""
Shared fixtures and synthetic candle builders for tests.
"""

import math
import os
import time

# Keep the module-level engine off the filesystem
os.environ.setdefault("SQLITE_PATH", ":memory:")

import pytest

from cryptoscan.core.config import Settings
from cryptoscan.schemas.analysis import PairAnalysis, VolumeAnalysis
from cryptoscan.schemas.indicators import IndicatorSnapshot, MACDTrend
from cryptoscan.schemas.market import Candle, CandleSeries
from cryptoscan.services.candles import InMemoryCandleStore
from cryptoscan.services.levels.price_levels import new_pair_levels

DAY = 86_400
AS_OF = 1_735_689_600  # 2025-01-01 00:00 UTC


def today_ts() -> int:
    """UTC midnight of the current day."""
    return int(time.time()) // DAY * DAY


def make_candles(pair, closes, volumes=1000.0, end_ts=AS_OF, spread=0.01):
    """
    Daily candles ending at `end_ts`.

    open = previous close, high/low = close +/- `spread`.
    `volumes` is a scalar or one value per close.
    """
    n = len(closes)
    if not isinstance(volumes, (list, tuple)):
        volumes = [volumes] * n

    candles = []
    for i, close in enumerate(closes):
        open_ = closes[i - 1] if i > 0 else close
        candles.append(
            Candle(
                pair=pair,
                timestamp=end_ts - (n - 1 - i) * DAY,
                open=open_,
                high=max(open_, close) * (1 + spread),
                low=min(open_, close) * (1 - spread),
                close=close,
                volume=volumes[i],
            )
        )
    return candles


def make_series(pair, closes, **kwargs) -> CandleSeries:
    return CandleSeries(pair, make_candles(pair, closes, **kwargs))


def uptrend_closes(n=250, start=100.0, step=0.01):
    return [start * (1 + step) ** i for i in range(n)]


def downtrend_closes(n=250, start=100.0, step=0.01):
    return [start * (1 - step) ** i for i in range(n)]


def wave_closes(n=180, base=100.0, amplitude=10.0, period=20):
    return [base + amplitude * math.sin(2 * math.pi * i / period) for i in range(n)]


def make_analysis(
    pair,
    daily_change=0.0,
    rsi=None,
    macd_trend=MACDTrend.INSUFFICIENT_DATA,
    price=100.0,
    volume_usd=1000.0,
    vma_7=None,
) -> PairAnalysis:
    """Minimal PairAnalysis for aggregation and diff tests."""
    return PairAnalysis(
        pair=pair,
        timestamp=AS_OF,
        current_price=price,
        current_volume_usd=volume_usd,
        daily_change=daily_change,
        all_time_high=price * 2,
        all_time_low=price / 2,
        percent_from_high=-50.0,
        percent_from_low=100.0,
        indicators=IndicatorSnapshot(rsi=rsi, macd_trend=macd_trend),
        price_levels=new_pair_levels(price),
        volume_analysis=VolumeAnalysis(vma_7=vma_7),
    )


@pytest.fixture
def settings():
    return Settings(sqlite_path=":memory:")


@pytest.fixture
def store():
    return InMemoryCandleStore()


@pytest.fixture
def uptrend_store(store):
    store.add_candles(make_candles("XYZ-USD", uptrend_closes()))
    return store
