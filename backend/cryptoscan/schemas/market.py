"""
CONTRACT 1: Candle Data

Input: CandleStore.get_candles(pair, start_ts, end_ts)
Output: list[Candle] / CandleSeries

Daily OHLCV candles for one cryptocurrency pair. Candles for a pair are
unique per timestamp and sorted ascending; the store guarantees this.
"""

from typing import Iterable, Optional

import numpy as np
from pydantic import BaseModel, Field


# =============================================================================
# CANDLE
# =============================================================================


class Candle(BaseModel):
    """One daily OHLCV bar."""

    pair: str = Field(..., description="Trading pair, e.g. 'BTC-USD'")
    timestamp: int = Field(..., description="Unix seconds, start of the bar")
    open: float
    high: float
    low: float
    close: float
    volume: float = Field(..., ge=0, description="Volume in base units")

    class Config:
        frozen = True

    @property
    def volume_usd(self) -> float:
        return self.volume * self.close


# =============================================================================
# CANDLE SERIES
# =============================================================================


class CandleSeries:
    """
    Ordered, read-only view of candles for one pair.

    Exposes the OHLCV columns as read-only NumPy arrays for the indicator
    library. Derived on demand, never persisted.
    """

    def __init__(self, pair: str, candles: Iterable[Candle]):
        self.pair = pair
        self.candles: tuple[Candle, ...] = tuple(candles)

        self.timestamps = self._column(lambda c: c.timestamp, dtype=np.int64)
        self.opens = self._column(lambda c: c.open)
        self.highs = self._column(lambda c: c.high)
        self.lows = self._column(lambda c: c.low)
        self.closes = self._column(lambda c: c.close)
        self.volumes = self._column(lambda c: c.volume)
        self.volumes_usd = self._column(lambda c: c.volume * c.close)

    def _column(self, getter, dtype=float) -> np.ndarray:
        arr = np.array([getter(c) for c in self.candles], dtype=dtype)
        arr.setflags(write=False)
        return arr

    def __len__(self) -> int:
        return len(self.candles)

    def __bool__(self) -> bool:
        return len(self.candles) > 0

    def __iter__(self):
        return iter(self.candles)

    @property
    def last(self) -> Optional[Candle]:
        return self.candles[-1] if self.candles else None

    @property
    def previous(self) -> Optional[Candle]:
        return self.candles[-2] if len(self.candles) > 1 else None

    @property
    def first(self) -> Optional[Candle]:
        return self.candles[0] if self.candles else None

    def tail(self, n: int) -> "CandleSeries":
        """Last `n` candles as a new series."""
        if n <= 0:
            return CandleSeries(self.pair, ())
        return CandleSeries(self.pair, self.candles[-n:])

    def __repr__(self) -> str:
        return f"CandleSeries(pair={self.pair!r}, candles={len(self.candles)})"
