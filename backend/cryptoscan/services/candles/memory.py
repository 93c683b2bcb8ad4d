"""
In-memory candle store.

Used by tests and by the application when no SQLite file is configured.
"""

import logging
from typing import Iterable

from cryptoscan.schemas.market import Candle
from cryptoscan.services.candles.interface import CandleStore

logger = logging.getLogger(__name__)


class InMemoryCandleStore(CandleStore):
    """Candles held per pair, keyed by timestamp (later writes win)."""

    def __init__(self, candles: Iterable[Candle] = ()):
        self._candles: dict[str, dict[int, Candle]] = {}
        self.add_candles(candles)

    def add_candles(self, candles: Iterable[Candle]) -> int:
        count = 0
        for candle in candles:
            self._candles.setdefault(candle.pair, {})[candle.timestamp] = candle
            count += 1
        if count:
            logger.debug(f"Stored {count} candles in memory")
        return count

    def clear(self) -> None:
        self._candles.clear()

    async def get_candles(self, pair: str, start_ts: int, end_ts: int) -> list[Candle]:
        by_timestamp = self._candles.get(pair, {})
        return [
            by_timestamp[ts]
            for ts in sorted(by_timestamp)
            if start_ts <= ts <= end_ts
        ]

    async def get_all_pairs(self) -> list[str]:
        return sorted(self._candles)
