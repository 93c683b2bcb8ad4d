"""
Candle Store Interface

Defines the contract for the external time-series store the analysis core
reads from.
"""

from abc import ABC, abstractmethod

from cryptoscan.schemas.market import Candle


class CandleStore(ABC):
    """
    Candle Store Contract.

    get_candles:
        - pair: symbol, e.g. "BTC-USD"
        - start_ts / end_ts: inclusive unix-second bounds
        - returns candles sorted ascending by timestamp, one per timestamp

    get_all_pairs:
        - distinct symbols present in the store
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def get_candles(self, pair: str, start_ts: int, end_ts: int) -> list[Candle]:
        """Candles for `pair` in [start_ts, end_ts]."""
        pass

    @abstractmethod
    async def get_all_pairs(self) -> list[str]:
        """Distinct pair symbols."""
        pass

    async def health_check(self) -> bool:
        try:
            await self.get_all_pairs()
            return True
        except Exception:
            return False
