"""
SQLite candle store.

Reads candles through the SQLAlchemy async session factory. Driver errors
are wrapped into UpstreamFetchError so the analyzer treats them as missing
data for that pair.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cryptoscan.db.database import (
    AsyncSessionLocal,
    get_candle_rows,
    get_db_context,
    get_distinct_pairs,
    upsert_candles,
)
from cryptoscan.db.models import CandleRecord
from cryptoscan.schemas.market import Candle
from cryptoscan.services.base import UpstreamFetchError
from cryptoscan.services.candles.interface import CandleStore

logger = logging.getLogger(__name__)


def _to_candle(row: CandleRecord) -> Candle:
    return Candle(
        pair=row.pair,
        timestamp=row.timestamp,
        open=row.open,
        high=row.high,
        low=row.low,
        close=row.close,
        volume=row.volume,
    )


class SqlCandleStore(CandleStore):
    """Candle store backed by the `candles` table."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory or AsyncSessionLocal

    async def get_candles(self, pair: str, start_ts: int, end_ts: int) -> list[Candle]:
        try:
            async with get_db_context(self._session_factory) as session:
                rows = await get_candle_rows(session, pair, start_ts, end_ts)
        except SQLAlchemyError as e:
            logger.error(f"Candle query failed for {pair}: {e}")
            raise UpstreamFetchError(
                self.name, f"Could not read candles for {pair}", {"error": str(e)}
            ) from e
        return [_to_candle(row) for row in rows]

    async def get_all_pairs(self) -> list[str]:
        try:
            async with get_db_context(self._session_factory) as session:
                return await get_distinct_pairs(session)
        except SQLAlchemyError as e:
            logger.error(f"Pair listing failed: {e}")
            raise UpstreamFetchError(self.name, "Could not list pairs", {"error": str(e)}) from e

    async def save_candles(self, candles: Iterable[Candle]) -> int:
        """Upsert candles; same (pair, timestamp) overwrites OHLCV."""
        rows = [candle.model_dump() for candle in candles]
        try:
            async with get_db_context(self._session_factory) as session:
                written = await upsert_candles(session, rows)
        except SQLAlchemyError as e:
            logger.error(f"Candle upsert failed: {e}")
            raise UpstreamFetchError(self.name, "Could not save candles", {"error": str(e)}) from e
        logger.debug(f"Upserted {written} candles")
        return written


# Singleton instance
_candle_store: Optional[CandleStore] = None


def get_candle_store() -> CandleStore:
    """Get or create the process-wide candle store (SQLite by default)."""
    global _candle_store
    if _candle_store is None:
        _candle_store = SqlCandleStore()
    return _candle_store


def set_candle_store(store: Optional[CandleStore]) -> None:
    """Replace the process-wide candle store; None resets to the default."""
    global _candle_store
    _candle_store = store
