"""
Database connection and session management.

Uses SQLite with aiosqlite for async support.
"""

import logging
import os
from datetime import datetime
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable

from sqlalchemy import distinct, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from cryptoscan.core.config import settings
from cryptoscan.db.models import Base, CandleRecord

logger = logging.getLogger(__name__)


def database_url(sqlite_path: str) -> str:
    """aiosqlite URL; ':memory:' keeps the database in-process."""
    if sqlite_path == ":memory:":
        return "sqlite+aiosqlite:///:memory:"
    directory = os.path.dirname(os.path.abspath(sqlite_path))
    os.makedirs(directory, exist_ok=True)
    return f"sqlite+aiosqlite:///{sqlite_path}"


def create_engine(sqlite_path: str) -> AsyncEngine:
    # SQLite requires check_same_thread=False for async
    return create_async_engine(
        database_url(sqlite_path),
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def create_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Database path - data directory is created on first use
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "data")
SQLITE_PATH = settings.sqlite_path or os.path.join(DATA_DIR, "cryptoscan.db")
engine = create_engine(SQLITE_PATH)
AsyncSessionLocal = create_session_factory(engine)


async def init_db(db_engine: AsyncEngine = None) -> None:
    """
    Initialize the database - create all tables.
    Called on application startup.
    """
    db_engine = db_engine or engine
    try:
        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database initialized at: {db_engine.url}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db(db_engine: AsyncEngine = None) -> None:
    """
    Close database connections.
    Called on application shutdown.
    """
    await (db_engine or engine).dispose()
    logger.info("Database connections closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.
    Use with FastAPI Depends().
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context(
    session_factory: async_sessionmaker[AsyncSession] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.
    Use when not in a FastAPI route.
    """
    factory = session_factory or AsyncSessionLocal
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# CRUD helper functions

# Rows per INSERT; 7 bound parameters each stays under SQLite's variable limit
UPSERT_BATCH_SIZE = 500


async def upsert_candles(
    session: AsyncSession, rows: Iterable[dict], batch_size: int = UPSERT_BATCH_SIZE
) -> int:
    """
    Insert candles, overwriting OHLCV of an existing (pair, timestamp).

    Args:
        rows: dicts with pair, timestamp, open, high, low, close, volume
        batch_size: rows per INSERT statement

    Returns:
        Number of rows written
    """
    rows = list(rows)
    if not rows:
        return 0

    for start in range(0, len(rows), batch_size):
        stmt = sqlite_insert(CandleRecord).values(rows[start : start + batch_size])
        stmt = stmt.on_conflict_do_update(
            index_elements=["pair", "timestamp"],
            set_={
                "open": stmt.excluded.open,
                "high": stmt.excluded.high,
                "low": stmt.excluded.low,
                "close": stmt.excluded.close,
                "volume": stmt.excluded.volume,
                "last_updated": datetime.utcnow(),
            },
        )
        await session.execute(stmt)
    await session.flush()
    return len(rows)


async def get_candle_rows(
    session: AsyncSession, pair: str, start_ts: int, end_ts: int
) -> list[CandleRecord]:
    """Candles for `pair` with start_ts <= timestamp <= end_ts, ascending."""
    result = await session.execute(
        select(CandleRecord)
        .where(
            CandleRecord.pair == pair,
            CandleRecord.timestamp >= start_ts,
            CandleRecord.timestamp <= end_ts,
        )
        .order_by(CandleRecord.timestamp.asc())
    )
    return list(result.scalars().all())


async def get_distinct_pairs(session: AsyncSession) -> list[str]:
    result = await session.execute(
        select(distinct(CandleRecord.pair)).order_by(CandleRecord.pair)
    )
    return [row[0] for row in result.all()]
