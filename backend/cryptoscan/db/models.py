"""
SQLAlchemy models for the cryptoscan candle store.

Uses SQLite for local persistence of daily OHLCV candles, keyed by
pair + timestamp (unix seconds, UTC midnight).
"""

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class CandleRecord(Base):
    """
    One daily OHLCV candle.
    Unique per (pair, timestamp); the current day is upserted during live updates.
    """
    __tablename__ = "candles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pair = Column(String(32), nullable=False, index=True)
    timestamp = Column(Integer, nullable=False)
    open = Column(Float, nullable=False)
    high = Column(Float, nullable=False)
    low = Column(Float, nullable=False)
    close = Column(Float, nullable=False)
    volume = Column(Float, nullable=False, default=0.0)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_candles_pair_timestamp", "pair", "timestamp", unique=True),
    )

    def __repr__(self) -> str:
        return f"<CandleRecord {self.pair} @ {self.timestamp} close={self.close}>"
