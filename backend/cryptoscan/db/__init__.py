"""
Database module for cryptoscan.

Provides the SQLite candle store connection and models.
"""

from cryptoscan.db.database import (
    AsyncSessionLocal,
    close_db,
    create_engine,
    create_session_factory,
    get_db,
    get_db_context,
    init_db,
)
from cryptoscan.db.models import Base, CandleRecord

__all__ = [
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
    "create_engine",
    "create_session_factory",
    "AsyncSessionLocal",
    "Base",
    "CandleRecord",
]
