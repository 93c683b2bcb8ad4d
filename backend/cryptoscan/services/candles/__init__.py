"""
Candle Store

CONTRACT:
    get_candles(pair, start_ts, end_ts) -> list[Candle]  (ascending, unique timestamps)
    get_all_pairs() -> list[str]

Adapters: in-memory (tests, no database configured) and SQLite via SQLAlchemy.
"""

from cryptoscan.services.candles.interface import CandleStore
from cryptoscan.services.candles.memory import InMemoryCandleStore
from cryptoscan.services.candles.sql_store import SqlCandleStore, get_candle_store, set_candle_store

__all__ = [
    "CandleStore",
    "InMemoryCandleStore",
    "SqlCandleStore",
    "get_candle_store",
    "set_candle_store",
]
