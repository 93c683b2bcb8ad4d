"""
Trend Monitor

CONTRACT:
    Input:  pair symbols (analyzed on every call)
    Output: list[TrendChangeEvent] vs the previous call

State lives in an injected TrendSnapshotStore (in-memory by default).
"""

from cryptoscan.services.trends.monitor import TrendMonitor, diff_analyses, get_trend_monitor
from cryptoscan.services.trends.store import InMemoryTrendSnapshotStore, TrendSnapshotStore

__all__ = [
    "TrendMonitor",
    "diff_analyses",
    "get_trend_monitor",
    "TrendSnapshotStore",
    "InMemoryTrendSnapshotStore",
]
