"""
Trend snapshot stores.

Hold the last PairAnalysis per pair between trend-monitor runs.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cryptoscan.schemas.analysis import PairAnalysis


class TrendSnapshotStore(ABC):
    """Last analysis per pair; `set` overwrites."""

    @abstractmethod
    def get(self, pair: str) -> Optional[PairAnalysis]:
        pass

    @abstractmethod
    def set(self, pair: str, analysis: PairAnalysis) -> None:
        pass


class InMemoryTrendSnapshotStore(TrendSnapshotStore):
    def __init__(self):
        self._snapshots: dict[str, PairAnalysis] = {}

    def get(self, pair: str) -> Optional[PairAnalysis]:
        return self._snapshots.get(pair)

    def set(self, pair: str, analysis: PairAnalysis) -> None:
        self._snapshots[pair] = analysis

    def clear(self) -> None:
        self._snapshots.clear()

    def __len__(self) -> int:
        return len(self._snapshots)
