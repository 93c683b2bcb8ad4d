"""
Trend Monitor

Diffs each pair's analysis against the previous run and emits discrete
trend-change events: MACD trend flips, RSI crossing 30/70, large price
moves and EMA50/EMA200 golden/death crosses.
"""

import asyncio
import logging
import time
from typing import Optional

from cryptoscan.schemas.analysis import PairAnalysis
from cryptoscan.schemas.correlation import Significance
from cryptoscan.schemas.indicators import EMACross
from cryptoscan.schemas.trends import TrendChangeEvent, TrendIndicator
from cryptoscan.services.analyzer.interface import PairAnalyzerInterface
from cryptoscan.services.analyzer.service import get_pair_analyzer
from cryptoscan.services.indicators.safe import is_finite, pct_change
from cryptoscan.services.trends.store import InMemoryTrendSnapshotStore, TrendSnapshotStore

logger = logging.getLogger(__name__)

RSI_LEVELS = (30, 70)
PRICE_MOVE_PERCENT = 5
LARGE_PRICE_MOVE_PERCENT = 10


def _crossed(previous: float, current: float, level: float) -> bool:
    return (previous < level) != (current < level)


def macd_trend_significance(new_label: str) -> Significance:
    if "Strong" in new_label:
        return Significance.HIGH
    if "Weak" in new_label:
        return Significance.MEDIUM
    return Significance.LOW


def diff_analyses(
    previous: PairAnalysis, current: PairAnalysis, timestamp: int
) -> list[TrendChangeEvent]:
    """Trend-change events between two analyses of the same pair."""
    events = []

    def emit(indicator: TrendIndicator, old: str, new: str, significance: Significance):
        events.append(
            TrendChangeEvent(
                pair=current.pair,
                indicator=indicator,
                previous_value=old,
                new_value=new,
                significance=significance,
                timestamp=timestamp,
            )
        )

    old_trend = previous.indicators.macd_trend.value
    new_trend = current.indicators.macd_trend.value
    if old_trend != new_trend:
        emit(TrendIndicator.MACD_TREND, old_trend, new_trend, macd_trend_significance(new_trend))

    old_rsi, new_rsi = previous.indicators.rsi, current.indicators.rsi
    if is_finite(old_rsi) and is_finite(new_rsi):
        if any(_crossed(old_rsi, new_rsi, level) for level in RSI_LEVELS):
            emit(TrendIndicator.RSI, f"{old_rsi:.2f}", f"{new_rsi:.2f}", Significance.MEDIUM)

    move = pct_change(current.current_price, previous.current_price)
    if abs(move) > PRICE_MOVE_PERCENT:
        emit(
            TrendIndicator.PRICE,
            f"{previous.current_price}",
            f"{current.current_price}",
            Significance.HIGH if abs(move) > LARGE_PRICE_MOVE_PERCENT else Significance.MEDIUM,
        )

    old_cross = previous.indicators.moving_averages.ema_cross
    new_cross = current.indicators.moving_averages.ema_cross
    if (
        old_cross != new_cross
        and EMACross.INSUFFICIENT_DATA not in (old_cross, new_cross)
    ):
        emit(TrendIndicator.EMA_CROSS, old_cross.value, new_cross.value, Significance.HIGH)

    return events


class TrendMonitor:
    """
    Trend monitor over successive analyzer runs.

    The snapshot store is injected; runs are serialized so the store has a
    single writer. The first observation of a pair only sets its baseline.
    """

    def __init__(
        self,
        analyzer: PairAnalyzerInterface,
        store: Optional[TrendSnapshotStore] = None,
    ):
        self.analyzer = analyzer
        self.store = store if store is not None else InMemoryTrendSnapshotStore()
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "TrendMonitor"

    async def monitor_trends(
        self, pairs: list[str], as_of: Optional[int] = None
    ) -> list[TrendChangeEvent]:
        """Analyze `pairs`, diff against stored snapshots, then overwrite them."""
        async with self._lock:
            timestamp = as_of if as_of is not None else int(time.time())
            batch = await self.analyzer.analyze_pairs(pairs, as_of)

            events = []
            for analysis in batch.pairs:
                previous = self.store.get(analysis.pair)
                if previous is not None:
                    events.extend(diff_analyses(previous, analysis, timestamp))
                self.store.set(analysis.pair, analysis)

            if events:
                logger.info(f"{len(events)} trend changes across {len(batch.pairs)} pairs")
            return events


# Singleton instance
_monitor_instance: Optional[TrendMonitor] = None


def get_trend_monitor() -> TrendMonitor:
    """Get or create trend monitor instance."""
    global _monitor_instance
    if _monitor_instance is None:
        _monitor_instance = TrendMonitor(get_pair_analyzer())
    return _monitor_instance
