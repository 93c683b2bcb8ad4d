"""
Correlation Service

Pairwise Pearson correlation of daily closes across pairs, over 7/30/90-day
windows, with p-values, significance buckets and volatility adjustment.
"""

import asyncio
import logging
import time
from itertools import combinations
from typing import Optional

import numpy as np

from cryptoscan.core.config import Settings, get_settings
from cryptoscan.schemas.correlation import (
    SIGNIFICANCE_RANK,
    CorrelationRecord,
    Significance,
    TimeframeCorrelations,
)
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.services.base import UpstreamFetchError
from cryptoscan.services.candles.interface import CandleStore
from cryptoscan.services.candles.sql_store import get_candle_store
from cryptoscan.services.correlation.statistics import (
    annualized_volatility,
    correlation_p_value,
    pearson_correlation,
    significance_label,
    strength_label,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
MIN_OVERLAP = 7
TIMEFRAMES = (7, 30, 90)


class AlignedPair:
    """Two series restricted to their common timestamps."""

    def __init__(self, first: CandleSeries, second: CandleSeries):
        common, idx_a, idx_b = np.intersect1d(
            first.timestamps, second.timestamps, assume_unique=True, return_indices=True
        )
        self.pair_a = first.pair
        self.pair_b = second.pair
        self.timestamps = common
        self.closes_a = first.closes[idx_a]
        self.closes_b = second.closes[idx_b]
        self.volumes_a = first.volumes_usd[idx_a]
        self.volumes_b = second.volumes_usd[idx_b]

    def __len__(self) -> int:
        return len(self.timestamps)


class CorrelationService:
    """
    Correlation engine over the candle store.

    Usage:
        service = CorrelationService(store)
        records = await service.analyze_correlations(["BTC-USD", "ETH-USD"])
    """

    def __init__(self, store: CandleStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    @property
    def name(self) -> str:
        return "CorrelationService"

    async def _load_series(self, pairs: list[str], as_of: int) -> dict[str, CandleSeries]:
        start_ts = as_of - self.settings.correlation_history_days * SECONDS_PER_DAY

        results = await asyncio.gather(
            *(self.store.get_candles(pair, start_ts, as_of) for pair in pairs),
            return_exceptions=True,
        )

        loaded = {}
        for pair, result in zip(pairs, results):
            if isinstance(result, UpstreamFetchError):
                logger.warning(f"Skipping {pair} in correlation: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            if not result:
                logger.debug(f"No candles for {pair}; excluded from correlation")
                continue
            loaded[pair] = CandleSeries(pair, result)
        return loaded

    def correlate(
        self,
        aligned: AlignedPair,
        timeframe_days: int = 30,
        volume_weighted: bool = False,
    ) -> Optional[CorrelationRecord]:
        """Correlation record for one aligned pair, or None when filtered out."""
        n = len(aligned)
        if n < MIN_OVERLAP:
            return None

        window = min(max(timeframe_days, MIN_OVERLAP), n)
        volume_a = float(np.mean(aligned.volumes_a[-window:]))
        volume_b = float(np.mean(aligned.volumes_b[-window:]))
        min_volume = self.settings.correlation_min_volume_usd
        if volume_a < min_volume or volume_b < min_volume:
            logger.debug(
                f"{aligned.pair_a}/{aligned.pair_b} below volume floor "
                f"({volume_a:,.0f} / {volume_b:,.0f})"
            )
            return None

        def window_correlation(size: int) -> float:
            weights = None
            if volume_weighted:
                weights = np.sqrt(aligned.volumes_a[-size:] * aligned.volumes_b[-size:])
            return pearson_correlation(
                aligned.closes_a[-size:], aligned.closes_b[-size:], weights
            )

        by_timeframe = {
            f"d{days}": window_correlation(days) if n >= days else None
            for days in TIMEFRAMES
        }

        r = window_correlation(window)
        p_value = correlation_p_value(r, window)

        volatility = (
            annualized_volatility(aligned.closes_a[-window:])
            + annualized_volatility(aligned.closes_b[-window:])
        ) / 2

        return CorrelationRecord(
            pair_a=aligned.pair_a,
            pair_b=aligned.pair_b,
            correlation=r,
            p_value=p_value,
            significance=Significance(significance_label(p_value)),
            strength=strength_label(r),
            timeframe_correlations=TimeframeCorrelations(**by_timeframe),
            volatility=volatility,
            volatility_adjusted_correlation=r * (1 - min(volatility, 1.0)),
            average_daily_volume=(volume_a + volume_b) / 2,
            data_points=window,
            volume_weighted=volume_weighted,
        )

    async def analyze_correlations(
        self,
        pairs: list[str],
        timeframe_days: Optional[int] = None,
        volume_weighted: bool = False,
        as_of: Optional[int] = None,
    ) -> list[CorrelationRecord]:
        """
        Correlate every unordered pair of `pairs`.

        Args:
            pairs: Symbols to correlate; duplicates are ignored
            timeframe_days: Canonical window for `correlation` and `p_value`;
                defaults to settings.correlation_default_timeframe
            volume_weighted: Weight points by sqrt(volume_a * volume_b)
            as_of: End of the history window (unix seconds), default now

        Returns:
            Records sorted by significance (High first), then |correlation| descending
        """
        as_of = as_of if as_of is not None else int(time.time())
        timeframe_days = timeframe_days or self.settings.correlation_default_timeframe
        unique_pairs = list(dict.fromkeys(pairs))
        series = await self._load_series(unique_pairs, as_of)

        records = []
        for pair_a, pair_b in combinations([p for p in unique_pairs if p in series], 2):
            record = self.correlate(
                AlignedPair(series[pair_a], series[pair_b]), timeframe_days, volume_weighted
            )
            if record is not None:
                records.append(record)

        records.sort(
            key=lambda rec: (SIGNIFICANCE_RANK[rec.significance], -abs(rec.correlation))
        )
        logger.info(
            f"Correlated {len(series)} pairs into {len(records)} records "
            f"(timeframe={timeframe_days}d, weighted={volume_weighted})"
        )
        return records


# Singleton instance
_correlation_service: Optional[CorrelationService] = None


def get_correlation_service() -> CorrelationService:
    """Get or create the correlation service singleton."""
    global _correlation_service
    if _correlation_service is None:
        _correlation_service = CorrelationService(get_candle_store())
    return _correlation_service
