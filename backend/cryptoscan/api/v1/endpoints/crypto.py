"""
Crypto Analysis API Endpoints

Endpoints for pair analysis, market summary, correlations and trend changes.
"""

import logging
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from cryptoscan.schemas.analysis import PairAnalysis
from cryptoscan.schemas.correlation import CorrelationRecord, Significance
from cryptoscan.schemas.market import Candle
from cryptoscan.schemas.summary import AnalysisBatch, MarketSummary
from cryptoscan.schemas.trends import TrendChangeEvent
from cryptoscan.services.analyzer import PairAnalyzer, get_pair_analyzer
from cryptoscan.services.base import MissingPairDataError, UpstreamFetchError
from cryptoscan.services.candles import CandleStore, get_candle_store
from cryptoscan.services.correlation import CorrelationService, get_correlation_service
from cryptoscan.services.trends import TrendMonitor, get_trend_monitor

logger = logging.getLogger(__name__)

router = APIRouter()


class SignificanceFilter(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


async def _all_pairs(analyzer: PairAnalyzer) -> list[str]:
    try:
        return await analyzer.get_all_pairs()
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.get("/pairs", response_model=AnalysisBatch)
async def analyze_pairs(
    limit: Optional[int] = Query(default=None, ge=1, description="Analyze only the first N pairs"),
    analyzer: PairAnalyzer = Depends(get_pair_analyzer),
):
    """
    Analyze the pairs in the candle store.

    Returns one analysis per pair with data plus the market summary.
    """
    pairs = await _all_pairs(analyzer)
    if limit is not None:
        pairs = pairs[:limit]

    logger.info(f"Analyzing {len(pairs)} pairs")
    return await analyzer.analyze_pairs(pairs)


@router.get("/pairs/{pair}/history", response_model=list[Candle])
async def get_pair_history(
    pair: str,
    start: int = Query(..., description="Start, unix seconds"),
    end: int = Query(..., description="End, unix seconds"),
    store: CandleStore = Depends(get_candle_store),
):
    """Raw daily candles for a pair in [start, end]."""
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    try:
        return await store.get_candles(pair.upper(), start, end)
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.get("/pair/{pair}/indicators", response_model=PairAnalysis)
async def get_pair_indicators(
    pair: str,
    analyzer: PairAnalyzer = Depends(get_pair_analyzer),
):
    """Full indicator analysis for a single pair."""
    pair = pair.upper()
    if pair not in await _all_pairs(analyzer):
        raise HTTPException(status_code=404, detail=f"Pair not found: {pair}")

    try:
        return await analyzer.analyze_pair(pair)
    except MissingPairDataError:
        raise HTTPException(status_code=404, detail=f"Analysis not available for {pair}")
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail=e.message)


@router.get("/market/summary", response_model=MarketSummary)
async def get_market_summary(analyzer: PairAnalyzer = Depends(get_pair_analyzer)):
    """Market breadth, sentiment and top movers across all pairs."""
    pairs = await _all_pairs(analyzer)
    batch = await analyzer.analyze_pairs(pairs)
    return batch.market_summary


@router.get("/market/correlations", response_model=list[CorrelationRecord])
async def get_market_correlations(
    period: Optional[int] = Query(default=None, ge=7, le=90, description="Canonical window in days"),
    limit: int = Query(default=20, ge=2, description="Correlate at most N pairs (top by USD volume)"),
    volume_weighted: bool = Query(default=False),
    analyzer: PairAnalyzer = Depends(get_pair_analyzer),
    correlation_service: CorrelationService = Depends(get_correlation_service),
):
    """
    Pairwise correlations.

    With more pairs than `limit`, the `limit` pairs with the highest
    current USD volume are used.
    """
    pairs = await _all_pairs(analyzer)
    if len(pairs) > limit:
        batch = await analyzer.analyze_pairs(pairs)
        ranked = sorted(batch.pairs, key=lambda a: a.current_volume_usd, reverse=True)
        pairs = [a.pair for a in ranked[:limit]]

    return await correlation_service.analyze_correlations(
        pairs, timeframe_days=period, volume_weighted=volume_weighted
    )


@router.get("/trends", response_model=list[TrendChangeEvent])
async def get_trend_changes(
    significance: Optional[SignificanceFilter] = Query(default=None, description="Minimum significance"),
    analyzer: PairAnalyzer = Depends(get_pair_analyzer),
    monitor: TrendMonitor = Depends(get_trend_monitor),
):
    """
    Trend changes since the previous call.

    `significance=high` keeps High events; `medium` keeps High and Medium.
    """
    pairs = await _all_pairs(analyzer)
    events = await monitor.monitor_trends(pairs)

    if significance is not None:
        if significance == SignificanceFilter.HIGH:
            events = [e for e in events if e.significance == Significance.HIGH]
        elif significance == SignificanceFilter.MEDIUM:
            events = [e for e in events if e.significance != Significance.LOW]
    return events
