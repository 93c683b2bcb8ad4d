"""
Pair Analyzer Service Implementation

For each pair: read the short and long candle windows, run the indicator
library, price-level analyzer, scorer and pump/dump detector, and assemble
one PairAnalysis. Failures are contained per pair.
"""

import asyncio
import logging
import time
from typing import Optional

import numpy as np

from cryptoscan.core.config import Settings, get_settings
from cryptoscan.schemas.analysis import PairAnalysis
from cryptoscan.schemas.indicators import IndicatorSnapshot, LocalExtremaLevel, MovingAverages
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.schemas.summary import AnalysisBatch
from cryptoscan.services.analyzer.interface import PairAnalyzerInterface
from cryptoscan.services.base import MissingPairDataError, UpstreamFetchError
from cryptoscan.services.candles.interface import CandleStore
from cryptoscan.services.candles.sql_store import get_candle_store
from cryptoscan.services.indicators.calculations import (
    atr,
    cci,
    ema,
    find_support_resistance,
    historical_volatility,
    mfi,
    obv,
    roc,
    rsi,
    sma,
    volume_oscillator,
    williams_r,
)
from cryptoscan.services.indicators.safe import last_valid, pct_change, safe_div
from cryptoscan.services.indicators.signals import (
    adx_snapshot,
    advanced_trend,
    atr_snapshot,
    bollinger_snapshot,
    ema_cross,
    ichimoku_snapshot,
    ma_trend_label,
    macd_snapshot,
    rsi_divergence_label,
    stoch_rsi_snapshot,
    stochastic_snapshot,
    volatility_index,
)
from cryptoscan.services.levels import analyze_fibonacci, analyze_price_levels
from cryptoscan.services.market.aggregator import summarize_market
from cryptoscan.services.pump_dump import detect_pump_dump
from cryptoscan.services.scoring import compute_scores
from cryptoscan.services.structure import (
    analyze_market_structure,
    analyze_volume,
    analyze_volume_profile,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
THREE_MONTHS = 90


def compute_indicators(short: CandleSeries, long: CandleSeries, extrema_lookback: int = 10) -> IndicatorSnapshot:
    """
    Indicator snapshot for one pair.

    Short-period indicators and the 7/30 MA tiers read `short`; MACD,
    SMA50/200, EMA50/200, Ichimoku, RSI(30) and the local-extrema levels
    read `long`.
    """
    s_high, s_low, s_close, s_vol = short.highs, short.lows, short.closes, short.volumes
    l_high, l_low, l_close = long.highs, long.lows, long.closes
    price = float(s_close[-1])

    moving_averages = MovingAverages(
        sma_7=last_valid(sma(s_close, 7)),
        sma_30=last_valid(sma(s_close, 30)),
        sma_50=last_valid(sma(l_close, 50)),
        sma_200=last_valid(sma(l_close, 200)),
        ema_7=last_valid(ema(s_close, 7)),
        ema_30=last_valid(ema(s_close, 30)),
        ema_50=last_valid(ema(l_close, 50)),
        ema_200=last_valid(ema(l_close, 200)),
    )
    moving_averages.short_trend = ma_trend_label(moving_averages.sma_7, moving_averages.sma_30)
    moving_averages.long_trend = ma_trend_label(moving_averages.sma_50, moving_averages.sma_200)
    moving_averages.ema_cross = ema_cross(moving_averages.ema_50, moving_averages.ema_200)

    rsi_values = rsi(s_close, 14)
    current_rsi = last_valid(rsi_values)
    macd_data, macd_trend, macd_crossover = macd_snapshot(l_close)

    atr_values = atr(s_high, s_low, s_close, 14)

    obv_values = obv(s_close, s_vol)
    obv_change = None
    if len(obv_values) >= 2 and obv_values[0] != 0:
        obv_change = float((obv_values[-1] - obv_values[0]) / abs(obv_values[0]) * 100)

    local_levels = [
        LocalExtremaLevel(price=level.price, type=level.type, strength=level.strength)
        for level in find_support_resistance(l_close, extrema_lookback)
    ]

    return IndicatorSnapshot(
        moving_averages=moving_averages,
        rsi=current_rsi,
        rsi_30=last_valid(rsi(l_close, 30)),
        rsi_divergence=rsi_divergence_label(s_close, rsi_values),
        macd=macd_data,
        macd_trend=macd_trend,
        macd_crossover=macd_crossover,
        stochastic=stochastic_snapshot(s_high, s_low, s_close),
        stoch_rsi=stoch_rsi_snapshot(s_close),
        williams_r=last_valid(williams_r(s_high, s_low, s_close, 14)),
        cci=last_valid(cci(s_high, s_low, s_close, 20)),
        mfi=last_valid(mfi(s_high, s_low, s_close, s_vol, 14)),
        momentum=last_valid(roc(s_close, 14)),
        bollinger_bands=bollinger_snapshot(s_close),
        atr=atr_snapshot(s_high, s_low, s_close),
        volatility=historical_volatility(s_close, 14),
        volatility_index=volatility_index(s_close, atr_values),
        adx=adx_snapshot(s_high, s_low, s_close),
        ichimoku=ichimoku_snapshot(l_high, l_low, l_close),
        advanced_trend=advanced_trend(
            price,
            macd_data,
            len(l_close) >= 35,
            current_rsi,
            moving_averages.ema_50,
            moving_averages.ema_200,
        ),
        obv=last_valid(obv_values),
        obv_change=obv_change,
        volume_oscillator=last_valid(volume_oscillator(short.volumes_usd, 7, 30)),
        local_levels=local_levels,
    )


class PairAnalyzer(PairAnalyzerInterface):
    """
    Pair Analyzer implementation.

    Usage:
        analyzer = PairAnalyzer(store)
        batch = await analyzer.analyze_pairs(["BTC-USD", "ETH-USD"])
    """

    def __init__(self, store: CandleStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    async def execute(self, input_data: list[str]) -> AnalysisBatch:
        pairs = await self.validate_input(input_data)
        return await self.analyze_pairs(pairs)

    async def validate_input(self, input_data: list[str]) -> list[str]:
        normalized = [p.strip().upper() for p in input_data if p and p.strip()]
        return list(dict.fromkeys(normalized))

    async def health_check(self) -> bool:
        return await self.store.health_check()

    async def get_all_pairs(self) -> list[str]:
        return await self.store.get_all_pairs()

    async def _load_windows(self, pair: str, as_of: int) -> tuple[CandleSeries, CandleSeries]:
        short_start = as_of - self.settings.short_window_days * SECONDS_PER_DAY
        long_start = as_of - self.settings.long_window_days * SECONDS_PER_DAY

        short_candles, long_candles = await asyncio.gather(
            self.store.get_candles(pair, short_start, as_of),
            self.store.get_candles(pair, long_start, as_of),
        )
        if not short_candles or not long_candles:
            raise MissingPairDataError(
                self.name,
                pair,
                {"short": len(short_candles), "long": len(long_candles)},
            )
        return CandleSeries(pair, short_candles), CandleSeries(pair, long_candles)

    async def analyze_pair(self, pair: str, as_of: Optional[int] = None) -> PairAnalysis:
        """
        Full analysis for one pair.

        Args:
            pair: Symbol, e.g. "BTC-USD"
            as_of: End of both windows (unix seconds), default now

        Returns:
            PairAnalysis

        Raises:
            MissingPairDataError: Either window is empty
            UpstreamFetchError: The candle store failed
        """
        as_of = as_of if as_of is not None else int(time.time())
        short, long = await self._load_windows(pair, as_of)

        last = short.last
        current_price = last.close
        indicators = compute_indicators(short, long, self.settings.extrema_lookback)

        daily_change = 0.0
        if short.previous is not None:
            daily_change = pct_change(current_price, short.previous.close)

        three_month_base = long.closes[-THREE_MONTHS - 1] if len(long) > THREE_MONTHS else long.closes[0]
        three_month_change = pct_change(current_price, float(three_month_base))

        all_time_high = float(np.max(long.closes))
        all_time_low = float(np.min(long.closes))
        percent_from_high = safe_div(current_price - all_time_high, all_time_high) * 100
        percent_from_low = safe_div(current_price - all_time_low, all_time_low) * 100

        analysis = PairAnalysis(
            pair=pair,
            timestamp=last.timestamp,
            first_seen_timestamp=long.first.timestamp,
            current_price=current_price,
            current_volume_usd=last.volume * last.close,
            daily_change=daily_change,
            three_month_change=three_month_change,
            all_time_high=all_time_high,
            all_time_low=all_time_low,
            percent_from_high=percent_from_high,
            percent_from_low=percent_from_low,
            indicators=indicators,
            price_levels=analyze_price_levels(long, self.settings.level_lookback_days, as_of),
            fibonacci=analyze_fibonacci(short),
            volume_profile=analyze_volume_profile(short),
            volume_analysis=analyze_volume(short),
            market_structure=analyze_market_structure(short),
            scores=compute_scores(indicators, daily_change, percent_from_high, percent_from_low),
            pump_dump=detect_pump_dump(short),
        )
        logger.debug(
            f"{pair}: price={current_price} rsi={indicators.rsi} "
            f"macd_trend={indicators.macd_trend.value}"
        )
        return analysis

    async def analyze_pairs(self, pairs: list[str], as_of: Optional[int] = None) -> AnalysisBatch:
        """
        Analyze `pairs` sequentially and summarize the market.

        A pair with no data, a failing store or any other error is logged
        and skipped; the batch holds the pairs that succeeded.
        """
        start = time.perf_counter()
        as_of = as_of if as_of is not None else int(time.time())
        analyses = []

        for pair in pairs:
            try:
                analyses.append(await self.analyze_pair(pair, as_of))
            except (MissingPairDataError, UpstreamFetchError) as e:
                logger.warning(f"Skipping {pair}: {e}")
            except Exception as e:
                logger.error(f"Error analyzing {pair}: {e}", exc_info=True)

        summary = summarize_market(analyses, self.settings.top_movers)
        elapsed = time.perf_counter() - start
        logger.info(f"Analyzed {len(analyses)}/{len(pairs)} pairs in {elapsed:.2f}s")
        return AnalysisBatch(pairs=analyses, market_summary=summary)


# Singleton instance
_analyzer_instance: Optional[PairAnalyzer] = None


def get_pair_analyzer() -> PairAnalyzer:
    """Get or create pair analyzer instance."""
    global _analyzer_instance
    if _analyzer_instance is None:
        _analyzer_instance = PairAnalyzer(get_candle_store())
    return _analyzer_instance
