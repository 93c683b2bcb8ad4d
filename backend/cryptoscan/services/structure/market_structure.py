"""
Market Structure

Swing points, higher-high / lower-low structure, ADX-based trend strength,
close-price pivot clusters and a Wyckoff-style phase label, all over the
last 30 daily candles.
"""

import numpy as np

from cryptoscan.schemas.analysis import (
    MarketPhase,
    MarketStructure,
    PivotLevel,
    StructureFlags,
    SwingPoint,
)
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.services.indicators.calculations import adx
from cryptoscan.services.indicators.safe import last_valid, safe_div
from cryptoscan.services.levels.price_levels import is_psychological_level

LOOKBACK = 30
SWING_WINDOW = 5
MAX_POINTS = 5
PIVOT_THRESHOLD = 0.005


def find_swing_points(series: CandleSeries, window: int = SWING_WINDOW) -> list[SwingPoint]:
    """Closes strictly above/below both neighboring windows, top 5 by significance."""
    closes = series.closes
    points = []

    for i in range(window, len(closes) - window):
        price = float(closes[i])
        left = closes[i - window:i]
        right = closes[i + 1:i + window + 1]
        reference = (left.mean() + right.mean()) / 2
        significance = min(100.0, safe_div(abs(price - reference), price) * 1000)

        if price > left.max() and price > right.max():
            kind = "High"
        elif price < left.min() and price < right.min():
            kind = "Low"
        else:
            continue

        points.append(
            SwingPoint(
                type=kind,
                price=price,
                timestamp=int(series.timestamps[i]),
                significance=significance,
                description=f"Swing {kind} at {price:.2f}",
            )
        )

    points.sort(key=lambda p: p.significance, reverse=True)
    return points[:MAX_POINTS]


def structure_flags(points: list[SwingPoint]) -> StructureFlags:
    highs = sorted((p for p in points if p.type == "High"), key=lambda p: p.timestamp, reverse=True)
    lows = sorted((p for p in points if p.type == "Low"), key=lambda p: p.timestamp, reverse=True)

    return StructureFlags(
        higher_highs=len(highs) >= 2 and highs[0].price > highs[1].price,
        higher_lows=len(lows) >= 2 and lows[0].price > lows[1].price,
        lower_highs=len(highs) >= 2 and highs[0].price < highs[1].price,
        lower_lows=len(lows) >= 2 and lows[0].price < lows[1].price,
        last_swing_high=highs[0].price if highs else 0.0,
        last_swing_low=lows[0].price if lows else 0.0,
    )


def structure_trend(flags: StructureFlags, strength: float) -> str:
    if flags.higher_highs and flags.higher_lows and strength > 50:
        return "Uptrend"
    if flags.lower_highs and flags.lower_lows and strength > 50:
        return "Downtrend"
    if strength < 30:
        if flags.higher_lows:
            return "Accumulation"
        if flags.lower_highs:
            return "Distribution"
    return "Sideways"


def find_pivot_levels(series: CandleSeries, threshold: float = PIVOT_THRESHOLD) -> list[PivotLevel]:
    """
    Cluster closes within `threshold` of the last price and score each
    cluster by touches, volume at level and round-number proximity.
    """
    closes, volumes = series.closes, series.volumes
    current = float(closes[-1])
    tolerance = current * threshold

    # [center, touches]
    clusters: list[list[float]] = []
    for price in closes:
        for cluster in clusters:
            if abs(cluster[0] - price) <= tolerance:
                cluster[0] = (cluster[0] * cluster[1] + price) / (cluster[1] + 1)
                cluster[1] += 1
                break
        else:
            clusters.append([float(price), 1])

    avg_volume = float(np.mean(volumes))
    levels = []
    for center, touches in clusters:
        near = np.abs(closes - center) <= center * threshold
        volume_at = float(volumes[near].sum())

        strength = min(100.0, touches / 3 * 20)
        strength += min(25.0, safe_div(volume_at, avg_volume) * 25)
        if is_psychological_level(center):
            strength += 10
        strength = max(0.0, min(100.0, strength))

        kind = "Support" if current > center else "Resistance"
        levels.append(
            PivotLevel(
                type=kind,
                price=center,
                strength=strength,
                description=f"{kind} level with {int(touches)} touches",
            )
        )

    levels.sort(key=lambda level: level.strength, reverse=True)
    return levels[:MAX_POINTS]


def market_phase(flags: StructureFlags, trend: str, strength: float, adx_value: float) -> MarketPhase:
    if trend == "Uptrend" and flags.higher_highs and flags.higher_lows:
        current, confidence = "Mark-Up", strength
        description = "Strong uptrend with higher highs and higher lows"
    elif trend == "Downtrend" and flags.lower_highs and flags.lower_lows:
        current, confidence = "Mark-Down", strength
        description = "Strong downtrend with lower highs and lower lows"
    elif trend in ("Sideways", "Accumulation"):
        confidence = 60 + adx_value / 5
        if flags.higher_lows:
            current = "Accumulation"
            description = "Sideways movement with higher lows suggesting accumulation"
        else:
            current = "Distribution"
            description = "Sideways movement with lower highs suggesting distribution"
    else:
        current, confidence = "Accumulation", 40.0
        description = "Unclear market phase, showing mixed signals"

    return MarketPhase(
        current=current,
        confidence=min(100.0, max(0.0, confidence)),
        description=description,
    )


def analyze_market_structure(series: CandleSeries) -> MarketStructure:
    """Market structure over the last 30 candles; defaults when fewer."""
    if len(series) < LOOKBACK:
        last = series.last
        return MarketStructure(
            phase=MarketPhase(description="Insufficient data for market structure analysis"),
            structure=StructureFlags(
                last_swing_high=last.high if last else 0.0,
                last_swing_low=last.low if last else 0.0,
            ),
        )

    window = series.tail(LOOKBACK)
    points = find_swing_points(window)
    flags = structure_flags(points)

    adx_values, _, _ = adx(window.highs, window.lows, window.closes, 14)
    adx_value = last_valid(adx_values, 0.0)
    strength = min(100.0, adx_value * 2)

    trend = structure_trend(flags, strength)
    return MarketStructure(
        trend=trend,
        strength=strength,
        swing_points=points,
        pivot_levels=find_pivot_levels(window),
        phase=market_phase(flags, trend, strength, adx_value),
        structure=flags,
    )
