"""
Volume Profile & Volume Analysis

Volume-at-price distribution (POC, 70% value area, high-volume nodes,
volume-based levels), recent volume trend and spikes, and the USD-volume
moving-average view used by the market summary.
"""

import math

import numpy as np

from cryptoscan.schemas.analysis import (
    VolumeAnalysis,
    VolumeLevel,
    VolumeNode,
    VolumeProfile,
    VolumeSpike,
)
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.services.correlation.statistics import pearson_correlation
from cryptoscan.services.indicators.safe import safe_div

VALUE_AREA_SHARE = 0.70
HVN_FACTOR = 1.5
LEVEL_FACTOR = 2.0
MAX_HV_NODES = 5
RECENT_WINDOW = 14
MAX_SPIKES = 3
BIN_SIGNIFICANT_DIGITS = 4


def price_bin(price: float) -> float:
    """Mid-price rounded to 4 significant digits."""
    if price == 0 or not math.isfinite(price):
        return 0.0
    digits = BIN_SIGNIFICANT_DIGITS - int(math.floor(math.log10(abs(price)))) - 1
    return round(price, digits)


def volume_by_price(series: CandleSeries) -> tuple[np.ndarray, np.ndarray]:
    """(bin prices ascending, volume per bin)."""
    totals: dict[float, float] = {}
    for candle in series:
        key = price_bin((candle.high + candle.low) / 2)
        totals[key] = totals.get(key, 0.0) + candle.volume

    prices = np.array(sorted(totals), dtype=float)
    volumes = np.array([totals[p] for p in prices], dtype=float)
    return prices, volumes


def value_area(volumes: np.ndarray, poc_index: int, share: float = VALUE_AREA_SHARE) -> tuple[int, int]:
    """
    Expand from the POC toward the larger neighbor until `share` of the
    volume is enclosed or no bins remain. Returns (low index, high index).
    """
    target = volumes.sum() * share
    enclosed = volumes[poc_index]
    low = high = poc_index

    while enclosed < target and (low > 0 or high < len(volumes) - 1):
        above = volumes[high + 1] if high < len(volumes) - 1 else -1.0
        below = volumes[low - 1] if low > 0 else -1.0
        if above > below:
            high += 1
            enclosed += above
        else:
            low -= 1
            enclosed += below

    return low, high


def volume_trend(volumes: np.ndarray) -> tuple[str, float]:
    """Last 3 bars vs the window mean; +/-20% flips the label."""
    if len(volumes) == 0:
        return "Neutral", 0.0
    mean = float(np.mean(volumes))
    recent = float(np.mean(volumes[-3:]))
    strength = safe_div(recent - mean, mean) * 100

    if strength > 20:
        trend = "Increasing"
    elif strength < -20:
        trend = "Decreasing"
    else:
        trend = "Neutral"
    return trend, abs(strength)


def detect_volume_spikes(series: CandleSeries) -> list[VolumeSpike]:
    """Bars above mean + 2 sigma; keeps the last three."""
    volumes = series.volumes
    if len(volumes) == 0:
        return []
    threshold = np.mean(volumes) + 2 * np.std(volumes)

    spikes = [
        VolumeSpike(
            timestamp=candle.timestamp,
            volume=candle.volume,
            type="buy" if candle.close > candle.open else "sell",
        )
        for candle in series
        if candle.volume > threshold
    ]
    return spikes[-MAX_SPIKES:]


def analyze_volume_profile(series: CandleSeries) -> VolumeProfile:
    """Volume profile over the whole series."""
    if not series:
        return VolumeProfile()

    prices, volumes = volume_by_price(series)
    poc_index = int(np.argmax(volumes))
    low, high = value_area(volumes, poc_index)
    mean_bin_volume = volumes.sum() / len(volumes)

    hv_order = np.argsort(-volumes, kind="stable")
    hv_nodes = [
        VolumeNode(price=float(prices[i]), volume=float(volumes[i]))
        for i in hv_order
        if volumes[i] > mean_bin_volume * HVN_FACTOR
    ][:MAX_HV_NODES]

    current_price = series.last.close
    levels = [
        VolumeLevel(
            price=float(prices[i]),
            type="Resistance" if prices[i] > current_price else "Support",
        )
        for i in hv_order
        if volumes[i] > mean_bin_volume * LEVEL_FACTOR
    ]

    recent = series.tail(RECENT_WINDOW)
    trend, trend_strength = volume_trend(recent.volumes)

    return VolumeProfile(
        poc=float(prices[poc_index]),
        value_area_high=float(prices[high]),
        value_area_low=float(prices[low]),
        max_volume=float(volumes.max()),
        hv_nodes=hv_nodes,
        trend=trend,
        trend_strength=trend_strength,
        spikes=detect_volume_spikes(recent),
        levels=levels,
    )


def analyze_volume(series: CandleSeries) -> VolumeAnalysis:
    """
    USD-volume moving averages, oscillator and price/volume agreement.

    Needs at least 5 candles; shorter input yields the neutral default.
    """
    if len(series) < 5:
        return VolumeAnalysis()

    volumes = series.volumes_usd
    closes = series.closes

    vma_7 = float(np.mean(volumes[-7:]))
    vma_30 = float(np.mean(volumes[-30:]))
    oscillator = safe_div(vma_7 - vma_30, vma_30) * 100

    correlation = pearson_correlation(np.diff(closes), np.diff(volumes))
    strength = safe_div(float(np.mean(volumes[-5:])), float(np.mean(volumes))) - 1
    recent_change = safe_div(closes[-1] - closes[-5], closes[-5]) * 100

    if oscillator > 10 and correlation > 0.5 and recent_change > 0:
        trend, signal = "Strong Bullish", "High volume supporting price increase. Strong buying pressure."
    elif oscillator > 5 and correlation > 0.3 and recent_change > 0:
        trend, signal = "Bullish", "Moderate volume with upward price movement."
    elif oscillator < -10 and correlation < -0.5 and recent_change < 0:
        trend, signal = "Strong Bearish", "High volume with price decline. Strong selling pressure."
    elif oscillator < -5 and correlation < -0.3 and recent_change < 0:
        trend, signal = "Bearish", "Moderate volume with downward price movement."
    elif abs(oscillator) < 5:
        trend, signal = "Neutral", "Low volume indicating lack of conviction."
    else:
        trend, signal = "Neutral", "Mixed signals. Watch for trend confirmation."

    return VolumeAnalysis(
        volume_oscillator=oscillator,
        vma_7=vma_7,
        vma_30=vma_30,
        trend=trend,
        trend_strength=abs(strength),
        signal=signal,
        price_volume_correlation=correlation,
    )
