"""
Indicator Library

CONTRACT:
    Input:  OHLCV arrays (NumPy)
    Output: indicator series, latest-value snapshots and labels

RESPONSIBILITIES:
    - Series utilities (SMA, EMA, StdDev, ROC, Wilder smoothing)
    - Momentum, volatility, volume and trend indicators
    - Local-extrema support/resistance
    - Snapshot models and text labels for the scorer and trend monitor

Pure NumPy. Short input resolves to sentinels, never to an exception.
"""

from cryptoscan.services.indicators.safe import INSUFFICIENT_DATA, clamp, last_valid, safe_div

__all__ = [
    "INSUFFICIENT_DATA",
    "clamp",
    "last_valid",
    "safe_div",
]
