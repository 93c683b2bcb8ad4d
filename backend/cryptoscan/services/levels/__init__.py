"""
Price-Level Analyzer

CONTRACT:
    Input:  CandleSeries (lookback window, default 180 candles)
    Output: PriceLevels, FibonacciAnalysis

RESPONSIBILITIES:
    - Bucket high/low touches within an ATR-derived tolerance
    - Score bucket strength (volume, touches, recency, rejection, round numbers)
    - Rank up to 3 supports and 3 resistances
    - Nearest levels, fallbacks, broken levels and channel metrics
    - Fibonacci retracement/extension levels
"""

from cryptoscan.services.levels.fibonacci import analyze_fibonacci, fibonacci_levels
from cryptoscan.services.levels.price_levels import analyze_price_levels

__all__ = [
    "analyze_price_levels",
    "analyze_fibonacci",
    "fibonacci_levels",
]
