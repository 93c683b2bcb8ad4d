"""
Fibonacci Retracement & Extension Levels

Levels are measured from the swing low to the swing high of the recent
window; ratios above 1 are extensions.
"""

from cryptoscan.schemas.levels import FibonacciAnalysis, FibonacciLevel
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.services.indicators.safe import safe_div

FIB_RATIOS = (0, 0.236, 0.382, 0.5, 0.618, 0.786, 1, 1.272, 1.618, 2.618)


def fibonacci_levels(high: float, low: float) -> list[FibonacciLevel]:
    diff = high - low
    return [FibonacciLevel(level=ratio, price=low + diff * ratio) for ratio in FIB_RATIOS]


def fibonacci_position(price: float, levels: list[FibonacciLevel]) -> tuple[str, str]:
    """Which two levels the price sits between, and how far along."""
    ordered = sorted(levels, key=lambda lvl: lvl.price, reverse=True)

    for upper, lower in zip(ordered, ordered[1:]):
        if lower.price <= price <= upper.price:
            percentage = safe_div(price - lower.price, upper.price - lower.price) * 100
            description = (
                f"Between {lower.level * 100:.1f}% and {upper.level * 100:.1f}% "
                f"({percentage:.1f}% from {lower.level * 100:.1f}%)"
            )
            kind = "Retracement" if upper.level <= 1 else "Extension"
            return kind, description

    if price > ordered[0].price:
        return "Extension", f"Above {ordered[0].level * 100:.1f}%"
    return "Retracement", f"Below {ordered[-1].level * 100:.1f}%"


def analyze_fibonacci(series: CandleSeries, lookback: int = 30) -> FibonacciAnalysis:
    window = series.tail(lookback)
    if not window:
        return FibonacciAnalysis()

    swing_high = float(window.highs.max())
    swing_low = float(window.lows.min())
    levels = fibonacci_levels(swing_high, swing_low)
    position_type, description = fibonacci_position(float(window.closes[-1]), levels)

    return FibonacciAnalysis(
        swing_high=swing_high,
        swing_low=swing_low,
        levels=levels,
        position_type=position_type,
        position_description=description,
    )
