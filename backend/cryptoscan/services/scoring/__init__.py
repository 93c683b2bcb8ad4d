"""
Composite Scorer

CONTRACT:
    Input:  IndicatorSnapshot + price context
    Output: CompositeScores (short-term, long-term, risk-adjusted, enhanced)

Pure functions, no hidden state. All scores clamped to [0, 1].
"""

from cryptoscan.services.scoring.composite import (
    compute_scores,
    enhanced_score,
    long_term_score,
    risk_adjusted_score,
    short_term_score,
)

__all__ = [
    "compute_scores",
    "short_term_score",
    "long_term_score",
    "risk_adjusted_score",
    "enhanced_score",
]
