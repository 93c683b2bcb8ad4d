"""
Correlation Engine

CONTRACT:
    Input:  pair symbols, canonical timeframe (days), volume weighting flag
    Output: list[CorrelationRecord]

RESPONSIBILITIES:
    - Align closes by timestamp (>= 7 common days)
    - Enforce the average daily USD volume floor on both legs
    - Pearson r over 7/30/90 days, p-value and significance bucket
    - Annualized volatility and volatility-adjusted correlation
"""

from cryptoscan.services.correlation.service import CorrelationService, get_correlation_service
from cryptoscan.services.correlation.statistics import (
    annualized_volatility,
    correlation_p_value,
    pearson_correlation,
)

__all__ = [
    "CorrelationService",
    "get_correlation_service",
    "pearson_correlation",
    "correlation_p_value",
    "annualized_volatility",
]
