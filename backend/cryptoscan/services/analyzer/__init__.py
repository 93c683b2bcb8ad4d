"""
Pair Analyzer

CONTRACT:
    Input:  list of pair symbols
    Output: AnalysisBatch (list[PairAnalysis] + MarketSummary)

RESPONSIBILITIES:
    - Read the short (30d) and long (365d) candle windows per pair
    - Compute indicators, price levels, scores and pump/dump flags
    - Contain failures per pair
"""

from cryptoscan.services.analyzer.interface import PairAnalyzerInterface
from cryptoscan.services.analyzer.service import PairAnalyzer, compute_indicators, get_pair_analyzer

__all__ = ["PairAnalyzerInterface", "PairAnalyzer", "compute_indicators", "get_pair_analyzer"]
