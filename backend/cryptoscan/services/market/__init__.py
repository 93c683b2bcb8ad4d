"""
Market Aggregator

CONTRACT:
    Input:  list[PairAnalysis] from one batch
    Output: MarketSummary
"""

from cryptoscan.services.market.aggregator import classify_sentiment, summarize_market

__all__ = ["summarize_market", "classify_sentiment"]
