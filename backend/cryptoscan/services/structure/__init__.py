"""
Volume & Market Structure

CONTRACT:
    Input:  CandleSeries
    Output: VolumeProfile, VolumeAnalysis, MarketStructure
"""

from cryptoscan.services.structure.market_structure import analyze_market_structure
from cryptoscan.services.structure.volume_profile import analyze_volume, analyze_volume_profile

__all__ = ["analyze_volume_profile", "analyze_volume", "analyze_market_structure"]
