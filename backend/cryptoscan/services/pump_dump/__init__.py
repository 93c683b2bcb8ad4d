"""
Pump/Dump Detector

CONTRACT:
    Input:  CandleSeries (>= 30 daily candles)
    Output: PumpDumpResult

Never raises; short history yields the all-zero result.
"""

from cryptoscan.services.pump_dump.detector import detect_pump_dump

__all__ = ["detect_pump_dump"]
