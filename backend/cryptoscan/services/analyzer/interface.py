"""
Pair Analyzer Service Interface

Defines the contract for the per-pair analysis pipeline.
"""

from abc import abstractmethod
from typing import Optional

from cryptoscan.schemas.analysis import PairAnalysis
from cryptoscan.schemas.summary import AnalysisBatch
from cryptoscan.services.base import BaseService


class PairAnalyzerInterface(BaseService[list[str], AnalysisBatch]):
    """
    Pair Analyzer Service Contract.

    INPUT: list[str]
        - pair symbols to analyze

    OUTPUT: AnalysisBatch
        - pairs: one PairAnalysis per pair with data
        - market_summary: breadth over the analyzed pairs
    """

    @property
    def name(self) -> str:
        return "PairAnalyzer"

    @abstractmethod
    async def execute(self, input_data: list[str]) -> AnalysisBatch:
        """Analyze all pairs and summarize the market."""
        pass

    @abstractmethod
    async def analyze_pair(self, pair: str, as_of: Optional[int] = None) -> PairAnalysis:
        """
        Analyze a single pair.

        Raises:
            MissingPairDataError: No candles in the short or long window
            UpstreamFetchError: The candle store failed
        """
        pass

    @abstractmethod
    async def analyze_pairs(self, pairs: list[str], as_of: Optional[int] = None) -> AnalysisBatch:
        """Analyze pairs one by one; failing pairs are skipped."""
        pass

    @abstractmethod
    async def get_all_pairs(self) -> list[str]:
        pass
