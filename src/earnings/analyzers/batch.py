"""Sequential, rate-limited analysis of a batch of transcripts."""
import logging
from typing import List, Optional

from src.core.config import settings
from src.core.rate_limiter import RateLimiter
from src.earnings.analyzers.signal_extractor import SignalExtractor
from src.earnings.models import QuarterInsights, Transcript

logger = logging.getLogger(__name__)


class BatchAnalyzer:
    """
    Runs SignalExtractor over transcripts one at a time.

    The limiter spaces out the *start* of each analysis. A transcript whose
    analysis fails outright is logged and left out; there is no retry here.
    """

    def __init__(self, extractor: Optional[SignalExtractor] = None, rate_limiter: Optional[RateLimiter] = None):
        self.extractor = extractor or SignalExtractor()
        self.rate_limiter = rate_limiter

    async def analyze_all(self, transcripts: List[Transcript]) -> List[QuarterInsights]:
        logger.info(f"Starting analysis of {len(transcripts)} transcripts...")
        limiter = self.rate_limiter or RateLimiter(min_interval=settings.analysis_delay, name="analysis")

        results: List[QuarterInsights] = []
        for transcript in transcripts:
            await limiter.acquire()
            try:
                results.append(await self.extractor.extract(transcript))
            except Exception as e:
                logger.error(f"Failed to analyze {transcript.quarter}: {e}")

        logger.info(f"Completed analysis of {len(results)}/{len(transcripts)} transcripts")
        return results
