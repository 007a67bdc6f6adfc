"""
Transcript acquisition.

TranscriptCollector walks the source adapters in priority order, gathers up to
N candidates, fetches each with a small retry budget and splits the text into
management remarks and Q&A. When nothing real comes back it returns synthetic
placeholders instead, so callers always get documents.
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from src.core.config import settings
from src.core.exceptions import ContentTooShort, FetchError
from src.core.rate_limiter import RateLimiter
from src.core.utils import parse_quarter
from src.earnings.models import Candidate, DocumentProvenance, Transcript, make_transcript_id
from src.earnings.scrapers import SourceAdapter, SyntheticTranscriptGenerator, TranscriptFetcher, default_adapters

logger = logging.getLogger(__name__)

# Checked in this order; the first one present in the text marks the start of Q&A.
QA_MARKERS = (
    "Question-and-Answer Session",
    "Questions and Answers",
    "Q&A Session",
    "Operator:",
    "Questions & Answers",
)


def split_transcript(text: str, ratio: Optional[float] = None) -> Tuple[str, str]:
    """
    Split transcript text into (management_remarks, qa_section).

    Falls back to a fixed-ratio cut when no Q&A marker is present. That cut is
    an approximation and will mis-segment unusually structured calls.
    """
    lowered = text.lower()
    for marker in QA_MARKERS:
        index = lowered.find(marker.lower())
        if index != -1:
            return text[:index].strip(), text[index:].strip()

    ratio = settings.qa_split_ratio if ratio is None else ratio
    split_point = int(len(text) * ratio)
    return text[:split_point].strip(), text[split_point:].strip()


class TranscriptCollector:
    """
    Acquires up to N transcripts for one company.

        collector = TranscriptCollector()
        transcripts = await collector.acquire(4)

    Holds no state between acquire() calls. Fetcher, adapters, synthetic
    generator, limiter and sleep are injectable for tests.
    """

    def __init__(
        self,
        adapters: Optional[Sequence[SourceAdapter]] = None,
        fetcher_factory: Callable[[], TranscriptFetcher] = TranscriptFetcher,
        synthetic: Optional[SyntheticTranscriptGenerator] = None,
        rate_limiter_factory: Optional[Callable[[float], RateLimiter]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        company_name: Optional[str] = None,
        ticker: Optional[str] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        min_content_length: Optional[int] = None,
    ):
        self.company_name = company_name or settings.company_name
        self.ticker = ticker or settings.company_ticker
        self.adapters = list(adapters) if adapters is not None else default_adapters(self.company_name, self.ticker)
        self.fetcher_factory = fetcher_factory
        self.synthetic = synthetic or SyntheticTranscriptGenerator(self.company_name, self.ticker)
        self.rate_limiter_factory = rate_limiter_factory or (
            lambda interval: RateLimiter(min_interval=interval, name="transcripts", sleep=sleep)
        )
        self._sleep = sleep
        self.max_retries = settings.scrape_max_retries if max_retries is None else max_retries
        self.base_delay = settings.scrape_base_delay if base_delay is None else base_delay
        self.min_content_length = settings.min_content_length if min_content_length is None else min_content_length

    async def acquire(self, count: int = 4) -> List[Transcript]:
        """
        Return up to `count` transcripts, newest first as the sources rank them.
        Never raises: failing sources and candidates are logged and skipped.
        """
        logger.info(f"Starting transcript collection for {self.company_name} ({count} quarters)")
        if count <= 0:
            return []

        transcripts: List[Transcript] = []
        try:
            async with self.fetcher_factory() as fetcher:
                pairs = await self._gather_candidates(fetcher, count)
                fetch_limiter = self.rate_limiter_factory(self.base_delay)
                for adapter, candidate in pairs:
                    await fetch_limiter.acquire()
                    transcript = await self._fetch_transcript(fetcher, adapter, candidate)
                    if transcript is not None:
                        transcripts.append(transcript)
        except Exception as e:
            # Session setup/teardown problems must not escape acquire(); keep what we have.
            logger.error(f"Transcript collection aborted: {e}")

        if not transcripts:
            logger.warning("No transcripts could be scraped. Falling back to synthetic placeholder transcripts.")
            return self.synthetic.generate(count)

        logger.info(f"Successfully collected {len(transcripts)} transcripts")
        return transcripts

    async def _gather_candidates(
        self, fetcher: TranscriptFetcher, count: int
    ) -> List[Tuple[SourceAdapter, Candidate]]:
        source_limiter = self.rate_limiter_factory(settings.source_delay)
        pairs: List[Tuple[SourceAdapter, Candidate]] = []
        seen_ids = set()

        for adapter in self.adapters:
            if len(pairs) >= count:
                break
            await source_limiter.acquire()
            try:
                candidates = await adapter.discover(fetcher, count, offset=len(pairs))
            except Exception as e:
                logger.error(f"Error scraping {adapter.NAME}: {e}")
                continue
            for candidate in candidates:
                # Same quarter and date from two sources would overwrite each other in the store
                transcript_id = make_transcript_id(self.ticker, candidate.quarter, candidate.date)
                if transcript_id in seen_ids:
                    logger.warning(f"Dropping {candidate.url}: {transcript_id} already collected")
                    continue
                seen_ids.add(transcript_id)
                pairs.append((adapter, candidate))

        return pairs[:count]

    async def _fetch_transcript(
        self, fetcher: TranscriptFetcher, adapter: SourceAdapter, candidate: Candidate
    ) -> Optional[Transcript]:
        for attempt in range(1, self.max_retries + 1):
            try:
                html = await fetcher.fetch(candidate.url, headers=adapter.ARTICLE_HEADERS, timeout=settings.scrape_timeout)
                text, participants = adapter.parse_article(html)
                if len(text) < self.min_content_length:
                    raise ContentTooShort(candidate.url, len(text), self.min_content_length)
                return self._build_transcript(candidate, text, participants)
            except FetchError as e:
                logger.warning(f"Scraping attempt {attempt} failed for {candidate.url}: {e}")
                if attempt < self.max_retries:
                    await self._sleep(self.base_delay * attempt)
            except Exception as e:
                logger.error(f"Unexpected error parsing {candidate.url}: {e}")
                return None

        logger.warning(f"Skipping {candidate.quarter} transcript from {candidate.source} after {self.max_retries} attempts")
        return None

    def _build_transcript(self, candidate: Candidate, text: str, participants: List[str]) -> Transcript:
        management, qa = split_transcript(text)
        _, year = parse_quarter(candidate.quarter)
        now = datetime.utcnow()
        return Transcript(
            id=make_transcript_id(self.ticker, candidate.quarter, candidate.date),
            quarter=candidate.quarter,
            fiscal_year=year,
            date=candidate.date,
            url=candidate.url,
            company=self.company_name,
            source=candidate.source,
            management_remarks=management,
            qa_section=qa,
            full_transcript=text,
            participants=participants,
            provenance=DocumentProvenance.SCRAPED,
            created_at=now,
            updated_at=now,
        )
