"""
Per-transcript signal extraction.

Three analysis calls run concurrently for one transcript: management
sentiment, Q&A sentiment and strategic themes. Each call is isolated in an
ExtractionResult, so one failing call never affects the other two; the
record is assembled by resolving every result with `or_default()`.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from pydantic import ValidationError

from src.core.ai_client import AnalysisClient, ai_client
from src.core.config import settings
from src.core.exceptions import AnalysisServiceError, MalformedResponse, SchemaViolation
from src.core.utils import parse_llm_json
from src.earnings import prompts
from src.earnings.models import (
    FailureKind,
    KeyMetrics,
    QuarterInsights,
    SentimentSignal,
    SignalProvenance,
    ThemeExtraction,
    ThemeSignal,
    Transcript,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ExtractionResult(Generic[T]):
    """Either a value or the kind of failure that prevented one."""

    value: Optional[T] = None
    failure: Optional[FailureKind] = None
    error: str = ""

    @classmethod
    def ok(cls, value: T) -> "ExtractionResult[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, kind: FailureKind, error: str = "") -> "ExtractionResult[T]":
        return cls(failure=kind, error=error)

    @property
    def is_ok(self) -> bool:
        return self.failure is None

    def or_default(self, default: T) -> T:
        return self.value if self.is_ok else default


def default_sentiment() -> SentimentSignal:
    return SentimentSignal(
        sentiment="neutral",
        score=0.0,
        confidence=0.5,
        key_phrases=["analysis unavailable"],
        reasoning="Unable to analyze sentiment due to API error",
        provenance=SignalProvenance.FALLBACK,
    )


def default_themes() -> List[ThemeSignal]:
    return [
        ThemeSignal(
            theme="General Business Operations",
            mentions=1,
            importance=0.5,
            quotes=["Analysis unavailable"],
            category="strategic",
            provenance=SignalProvenance.FALLBACK,
        )
    ]


# A currency amount like "$35.1B", "$30 billion" or "$1,250 million", at most 200 chars after the keyword.
_AMOUNT = r"(\$\d[\d,]*(?:\.\d+)?\s?(?:billion|million|B|M)\b)"
METRIC_PATTERNS = {
    "revenue": re.compile(r"revenue[^\n]{0,200}?" + _AMOUNT, re.IGNORECASE),
    "guidance": re.compile(r"guidance[^\n]{0,200}?" + _AMOUNT, re.IGNORECASE),
    "market_cap": re.compile(r"market\s+cap(?:italization)?[^\n]{0,200}?" + _AMOUNT, re.IGNORECASE),
}


def extract_key_metrics(text: str) -> KeyMetrics:
    """Regex scan for headline figures. Missing figures stay None."""
    found: Dict[str, str] = {}
    for field, pattern in METRIC_PATTERNS.items():
        match = pattern.search(text or "")
        if match:
            found[field] = match.group(1)
    return KeyMetrics(**found)


class SignalExtractor:
    """
    Turns one Transcript into QuarterInsights.

        extractor = SignalExtractor()
        insights = await extractor.extract(transcript)

    extract() never raises; failed sub-extractions are recorded in
    QuarterInsights.failures and replaced by fallback signals.
    """

    def __init__(self, client: Optional[AnalysisClient] = None, company_name: Optional[str] = None):
        self.client = client or ai_client
        self.company_name = company_name or settings.company_name

    async def extract(self, transcript: Transcript) -> QuarterInsights:
        logger.info(f"Analyzing transcript for {transcript.quarter}...")

        management, qa, themes = await asyncio.gather(
            self.management_sentiment(transcript),
            self.qa_sentiment(transcript),
            self.strategic_themes(transcript),
        )

        failures: Dict[str, FailureKind] = {}
        for name, result in (("management_sentiment", management), ("qa_sentiment", qa), ("strategic_focuses", themes)):
            if not result.is_ok:
                logger.warning(f"{name} unavailable for {transcript.quarter} ({result.failure.value}): {result.error}")
                failures[name] = result.failure

        insights = QuarterInsights(
            transcript_id=transcript.id,
            quarter=transcript.quarter,
            management_sentiment=management.or_default(default_sentiment()),
            qa_sentiment=qa.or_default(default_sentiment()),
            strategic_focuses=themes.or_default(default_themes()),
            key_metrics=extract_key_metrics(transcript.full_transcript),
            failures=failures,
        )
        logger.info(f"Analysis complete for {transcript.quarter}")
        return insights

    async def management_sentiment(self, transcript: Transcript) -> ExtractionResult[SentimentSignal]:
        return await self._run(
            lambda: self.client.generate(
                prompts.build_management_sentiment_prompt(transcript.management_remarks),
                system_prompt=prompts.MANAGEMENT_SENTIMENT_SYSTEM_PROMPT,
                temperature=0.1,
                max_tokens=300,
            ),
            _to_sentiment,
        )

    async def qa_sentiment(self, transcript: Transcript) -> ExtractionResult[SentimentSignal]:
        return await self._run(
            lambda: self.client.generate(
                prompts.build_qa_sentiment_prompt(transcript.qa_section),
                system_prompt=prompts.QA_SENTIMENT_SYSTEM_PROMPT,
                temperature=0.1,
                max_tokens=300,
            ),
            _to_sentiment,
        )

    async def strategic_themes(self, transcript: Transcript) -> ExtractionResult[List[ThemeSignal]]:
        return await self._run(
            lambda: self.client.generate(
                prompts.build_themes_prompt(transcript.full_transcript, self.company_name),
                system_prompt=prompts.THEMES_SYSTEM_PROMPT,
                temperature=0.2,
                max_tokens=500,
            ),
            _to_themes,
        )

    async def _run(
        self,
        call: Callable[[], Awaitable[str]],
        convert: Callable[[Dict[str, Any]], T],
    ) -> ExtractionResult[T]:
        try:
            raw = await call()
        except AnalysisServiceError as e:
            return ExtractionResult.failed(FailureKind.TRANSPORT, str(e))
        except asyncio.TimeoutError:
            return ExtractionResult.failed(FailureKind.TRANSPORT, "analysis call timed out")
        except Exception as e:
            logger.error(f"Unexpected analysis client error: {e}")
            return ExtractionResult.failed(FailureKind.TRANSPORT, str(e))

        try:
            payload = parse_llm_json(raw)
        except MalformedResponse as e:
            return ExtractionResult.failed(FailureKind.MALFORMED, str(e))

        try:
            return ExtractionResult.ok(convert(payload))
        except SchemaViolation as e:
            return ExtractionResult.failed(FailureKind.SCHEMA, str(e))


def _to_sentiment(payload: Dict[str, Any]) -> SentimentSignal:
    # Provenance is ours to decide, never the service's.
    data = {**payload, "provenance": SignalProvenance.EXTRACTED}
    try:
        return SentimentSignal.model_validate(data)
    except ValidationError as e:
        raise SchemaViolation(f"Sentiment response does not match schema: {e.error_count()} error(s)",
                              details={"errors": e.errors(include_url=False)}) from e


def _to_themes(payload: Dict[str, Any]) -> List[ThemeSignal]:
    themes = payload.get("themes")
    if not isinstance(themes, list):
        raise SchemaViolation("Theme response has no 'themes' list")
    items = [{**t, "provenance": SignalProvenance.EXTRACTED} if isinstance(t, dict) else t for t in themes]
    try:
        return ThemeExtraction.model_validate({"themes": items}).themes
    except ValidationError as e:
        raise SchemaViolation(f"Theme response does not match schema: {e.error_count()} error(s)",
                              details={"errors": e.errors(include_url=False)}) from e
