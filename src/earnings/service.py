"""
Earnings insight pipeline: collect transcripts, analyze them, compute trends.
Shared by the HTTP API and the CLI; the store is always passed in.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.core.ai_client import AnalysisClient, ai_client
from src.core.config import settings
from src.core.database import get_session_factory
from src.core.exceptions import AnalysisServiceError, MalformedResponse
from src.core.utils import parse_llm_json
from src.earnings import prompts
from src.earnings.analyzers import BatchAnalyzer, compute_trend
from src.earnings.analyzers.trend_analyzer import sort_by_quarter
from src.earnings.collector import TranscriptCollector
from src.earnings.models import QuarterInsights, TrendReport
from src.earnings.store import InMemoryInsightStore, InsightStore, SqlInsightStore, StoreStats

logger = logging.getLogger(__name__)


class PipelineSummary(BaseModel):
    transcripts_processed: int
    insights_generated: int
    synthetic_transcripts: int = 0
    quarters: List[str] = Field(default_factory=list)
    completed_at: datetime = Field(default_factory=datetime.utcnow)


class PipelineResult(BaseModel):
    insights: List[QuarterInsights]
    summary: PipelineSummary
    trends: Optional[TrendReport] = None
    stats: Optional[StoreStats] = None


def build_store() -> InsightStore:
    """Store selected by STORE_BACKEND."""
    if settings.store_backend == "sql":
        return SqlInsightStore(get_session_factory())
    return InMemoryInsightStore()


async def run_analysis(
    store: InsightStore,
    quarters: int = 4,
    reanalyze: bool = False,
    collector: Optional[TranscriptCollector] = None,
    analyzer: Optional[BatchAnalyzer] = None,
) -> PipelineResult:
    """
    Full pipeline. Transcripts that already have stored insights are skipped
    unless `reanalyze` is set. Trends are computed over every stored record.
    Raises MalformedQuarterLabel if a stored record carries a bad label.
    """
    collector = collector or TranscriptCollector()
    analyzer = analyzer or BatchAnalyzer()

    logger.info(f"Starting full analysis pipeline for {quarters} quarters...")
    transcripts = await collector.acquire(quarters)
    for transcript in transcripts:
        await store.put_transcript(transcript)
    synthetic = sum(1 for t in transcripts if t.is_synthetic)
    logger.info(f"Saved {len(transcripts)} transcripts ({synthetic} synthetic)")

    if reanalyze:
        pending = transcripts
    else:
        pending = [t for t in transcripts if await store.get_insights(t.id) is None]
        if not pending:
            logger.info("Using existing analysis results")

    new_insights = await analyzer.analyze_all(pending) if pending else []
    for insights in new_insights:
        await store.put_insights(insights)

    all_insights = await store.all_insights()
    trends = compute_trend(all_insights)
    ordered = sort_by_quarter(all_insights)

    logger.info(f"Analysis pipeline completed: {len(new_insights)} new, {len(all_insights)} total insights")
    return PipelineResult(
        insights=ordered,
        summary=PipelineSummary(
            transcripts_processed=len(transcripts),
            insights_generated=len(new_insights),
            synthetic_transcripts=synthetic,
            quarters=trends.quarters,
        ),
        trends=trends,
        stats=await store.stats(),
    )


async def load_existing(store: InsightStore) -> PipelineResult:
    """Stored insights and stats; trends only when there are at least two records."""
    insights = await store.all_insights()
    stats = await store.stats()
    trends = compute_trend(insights) if len(insights) > 1 else None
    insights = sort_by_quarter(insights)
    return PipelineResult(
        insights=insights,
        summary=PipelineSummary(
            transcripts_processed=stats.document_count,
            insights_generated=len(insights),
            quarters=[i.quarter for i in insights],
        ),
        trends=trends,
        stats=stats,
    )


async def test_collection(
    store: InsightStore,
    quarters: int = 2,
    collector: Optional[TranscriptCollector] = None,
) -> Dict[str, Any]:
    """Collection smoke test: collect, store, and describe the first transcript."""
    collector = collector or TranscriptCollector()
    transcripts = await collector.acquire(quarters)
    for transcript in transcripts:
        await store.put_transcript(transcript)

    saved = await store.all_transcripts()
    sample = transcripts[0] if transcripts else None
    return {
        "collected": len(transcripts),
        "saved": len(saved),
        "stats": (await store.stats()).model_dump(),
        "sample_transcript": {
            "id": sample.id,
            "quarter": sample.quarter,
            "date": sample.date.isoformat(),
            "source": sample.source,
            "provenance": sample.provenance.value,
            "management_remarks_length": len(sample.management_remarks),
            "qa_section_length": len(sample.qa_section),
            "participants": len(sample.participants),
        } if sample else None,
    }


# Not a pytest test despite the name.
test_collection.__test__ = False


async def _run_check(
    client: AnalysisClient,
    prompt: str,
    system_prompt: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: int = 150,
    required_key: Optional[str] = None,
) -> Dict[str, Any]:
    kwargs = {"system_prompt": system_prompt} if system_prompt else {}
    try:
        raw = await client.generate(prompt, temperature=temperature, max_tokens=max_tokens, **kwargs)
    except AnalysisServiceError as e:
        return {"success": False, "error": str(e)}

    if required_key is None:
        return {"success": True, "response": raw}
    try:
        payload = parse_llm_json(raw)
    except MalformedResponse as e:
        return {"success": False, "error": str(e), "raw": raw}
    if required_key not in payload:
        return {"success": False, "error": f"Missing '{required_key}' in response", "response": payload}
    return {"success": True, "response": payload}


async def test_analysis(client: Optional[AnalysisClient] = None) -> Dict[str, Any]:
    """
    Live analysis service check: a plain completion, then a sentiment and a
    themes JSON round-trip. Each check reports its own outcome and a failed
    check does not stop the next one.
    """
    client = client or ai_client
    tokens_before = client.total_tokens
    logger.info("Testing analysis service connection...")

    basic = await _run_check(client, prompts.CONNECTION_CHECK_PROMPT, max_tokens=10)
    if basic["success"] and "successful" not in basic["response"].lower():
        basic["success"] = False
    sentiment = await _run_check(
        client,
        prompts.SENTIMENT_CHECK_PROMPT,
        system_prompt=prompts.SENTIMENT_CHECK_SYSTEM_PROMPT,
        max_tokens=150,
        required_key="sentiment",
    )
    themes = await _run_check(
        client,
        prompts.THEMES_CHECK_PROMPT,
        system_prompt=prompts.THEMES_CHECK_SYSTEM_PROMPT,
        temperature=0.1,
        max_tokens=200,
        required_key="themes",
    )

    checks = {"basic_test": basic, "sentiment_test": sentiment, "themes_test": themes}
    passed = sum(1 for c in checks.values() if c["success"])
    logger.info(f"Analysis service test: {passed}/{len(checks)} checks passed")
    return {
        "api_key_configured": bool(client.api_key),
        "model": client.model,
        "success": passed == len(checks),
        **checks,
        "usage": {"total_tokens": client.total_tokens - tokens_before},
    }


test_analysis.__test__ = False
