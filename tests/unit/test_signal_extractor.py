"""Unit tests for per-transcript signal extraction and fallback handling."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.exceptions import AnalysisServiceError
from src.earnings import prompts
from src.earnings.analyzers.signal_extractor import (
    ExtractionResult,
    SignalExtractor,
    default_sentiment,
    default_themes,
    extract_key_metrics,
)
from src.earnings.models import FailureKind, SignalProvenance


def routed_client(management=None, qa=None, themes=None):
    """Fake analysis client answering by system prompt; values may be strings or exceptions."""
    routes = {
        prompts.MANAGEMENT_SENTIMENT_SYSTEM_PROMPT: management,
        prompts.QA_SENTIMENT_SYSTEM_PROMPT: qa,
        prompts.THEMES_SYSTEM_PROMPT: themes,
    }

    async def generate(prompt, system_prompt="", temperature=0.1, max_tokens=500):
        answer = routes[system_prompt]
        if isinstance(answer, BaseException):
            raise answer
        return answer

    client = MagicMock()
    client.generate = AsyncMock(side_effect=generate)
    return client


# --- ExtractionResult ---

def test_extraction_result_or_default():
    assert ExtractionResult.ok(3).or_default(0) == 3
    failed = ExtractionResult.failed(FailureKind.SCHEMA, "bad")
    assert failed.or_default(0) == 0
    assert not failed.is_ok


# --- Happy path ---

@pytest.mark.asyncio
async def test_extract_all_succeed(sample_transcript, sentiment_json, themes_json):
    client = routed_client(management=sentiment_json, qa=sentiment_json, themes=themes_json)
    insights = await SignalExtractor(client=client).extract(sample_transcript)

    assert insights.transcript_id == sample_transcript.id
    assert insights.quarter == "Q3 2024"
    assert insights.management_sentiment.sentiment == "positive"
    assert insights.management_sentiment.key_phrases == ["record revenue", "strong demand"]
    assert insights.theme_names == ["AI Demand", "Data Center"]
    assert insights.failures == {}
    assert insights.is_fully_extracted
    assert client.generate.await_count == 3


@pytest.mark.asyncio
async def test_extract_uses_bounded_excerpts_and_parameters(transcript_factory, sentiment_json, themes_json):
    transcript = transcript_factory(management="M" * 5000, qa="Q" * 5000)
    client = routed_client(management=sentiment_json, qa=sentiment_json, themes=themes_json)
    await SignalExtractor(client=client).extract(transcript)

    calls = {c.kwargs["system_prompt"]: c for c in client.generate.await_args_list}
    mgmt_call = calls[prompts.MANAGEMENT_SENTIMENT_SYSTEM_PROMPT]
    assert "M" * 2000 in mgmt_call.args[0]
    assert "M" * 2001 not in mgmt_call.args[0]
    assert mgmt_call.kwargs["temperature"] == 0.1
    assert mgmt_call.kwargs["max_tokens"] == 300

    themes_call = calls[prompts.THEMES_SYSTEM_PROMPT]
    assert themes_call.kwargs["temperature"] == 0.2
    assert themes_call.kwargs["max_tokens"] == 500


@pytest.mark.asyncio
async def test_fenced_json_is_accepted(sample_transcript, sentiment_json, themes_json):
    client = routed_client(
        management=f"```json\n{sentiment_json}\n```",
        qa=sentiment_json,
        themes=themes_json,
    )
    insights = await SignalExtractor(client=client).extract(sample_transcript)
    assert insights.failures == {}


@pytest.mark.asyncio
async def test_service_cannot_claim_fallback_provenance(sample_transcript, themes_json):
    claimed = '{"sentiment": "neutral", "score": 0, "confidence": 0.4, "keyPhrases": [], "provenance": "fallback"}'
    client = routed_client(management=claimed, qa=claimed, themes=themes_json)
    insights = await SignalExtractor(client=client).extract(sample_transcript)
    assert insights.management_sentiment.provenance == SignalProvenance.EXTRACTED


@pytest.mark.asyncio
async def test_three_calls_run_concurrently(sample_transcript, sentiment_json, themes_json):
    answers = {
        prompts.MANAGEMENT_SENTIMENT_SYSTEM_PROMPT: sentiment_json,
        prompts.QA_SENTIMENT_SYSTEM_PROMPT: sentiment_json,
        prompts.THEMES_SYSTEM_PROMPT: themes_json,
    }
    all_started = asyncio.Event()
    in_flight = []

    async def generate(prompt, system_prompt="", temperature=0.1, max_tokens=500):
        in_flight.append(system_prompt)
        if len(in_flight) == len(answers):
            all_started.set()
        # Only returns once every call has started; run one at a time, each would time out
        await asyncio.wait_for(all_started.wait(), timeout=1.0)
        return answers[system_prompt]

    client = MagicMock()
    client.generate = AsyncMock(side_effect=generate)

    insights = await SignalExtractor(client=client).extract(sample_transcript)

    assert insights.failures == {}
    assert len(in_flight) == 3


# --- Failure isolation ---

@pytest.mark.asyncio
async def test_transport_failure_isolated(sample_transcript, sentiment_json, themes_json):
    client = routed_client(
        management=AnalysisServiceError("503 from upstream"),
        qa=sentiment_json,
        themes=themes_json,
    )
    insights = await SignalExtractor(client=client).extract(sample_transcript)

    assert insights.failures == {"management_sentiment": FailureKind.TRANSPORT}
    assert insights.management_sentiment == default_sentiment()
    assert insights.management_sentiment.is_fallback
    assert insights.qa_sentiment.sentiment == "positive"
    assert insights.theme_names == ["AI Demand", "Data Center"]


@pytest.mark.asyncio
async def test_timeout_is_transport_failure(sample_transcript, sentiment_json, themes_json):
    client = routed_client(management=sentiment_json, qa=asyncio.TimeoutError(), themes=themes_json)
    insights = await SignalExtractor(client=client).extract(sample_transcript)
    assert insights.failures == {"qa_sentiment": FailureKind.TRANSPORT}


@pytest.mark.asyncio
async def test_malformed_response_falls_back(sample_transcript, sentiment_json):
    client = routed_client(management=sentiment_json, qa="", themes="[1, 2, 3]")
    insights = await SignalExtractor(client=client).extract(sample_transcript)

    assert insights.failures == {
        "qa_sentiment": FailureKind.MALFORMED,
        "strategic_focuses": FailureKind.MALFORMED,
    }
    assert insights.strategic_focuses == default_themes()


@pytest.mark.asyncio
async def test_schema_violation_falls_back(sample_transcript, sentiment_json):
    out_of_range = '{"sentiment": "ecstatic", "score": 3, "confidence": 0.9}'
    bad_category = '{"themes": [{"theme": "AI", "importance": 0.5, "category": "vibes"}]}'
    client = routed_client(management=out_of_range, qa=sentiment_json, themes=bad_category)
    insights = await SignalExtractor(client=client).extract(sample_transcript)

    assert insights.failures["management_sentiment"] == FailureKind.SCHEMA
    assert insights.failures["strategic_focuses"] == FailureKind.SCHEMA
    assert insights.theme_names == ["General Business Operations"]


@pytest.mark.asyncio
async def test_missing_themes_key_is_schema_violation(sample_transcript, sentiment_json):
    client = routed_client(management=sentiment_json, qa=sentiment_json, themes='{"topics": []}')
    insights = await SignalExtractor(client=client).extract(sample_transcript)
    assert insights.failures == {"strategic_focuses": FailureKind.SCHEMA}


@pytest.mark.asyncio
async def test_everything_failing_still_produces_record(sample_transcript):
    error = AnalysisServiceError("down")
    client = routed_client(management=error, qa=error, themes=error)
    insights = await SignalExtractor(client=client).extract(sample_transcript)

    assert len(insights.failures) == 3
    assert insights.management_sentiment.sentiment == "neutral"
    assert insights.management_sentiment.score == 0
    assert insights.management_sentiment.confidence == 0.5
    assert insights.management_sentiment.key_phrases == ["analysis unavailable"]
    assert insights.strategic_focuses[0].provenance == SignalProvenance.FALLBACK


@pytest.mark.asyncio
async def test_unexpected_client_error_does_not_escape(sample_transcript, sentiment_json, themes_json):
    client = routed_client(management=RuntimeError("boom"), qa=sentiment_json, themes=themes_json)
    insights = await SignalExtractor(client=client).extract(sample_transcript)
    assert insights.failures == {"management_sentiment": FailureKind.TRANSPORT}


def test_key_phrases_capped():
    from src.earnings.models import SentimentSignal

    signal = SentimentSignal(sentiment="positive", score=0.5, confidence=0.5, keyPhrases=list("abcdefg"))
    assert signal.key_phrases == ["a", "b", "c", "d", "e"]


# --- Key metrics ---

def test_extract_key_metrics_finds_revenue_and_guidance():
    text = (
        "Revenue reached $35.1B this quarter, up 94% year over year.\n"
        "For Q4, our guidance calls for revenue of $37.5 billion plus or minus 2%."
    )
    metrics = extract_key_metrics(text)
    assert metrics.revenue == "$35.1B"
    assert metrics.guidance == "$37.5 billion"
    assert metrics.market_cap is None


def test_extract_key_metrics_absent_leaves_fields_unset():
    metrics = extract_key_metrics("Revenue grew nicely. No figures given.")
    assert metrics.revenue is None
    assert metrics.guidance is None


def test_extract_key_metrics_does_not_cross_lines():
    metrics = extract_key_metrics("Revenue commentary follows.\nWe bought back $5 billion of stock.")
    assert metrics.revenue is None
