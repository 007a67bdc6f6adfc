"""
Shared pytest fixtures for the earnings insight test suite.
"""
from datetime import datetime
from typing import List, Optional, Sequence

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.database import Base
from src.core.rate_limiter import RateLimiter
from src.earnings import prompts
from src.earnings import database as earnings_db  # noqa: F401 - registers tables on Base
from src.earnings.models import (
    QuarterInsights,
    SentimentSignal,
    SignalProvenance,
    ThemeSignal,
    Transcript,
    make_transcript_id,
)


# --- Time Fixtures ---

class FakeClock:
    """Monotonic clock whose sleep() advances time instantly and records each wait."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fast_limiter(fake_clock):
    """RateLimiter wired to the fake clock: spacing is enforced but never actually waited."""
    def _make(min_interval: float = 1.0, name: str = "test") -> RateLimiter:
        return RateLimiter(min_interval=min_interval, name=name, clock=fake_clock, sleep=fake_clock.sleep)
    return _make


# --- Analysis Service Fixtures ---

class FakeAnalysisClient:
    """Analysis client double answering by system prompt; exception answers are raised."""

    def __init__(self, answers=None, default: str = "", api_key: str = "test-key", tokens_per_call: int = 10):
        self.answers = answers or {}
        self.default = default
        self.api_key = api_key
        self.model = "test-model"
        self.tokens_per_call = tokens_per_call
        self.total_tokens = 0
        self.calls: List[dict] = []

    async def generate(self, prompt, system_prompt="You are a helpful assistant.", temperature=0.1, max_tokens=500):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "max_tokens": max_tokens})
        answer = self.answers.get(system_prompt, self.default)
        if isinstance(answer, BaseException):
            raise answer
        self.total_tokens += self.tokens_per_call
        return answer


@pytest.fixture
def analysis_client_factory():
    return FakeAnalysisClient


@pytest.fixture
def healthy_analysis_client():
    return FakeAnalysisClient(
        answers={
            prompts.SENTIMENT_CHECK_SYSTEM_PROMPT: '{"sentiment": "positive", "confidence": 0.9, "reasoning": "record growth"}',
            prompts.THEMES_CHECK_SYSTEM_PROMPT: '```json\n{"themes": [{"theme": "AI", "category": "technology", "mentions": 2}]}\n```',
        },
        default="Connection successful",
    )


# --- Database Fixtures ---

@pytest.fixture
async def async_session_factory():
    """Async in-memory SQLite session factory with earnings tables created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await engine.dispose()


# --- Model Factories ---

def make_sentiment(
    score: float = 0.0,
    sentiment: Optional[str] = None,
    provenance: SignalProvenance = SignalProvenance.EXTRACTED,
) -> SentimentSignal:
    if sentiment is None:
        sentiment = "positive" if score > 0.1 else "negative" if score < -0.1 else "neutral"
    return SentimentSignal(
        sentiment=sentiment,
        score=score,
        confidence=0.8,
        key_phrases=["demand", "growth"],
        reasoning="test",
        provenance=provenance,
    )


def make_theme(name: str, category: str = "strategic") -> ThemeSignal:
    return ThemeSignal(theme=name, mentions=2, importance=0.7, quotes=[f"{name} quote"], category=category)


def make_insights(
    quarter: str,
    management_score: float = 0.0,
    qa_score: float = 0.0,
    themes: Sequence[str] = (),
    management_label: Optional[str] = None,
    qa_label: Optional[str] = None,
    transcript_id: Optional[str] = None,
) -> QuarterInsights:
    return QuarterInsights(
        transcript_id=transcript_id or f"nvda_{quarter.lower().replace(' ', '_')}",
        quarter=quarter,
        management_sentiment=make_sentiment(management_score, management_label),
        qa_sentiment=make_sentiment(qa_score, qa_label),
        strategic_focuses=[make_theme(t) for t in themes],
        generated_at=datetime(2024, 12, 31),
    )


def make_transcript(
    quarter: str = "Q3 2024",
    date: datetime = datetime(2024, 9, 15),
    management: str = "Management remarks. " * 40,
    qa: str = "Question-and-Answer Session\nOperator: first question. " * 20,
    source: str = "Seeking Alpha",
) -> Transcript:
    return Transcript(
        id=make_transcript_id("NVDA", quarter, date),
        quarter=quarter,
        fiscal_year=int(quarter.split()[1]),
        date=date,
        url=f"https://example.com/{quarter.replace(' ', '-').lower()}",
        company="NVIDIA",
        source=source,
        management_remarks=management,
        qa_section=qa,
        full_transcript=f"{management}\n\n{qa}",
        participants=["Jane Doe"],
    )


@pytest.fixture
def insights_factory():
    return make_insights


@pytest.fixture
def transcript_factory():
    return make_transcript


@pytest.fixture
def sample_transcript():
    return make_transcript()


@pytest.fixture
def sentiment_json():
    return (
        '{"sentiment": "positive", "score": 0.7, "confidence": 0.9, '
        '"keyPhrases": ["record revenue", "strong demand"], "reasoning": "Upbeat tone"}'
    )


@pytest.fixture
def themes_json():
    return (
        '{"themes": [{"theme": "AI Demand", "mentions": 5, "importance": 0.9, '
        '"quotes": ["demand is incredible"], "category": "market"}, '
        '{"theme": "Data Center", "mentions": 3, "importance": 0.8, "quotes": [], "category": "product"}]}'
    )
