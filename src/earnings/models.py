"""
Earnings insight data model.

These are transfer objects (pydantic models), NOT database models.
For SQLAlchemy ORM models, see src/earnings/database.py.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.utils import sanitize_file_name

SentimentLabel = Literal["positive", "neutral", "negative"]
ThemeCategory = Literal["product", "market", "technology", "financial", "strategic"]
Significance = Literal["major", "moderate", "minor"]
TrendDirection = Literal["improving", "declining", "stable"]
ShiftDirection = Literal["improved", "declined", "no change"]

MAX_KEY_PHRASES = 5


class DocumentProvenance(str, Enum):
    SCRAPED = "scraped"
    SYNTHETIC = "synthetic"


class SignalProvenance(str, Enum):
    EXTRACTED = "extracted"
    FALLBACK = "fallback"


class FailureKind(str, Enum):
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    SCHEMA = "schema"


def _now() -> datetime:
    return datetime.utcnow()


def make_transcript_id(ticker: str, quarter: str, when: datetime) -> str:
    """Stable id from quarter label + calendar date: re-deriving the same transcript upserts."""
    return f"{ticker.lower()}_{sanitize_file_name(quarter)}_{when.date().isoformat()}"


# ---------------------------------------------------------------------------
# Acquisition
# ---------------------------------------------------------------------------

class Candidate(BaseModel):
    """A transcript link discovered by a source adapter, not yet fetched."""
    url: str
    title: str
    quarter: str
    date: datetime
    source: str


class Transcript(BaseModel):
    """One quarter's earnings-call text, split into management remarks and Q&A."""
    id: str
    quarter: str
    fiscal_year: int
    date: datetime
    url: str
    company: str
    source: str = ""
    management_remarks: str = ""
    qa_section: str = ""
    full_transcript: str = ""
    participants: List[str] = Field(default_factory=list)
    provenance: DocumentProvenance = DocumentProvenance.SCRAPED
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def is_synthetic(self) -> bool:
        return self.provenance == DocumentProvenance.SYNTHETIC


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------

class SentimentSignal(BaseModel):
    """
    Sentiment for one section of a call.

    `sentiment` and `score` usually agree in direction but nothing enforces it;
    the analysis service may legally return e.g. "positive" with -0.1.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sentiment: SentimentLabel
    score: float = Field(ge=-1.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    key_phrases: List[str] = Field(default_factory=list, alias="keyPhrases")
    reasoning: str = ""
    provenance: SignalProvenance = SignalProvenance.EXTRACTED

    @field_validator("key_phrases")
    @classmethod
    def cap_key_phrases(cls, v: List[str]) -> List[str]:
        return [str(p) for p in v][:MAX_KEY_PHRASES]

    @property
    def is_fallback(self) -> bool:
        return self.provenance == SignalProvenance.FALLBACK


class ThemeSignal(BaseModel):
    """A strategic theme. `theme` is the identity key when diffing quarters."""
    model_config = ConfigDict(frozen=True)

    theme: str = Field(min_length=1)
    mentions: int = Field(default=1, ge=0)
    importance: float = Field(ge=0.0, le=1.0)
    quotes: List[str] = Field(default_factory=list)
    category: ThemeCategory
    provenance: SignalProvenance = SignalProvenance.EXTRACTED

    @field_validator("theme")
    @classmethod
    def strip_theme(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("theme must not be blank")
        return v


class ThemeExtraction(BaseModel):
    """Expected response shape for theme extraction: {"themes": [...]}."""
    themes: List[ThemeSignal]


class KeyMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    revenue: Optional[str] = None
    guidance: Optional[str] = None
    market_cap: Optional[str] = None


class QuarterInsights(BaseModel):
    """
    Signals extracted from one transcript. Created once, never mutated;
    re-analysis produces a new record that replaces the old one by transcript_id.
    """
    model_config = ConfigDict(frozen=True)

    transcript_id: str
    quarter: str
    management_sentiment: SentimentSignal
    qa_sentiment: SentimentSignal
    strategic_focuses: List[ThemeSignal] = Field(default_factory=list)
    key_metrics: KeyMetrics = Field(default_factory=KeyMetrics)
    # sub-extraction name ("management_sentiment", "qa_sentiment", "strategic_focuses") -> failure kind
    failures: Dict[str, FailureKind] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=_now)

    @property
    def theme_names(self) -> List[str]:
        return [f.theme for f in self.strategic_focuses]

    @property
    def is_fully_extracted(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------

class SentimentPoint(BaseModel):
    quarter: str
    score: float
    sentiment: SentimentLabel
    is_fallback: bool = False


class SentimentTrend(BaseModel):
    management: List[SentimentPoint] = Field(default_factory=list)
    qa: List[SentimentPoint] = Field(default_factory=list)


class SentimentChange(BaseModel):
    score_delta: float
    sentiment_shift: str
    shift_direction: ShiftDirection
    significance: Significance
    # label-based shift and numeric delta point in opposite directions
    direction_disagrees: bool = False


class QuarterChange(BaseModel):
    quarter: str
    previous_quarter: str
    management_change: SentimentChange
    qa_change: SentimentChange


class ThemeEvolution(BaseModel):
    quarter: str
    emerging_themes: List[str] = Field(default_factory=list)
    declining_themes: List[str] = Field(default_factory=list)
    consistent_themes: List[str] = Field(default_factory=list)


class TrendSummary(BaseModel):
    management_trend: TrendDirection = "stable"
    qa_trend: TrendDirection = "stable"
    strategic_shift: str
    key_changes: List[str] = Field(min_length=1)


class TrendReport(BaseModel):
    quarters: List[str] = Field(default_factory=list)
    sentiment_trend: SentimentTrend = Field(default_factory=SentimentTrend)
    quarter_over_quarter_changes: List[QuarterChange] = Field(default_factory=list)
    strategic_evolution: List[ThemeEvolution] = Field(default_factory=list)
    overall_trend_summary: TrendSummary
