"""
Earnings transcript and insight tables.
One transcript row per id (ticker + quarter + date); one insights row per transcript.
Re-analysis replaces the insights row, it never appends.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database import Base


class TranscriptModel(Base):
    __tablename__ = "earnings_transcripts"

    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    quarter: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    source: Mapped[str] = mapped_column(String(50), default="")
    management_remarks: Mapped[str] = mapped_column(Text, default="")
    qa_section: Mapped[str] = mapped_column(Text, default="")
    full_transcript: Mapped[str] = mapped_column(Text, default="")
    participants: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    provenance: Mapped[str] = mapped_column(String(20), default="scraped")  # scraped | synthetic
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<TranscriptModel(id={self.id}, quarter={self.quarter}, provenance={self.provenance})>"


class QuarterInsightsModel(Base):
    __tablename__ = "earnings_quarter_insights"

    transcript_id: Mapped[str] = mapped_column(String(120), primary_key=True)  # FK-by-convention to earnings_transcripts.id
    quarter: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    management_sentiment: Mapped[dict] = mapped_column(JSON, nullable=False)
    qa_sentiment: Mapped[dict] = mapped_column(JSON, nullable=False)
    strategic_focuses: Mapped[list] = mapped_column(JSON, nullable=False)
    key_metrics: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    # {sub_extraction: transport|malformed|schema}
    failures: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<QuarterInsightsModel(transcript_id={self.transcript_id}, quarter={self.quarter})>"
