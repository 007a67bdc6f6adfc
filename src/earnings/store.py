"""
Insight storage.

InsightStore is the only persistence seam the pipeline knows about. Writes are
upserts keyed by id: the last write for a transcript (or its insights) wins.

- InMemoryInsightStore: volatile, the default.
- SqlInsightStore: SQLAlchemy async ORM over src.earnings.database tables.
"""
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from src.earnings.database import QuarterInsightsModel, TranscriptModel
from src.earnings.models import QuarterInsights, Transcript

logger = logging.getLogger(__name__)


class StoreStats(BaseModel):
    document_count: int = 0
    record_count: int = 0


class InsightStore(Protocol):
    async def put_transcript(self, transcript: Transcript) -> None: ...

    async def put_insights(self, insights: QuarterInsights) -> None: ...

    async def all_transcripts(self) -> List[Transcript]: ...

    async def all_insights(self) -> List[QuarterInsights]: ...

    async def get_insights(self, transcript_id: str) -> Optional[QuarterInsights]: ...

    async def stats(self) -> StoreStats: ...


class InMemoryInsightStore:
    def __init__(self):
        self._transcripts: Dict[str, Transcript] = {}
        self._insights: Dict[str, QuarterInsights] = {}

    async def put_transcript(self, transcript: Transcript) -> None:
        self._transcripts[transcript.id] = transcript

    async def put_insights(self, insights: QuarterInsights) -> None:
        self._insights[insights.transcript_id] = insights

    async def all_transcripts(self) -> List[Transcript]:
        return list(self._transcripts.values())

    async def all_insights(self) -> List[QuarterInsights]:
        return list(self._insights.values())

    async def get_transcript(self, transcript_id: str) -> Optional[Transcript]:
        return self._transcripts.get(transcript_id)

    async def get_insights(self, transcript_id: str) -> Optional[QuarterInsights]:
        return self._insights.get(transcript_id)

    async def transcripts_for_quarters(self, quarters: Sequence[str]) -> List[Transcript]:
        wanted = set(quarters)
        return [t for t in self._transcripts.values() if t.quarter in wanted]

    async def stats(self) -> StoreStats:
        return StoreStats(document_count=len(self._transcripts), record_count=len(self._insights))

    async def clear(self) -> None:
        self._transcripts.clear()
        self._insights.clear()


class SqlInsightStore:
    """
    Usage:
        store = SqlInsightStore(get_session_factory())
        await store.put_transcript(transcript)
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def put_transcript(self, transcript: Transcript) -> None:
        row = TranscriptModel(**transcript.model_dump(mode="json", exclude={"date", "created_at", "updated_at"}))
        row.date = transcript.date
        row.created_at = transcript.created_at
        row.updated_at = transcript.updated_at
        async with self.session_factory() as session:
            await session.merge(row)
            await session.commit()

    async def put_insights(self, insights: QuarterInsights) -> None:
        data = insights.model_dump(mode="json", by_alias=False)
        row = QuarterInsightsModel(
            transcript_id=insights.transcript_id,
            quarter=insights.quarter,
            management_sentiment=data["management_sentiment"],
            qa_sentiment=data["qa_sentiment"],
            strategic_focuses=data["strategic_focuses"],
            key_metrics=data["key_metrics"],
            failures=data["failures"],
            generated_at=insights.generated_at,
        )
        async with self.session_factory() as session:
            await session.merge(row)
            await session.commit()

    async def all_transcripts(self) -> List[Transcript]:
        async with self.session_factory() as session:
            result = await session.execute(select(TranscriptModel).order_by(TranscriptModel.date.desc()))
            return [_to_transcript(row) for row in result.scalars().all()]

    async def all_insights(self) -> List[QuarterInsights]:
        async with self.session_factory() as session:
            result = await session.execute(select(QuarterInsightsModel))
            return [_to_insights(row) for row in result.scalars().all()]

    async def get_transcript(self, transcript_id: str) -> Optional[Transcript]:
        async with self.session_factory() as session:
            row = await session.get(TranscriptModel, transcript_id)
            return _to_transcript(row) if row else None

    async def get_insights(self, transcript_id: str) -> Optional[QuarterInsights]:
        async with self.session_factory() as session:
            row = await session.get(QuarterInsightsModel, transcript_id)
            return _to_insights(row) if row else None

    async def transcripts_for_quarters(self, quarters: Sequence[str]) -> List[Transcript]:
        async with self.session_factory() as session:
            result = await session.execute(select(TranscriptModel).where(TranscriptModel.quarter.in_(list(quarters))))
            return [_to_transcript(row) for row in result.scalars().all()]

    async def stats(self) -> StoreStats:
        async with self.session_factory() as session:
            documents = await session.scalar(select(func.count()).select_from(TranscriptModel))
            records = await session.scalar(select(func.count()).select_from(QuarterInsightsModel))
        return StoreStats(document_count=documents or 0, record_count=records or 0)


def _to_transcript(row: TranscriptModel) -> Transcript:
    data = row.to_dict()
    data["date"] = row.date
    data["created_at"] = row.created_at
    data["updated_at"] = row.updated_at
    data["participants"] = row.participants or []
    return Transcript.model_validate(data)


def _to_insights(row: QuarterInsightsModel) -> QuarterInsights:
    return QuarterInsights.model_validate({
        "transcript_id": row.transcript_id,
        "quarter": row.quarter,
        "management_sentiment": row.management_sentiment,
        "qa_sentiment": row.qa_sentiment,
        "strategic_focuses": row.strategic_focuses,
        "key_metrics": row.key_metrics or {},
        "failures": row.failures or {},
        "generated_at": row.generated_at,
    })
