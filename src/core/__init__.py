"""
Core Module - Shared Infrastructure.
"""

from src.core.config import settings, Settings
from src.core.database import Base, get_async_db
from src.core.exceptions import (
    EarningsInsightError,
    FetchError,
    TransportFailure,
    ContentTooShort,
    AnalysisServiceError,
    MalformedResponse,
    SchemaViolation,
    MalformedQuarterLabel,
)

__all__ = [
    "settings",
    "Settings",
    "Base",
    "get_async_db",
    "EarningsInsightError",
    "FetchError",
    "TransportFailure",
    "ContentTooShort",
    "AnalysisServiceError",
    "MalformedResponse",
    "SchemaViolation",
    "MalformedQuarterLabel",
]
