"""
Error taxonomy for the earnings insight pipeline.

Everything below the document/record boundary is absorbed where it happens
(retry, skip or fallback value). MalformedQuarterLabel is the one error that
propagates to callers of the trend analyzer.
"""
from typing import Any, Dict, Optional


class EarningsInsightError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details: Dict[str, Any] = details or {}


# --- Acquisition ---

class FetchError(EarningsInsightError):
    """A candidate fetch did not yield usable content. Retried, then skipped."""

    def __init__(self, message: str = "Fetch failed", url: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.url = url


class TransportFailure(FetchError):
    """Timeout, connection error or non-2xx response."""

    def __init__(self, message: str = "Transport failure", url: str = "", status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, url=url, details=details)
        self.status = status


class ContentTooShort(FetchError):
    """Extracted text is below the minimum length; treated like a transport failure."""

    def __init__(self, url: str = "", length: int = 0, minimum: int = 0):
        super().__init__(
            f"Transcript content too short ({length} < {minimum} chars) - may not have scraped correctly",
            url=url,
            details={"length": length, "minimum": minimum},
        )
        self.length = length
        self.minimum = minimum


# --- Analysis service ---

class AnalysisServiceError(EarningsInsightError):
    """The analysis service could not be reached or answered with an error status."""


class MalformedResponse(EarningsInsightError):
    """The analysis service answered with something that is not a JSON object."""


class SchemaViolation(EarningsInsightError):
    """The analysis service answered with JSON that does not match the expected shape."""


# --- Trend analysis ---

class MalformedQuarterLabel(EarningsInsightError, ValueError):
    """A quarter label is not of the form 'Q{1-4} {year}'."""

    def __init__(self, label: str):
        super().__init__(f"Invalid quarter format: {label!r} (expected 'Q1 2024')", details={"label": label})
        self.label = label
