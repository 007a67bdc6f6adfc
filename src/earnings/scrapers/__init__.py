"""Transcript source adapters, in the order the collector tries them."""
from src.earnings.scrapers.base import (
    ARTICLE_HEADERS,
    BROWSER_HEADERS,
    DEFAULT_HEADERS,
    SelectorExtractor,
    SourceAdapter,
    TranscriptFetcher,
)
from src.earnings.scrapers.motley_fool import MotleyFoolAdapter
from src.earnings.scrapers.seeking_alpha import SeekingAlphaAdapter
from src.earnings.scrapers.synthetic import SyntheticTranscriptGenerator, is_synthetic_url
from src.earnings.scrapers.yahoo_finance import YahooFinanceAdapter

# Priority order: most complete transcripts first.
DEFAULT_ADAPTERS = (SeekingAlphaAdapter, YahooFinanceAdapter, MotleyFoolAdapter)


def default_adapters(company_name=None, ticker=None):
    return [adapter_cls(company_name, ticker) for adapter_cls in DEFAULT_ADAPTERS]


__all__ = [
    "ARTICLE_HEADERS",
    "BROWSER_HEADERS",
    "DEFAULT_ADAPTERS",
    "DEFAULT_HEADERS",
    "MotleyFoolAdapter",
    "SeekingAlphaAdapter",
    "SelectorExtractor",
    "SourceAdapter",
    "SyntheticTranscriptGenerator",
    "TranscriptFetcher",
    "YahooFinanceAdapter",
    "default_adapters",
    "is_synthetic_url",
]
