from src.earnings.analyzers.batch import BatchAnalyzer
from src.earnings.analyzers.signal_extractor import ExtractionResult, SignalExtractor, extract_key_metrics
from src.earnings.analyzers.trend_analyzer import compute_trend

__all__ = ["BatchAnalyzer", "ExtractionResult", "SignalExtractor", "compute_trend", "extract_key_metrics"]
