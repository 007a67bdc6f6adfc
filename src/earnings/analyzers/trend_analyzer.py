"""
Quarter-over-quarter trend computation.

Pure functions over QuarterInsights: no I/O, no clock, no analysis calls.
Quarter labels are a hard precondition; a malformed label raises
MalformedQuarterLabel instead of being reordered on a guess.
"""
import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from src.core.utils import parse_quarter
from src.earnings.models import (
    QuarterChange,
    QuarterInsights,
    SentimentChange,
    SentimentPoint,
    SentimentSignal,
    SentimentTrend,
    Significance,
    ThemeEvolution,
    TrendDirection,
    TrendReport,
    TrendSummary,
)

logger = logging.getLogger(__name__)

SENTIMENT_ORDER: Dict[str, int] = {"negative": 0, "neutral": 1, "positive": 2}

MAJOR_THRESHOLD = 0.5
MODERATE_THRESHOLD = 0.2
TREND_THRESHOLD = 0.2
# Deltas are rounded before tiering so 0.3 - 0.1 lands on 0.2, not 0.19999999999999998.
DELTA_PRECISION = 6

NO_SHIFT = "No significant strategic shifts detected"
INSUFFICIENT_DATA = "Insufficient data for trend analysis"
NEED_MORE_QUARTERS = "Need at least 2 quarters for comparison"
NO_CHANGES = "No significant changes detected across quarters"


def sort_by_quarter(records: Sequence[QuarterInsights]) -> List[QuarterInsights]:
    """Oldest first. Stable for duplicate labels. Raises MalformedQuarterLabel."""
    keyed = []
    for record in records:
        q, year = parse_quarter(record.quarter)
        keyed.append(((year, q), record))
    keyed.sort(key=lambda pair: pair[0])
    return [record for _, record in keyed]


def significance_for(delta: float) -> Significance:
    magnitude = abs(round(delta, DELTA_PRECISION))
    if magnitude >= MAJOR_THRESHOLD:
        return "major"
    if magnitude >= MODERATE_THRESHOLD:
        return "moderate"
    return "minor"


def describe_sentiment_shift(previous: str, current: str) -> str:
    """Label-based shift text; deliberately ignores the numeric scores."""
    before = SENTIMENT_ORDER.get(previous, 1)
    after = SENTIMENT_ORDER.get(current, 1)
    if after > before:
        return f"Improved from {previous} to {current}"
    if after < before:
        return f"Declined from {previous} to {current}"
    return "No change"


def sentiment_change(previous: SentimentSignal, current: SentimentSignal) -> SentimentChange:
    delta = round(current.score - previous.score, DELTA_PRECISION)
    label_step = SENTIMENT_ORDER.get(current.sentiment, 1) - SENTIMENT_ORDER.get(previous.sentiment, 1)
    if label_step > 0:
        direction = "improved"
    elif label_step < 0:
        direction = "declined"
    else:
        direction = "no change"
    return SentimentChange(
        score_delta=delta,
        sentiment_shift=describe_sentiment_shift(previous.sentiment, current.sentiment),
        shift_direction=direction,
        significance=significance_for(delta),
        direction_disagrees=(label_step > 0 and delta < 0) or (label_step < 0 and delta > 0),
    )


def overall_trend(points: Sequence[SentimentPoint]) -> TrendDirection:
    if len(points) < 2:
        return "stable"
    difference = round(points[-1].score - points[0].score, DELTA_PRECISION)
    if difference > TREND_THRESHOLD:
        return "improving"
    if difference < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def most_common_theme(themes: Sequence[str]) -> Optional[str]:
    """Most frequent name; ties go to whichever appeared first."""
    if not themes:
        return None
    counts = Counter(themes)
    best = max(counts.values())
    return next(t for t in themes if counts[t] == best)


def theme_evolution(records: Sequence[QuarterInsights]) -> List[ThemeEvolution]:
    """Per-quarter set diff of theme names against the preceding quarter, first-appearance order."""
    evolution: List[ThemeEvolution] = []
    previous: Optional[List[str]] = None
    for record in records:
        current = _unique(record.theme_names)
        if previous is None:
            evolution.append(ThemeEvolution(quarter=record.quarter, consistent_themes=current))
        else:
            prev_set, cur_set = set(previous), set(current)
            evolution.append(ThemeEvolution(
                quarter=record.quarter,
                emerging_themes=[t for t in current if t not in prev_set],
                declining_themes=[t for t in previous if t not in cur_set],
                consistent_themes=[t for t in current if t in prev_set],
            ))
        previous = current
    return evolution


def key_changes(management_trend: TrendDirection, qa_trend: TrendDirection, emerging: Sequence[str]) -> List[str]:
    changes: List[str] = []
    if management_trend == "improving":
        changes.append("Management sentiment has improved over time")
    elif management_trend == "declining":
        changes.append("Management sentiment has declined over time")

    if qa_trend == "improving":
        changes.append("Q&A sentiment has become more positive")
    elif qa_trend == "declining":
        changes.append("Q&A sentiment has become more negative")

    if emerging:
        changes.append(f"New strategic focus areas emerged: {', '.join(emerging[:2])}")

    return changes or [NO_CHANGES]


def compute_trend(records: Sequence[QuarterInsights]) -> TrendReport:
    """
    Build a TrendReport from per-quarter insights.

    With fewer than two records the report still carries the sentiment series,
    but changes and theme evolution are empty and both trends are "stable".
    """
    ordered = sort_by_quarter(records)
    sentiment_trend = SentimentTrend(
        management=[_point(r.quarter, r.management_sentiment) for r in ordered],
        qa=[_point(r.quarter, r.qa_sentiment) for r in ordered],
    )
    quarters = [r.quarter for r in ordered]

    if len(ordered) < 2:
        return TrendReport(
            quarters=quarters,
            sentiment_trend=sentiment_trend,
            overall_trend_summary=TrendSummary(
                management_trend="stable",
                qa_trend="stable",
                strategic_shift=INSUFFICIENT_DATA,
                key_changes=[NEED_MORE_QUARTERS],
            ),
        )

    changes = [
        QuarterChange(
            quarter=current.quarter,
            previous_quarter=previous.quarter,
            management_change=sentiment_change(previous.management_sentiment, current.management_sentiment),
            qa_change=sentiment_change(previous.qa_sentiment, current.qa_sentiment),
        )
        for previous, current in zip(ordered, ordered[1:])
    ]
    evolution = theme_evolution(ordered)

    emerging = [t for e in evolution for t in e.emerging_themes]
    management_trend = overall_trend(sentiment_trend.management)
    qa_trend = overall_trend(sentiment_trend.qa)

    logger.debug(f"Computed trend over {len(quarters)} quarters: management={management_trend}, qa={qa_trend}")
    return TrendReport(
        quarters=quarters,
        sentiment_trend=sentiment_trend,
        quarter_over_quarter_changes=changes,
        strategic_evolution=evolution,
        overall_trend_summary=TrendSummary(
            management_trend=management_trend,
            qa_trend=qa_trend,
            strategic_shift=most_common_theme(emerging) or NO_SHIFT,
            key_changes=key_changes(management_trend, qa_trend, emerging),
        ),
    )


def _point(quarter: str, signal: SentimentSignal) -> SentimentPoint:
    return SentimentPoint(quarter=quarter, score=signal.score, sentiment=signal.sentiment, is_fallback=signal.is_fallback)


def _unique(names: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result
