"""Derived statistics for the analytics dashboard.

Everything here is a pure function of the record list and is recomputed on
every read. Records that have no analysis yet (``processing``) or never got
one (``error``) count toward the total and the average rating only.
"""
import math
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence

from physio_insight.config import config
from physio_insight.schemas import (
    SENTIMENT_LABELS,
    DashboardStats,
    FeedbackRecord,
    SentimentSlice,
    ThemeCount,
)


def average_rating(records: Sequence[FeedbackRecord]) -> str:
    """Mean rating to one decimal place, "0.0" for no records."""
    if not records:
        return "0.0"
    mean = sum(record.rating for record in records) / len(records)
    # Exact ties round up, e.g. 4.25 -> "4.3"
    return str(Decimal(mean).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def net_sentiment(records: Sequence[FeedbackRecord]) -> int:
    """Percentage of positive minus negative records, rounded half up."""
    total = len(records)
    if total == 0:
        return 0
    labels = [record.analysis.sentiment_label for record in records if record.analysis]
    positive = labels.count("Positive")
    negative = labels.count("Negative")
    return math.floor((positive - negative) / total * 100 + 0.5)


def clinical_flag_count(records: Iterable[FeedbackRecord]) -> int:
    return sum(1 for record in records if record.analysis and record.analysis.clinical_flags)


def sentiment_distribution(records: Iterable[FeedbackRecord]) -> List[SentimentSlice]:
    """Count per sentiment label, zero counts included."""
    counts = Counter(record.analysis.sentiment_label for record in records if record.analysis)
    return [SentimentSlice(name=label, value=counts[label]) for label in SENTIMENT_LABELS]


def top_themes(records: Iterable[FeedbackRecord], limit: Optional[int] = None) -> List[ThemeCount]:
    """Most frequent themes, highest count first.

    Ties keep the order in which each theme was first seen while walking the
    records newest first.
    """
    limit = config.TOP_THEMES_LIMIT if limit is None else limit
    counts: Counter = Counter()
    for record in records:
        if record.analysis:
            counts.update(record.analysis.key_themes)
    # most_common sorts stably, so equal counts stay in insertion order
    return [ThemeCount(name=name, value=value) for name, value in counts.most_common(limit)]


def build_dashboard(records: Sequence[FeedbackRecord]) -> DashboardStats:
    """Compute every dashboard figure from the full record list."""
    return DashboardStats(
        total=len(records),
        average_rating=average_rating(records),
        net_sentiment=net_sentiment(records),
        clinical_flags=clinical_flag_count(records),
        sentiment_distribution=sentiment_distribution(records),
        top_themes=top_themes(records)
    )
