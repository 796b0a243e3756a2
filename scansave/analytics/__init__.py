"""Spending analytics package."""

from scansave.analytics.weekly import (
    SummaryLine,
    WeeklySentinel,
    WeeklySummary,
    WeeklyTrendAggregator,
    WeeklyTrendTracker,
    parse_summary,
)

__all__ = [
    "SummaryLine",
    "WeeklySentinel",
    "WeeklySummary",
    "WeeklyTrendAggregator",
    "WeeklyTrendTracker",
    "parse_summary",
]
