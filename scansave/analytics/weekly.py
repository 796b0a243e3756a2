"""
Weekly Trend Analytics

DESIGN DECISION: Recompute is explicit.
The orchestrator calls WeeklyTrendTracker.refresh() after every ledger
mutation and language change. Nothing here watches the ledger.

FLOW:
1. Window the ledger to the last N days (calendar dates)
2. Too few receipts -> sentinel, no service call
3. Otherwise one generative call for the structured summary

Overlapping refreshes are resolved by generation: only the result of the
most recent trigger is kept, earlier completions are discarded.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Union

from pydantic import BaseModel

from scansave.agents import EnrichmentError, InsightAgent
from scansave.audit import AuditLogger
from scansave.config import AppSettings, get_settings
from scansave.models.receipt import ReceiptRecord
from scansave.validation import parse_receipt_date


class WeeklySentinel(Enum):
    """
    Non-text weekly results.

    The value is the translation key the presentation layer renders, so a
    sentinel can never be mistaken for generated text.
    """
    INSUFFICIENT_DATA = "dashboard.weeklySummaryNotEnoughData"


WeeklySummary = Union[str, WeeklySentinel]


class SummaryLine(BaseModel):
    """One rendered line of a weekly summary."""

    text: str
    is_heading: bool = False


def parse_summary(text: str) -> list[SummaryLine]:
    """
    Split summary text into lines.

    A line wrapped in '**' is a heading; the markers are removed. Blank
    lines are dropped.
    """
    lines = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if len(line) > 4 and line.startswith("**") and line.endswith("**"):
            lines.append(SummaryLine(text=line[2:-2].strip(), is_heading=True))
        else:
            lines.append(SummaryLine(text=line))
    return lines


class WeeklyTrendAggregator:
    """Selects the recent receipts and asks for the weekly analysis."""

    def __init__(
        self,
        agent: Optional[InsightAgent] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._agent = agent or InsightAgent()
        self._settings = settings or get_settings().app

    def recent(
        self,
        records: Iterable[ReceiptRecord],
        today: Optional[date] = None,
    ) -> list[ReceiptRecord]:
        """Records from the last window_days calendar days, today included. Unparseable dates are excluded."""
        today = today or date.today()
        cutoff = today - timedelta(days=self._settings.weekly_window_days - 1)
        recent = []
        for record in records:
            parsed = parse_receipt_date(record.date)
            if parsed is not None and parsed >= cutoff:
                recent.append(record)
        return recent

    async def recompute(
        self,
        records: Iterable[ReceiptRecord],
        language: str,
        now: Optional[datetime] = None,
    ) -> WeeklySummary:
        """
        Produce the weekly summary text or the insufficient-data sentinel.

        Raises:
            EnrichmentError: If the service call fails
        """
        today = (now or datetime.now()).date()
        recent = self.recent(records, today)
        if len(recent) < self._settings.weekly_min_receipts:
            return WeeklySentinel.INSUFFICIENT_DATA
        return await self._agent.generate_weekly_analysis(recent, language)


class WeeklyTrendTracker:
    """
    Holds the current weekly summary.

    summary is None when the ledger is empty (nothing to show yet).
    """

    def __init__(
        self,
        aggregator: WeeklyTrendAggregator,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._aggregator = aggregator
        self._audit = audit_logger or AuditLogger()
        self._summary: Optional[WeeklySummary] = None
        self._generation = 0

    @property
    def summary(self) -> Optional[WeeklySummary]:
        return self._summary

    @property
    def has_insufficient_data(self) -> bool:
        return self._summary is WeeklySentinel.INSUFFICIENT_DATA

    def summary_lines(self) -> list[SummaryLine]:
        if isinstance(self._summary, str):
            return parse_summary(self._summary)
        return []

    async def refresh(
        self,
        records: Iterable[ReceiptRecord],
        language: str,
        now: Optional[datetime] = None,
    ) -> Optional[WeeklySummary]:
        """
        Recompute the summary for the given ledger snapshot.

        Returns the summary held after this call. A failed call leaves the
        previous summary in place.
        """
        self._generation += 1
        generation = self._generation
        records = list(records)

        if not records:
            self._summary = None
            return None

        try:
            result = await self._aggregator.recompute(records, language, now=now)
        except EnrichmentError as e:
            if generation == self._generation:
                self._audit.log_weekly_trend_failed(str(e))
            return self._summary

        if generation != self._generation:
            # A newer refresh started while this one was waiting
            return self._summary

        self._summary = result
        self._audit.log_weekly_trend_updated(
            receipt_count=len(records),
            sufficient=isinstance(result, str),
        )
        return self._summary
