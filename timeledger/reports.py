"""
Aggregation Engine: task/day summaries and monthly roll-ups.

The summary functions are pure: they take a list of TimeEntry records and
a task lookup and never touch the store. ReportService only reads the
date-bounded slice (inside the gate) and hands it to them.

Rules:
- Only completed entries (ended_at set) count; running entries have no
  duration yet.
- An entry belongs to the UTC day / month of its started_at, even if it
  ended after midnight or in the next month.
- Entries without a task (or whose task no longer exists) are labelled
  as unclassified with the fixed default color.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

from timeledger import config, store
from timeledger.db import LedgerDB
from timeledger.errors import InvalidInput
from timeledger.models import Task, TimeEntry, to_utc

logger = logging.getLogger(__name__)


@dataclass
class TaskSummary:
    task_id: str | None
    task_name: str
    task_color: str
    total_seconds: int
    entry_count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DailySummary:
    date: str  # YYYY-MM-DD, UTC
    total_seconds: int
    entry_count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MonthlyReport:
    year: int
    month: int
    total_seconds: int = 0
    total_entries: int = 0
    working_days: int = 0
    average_seconds_per_day: int = 0
    task_summaries: list[TaskSummary] = field(default_factory=list)
    daily_summaries: list[DailySummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ============================================================
# Ranges
# ============================================================


def month_range(year: int, month: int) -> tuple[datetime, datetime]:
    """[first-of-month, first-of-next-month) in UTC."""
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidInput(f"Invalid month: {month}")
    if not isinstance(year, int) or not 1 <= year <= 9998:
        raise InvalidInput(f"Invalid year: {year}")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


def completed_in_range(entries: Iterable[TimeEntry], start: datetime, end: datetime) -> list[TimeEntry]:
    """Completed entries with start <= started_at < end."""
    start, end = to_utc(start), to_utc(end)
    return [e for e in entries if e.ended_at is not None and start <= to_utc(e.started_at) < end]


# ============================================================
# Pure aggregation
# ============================================================


def summarize_by_task(entries: Iterable[TimeEntry], tasks: Mapping[str, Task]) -> list[TaskSummary]:
    """
    Group completed entries by task_id, largest total first.

    Ties keep first-seen order (sorted() is stable); callers should not
    rely on any particular tie order.
    """
    groups: dict[str | None, TaskSummary] = {}
    for entry in entries:
        if entry.ended_at is None:
            continue
        summary = groups.get(entry.task_id)
        if summary is None:
            task = tasks.get(entry.task_id) if entry.task_id else None
            summary = TaskSummary(
                task_id=entry.task_id,
                task_name=task.name if task else config.UNCLASSIFIED_LABEL,
                task_color=task.color if task else config.UNCLASSIFIED_COLOR,
                total_seconds=0,
                entry_count=0,
            )
            groups[entry.task_id] = summary
        summary.total_seconds += entry.duration_seconds
        summary.entry_count += 1

    return sorted(groups.values(), key=lambda s: s.total_seconds, reverse=True)


def summarize_by_day(entries: Iterable[TimeEntry]) -> list[DailySummary]:
    """Group completed entries by the UTC date of started_at, oldest day first."""
    days: dict[str, DailySummary] = {}
    for entry in entries:
        if entry.ended_at is None:
            continue
        day = to_utc(entry.started_at).date().isoformat()
        summary = days.setdefault(day, DailySummary(date=day, total_seconds=0, entry_count=0))
        summary.total_seconds += entry.duration_seconds
        summary.entry_count += 1
    return [days[d] for d in sorted(days)]


def build_monthly_report(
    year: int,
    month: int,
    entries: Iterable[TimeEntry],
    tasks: Mapping[str, Task],
) -> MonthlyReport:
    start, end = month_range(year, month)
    in_month = completed_in_range(entries, start, end)

    task_summaries = summarize_by_task(in_month, tasks)
    daily_summaries = summarize_by_day(in_month)

    total_seconds = sum(s.total_seconds for s in task_summaries)
    total_entries = sum(s.entry_count for s in task_summaries)
    working_days = len(daily_summaries)
    average = total_seconds // working_days if working_days > 0 else 0

    return MonthlyReport(
        year=year,
        month=month,
        total_seconds=total_seconds,
        total_entries=total_entries,
        working_days=working_days,
        average_seconds_per_day=average,
        task_summaries=task_summaries,
        daily_summaries=daily_summaries,
    )


def available_months(started_times: Iterable[datetime]) -> list[tuple[int, int]]:
    """Distinct (year, month) pairs, most recent first."""
    months = {(to_utc(t).year, to_utc(t).month) for t in started_times}
    return sorted(months, reverse=True)


# ============================================================
# Store-backed service
# ============================================================


class ReportService:
    """Reads the slice for a report inside the gate, then aggregates."""

    def __init__(self, db: LedgerDB):
        self.db = db

    def _load(self, start: datetime, end: datetime) -> tuple[list[TimeEntry], dict[str, Task]]:
        with self.db.transaction() as conn:
            entries = store.fetch_completed_entries_between(conn, start, end)
            task_ids = {e.task_id for e in entries if e.task_id}
            tasks = store.fetch_tasks_by_ids(conn, task_ids)
        return entries, tasks

    def monthly_report(self, year: int, month: int) -> MonthlyReport:
        start, end = month_range(year, month)
        entries, tasks = self._load(start, end)
        report = build_monthly_report(year, month, entries, tasks)
        logger.debug(
            "Monthly report %04d-%02d: %d entries, %d days",
            year,
            month,
            report.total_entries,
            report.working_days,
        )
        return report

    def task_summaries(self, start: datetime, end: datetime) -> list[TaskSummary]:
        entries, tasks = self._load(start, end)
        return summarize_by_task(entries, tasks)

    def daily_summaries(self, start: datetime, end: datetime) -> list[DailySummary]:
        entries, _ = self._load(start, end)
        return summarize_by_day(entries)

    def available_months(self) -> list[tuple[int, int]]:
        with self.db.transaction() as conn:
            started = store.fetch_completed_start_times(conn)
        return available_months(started)
