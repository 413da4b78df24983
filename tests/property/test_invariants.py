"""
Property-based tests for core ledger invariants using Hypothesis.

These tests stress the state machine and the aggregation rules with
random inputs to find edge cases.
"""

from datetime import datetime, timedelta, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from timeledger import AlreadyExists, Ledger, NotFound
from timeledger.db import LedgerDB
from timeledger.models import TimeEntry, duration_between
from timeledger.reports import build_monthly_report, summarize_by_day, summarize_by_task

UTC = timezone.utc
BASE = datetime(2024, 12, 1, tzinfo=UTC)

# ============================================================================
# Entry state machine
# ============================================================================


@settings(max_examples=50, deadline=None)
@given(st.lists(st.sampled_from(["start", "stop"]), max_size=30))
def test_never_more_than_one_running_entry(operations):
    """Any sequence of start/stop leaves at most one running entry."""
    ledger = Ledger(LedgerDB.in_memory())
    try:
        running = False
        for op in operations:
            if op == "start":
                try:
                    ledger.start()
                    assert not running
                    running = True
                except AlreadyExists:
                    assert running
            else:
                try:
                    ledger.stop()
                    assert running
                    running = False
                except NotFound:
                    assert not running

            open_entries = [e for e in ledger.entries.list_entries() if e.entry.ended_at is None]
            assert len(open_entries) == (1 if running else 0)
    finally:
        ledger.close()


# ============================================================================
# Durations
# ============================================================================


@given(st.integers(min_value=-10**12, max_value=10**12))
def test_duration_truncates_toward_zero(micros):
    """duration_between == int(seconds) for every microsecond offset."""
    end = BASE + timedelta(microseconds=micros)
    expected = abs(micros) // 1_000_000 * (1 if micros >= 0 else -1)
    assert duration_between(BASE, end) == expected


# ============================================================================
# Aggregation
# ============================================================================

entry_strategy = st.builds(
    lambda offset, seconds, task: (offset, seconds, task),
    st.integers(min_value=0, max_value=30 * 24 * 3600 - 1),
    st.one_of(st.none(), st.integers(min_value=0, max_value=12 * 3600)),
    st.sampled_from([None, "a0000000-0000-4000-8000-00000000000a", "b0000000-0000-4000-8000-00000000000b"]),
)


def _entries(specs):
    entries = []
    for offset, seconds, task in specs:
        entry = TimeEntry.start(task, now=BASE + timedelta(seconds=offset))
        if seconds is not None:
            entry.ended_at = entry.started_at + timedelta(seconds=seconds)
        entries.append(entry)
    return entries


@given(st.lists(entry_strategy, max_size=40))
def test_task_and_day_totals_agree(specs):
    """Task and daily summaries partition the same completed entries."""
    entries = _entries(specs)
    completed = [e for e in entries if e.ended_at is not None]

    by_task = summarize_by_task(entries, {})
    by_day = summarize_by_day(entries)

    assert sum(s.total_seconds for s in by_task) == sum(e.duration_seconds for e in completed)
    assert sum(d.total_seconds for d in by_day) == sum(s.total_seconds for s in by_task)
    assert sum(d.entry_count for d in by_day) == len(completed)
    totals = [s.total_seconds for s in by_task]
    assert totals == sorted(totals, reverse=True)
    assert [d.date for d in by_day] == sorted({d.date for d in by_day})


@given(st.lists(entry_strategy, max_size=40))
def test_monthly_average_is_floor(specs):
    report = build_monthly_report(2024, 12, _entries(specs), {})
    if report.working_days == 0:
        assert report.average_seconds_per_day == 0
    else:
        assert report.average_seconds_per_day == report.total_seconds // report.working_days
    assert report.working_days == len(report.daily_summaries)
