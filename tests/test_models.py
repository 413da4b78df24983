"""
Tests for ledger records and validation helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from timeledger.errors import InvalidInput, LedgerError, NotFound, StorageError
from timeledger.models import (
    UNSET,
    EntryUpdate,
    TimeEntry,
    duration_between,
    format_ts,
    is_valid_color,
    parse_id,
    parse_ts,
    require_name,
)

UTC = timezone.utc


class TestColors:
    @pytest.mark.parametrize("color", ["#3b82f6", "#FFFFFF", "#000000", "#aBcDeF"])
    def test_valid(self, color):
        assert is_valid_color(color)

    @pytest.mark.parametrize("color", ["#fff", "3b82f6", "#3b82f", "#3b82f6a", "#gggggg", "", "#3b82f6\n"])
    def test_invalid(self, color):
        assert not is_valid_color(color)


class TestDurations:
    def test_whole_hours(self):
        start = datetime(2024, 12, 15, 9, 0, tzinfo=UTC)
        assert duration_between(start, start + timedelta(hours=1)) == 3600

    def test_truncates_sub_second(self):
        start = datetime(2024, 12, 15, 9, 0, tzinfo=UTC)
        assert duration_between(start, start + timedelta(seconds=1, microseconds=999_999)) == 1
        assert duration_between(start, start + timedelta(microseconds=999_999)) == 0

    def test_negative_truncates_toward_zero(self):
        start = datetime(2024, 12, 15, 9, 0, tzinfo=UTC)
        assert duration_between(start, start - timedelta(seconds=1, microseconds=500_000)) == -1

    def test_running_has_no_duration(self):
        entry = TimeEntry.start(now=datetime(2024, 12, 15, 9, 0, tzinfo=UTC))
        assert entry.is_running
        assert entry.duration_seconds is None
        assert entry.to_dict()["duration_seconds"] is None


class TestTimestamps:
    def test_z_suffix(self):
        assert parse_ts("2024-12-15T09:00:00Z") == datetime(2024, 12, 15, 9, 0, tzinfo=UTC)

    def test_offset_is_normalized_to_utc(self):
        assert parse_ts("2024-12-15T18:00:00+09:00") == datetime(2024, 12, 15, 9, 0, tzinfo=UTC)

    def test_naive_is_utc(self):
        assert parse_ts(datetime(2024, 12, 15, 9, 0)).tzinfo is not None

    def test_invalid(self):
        with pytest.raises(InvalidInput):
            parse_ts("yesterday", "from")

    def test_format_is_fixed_width(self):
        a = format_ts(datetime(2024, 12, 15, 9, 0, tzinfo=UTC))
        b = format_ts(datetime(2024, 12, 15, 9, 0, 0, 123456, tzinfo=UTC))
        assert a == "2024-12-15T09:00:00.000000Z"
        assert len(a) == len(b)
        assert a < b

    def test_years_below_1000_are_zero_padded(self):
        early = datetime(999, 12, 5, 9, 0, tzinfo=UTC)
        text = format_ts(early)
        assert text == "0999-12-05T09:00:00.000000Z"
        assert parse_ts(text) == early
        assert text < format_ts(datetime(1000, 1, 1, tzinfo=UTC))

    def test_early_year_entry_stays_readable(self, ledger):
        entry = ledger.start()
        ledger.stop()
        ledger.entries.update(
            entry.id,
            EntryUpdate(started_at="0999-12-05T09:00:00Z", ended_at="0999-12-05T10:00:00Z"),
        )

        report = ledger.monthly_report(999, 12)
        assert report.total_seconds == 3600
        assert report.total_entries == 1
        assert ledger.available_months() == [(999, 12)]
        [listed] = ledger.entries.list_entries()
        assert listed.entry.started_at == datetime(999, 12, 5, 9, 0, tzinfo=UTC)
        assert str(ledger.export().time_entries[0].id) == entry.id


class TestIdentifiers:
    def test_canonical_form(self):
        assert parse_id("A0000000-0000-4000-8000-00000000000A") == "a0000000-0000-4000-8000-00000000000a"

    @pytest.mark.parametrize("value", ["not-a-uuid", "", None, 42])
    def test_malformed(self, value):
        with pytest.raises(InvalidInput):
            parse_id(value)

    def test_blank_name(self):
        with pytest.raises(InvalidInput, match="cannot be empty"):
            require_name("   ", "Task name")


class TestPatches:
    def test_unset_fields_are_not_supplied(self):
        update = EntryUpdate(memo=None)
        assert update.supplied() == {"memo": None}
        assert update.task_id is UNSET

    def test_empty(self):
        assert EntryUpdate().is_empty()


class TestErrors:
    def test_message_is_prefixed(self):
        assert str(NotFound("Entry with id x not found")) == "Not found: Entry with id x not found"
        assert str(StorageError("disk I/O error")) == "Database error: disk I/O error"

    def test_codes_are_distinct(self):
        codes = {cls.code for cls in LedgerError.__subclasses__()}
        assert len(codes) == len(LedgerError.__subclasses__())
