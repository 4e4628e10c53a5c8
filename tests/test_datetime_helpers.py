"""Tests for datetime helper utilities."""
from datetime import UTC, datetime, timedelta, timezone

from backend.utils.datetime_helpers import ensure_utc, start_of_utc_day, utc_now


def test_ensure_utc_passes_none_through():
    assert ensure_utc(None) is None


def test_ensure_utc_marks_naive_datetime_as_utc():
    """SQLite hands back naive values; the wall clock must not move."""
    naive = datetime(2026, 2, 14, 8, 15)

    result = ensure_utc(naive)

    assert result.tzinfo is UTC
    assert result.replace(tzinfo=None) == naive


def test_ensure_utc_converts_offset_datetimes():
    berlin_winter = timezone(timedelta(hours=1))

    result = ensure_utc(datetime(2026, 2, 14, 9, 15, tzinfo=berlin_winter))

    assert result.tzinfo is UTC
    assert result == datetime(2026, 2, 14, 8, 15, tzinfo=UTC)


def test_utc_now_is_aware():
    assert utc_now().tzinfo is UTC


def test_start_of_utc_day_truncates_in_utc():
    tokyo = timezone(timedelta(hours=9))

    result = start_of_utc_day(datetime(2026, 3, 2, 7, 30, 12, 5000, tzinfo=tokyo))

    assert result == datetime(2026, 3, 1, 0, 0, tzinfo=UTC)
