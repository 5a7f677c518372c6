from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from meteo.coverage import (
    build_expected_half_hour_keys,
    compute_daily_coverage,
    compute_subdaily_coverage,
    consolidate_missing,
)
from meteo.entities import DateRange, MissingInterval, Observation


def _day_range(first: str, last: str) -> DateRange:
    start = datetime.strptime(first, "%Y-%m-%d")
    end = datetime.strptime(last, "%Y-%m-%d").replace(hour=23, minute=59, second=59)
    return DateRange(start, end)


def test_daily_coverage_reports_missing_tail():
    observations = [Observation(timestamp=f"2026-02-0{day}") for day in range(3, 8)]

    coverage = compute_daily_coverage(_day_range("2026-02-03", "2026-02-09"), observations)

    assert coverage.missing_days == ["2026-02-08", "2026-02-09"]
    assert coverage.missing_count == 2
    assert coverage.largest_gap == MissingInterval("2026-02-08", "2026-02-09", 2)


def test_daily_coverage_counts_add_up():
    observations = [
        Observation(timestamp="2026-02-01T10:00"),
        Observation(timestamp="2026-02-01T10:30"),
        Observation(timestamp="2026-02-04"),
        Observation(timestamp="2026-03-15"),
        Observation(timestamp="garbage"),
    ]

    coverage = compute_daily_coverage(_day_range("2026-01-30", "2026-02-05"), observations)

    assert coverage.expected_count == 7
    assert coverage.available_days == ["2026-02-01", "2026-02-04"]
    assert coverage.expected_count == coverage.available_count + coverage.missing_count
    assert [i.missing_count for i in coverage.missing_intervals] == [2, 2, 1]
    assert coverage.largest_gap.start == "2026-01-30"


def test_inverted_range_is_empty():
    date_range = DateRange(datetime(2026, 2, 9), datetime(2026, 2, 3))

    coverage = compute_daily_coverage(date_range, [Observation(timestamp="2026-02-05")])

    assert coverage.expected_days == []
    assert coverage.missing_intervals == []
    assert coverage.largest_gap is None


@pytest.mark.parametrize("days", [1, 2, 7])
def test_half_hour_slots_per_day(days):
    start = datetime(2026, 3, 1)
    end = start + timedelta(days=days) - timedelta(microseconds=1)

    assert len(build_expected_half_hour_keys(DateRange(start, end))) == 48 * days


def test_subdaily_largest_gap_before_first_reading():
    observations = []
    moment = datetime(2026, 2, 3, 12, 30)
    while moment <= datetime(2026, 2, 3, 23, 30):
        observations.append(Observation(timestamp=moment.strftime("%Y-%m-%dT%H:%M")))
        moment += timedelta(minutes=30)

    coverage = compute_subdaily_coverage(_day_range("2026-02-03", "2026-02-03"), observations)

    assert coverage.largest_gap == MissingInterval("2026-02-03 00:00", "2026-02-03 12:00", 25)
    assert coverage.expected_count == 48
    assert coverage.available_count == 23


def test_subdaily_readings_snap_to_their_slot():
    observations = [Observation(timestamp="2026-02-03T00:10"), Observation(timestamp="2026-02-03T00:20")]
    date_range = DateRange(datetime(2026, 2, 3), datetime(2026, 2, 3, 1, 0))

    coverage = compute_subdaily_coverage(date_range, observations)

    assert coverage.available_slots == ["2026-02-03 00:00"]
    assert coverage.missing_slots == ["2026-02-03 00:30", "2026-02-03 01:00"]


def test_largest_gap_ties_keep_first_run():
    intervals, largest = consolidate_missing(["a", "b", "c", "d", "e"], {"c"})

    assert [i.missing_count for i in intervals] == [2, 2]
    assert largest.start == "a"
