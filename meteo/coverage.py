"""Coverage of a requested date range by an observation series.

Two resolutions share one shape: enumerate the expected slots of the range,
collect the slots present in the data, and report the difference together
with the runs of consecutive missing slots.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .dates import DAY_KEY_RE, floor_to_half_hour, parse_timestamp, start_of_day, to_day_key
from .entities import DailyCoverage, DateRange, MissingInterval, Observation, SubdailyCoverage


HALF_HOUR = timedelta(minutes=30)


def to_half_hour_key(moment) -> str:
    return moment.strftime("%Y-%m-%d %H:%M")


def consolidate_missing(
    expected: Sequence[str], available: Set[str]
) -> Tuple[List[MissingInterval], Optional[MissingInterval]]:
    """Group consecutive missing slots and pick the largest run.

    Ties go to the run that occurs first.
    """

    intervals: List[MissingInterval] = []
    run_start: Optional[str] = None
    run_end: Optional[str] = None
    run_length = 0
    for slot in expected:
        if slot in available:
            if run_start is not None:
                intervals.append(MissingInterval(run_start, run_end, run_length))
                run_start, run_end, run_length = None, None, 0
            continue
        if run_start is None:
            run_start = slot
        run_end = slot
        run_length += 1
    if run_start is not None:
        intervals.append(MissingInterval(run_start, run_end, run_length))

    largest: Optional[MissingInterval] = None
    for interval in intervals:
        if largest is None or interval.missing_count > largest.missing_count:
            largest = interval
    return intervals, largest


# Daily -----------------------------------------------------------------------
def build_expected_day_keys(date_range: DateRange) -> List[str]:
    current = start_of_day(date_range.start)
    last = start_of_day(date_range.end)
    days: List[str] = []
    while current <= last:
        days.append(to_day_key(current))
        current += timedelta(days=1)
    return days


def get_observed_day_keys(observations: Iterable[Observation]) -> List[str]:
    keys = {obs.timestamp[:10] for obs in observations}
    return sorted(key for key in keys if DAY_KEY_RE.match(key))


def compute_daily_coverage(date_range: DateRange, observations: Iterable[Observation]) -> DailyCoverage:
    expected = build_expected_day_keys(date_range)
    expected_set = set(expected)
    available = [day for day in get_observed_day_keys(observations) if day in expected_set]
    available_set = set(available)
    missing = [day for day in expected if day not in available_set]
    intervals, largest = consolidate_missing(expected, available_set)
    return DailyCoverage(
        expected_days=expected,
        available_days=available,
        missing_days=missing,
        missing_intervals=intervals,
        largest_gap=largest,
    )


# Half-hourly -----------------------------------------------------------------
def build_expected_half_hour_keys(date_range: DateRange) -> List[str]:
    current = floor_to_half_hour(date_range.start)
    last = floor_to_half_hour(date_range.end)
    slots: List[str] = []
    while current <= last:
        slots.append(to_half_hour_key(current))
        current += HALF_HOUR
    return slots


def get_observed_half_hour_keys(observations: Iterable[Observation]) -> List[str]:
    keys: Set[str] = set()
    for obs in observations:
        moment = parse_timestamp(obs.timestamp)
        if moment is None:
            continue
        keys.add(to_half_hour_key(floor_to_half_hour(moment)))
    return sorted(keys)


def compute_subdaily_coverage(date_range: DateRange, observations: Iterable[Observation]) -> SubdailyCoverage:
    expected = build_expected_half_hour_keys(date_range)
    expected_set = set(expected)
    available = [slot for slot in get_observed_half_hour_keys(observations) if slot in expected_set]
    available_set = set(available)
    missing = [slot for slot in expected if slot not in available_set]
    intervals, largest = consolidate_missing(expected, available_set)
    return SubdailyCoverage(
        expected_slots=expected,
        available_slots=available,
        missing_slots=missing,
        missing_intervals=intervals,
        largest_gap=largest,
    )


__all__ = [
    "build_expected_day_keys",
    "build_expected_half_hour_keys",
    "compute_daily_coverage",
    "compute_subdaily_coverage",
    "consolidate_missing",
    "get_observed_day_keys",
    "get_observed_half_hour_keys",
    "to_half_hour_key",
]
