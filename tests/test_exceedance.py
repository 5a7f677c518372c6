from __future__ import annotations

from meteo.entities import Observation, Variable
from meteo.exceedance import exceedance_intervals


def _hourly(values):
    return [
        Observation(timestamp=f"2026-02-03T{hour:02d}:00", wind_speed_max=value)
        for hour, value in enumerate(values)
    ]


def test_single_run_over_threshold():
    intervals = exceedance_intervals(_hourly([2, 6, 7, 6, 2]), 5)

    assert len(intervals) == 1
    assert intervals[0].start == "2026-02-03T01:00"
    assert intervals[0].end == "2026-02-03T03:00"


def test_unsorted_input_matches_sorted():
    observations = _hourly([2, 6, 7, 6, 2])

    assert exceedance_intervals(list(reversed(observations)), 5) == exceedance_intervals(observations, 5)


def test_threshold_is_strict_and_gaps_break_runs():
    intervals = exceedance_intervals(_hourly([5, 8, None, 9, float("nan"), 6]), 5)

    assert [(i.start, i.end) for i in intervals] == [
        ("2026-02-03T01:00", "2026-02-03T01:00"),
        ("2026-02-03T03:00", "2026-02-03T03:00"),
        ("2026-02-03T05:00", "2026-02-03T05:00"),
    ]


def test_other_field():
    observations = [
        Observation(timestamp="2026-02-03", temperature=31.0),
        Observation(timestamp="2026-02-04", temperature=33.5),
        Observation(timestamp="2026-02-05", temperature=29.0),
    ]

    intervals = exceedance_intervals(observations, 30, field=Variable.TEMPERATURE)

    assert [(i.start, i.end) for i in intervals] == [("2026-02-03", "2026-02-04")]


def test_empty_series():
    assert exceedance_intervals([], 5) == []
