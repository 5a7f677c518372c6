from __future__ import annotations

import pytest

from meteo.aggregation import (
    aggregate_hourly,
    aggregate_wind_by_bucket,
    build_daily_summary,
    calculate_stats,
    day_bucket,
    hour_bucket,
    round_half_up,
)
from meteo.entities import Observation


def test_round_half_up():
    assert round_half_up(2.25) == 2.3
    assert round_half_up(2.5, 0) == 3
    assert round_half_up(-2.5, 0) == -2
    assert round_half_up(None) is None


def test_single_point_bucket_has_equal_avg_and_max():
    result = aggregate_wind_by_bucket([Observation(timestamp="2026-02-03T10:00", wind_speed=4.2)], day_bucket)

    assert len(result) == 1
    assert result[0].wind_avg == result[0].wind_max == 4.2


def test_bucket_prefers_gust_for_max():
    observations = [
        Observation(timestamp="2026-02-03T10:00", wind_speed=2.0, wind_speed_max=6.5),
        Observation(timestamp="2026-02-03T10:30", wind_speed=4.0, wind_speed_max=5.0),
    ]

    [bucket] = aggregate_wind_by_bucket(observations, day_bucket)

    assert bucket.wind_avg == pytest.approx(3.0)
    assert bucket.wind_max == 6.5


def test_gust_only_bucket_has_no_average():
    [bucket] = aggregate_wind_by_bucket([Observation(timestamp="2026-02-03", wind_speed_max=9.1)], day_bucket)

    assert bucket.wind_avg is None
    assert bucket.wind_max == 9.1


def test_buckets_without_wind_are_dropped_and_sorted():
    observations = [
        Observation(timestamp="2026-02-05T09:00", wind_speed=1.0),
        Observation(timestamp="2026-02-04T09:00", temperature=12.0),
        Observation(timestamp="2026-02-03T09:00", wind_speed=float("nan"), wind_speed_max=3.0),
    ]

    result = aggregate_wind_by_bucket(observations, day_bucket)

    assert [bucket.time for bucket in result] == ["2026-02-03", "2026-02-05"]


def test_daily_summary_rows():
    observations = [
        Observation(timestamp="2026-02-03T10:00", temperature=10.04, humidity=70, wind_speed=2.0, wind_speed_max=5.0, precipitation=0.2),
        Observation(timestamp="2026-02-03T10:30", temperature=11.0, humidity=75, wind_speed=3.0, wind_speed_max=7.25, precipitation=0.15),
        Observation(timestamp="2026-02-04T00:00", temperature=9.0),
    ]

    first, second = build_daily_summary(observations)

    assert first.date == "2026-02-03"
    assert first.temp_avg == 10.5
    assert first.humidity_avg == 73
    assert first.wind_min == 2.0
    assert first.wind_avg == 2.5
    assert first.wind_max == 7.3
    assert first.precip_sum == 0.4
    assert second.wind_avg is None
    assert second.precip_sum is None


def test_daily_summary_keeps_gust_time():
    [row] = build_daily_summary([Observation(timestamp="2026-02-03", wind_speed_max=12.0, wind_gust_time="14:30")])

    assert row.wind_gust_time == "14:30"


def test_hourly_aggregation_uses_vector_mean():
    observations = [
        Observation(timestamp="2026-02-03T10:00", temperature=10.0, wind_speed=5.0, wind_direction=0.0, wind_speed_max=8.0, precipitation=0.2),
        Observation(timestamp="2026-02-03T10:30", temperature=12.0, wind_speed=5.0, wind_direction=180.0, wind_speed_max=9.0, precipitation=0.1),
        Observation(timestamp="2026-02-03T11:00", temperature=13.0, wind_speed=3.0, wind_direction=90.0),
    ]

    first, second = aggregate_hourly(observations)

    assert first.timestamp == "2026-02-03T10:00"
    assert first.temperature == 11.0
    assert first.wind_speed < 1
    assert first.wind_speed_max == 9.0
    assert first.precipitation == 0.3
    assert second.wind_speed == 3.0
    assert second.wind_direction == 90
    assert second.precipitation is None


def test_hourly_direction_near_north_wraps_to_zero():
    observations = [
        Observation(timestamp="2026-02-03T10:00", wind_speed=4.0, wind_direction=359.8),
        Observation(timestamp="2026-02-03T10:30", wind_speed=4.0, wind_direction=359.6),
    ]

    [hour] = aggregate_hourly(observations)

    assert hour.wind_direction == 0
    assert hour.wind_speed == 4.0


def test_hour_bucket_key():
    assert hour_bucket(Observation(timestamp="2026-02-03T10:30")) == "2026-02-03T10:00"


def test_stats():
    observations = [
        Observation(timestamp="2026-02-03", temperature=10.0, humidity=60, wind_speed=2.0, precipitation=1.0),
        Observation(timestamp="2026-02-04", temperature=13.0, humidity=71, wind_speed=4.0, wind_speed_max=11.0),
    ]

    stats = calculate_stats(observations)

    assert stats.avg_temperature == 11.5
    assert stats.avg_humidity == 66
    assert stats.min_wind_speed == 2.0
    assert stats.max_wind_speed == 11.0
    assert stats.total_precipitation == 1.0
    assert stats.data_points == 2
