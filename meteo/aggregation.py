from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .dates import parse_timestamp
from .entities import DailySummaryRow, Observation, WeatherStats, WindBucketAggregate
from .wind import vectorial_mean_wind


def round_half_up(value: Optional[float], digits: int = 1) -> Optional[float]:
    """Round halves upwards (``2.25 -> 2.3``, ``-2.5 -> -2``); ``digits=0`` gives an int."""

    if value is None:
        return None
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    if digits == 0:
        return int(rounded)
    return rounded


def _valid(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None and not math.isnan(v)]


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


class _WindBucket:
    __slots__ = ("key", "speeds", "gusts", "first_seen")

    def __init__(self, key: str) -> None:
        self.key = key
        self.speeds: List[float] = []
        self.gusts: List[float] = []
        self.first_seen = None

    def has_wind(self) -> bool:
        return bool(self.speeds or self.gusts)


def aggregate_wind_by_bucket(
    observations: Iterable[Observation],
    bucket_key: Callable[[Observation], str],
) -> List[WindBucketAggregate]:
    """Temporal mean and maximum wind per bucket.

    ``wind_avg`` is the arithmetic mean of every valid ``wind_speed`` reading
    in the bucket. ``wind_max`` is the largest gust when the bucket has gust
    readings, otherwise the largest ``wind_speed``. Buckets with neither are
    left out of the result.
    """

    buckets: Dict[str, _WindBucket] = {}
    parseable = True
    for obs in observations:
        key = bucket_key(obs)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _WindBucket(key)
        bucket.speeds.extend(_valid([obs.wind_speed]))
        bucket.gusts.extend(_valid([obs.wind_speed_max]))
        moment = parse_timestamp(obs.timestamp)
        if moment is None:
            parseable = False
        elif bucket.first_seen is None or moment < bucket.first_seen:
            bucket.first_seen = moment

    kept = [bucket for bucket in buckets.values() if bucket.has_wind()]
    if parseable:
        kept.sort(key=lambda b: (b.first_seen, b.key))
    else:
        kept.sort(key=lambda b: b.key)

    result: List[WindBucketAggregate] = []
    for bucket in kept:
        wind_avg = _mean(bucket.speeds)
        wind_max = max(bucket.gusts) if bucket.gusts else max(bucket.speeds)
        result.append(WindBucketAggregate(time=bucket.key, wind_avg=wind_avg, wind_max=wind_max))
    return result


def day_bucket(observation: Observation) -> str:
    return observation.timestamp[:10]


def hour_bucket(observation: Observation) -> str:
    return observation.timestamp[:13] + ":00"


def build_daily_summary(observations: Sequence[Observation]) -> List[DailySummaryRow]:
    """One export row per calendar day present in ``observations``."""

    by_day: Dict[str, List[Observation]] = {}
    for obs in observations:
        by_day.setdefault(day_bucket(obs), []).append(obs)
    wind = {item.time: item for item in aggregate_wind_by_bucket(observations, day_bucket)}

    rows: List[DailySummaryRow] = []
    for day in sorted(by_day):
        day_obs = by_day[day]
        speeds = _valid(o.wind_speed for o in day_obs)
        precipitation = _valid(o.precipitation for o in day_obs)
        gust_times = [o.wind_gust_time for o in day_obs if o.wind_gust_time]
        bucket = wind.get(day)
        rows.append(
            DailySummaryRow(
                date=day,
                temp_avg=round_half_up(_mean(_valid(o.temperature for o in day_obs)), 1),
                humidity_avg=round_half_up(_mean(_valid(o.humidity for o in day_obs)), 0),
                wind_min=round_half_up(min(speeds), 1) if speeds else None,
                wind_avg=round_half_up(bucket.wind_avg, 1) if bucket else None,
                wind_max=round_half_up(bucket.wind_max, 1) if bucket else None,
                precip_sum=round_half_up(sum(precipitation), 1) if precipitation else None,
                wind_gust_time=gust_times[0] if gust_times else None,
            )
        )
    return rows


def aggregate_hourly(observations: Sequence[Observation]) -> List[Observation]:
    """Collapse semi-hourly readings into hourly observations.

    Temperature and humidity are averaged, precipitation is summed, the gust
    is the largest in the hour and the mean wind is the vector mean of the
    speed/direction pairs, which also yields the hourly direction.
    """

    by_hour: Dict[str, List[Observation]] = {}
    for obs in observations:
        by_hour.setdefault(hour_bucket(obs), []).append(obs)

    result: List[Observation] = []
    for hour in sorted(by_hour):
        hour_obs = by_hour[hour]
        temperature = _mean(_valid(o.temperature for o in hour_obs))
        humidity = _mean(_valid(o.humidity for o in hour_obs))
        precipitation = _valid(o.precipitation for o in hour_obs)
        gusts = _valid(o.wind_speed_max for o in hour_obs)
        vector = vectorial_mean_wind((o.wind_speed, o.wind_direction) for o in hour_obs)
        result.append(
            Observation(
                timestamp=hour,
                temperature=round_half_up(temperature, 1),
                humidity=round_half_up(humidity, 0),
                wind_speed=round_half_up(vector.speed, 1) if vector else None,
                wind_speed_max=round_half_up(max(gusts), 1) if gusts else None,
                wind_direction=round_half_up(vector.dir, 0) % 360 if vector else None,
                precipitation=round_half_up(sum(precipitation), 1) if precipitation else None,
            )
        )
    return result


def calculate_stats(observations: Sequence[Observation]) -> WeatherStats:
    temperatures = _valid(o.temperature for o in observations)
    humidity = _valid(o.humidity for o in observations)
    speeds = _valid(o.wind_speed for o in observations)
    gusts = _valid(o.wind_speed_max for o in observations)
    precipitation = _valid(o.precipitation for o in observations)

    max_wind: Optional[float] = None
    if gusts:
        max_wind = max(gusts)
    elif speeds:
        max_wind = max(speeds)

    return WeatherStats(
        avg_temperature=round_half_up(_mean(temperatures), 1),
        avg_humidity=round_half_up(_mean(humidity), 0),
        avg_wind_speed=round_half_up(_mean(speeds), 1),
        min_wind_speed=round_half_up(min(speeds), 1) if speeds else None,
        max_wind_speed=round_half_up(max_wind, 1),
        total_precipitation=round_half_up(sum(precipitation), 1) if precipitation else None,
        data_points=len(observations),
    )


__all__ = [
    "aggregate_hourly",
    "aggregate_wind_by_bucket",
    "build_daily_summary",
    "calculate_stats",
    "day_bucket",
    "hour_bucket",
    "round_half_up",
]
