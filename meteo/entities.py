from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

from .errors import ApiError


T = TypeVar("T")


class Variable(str, Enum):
    """Measured quantities carried by an :class:`Observation`."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    WIND_SPEED = "wind_speed"
    WIND_SPEED_MAX = "wind_speed_max"
    WIND_DIRECTION = "wind_direction"
    PRECIPITATION = "precipitation"


VARIABLE_UNITS: Dict[Variable, str] = {
    Variable.TEMPERATURE: "°C",
    Variable.HUMIDITY: "%",
    Variable.WIND_SPEED: "m/s",
    Variable.WIND_SPEED_MAX: "m/s",
    Variable.WIND_DIRECTION: "°",
    Variable.PRECIPITATION: "mm",
}

ALL_VARIABLES = tuple(Variable)


class Aggregation(str, Enum):
    HALF_HOURLY = "30min"
    HOURLY = "hourly"
    DAILY = "daily"


@dataclass(frozen=True)
class Station:
    id: str
    name: str
    latitude: float
    longitude: float
    provider: str
    elevation: Optional[float] = None
    municipality: Optional[str] = None
    distance_km: Optional[float] = None


@dataclass(frozen=True)
class Observation:
    """Normalized reading for one timestamp.

    Timestamps are local wall-clock strings: ``YYYY-MM-DDTHH:MM`` for
    sub-daily series and ``YYYY-MM-DD`` for daily ones. Values are stored in
    the units of :data:`VARIABLE_UNITS`; a variable the provider did not
    report is ``None`` (never ``0``).

    ``wind_speed`` is always the mean/regular wind and ``wind_speed_max`` the
    gust. ``wind_direction`` uses the meteorological "from" convention and is
    only meaningful below daily resolution.
    """

    timestamp: str
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_speed_max: Optional[float] = None
    wind_direction: Optional[float] = None
    precipitation: Optional[float] = None
    wind_gust_time: Optional[str] = None
    data_source_label: Optional[str] = None

    @classmethod
    def empty(cls, timestamp: str) -> "Observation":
        return cls(timestamp=timestamp)

    def value(self, variable: Variable) -> Optional[float]:
        if variable is Variable.TEMPERATURE:
            return self.temperature
        if variable is Variable.HUMIDITY:
            return self.humidity
        if variable is Variable.WIND_SPEED:
            return self.wind_speed
        if variable is Variable.WIND_SPEED_MAX:
            return self.wind_speed_max
        if variable is Variable.WIND_DIRECTION:
            return self.wind_direction
        if variable is Variable.PRECIPITATION:
            return self.precipitation
        raise ValueError(f"unknown variable {variable!r}")


def observation_from_values(
    timestamp: str,
    values: Mapping[Variable, Optional[float]],
    *,
    wind_gust_time: Optional[str] = None,
) -> Observation:
    """Build an observation from a ``Variable -> value`` mapping."""

    return Observation(
        timestamp=timestamp,
        temperature=values.get(Variable.TEMPERATURE),
        humidity=values.get(Variable.HUMIDITY),
        wind_speed=values.get(Variable.WIND_SPEED),
        wind_speed_max=values.get(Variable.WIND_SPEED_MAX),
        wind_direction=values.get(Variable.WIND_DIRECTION),
        precipitation=values.get(Variable.PRECIPITATION),
        wind_gust_time=wind_gust_time,
    )


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of naive local datetimes."""

    start: datetime
    end: datetime

    def is_valid(self) -> bool:
        return self.start <= self.end


@dataclass(frozen=True)
class TimeseriesPoint:
    timestamp: str
    value: Optional[float]


@dataclass(frozen=True)
class TimeseriesResponse:
    station_id: str
    provider: str
    variable: Variable
    unit: Optional[str]
    aggregation: Aggregation
    points: List[TimeseriesPoint]


@dataclass(frozen=True)
class LatestObservation:
    station_id: str
    provider: str
    timestamp: str
    observation: Observation


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Outcome of an orchestrated provider call.

    Exactly one of ``data`` and ``error`` is set.
    """

    data: Optional[T]
    error: Optional[ApiError]
    provider: Optional[str]
    cached: bool = False
    fetched_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.error is None):
            raise ValueError("ProviderResult needs exactly one of data or error")

    @classmethod
    def success(cls, data: T, provider: str, *, cached: bool = False, fetched_at: Optional[datetime] = None) -> "ProviderResult[T]":
        return cls(data=data, error=None, provider=provider, cached=cached, fetched_at=fetched_at or datetime.now())

    @classmethod
    def failure(cls, error: ApiError, provider: Optional[str]) -> "ProviderResult[T]":
        return cls(data=None, error=error, provider=provider)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class WindBucketAggregate:
    time: str
    wind_avg: Optional[float]
    wind_max: Optional[float]


@dataclass(frozen=True)
class DailySummaryRow:
    date: str
    temp_avg: Optional[float]
    humidity_avg: Optional[float]
    wind_min: Optional[float]
    wind_avg: Optional[float]
    wind_max: Optional[float]
    precip_sum: Optional[float]
    wind_gust_time: Optional[str] = None


@dataclass(frozen=True)
class WeatherStats:
    avg_temperature: Optional[float]
    avg_humidity: Optional[float]
    avg_wind_speed: Optional[float]
    min_wind_speed: Optional[float]
    max_wind_speed: Optional[float]
    total_precipitation: Optional[float]
    data_points: int


@dataclass(frozen=True)
class MissingInterval:
    start: str
    end: str
    missing_count: int


@dataclass(frozen=True)
class DailyCoverage:
    expected_days: List[str]
    available_days: List[str]
    missing_days: List[str]
    missing_intervals: List[MissingInterval] = field(default_factory=list)
    largest_gap: Optional[MissingInterval] = None

    @property
    def expected_count(self) -> int:
        return len(self.expected_days)

    @property
    def available_count(self) -> int:
        return len(self.available_days)

    @property
    def missing_count(self) -> int:
        return len(self.missing_days)


@dataclass(frozen=True)
class SubdailyCoverage:
    expected_slots: List[str]
    available_slots: List[str]
    missing_slots: List[str]
    missing_intervals: List[MissingInterval] = field(default_factory=list)
    largest_gap: Optional[MissingInterval] = None

    @property
    def expected_count(self) -> int:
        return len(self.expected_slots)

    @property
    def available_count(self) -> int:
        return len(self.available_slots)

    @property
    def missing_count(self) -> int:
        return len(self.missing_slots)


@dataclass(frozen=True)
class ExceedanceInterval:
    start: str
    end: str


def coverage_counts(coverage: Any) -> Dict[str, int]:
    return {
        "expected_count": coverage.expected_count,
        "available_count": coverage.available_count,
        "missing_count": coverage.missing_count,
    }


__all__ = [
    "ALL_VARIABLES",
    "Aggregation",
    "DailyCoverage",
    "DailySummaryRow",
    "DateRange",
    "ExceedanceInterval",
    "LatestObservation",
    "MissingInterval",
    "Observation",
    "ProviderResult",
    "Station",
    "SubdailyCoverage",
    "TimeseriesPoint",
    "TimeseriesResponse",
    "VARIABLE_UNITS",
    "Variable",
    "WeatherStats",
    "WindBucketAggregate",
    "coverage_counts",
    "observation_from_values",
]
