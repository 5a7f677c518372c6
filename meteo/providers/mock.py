"""Synthetic data for ``METEO_DATA_MODE=mock``.

Values are a smooth function of the station and the timestamp, so repeated
calls return the same series without any network access.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from ..aggregation import round_half_up
from ..dates import end_of_day, format_minute_key, start_of_day, to_day_key
from ..entities import (
    ALL_VARIABLES,
    VARIABLE_UNITS,
    Aggregation,
    LatestObservation,
    Observation,
    Station,
    TimeseriesPoint,
    TimeseriesResponse,
    Variable,
)
from ..stations import XEMA_BCN_STATIONS, catalogue
from .base import DataProvider


STEPS = {
    Aggregation.HALF_HOURLY: timedelta(minutes=30),
    Aggregation.HOURLY: timedelta(hours=1),
    Aggregation.DAILY: timedelta(days=1),
}


def _seed(station_id: str) -> int:
    return sum(ord(char) for char in station_id) % 17


def synthetic_observation(station_id: str, moment: datetime, *, daily: bool = False) -> Observation:
    seed = _seed(station_id)
    day = moment.toordinal()
    hour = 14 if daily else moment.hour + moment.minute / 60
    diurnal = math.sin((hour - 6) * math.pi / 12)
    temperature = 16 + seed / 4 + 4 * math.sin(day / 9) + 5 * diurnal
    humidity = 65 - 12 * diurnal + 5 * math.cos(day / 7)
    wind = 3 + seed / 8 + 2 * abs(math.sin(day / 3 + hour / 5))
    gust = wind * 1.7 + 0.8
    rainy = (day + seed) % 6 == 0
    precipitation = 0.0
    if rainy:
        precipitation = 2.4 if daily else round(0.1 * (1 + (moment.hour % 3)), 1)
    if daily:
        return Observation(
            timestamp=to_day_key(moment),
            temperature=round_half_up(temperature, 1),
            humidity=round_half_up(humidity, 0),
            wind_speed=round_half_up(wind, 1),
            wind_speed_max=round_half_up(gust, 1),
            precipitation=precipitation,
            wind_gust_time=f"{13 + seed % 4:02d}:30",
        )
    return Observation(
        timestamp=format_minute_key(moment),
        temperature=round_half_up(temperature, 1),
        humidity=round_half_up(humidity, 0),
        wind_speed=round_half_up(wind, 1),
        wind_speed_max=round_half_up(gust, 1),
        wind_direction=float((day * 37 + moment.hour * 15 + seed * 11) % 360),
        precipitation=precipitation,
    )


class MockProvider(DataProvider):
    name = "mock"

    def __init__(self, *, clock: Callable[[], datetime] = datetime.now, **kwargs) -> None:
        super().__init__(**kwargs)
        self._clock = clock

    def list_stations(self) -> List[Station]:
        return catalogue(XEMA_BCN_STATIONS, self.name)

    def get_latest(self, station_id: str) -> LatestObservation:
        self._station_or_404(self.list_stations(), station_id)
        moment = self._clock().replace(second=0, microsecond=0)
        moment = moment.replace(minute=0 if moment.minute < 30 else 30)
        observation = synthetic_observation(station_id, moment)
        return LatestObservation(station_id, self.name, observation.timestamp, observation)

    def get_timeseries(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        variable: Variable,
        aggregation: Aggregation,
    ) -> TimeseriesResponse:
        observations = self.get_observations(station_id, start, end, aggregation, [variable])
        return TimeseriesResponse(
            station_id=station_id,
            provider=self.name,
            variable=variable,
            unit=VARIABLE_UNITS[variable],
            aggregation=aggregation,
            points=[TimeseriesPoint(obs.timestamp, obs.value(variable)) for obs in observations],
        )

    def get_observations(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        aggregation: Aggregation,
        variables: Sequence[Variable] = ALL_VARIABLES,
    ) -> List[Observation]:
        self._station_or_404(self.list_stations(), station_id)
        step = STEPS[aggregation]
        daily = aggregation is Aggregation.DAILY
        moment, last = start_of_day(start), end_of_day(end)
        result: List[Observation] = []
        while moment <= last:
            result.append(_only(synthetic_observation(station_id, moment, daily=daily), variables))
            moment += step
        return result


def _only(observation: Observation, variables: Sequence[Variable]) -> Observation:
    values: Dict[str, Optional[float]] = {
        variable.value: observation.value(variable) if variable in variables else None for variable in Variable
    }
    return Observation(
        timestamp=observation.timestamp,
        wind_gust_time=observation.wind_gust_time if Variable.WIND_SPEED_MAX in variables else None,
        **values,
    )


__all__ = ["MockProvider", "synthetic_observation"]
