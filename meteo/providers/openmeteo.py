from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..dates import to_day_key, to_local_minute_key
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
    observation_from_values,
)
from ..errors import ErrorCode, ProviderError
from ..http.client import FetchClient
from ..stations import GRID_BCN_STATIONS, XEMA_BCN_STATIONS, catalogue
from .base import DataProvider


ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
TIMEZONE = "Europe/Madrid"

HOURLY_FIELDS: Dict[Variable, str] = {
    Variable.TEMPERATURE: "temperature_2m",
    Variable.HUMIDITY: "relative_humidity_2m",
    Variable.WIND_SPEED: "wind_speed_10m",
    Variable.WIND_SPEED_MAX: "wind_gusts_10m",
    Variable.WIND_DIRECTION: "wind_direction_10m",
    Variable.PRECIPITATION: "precipitation",
}

DAILY_FIELDS: Dict[Variable, str] = {
    Variable.TEMPERATURE: "temperature_2m_mean",
    Variable.HUMIDITY: "relative_humidity_2m_mean",
    Variable.WIND_SPEED: "wind_speed_10m_mean",
    Variable.WIND_SPEED_MAX: "wind_gusts_10m_max",
    Variable.PRECIPITATION: "precipitation_sum",
}


class OpenMeteoProvider(DataProvider):
    """Model data at the coordinates of the known Barcelona stations.

    Used as the last fallback: it needs no key and covers any point, but the
    values are reanalysis output rather than station readings.
    """

    name = "open-meteo"

    def __init__(
        self,
        fetch_client: Optional[FetchClient] = None,
        *,
        archive_url: Optional[str] = None,
        forecast_url: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(fetch_client, **kwargs)
        self.archive_url = archive_url or ARCHIVE_URL
        self.forecast_url = forecast_url or FORECAST_URL

    def list_stations(self) -> List[Station]:
        return catalogue(XEMA_BCN_STATIONS + GRID_BCN_STATIONS, self.name)

    def get_latest(self, station_id: str) -> LatestObservation:
        station = self._station_or_404(self.list_stations(), station_id)
        params = self._location(station)
        params["current"] = ",".join(HOURLY_FIELDS.values())
        data = self._fetch(self.forecast_url, params=params)
        current = (data or {}).get("current")
        if not current:
            raise ProviderError(ErrorCode.PROVIDER_ERROR, "missing current weather", provider=self.name)
        stamp = to_local_minute_key(str(current.get("time") or ""))
        values = {variable: _safe_float(current.get(field)) for variable, field in HOURLY_FIELDS.items()}
        return LatestObservation(station_id, self.name, stamp, observation_from_values(stamp, values))

    def get_timeseries(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        variable: Variable,
        aggregation: Aggregation,
    ) -> TimeseriesResponse:
        if variable not in self._fields(aggregation):
            raise self._invalid(f"Variable '{variable.value}' is not available for {aggregation.value} data")
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
        fields = self._fields(aggregation)
        wanted = [variable for variable in variables if variable in fields]
        if not wanted:
            return []
        station = self._station_or_404(self.list_stations(), station_id)
        block = "daily" if aggregation is Aggregation.DAILY else "hourly"
        params = self._location(station)
        params.update(
            {
                block: ",".join(fields[variable] for variable in wanted),
                "start_date": to_day_key(start),
                "end_date": to_day_key(end),
            }
        )
        data = self._fetch(self.archive_url, params=params)
        series = (data or {}).get(block) or {}
        timestamps = series.get("time") or []
        if not timestamps:
            raise ProviderError(ErrorCode.PROVIDER_ERROR, f"missing {block} data", provider=self.name)

        result: List[Observation] = []
        for idx, stamp in enumerate(timestamps):
            values = {variable: _safe_index(series.get(fields[variable]), idx) for variable in wanted}
            key = str(stamp)[:10] if block == "daily" else to_local_minute_key(str(stamp))
            result.append(observation_from_values(key, values))
        return result

    def supported_variables(self, aggregation: Aggregation, variables: Sequence[Variable]) -> List[Variable]:
        fields = self._fields(aggregation)
        return [variable for variable in variables if variable in fields]

    # helpers ------------------------------------------------------------
    def _fields(self, aggregation: Aggregation) -> Dict[Variable, str]:
        if aggregation is Aggregation.HALF_HOURLY:
            raise self._invalid("Open-Meteo has no semi-hourly data")
        return DAILY_FIELDS if aggregation is Aggregation.DAILY else HOURLY_FIELDS

    def _location(self, station: Station) -> Dict[str, object]:
        return {
            "latitude": station.latitude,
            "longitude": station.longitude,
            "timezone": TIMEZONE,
            "wind_speed_unit": "ms",
        }


def _safe_float(value: Optional[object]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_index(values: Optional[List[Optional[float]]], index: int) -> Optional[float]:
    try:
        value = values[index]
    except (IndexError, TypeError):
        return None
    return _safe_float(value)


__all__ = ["OpenMeteoProvider"]
