"""Servei Meteorològic de Catalunya XEMA API (https://apidocs.meteocat.gencat.cat/).

Every call needs an ``X-Api-Key`` header. Measurements are served per
station and day; daily statistics per variable, station and month.
Upstream timestamps are UTC and are converted to Barcelona local time.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..aggregation import aggregate_hourly
from ..dates import format_minute_key, timestamp_sort_key, to_day_key, to_local_minute_key
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
from ..errors import ErrorCode, MissingApiKey, ProviderError
from ..http.client import FetchClient
from ..normalize import DAILY_CODES, SUBDAILY_CODES, parse_numeric
from .base import DataProvider


BASE_URL = "https://api.meteo.cat/xema/v1"
BARCELONA_PROVINCE = "8"
VALID = "V"

SUBDAILY_BY_VARIABLE: Dict[Variable, str] = {variable: code for code, variable in SUBDAILY_CODES.items()}
DAILY_BY_VARIABLE: Dict[Variable, str] = {variable: code for code, variable in DAILY_CODES.items()}


class MeteocatProvider(DataProvider):
    name = "meteocat"
    requires_api_key = True

    def __init__(
        self,
        fetch_client: Optional[FetchClient] = None,
        *,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        clock: Callable[[], datetime] = datetime.now,
        **kwargs,
    ) -> None:
        super().__init__(fetch_client, **kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._clock = clock

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def list_stations(self) -> List[Station]:
        data = self._get("estacions/metadades", params={"estat": "ope"})
        return [
            self._map_station(item)
            for item in data or []
            if str((item.get("provincia") or {}).get("codi")) == BARCELONA_PROVINCE
        ]

    def get_latest(self, station_id: str) -> LatestObservation:
        now = self._clock()
        try:
            data = self._measurements(station_id, now.date())
        except ProviderError as exc:
            if exc.code is not ErrorCode.NOT_FOUND:
                raise
            self._log.info("No measurements for %s today", station_id)
            stamp = format_minute_key(now)
            return LatestObservation(station_id, self.name, stamp, Observation.empty(stamp))

        values: Dict[Variable, Optional[float]] = {}
        newest: Optional[str] = None
        for code, variable in SUBDAILY_CODES.items():
            readings = self._valid_readings(data.get(code))
            if not readings:
                continue
            stamp, value = readings[-1]
            values[variable] = value
            if newest is None or timestamp_sort_key(stamp) > timestamp_sort_key(newest):
                newest = stamp
        stamp = newest or format_minute_key(now)
        return LatestObservation(station_id, self.name, stamp, observation_from_values(stamp, values))

    def get_timeseries(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        variable: Variable,
        aggregation: Aggregation,
    ) -> TimeseriesResponse:
        if aggregation is Aggregation.DAILY:
            points = self._daily_points(station_id, start, end, variable)
        else:
            if variable not in SUBDAILY_BY_VARIABLE:
                raise self._invalid(f"Variable '{variable.value}' is not available for {aggregation.value} data")
            observations = self.get_observations(station_id, start, end, aggregation, [variable])
            points = [TimeseriesPoint(obs.timestamp, obs.value(variable)) for obs in observations]
        return TimeseriesResponse(
            station_id=station_id,
            provider=self.name,
            variable=variable,
            unit=VARIABLE_UNITS[variable],
            aggregation=aggregation,
            points=points,
        )

    def get_observations(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        aggregation: Aggregation,
        variables: Sequence[Variable] = ALL_VARIABLES,
    ) -> List[Observation]:
        if aggregation is Aggregation.DAILY:
            return super().get_observations(station_id, start, end, aggregation, variables)

        # one request per day carries every variable
        wanted = [v for v in variables if v in SUBDAILY_BY_VARIABLE]
        if Variable.WIND_SPEED in wanted or Variable.WIND_DIRECTION in wanted:
            wanted.extend(v for v in (Variable.WIND_SPEED, Variable.WIND_DIRECTION) if v not in wanted)
        grouped: Dict[str, Dict[Variable, Optional[float]]] = {}
        for day in _days(start, end):
            try:
                data = self._measurements(station_id, day)
            except ProviderError as exc:
                if exc.code is not ErrorCode.NOT_FOUND:
                    raise
                self._log.warning("No measurements for %s on %s", station_id, day)
                continue
            for variable in wanted:
                for stamp, value in self._valid_readings(data.get(SUBDAILY_BY_VARIABLE[variable])):
                    grouped.setdefault(stamp, {})[variable] = value
        ordered = sorted(grouped, key=timestamp_sort_key)
        observations = [observation_from_values(stamp, grouped[stamp]) for stamp in ordered]
        if aggregation is Aggregation.HOURLY:
            return aggregate_hourly(observations)
        return observations

    def supported_variables(self, aggregation: Aggregation, variables: Sequence[Variable]) -> List[Variable]:
        lookup = DAILY_BY_VARIABLE if aggregation is Aggregation.DAILY else SUBDAILY_BY_VARIABLE
        return [variable for variable in variables if variable in lookup]

    # helpers ------------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise MissingApiKey(
                self.name,
                "Meteocat API key is not configured. Request one at apidocs.meteocat.gencat.cat",
            )
        return {"X-Api-Key": self.api_key}

    def _get(self, path: str, params: Optional[Dict[str, object]] = None):
        return self._fetch(f"{self.base_url}/{path}", params=params, headers=self._headers())

    def _measurements(self, station_id: str, day: date) -> Dict[str, list]:
        data = self._get(f"estacions/mesurades/{station_id}/{day.year}/{day.month:02d}/{day.day:02d}")
        return _by_code(data)

    def _valid_readings(self, readings: Optional[list]) -> List[Tuple[str, Optional[float]]]:
        result = []
        for reading in readings or []:
            if reading.get("estat") != VALID or not reading.get("data"):
                continue
            result.append((to_local_minute_key(reading["data"]), parse_numeric(reading)))
        result.sort(key=lambda item: timestamp_sort_key(item[0]))
        return result

    def _daily_points(self, station_id: str, start: datetime, end: datetime, variable: Variable) -> List[TimeseriesPoint]:
        code = DAILY_BY_VARIABLE.get(variable)
        if code is None:
            raise self._invalid(f"Variable '{variable.value}' is not available for daily data")
        first, last = to_day_key(start), to_day_key(end)
        points: Dict[str, Optional[float]] = {}
        for year, month in _months(start, end):
            try:
                data = self._get(
                    f"variables/estadistics/diaris/{code}",
                    params={"codiEstacio": station_id, "any": year, "mes": f"{month:02d}"},
                )
            except ProviderError as exc:
                if exc.code is not ErrorCode.NOT_FOUND:
                    raise
                self._log.warning("No daily %s statistics for %s in %s-%02d", variable.value, station_id, year, month)
                continue
            rows = data.get("valors", []) if isinstance(data, dict) else data or []
            for row in rows:
                day = str(row.get("data") or "")[:10]
                if row.get("estat", VALID) != VALID or not first <= day <= last:
                    continue
                points[day] = parse_numeric(row)
        return [TimeseriesPoint(day, points[day]) for day in sorted(points)]

    def _map_station(self, item: dict) -> Station:
        coordinates = item.get("coordenades") or {}
        return Station(
            id=str(item["codi"]),
            name=item.get("nom") or str(item["codi"]),
            latitude=float(coordinates["latitud"]),
            longitude=float(coordinates["longitud"]),
            elevation=item.get("altitud"),
            municipality=(item.get("municipi") or {}).get("nom"),
            provider=self.name,
        )


def _by_code(data) -> Dict[str, list]:
    """Measurements keyed by variable code.

    The API answers either ``{"32": [...]}`` or a list of
    ``{"codi": 32, "lectures": [...]}`` entries.
    """

    if isinstance(data, dict):
        return {str(code): readings for code, readings in data.items()}
    result: Dict[str, list] = {}
    for entry in data or []:
        if isinstance(entry, dict) and "codi" in entry:
            result[str(entry["codi"])] = entry.get("lectures") or []
    return result


def _days(start: datetime, end: datetime) -> Iterator[date]:
    day = start.date()
    while day <= end.date():
        yield day
        day += timedelta(days=1)


def _months(start: datetime, end: datetime) -> Iterator[Tuple[int, int]]:
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)


__all__ = ["MeteocatProvider"]
