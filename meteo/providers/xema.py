"""XEMA network through the Transparència Catalunya open-data portal.

Three Socrata datasets are used:

- ``yqwd-vj5e``: station metadata.
- ``nzvn-apee``: semi-hourly readings, one row per variable code.
- ``7bvh-jvq2``: daily statistics, one row per variable code.

Daily records are cross-referenced with the semi-hourly gust rows so each
day carries the local time of its strongest gust. Hourly series are built
from the semi-hourly readings.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from ..aggregation import aggregate_hourly
from ..dates import to_day_key
from ..diagnostics import log_series
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
from ..errors import ErrorCode, ProviderError
from ..http.client import FetchClient
from ..http.socrata import SocrataClient, soql_quote
from ..normalize import (
    DAILY_CODES,
    GUST_CODE,
    SUBDAILY_CODES,
    attach_daily_gust_times,
    codes_for,
    normalize_rows,
)
from ..stations import XEMA_BCN_STATIONS, catalogue
from .base import DataProvider


RESOURCE_STATIONS = "yqwd-vj5e"
RESOURCE_SUBDAILY = "nzvn-apee"
RESOURCE_DAILY = "7bvh-jvq2"

SUBDAILY_PAGE_SIZE = 50000
DAILY_PAGE_SIZE = 5000
LATEST_LIMIT = 200

ROW_ORDER = "data_lectura ASC, codi_variable ASC"


class XemaProvider(DataProvider):
    name = "xema-transparencia"

    def __init__(
        self,
        fetch_client: Optional[FetchClient] = None,
        *,
        app_token: Optional[str] = None,
        base_url: Optional[str] = None,
        debug_data: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(fetch_client, **kwargs)
        socrata_kwargs = {"base_url": base_url} if base_url else {}
        self.socrata = SocrataClient(
            self.fetch_client, app_token=app_token, provider=self.name, **socrata_kwargs
        )
        self.debug_data = debug_data

    # public API ---------------------------------------------------------
    def list_stations(self) -> List[Station]:
        rows = self.socrata.query(
            RESOURCE_STATIONS,
            select="codi_estacio,nom_estacio,latitud,longitud,altitud,nom_municipi,codi_estat_ema,nom_xarxa",
            where="nom_xarxa = 'XEMA' AND codi_estat_ema = '2'",
            order="nom_estacio ASC",
            limit=2000,
        )
        stations = [self._map_station(row) for row in rows if row.get("codi_estacio") and row.get("latitud") and row.get("longitud")]
        if not stations:
            self._log.warning("Station metadata is empty, serving the built-in Barcelona list")
            return catalogue(XEMA_BCN_STATIONS, self.name)
        return stations

    def get_latest(self, station_id: str) -> LatestObservation:
        rows = self.socrata.query(
            RESOURCE_SUBDAILY,
            select="codi_estacio,data_lectura,codi_variable,valor_lectura",
            where=f"codi_estacio = {soql_quote(station_id)} AND {self._codes_clause(SUBDAILY_CODES.keys())}",
            order="data_lectura DESC",
            limit=LATEST_LIMIT,
        )
        observations = normalize_rows(rows, SUBDAILY_CODES)
        if not observations:
            raise ProviderError(
                ErrorCode.NOT_FOUND, f"No recent readings for station {station_id}", provider=self.name
            )
        latest = observations[-1]
        return LatestObservation(station_id=station_id, provider=self.name, timestamp=latest.timestamp, observation=latest)

    def get_timeseries(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        variable: Variable,
        aggregation: Aggregation,
    ) -> TimeseriesResponse:
        if variable not in self.supported_variables(aggregation, [variable]):
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
        variables = self.supported_variables(aggregation, variables)
        if aggregation is Aggregation.DAILY:
            observations = self._daily(station_id, start, end, variables)
        else:
            observations = self._subdaily(station_id, start, end, variables)
            if aggregation is Aggregation.HOURLY:
                observations = aggregate_hourly(observations)
        if self.debug_data:
            log_series(f"xema {station_id} {aggregation.value}", observations)
        return observations

    def supported_variables(self, aggregation: Aggregation, variables: Sequence[Variable]) -> List[Variable]:
        code_map = DAILY_CODES if aggregation is Aggregation.DAILY else SUBDAILY_CODES
        available = set(code_map.values())
        return [variable for variable in variables if variable in available]

    # helpers ------------------------------------------------------------
    def _daily(self, station_id: str, start: datetime, end: datetime, variables: Sequence[Variable]) -> List[Observation]:
        codes = codes_for(DAILY_CODES, variables)
        if not codes:
            return []
        rows = self.socrata.fetch_all_pages(
            RESOURCE_DAILY,
            select="codi_estacio,data_lectura,codi_variable,valor",
            where=self._where(station_id, start, end, codes),
            order=ROW_ORDER,
            page_size=DAILY_PAGE_SIZE,
        )
        daily = normalize_rows(rows, DAILY_CODES, daily=True)
        if Variable.WIND_SPEED_MAX not in variables:
            return daily
        gust_rows = self.socrata.fetch_all_pages(
            RESOURCE_SUBDAILY,
            select="data_lectura,valor,valor_lectura",
            where=self._where(station_id, start, end, [GUST_CODE]),
            order="data_lectura ASC",
            page_size=SUBDAILY_PAGE_SIZE,
        )
        return attach_daily_gust_times(daily, gust_rows)

    def _subdaily(self, station_id: str, start: datetime, end: datetime, variables: Sequence[Variable]) -> List[Observation]:
        wanted = list(variables)
        # the vector mean needs the direction that goes with each speed
        if Variable.WIND_SPEED in wanted or Variable.WIND_DIRECTION in wanted:
            wanted.extend(v for v in (Variable.WIND_SPEED, Variable.WIND_DIRECTION) if v not in wanted)
        codes = codes_for(SUBDAILY_CODES, wanted)
        if not codes:
            return []
        rows = self.socrata.fetch_all_pages(
            RESOURCE_SUBDAILY,
            select="codi_estacio,data_lectura,codi_variable,valor,valor_lectura,codi_estat",
            where=self._where(station_id, start, end, codes),
            order=ROW_ORDER,
            page_size=SUBDAILY_PAGE_SIZE,
        )
        return normalize_rows(rows, SUBDAILY_CODES)

    def _where(self, station_id: str, start: datetime, end: datetime, codes: Sequence[str]) -> str:
        return (
            f"codi_estacio = {soql_quote(station_id)} "
            f"AND data_lectura >= '{to_day_key(start)}T00:00:00' "
            f"AND data_lectura <= '{to_day_key(end)}T23:59:59' "
            f"AND {self._codes_clause(codes)}"
        )

    def _codes_clause(self, codes) -> str:
        return "codi_variable in (" + ",".join(soql_quote(code) for code in codes) + ")"

    def _map_station(self, row: dict) -> Station:
        elevation = row.get("altitud")
        return Station(
            id=str(row["codi_estacio"]),
            name=str(row.get("nom_estacio") or row["codi_estacio"]),
            latitude=float(row["latitud"]),
            longitude=float(row["longitud"]),
            elevation=float(elevation) if elevation not in (None, "") else None,
            municipality=row.get("nom_municipi"),
            provider=self.name,
        )


__all__ = ["XemaProvider"]
