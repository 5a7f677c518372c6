from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

import requests

from ..entities import (
    ALL_VARIABLES,
    Aggregation,
    LatestObservation,
    Observation,
    Station,
    TimeseriesResponse,
    Variable,
)
from ..errors import ErrorCode, MissingApiKey, ProviderError
from ..http.client import FetchClient, RequestConfig
from ..stations import find_station
from ..timeseries import fetch_merged_observations


class DataProvider:
    """Capability interface every upstream adapter implements.

    ``get_observations`` has a default built on ``get_timeseries``: one
    concurrent request per variable, merged by timestamp. Adapters with a
    bulk endpoint override it.
    """

    name: str = ""
    requires_api_key: bool = False

    def __init__(
        self,
        fetch_client: Optional[FetchClient] = None,
        *,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.fetch_client = fetch_client or FetchClient(session=session, config=request_config)
        self._log = logging.getLogger(self.__class__.__name__)

    def is_configured(self) -> bool:
        return True

    def list_stations(self) -> List[Station]:
        raise NotImplementedError

    def get_latest(self, station_id: str) -> LatestObservation:
        raise NotImplementedError

    def get_timeseries(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        variable: Variable,
        aggregation: Aggregation,
    ) -> TimeseriesResponse:
        raise NotImplementedError

    def get_observations(
        self,
        station_id: str,
        start: datetime,
        end: datetime,
        aggregation: Aggregation,
        variables: Sequence[Variable] = ALL_VARIABLES,
    ) -> List[Observation]:
        return fetch_merged_observations(
            self.get_timeseries, station_id, start, end, aggregation, self.supported_variables(aggregation, variables)
        )

    def supported_variables(self, aggregation: Aggregation, variables: Sequence[Variable]) -> List[Variable]:
        return list(variables)

    # helpers ------------------------------------------------------------
    def _fetch(self, url: str, **kwargs):
        return self.fetch_client.fetch(url, provider=self.name, **kwargs).data

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise MissingApiKey(self.name)

    def _invalid(self, message: str) -> ProviderError:
        return ProviderError(ErrorCode.INVALID_PARAMS, message, provider=self.name)

    def _station_or_404(self, stations: Sequence[Station], station_id: str) -> Station:
        station = find_station(stations, station_id)
        if station is not None:
            return station
        raise ProviderError(ErrorCode.NOT_FOUND, f"Unknown station: {station_id}", provider=self.name)


__all__ = ["DataProvider"]
