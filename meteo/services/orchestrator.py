from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..cache import CacheEntry
from ..entities import (
    ALL_VARIABLES,
    Aggregation,
    DateRange,
    LatestObservation,
    Observation,
    ProviderResult,
    Station,
    TimeseriesResponse,
    Variable,
)
from ..errors import ApiError, ErrorCode, MissingApiKey, ProviderError
from ..providers.base import DataProvider


class ProviderOrchestrator:
    """Runs one logical operation against providers in priority order.

    Without an explicit provider every configured provider is tried in turn
    until one succeeds. Naming a provider disables fallback. Failures are
    returned as :class:`ProviderResult` errors; nothing here raises.
    """

    def __init__(self, providers: Sequence[DataProvider], logger: Optional[logging.Logger] = None) -> None:
        self.providers = list(providers)
        self._log = logger or logging.getLogger(self.__class__.__name__)

    # public API ---------------------------------------------------------
    def list_stations(
        self,
        provider: Optional[str] = None,
        cached: Optional[CacheEntry] = None,
        ttl: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> ProviderResult[List[Station]]:
        """Station list, served from ``cached`` while it is younger than ``ttl`` seconds."""

        if cached is not None and ttl is not None and cached.is_fresh(ttl, now):
            if provider is None or cached.provider == provider:
                return ProviderResult.success(
                    cached.data, cached.provider, cached=True, fetched_at=cached.fetched_at
                )
        return self._run("list_stations", provider, lambda p: p.list_stations())

    def get_latest(self, station_id: str, provider: Optional[str] = None) -> ProviderResult[LatestObservation]:
        return self._run("get_latest", provider, lambda p: p.get_latest(station_id))

    def get_timeseries(
        self,
        station_id: str,
        date_range: DateRange,
        variable: Variable,
        aggregation: Aggregation,
        provider: Optional[str] = None,
    ) -> ProviderResult[TimeseriesResponse]:
        return self._run(
            "get_timeseries",
            provider,
            lambda p: p.get_timeseries(station_id, date_range.start, date_range.end, variable, aggregation),
        )

    def get_observations(
        self,
        station_id: str,
        date_range: DateRange,
        aggregation: Aggregation,
        provider: Optional[str] = None,
        variables: Sequence[Variable] = ALL_VARIABLES,
    ) -> ProviderResult[List[Observation]]:
        return self._run(
            "get_observations",
            provider,
            lambda p: p.get_observations(station_id, date_range.start, date_range.end, aggregation, variables),
        )

    def provider_status(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": provider.name,
                "configured": provider.is_configured(),
                "requires_api_key": provider.requires_api_key,
            }
            for provider in self.providers
        ]

    def provider_names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    # helpers ------------------------------------------------------------
    def _candidates(self, provider: Optional[str]) -> Tuple[List[DataProvider], bool]:
        if provider is None:
            return self.providers, True
        return [p for p in self.providers if p.name == provider], False

    def _run(
        self,
        operation: str,
        provider: Optional[str],
        call: Callable[[DataProvider], Any],
    ) -> ProviderResult:
        candidates, fallback = self._candidates(provider)
        if not candidates:
            message = f"Unknown provider: {provider}" if provider else "No providers configured"
            return ProviderResult.failure(ApiError(ErrorCode.INVALID_PARAMS, message, provider=provider), provider)

        errors: List[ApiError] = []
        for candidate in candidates:
            try:
                if not candidate.is_configured():
                    raise MissingApiKey(candidate.name)
                data = call(candidate)
            except ProviderError as exc:
                error = exc.to_api_error()
                if error.provider is None:
                    error = ApiError(error.code, error.message, provider=candidate.name, details=error.details)
            except Exception as exc:
                self._log.exception("Unexpected error from %s.%s", candidate.name, operation)
                error = ApiError(ErrorCode.UNKNOWN, str(exc) or exc.__class__.__name__, provider=candidate.name)
            else:
                return ProviderResult.success(data, candidate.name)

            errors.append(error)
            self._log.warning("%s failed on %s: %s (%s)", operation, candidate.name, error.message, error.code.value)
            if not fallback:
                return ProviderResult.failure(error, candidate.name)

        last = candidates[-1].name
        combined = "; ".join(f"{error.provider}: {error.message}" for error in errors)
        self._log.error("%s failed on every provider: %s", operation, combined)
        return ProviderResult.failure(
            ApiError(
                ErrorCode.PROVIDER_ERROR,
                f"All providers failed: {combined}",
                provider=last,
                details={"errors": [error.as_dict() for error in errors]},
            ),
            last,
        )


__all__ = ["ProviderOrchestrator"]
