"""REST API views for Barcelona weather-station data."""
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.core.cache import caches
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from meteo.cache import CacheEntry
from meteo.dates import DAY_KEY_RE, QUICK_RANGE_PRESETS, build_quick_range_excluding_today, end_of_day, start_of_day
from meteo.entities import Aggregation, DateRange, ProviderResult, coverage_counts
from meteo.errors import ApiError, ErrorCode
from meteo.providers import build_providers
from meteo.services import ObservationReport, ProviderOrchestrator, build_observation_report
from meteo.services.report import DEFAULT_THRESHOLD
from meteo.stations import find_station, sort_by_distance


logger = logging.getLogger(__name__)

MAX_SUBDAILY_DAYS = 31

ERROR_STATUS = {
    ErrorCode.INVALID_PARAMS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


class QueryError(ValueError):
    """Invalid query parameters."""


@lru_cache(maxsize=1)
def get_orchestrator() -> ProviderOrchestrator:
    return ProviderOrchestrator(build_providers(settings.METEO))


def parse_observation_query(params) -> Tuple[str, DateRange, Aggregation, float]:
    station_id = (params.get("stationId") or "").strip()
    raw_from, raw_to, raw_days = params.get("from"), params.get("to"), params.get("days")
    if not station_id:
        raise QueryError("stationId query parameter is required")
    if raw_days not in (None, ""):
        if raw_from or raw_to:
            raise QueryError("days cannot be combined with from and to")
        date_range = _quick_range(raw_days)
    else:
        date_range = _explicit_range(raw_from, raw_to)

    try:
        aggregation = Aggregation(params.get("granularity") or Aggregation.DAILY.value)
    except ValueError as exc:
        choices = ", ".join(item.value for item in Aggregation)
        raise QueryError(f"granularity must be one of {choices}") from exc
    days = (date_range.end.date() - date_range.start.date()).days + 1
    if aggregation is not Aggregation.DAILY and days > MAX_SUBDAILY_DAYS:
        raise QueryError(f"{aggregation.value} data is limited to {MAX_SUBDAILY_DAYS} days per request")

    raw_threshold = params.get("threshold")
    try:
        threshold = float(raw_threshold) if raw_threshold not in (None, "") else DEFAULT_THRESHOLD
    except ValueError as exc:
        raise QueryError("threshold must be a number") from exc
    return station_id, date_range, aggregation, threshold


def _explicit_range(raw_from: Optional[str], raw_to: Optional[str]) -> DateRange:
    if not raw_from or not raw_to:
        raise QueryError("from and to query parameters are required unless days is given")
    if not DAY_KEY_RE.match(raw_from) or not DAY_KEY_RE.match(raw_to):
        raise QueryError("from and to must use the YYYY-MM-DD format")
    try:
        start = datetime.strptime(raw_from, "%Y-%m-%d")
        end = datetime.strptime(raw_to, "%Y-%m-%d")
    except ValueError as exc:
        raise QueryError("from and to must be valid calendar dates") from exc
    date_range = DateRange(start=start_of_day(start), end=end_of_day(end))
    if not date_range.is_valid():
        raise QueryError("from must not be after to")
    return date_range


def _quick_range(raw_days: Any) -> DateRange:
    presets = ", ".join(str(days) for days in QUICK_RANGE_PRESETS)
    try:
        days = int(raw_days)
    except ValueError as exc:
        raise QueryError(f"days must be one of {presets}") from exc
    if days not in QUICK_RANGE_PRESETS:
        raise QueryError(f"days must be one of {presets}")
    return build_quick_range_excluding_today(days)


def load_stations(orchestrator: ProviderOrchestrator, provider: Optional[str]) -> ProviderResult:
    """Station list through the Django cache, stored as a :class:`CacheEntry`."""

    cache = caches[settings.WEATHER_CACHE_ALIAS]
    key = f"meteo:stations:{provider or 'auto'}"
    ttl = settings.STATIONS_CACHE_TIMEOUT
    result = orchestrator.list_stations(provider=provider, cached=cache.get(key), ttl=ttl)
    if result.ok and not result.cached:
        cache.set(key, CacheEntry(result.data, result.fetched_at, result.provider), timeout=ttl)
    return result


def serialize_report(report: ObservationReport) -> Dict[str, Any]:
    payload = asdict(report)
    payload["coverage"].update(coverage_counts(report.coverage))
    payload["date_range"] = {
        "from": report.date_range.start.date().isoformat(),
        "to": report.date_range.end.date().isoformat(),
    }
    return payload


def error_response(error: ApiError) -> Response:
    return Response(error.as_dict(), status=ERROR_STATUS.get(error.code, status.HTTP_502_BAD_GATEWAY))


class StationsView(APIView):
    """List stations, nearest first when a location is given."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        provider = request.query_params.get("provider") or None
        lat, lon = request.query_params.get("lat"), request.query_params.get("lon")
        if (lat is None) != (lon is None):
            return Response({"detail": "lat and lon must be given together"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            location = (float(lat), float(lon)) if lat is not None else None
        except ValueError:
            return Response({"detail": "lat and lon must be valid floating point numbers"}, status=status.HTTP_400_BAD_REQUEST)

        result = load_stations(get_orchestrator(), provider)
        if not result.ok:
            return error_response(result.error)
        stations = result.data
        if location is not None:
            stations = sort_by_distance(stations, *location)
        return Response(
            {
                "provider": result.provider,
                "cached": result.cached,
                "fetched_at": result.fetched_at,
                "stations": [asdict(station) for station in stations],
            },
            status=status.HTTP_200_OK,
        )


class LatestView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        station_id = request.query_params.get("stationId")
        if not station_id:
            return Response({"detail": "stationId query parameter is required"}, status=status.HTTP_400_BAD_REQUEST)
        result = get_orchestrator().get_latest(station_id, provider=request.query_params.get("provider") or None)
        if not result.ok:
            return error_response(result.error)
        payload = asdict(result.data)
        payload["fetched_at"] = result.fetched_at
        return Response(payload, status=status.HTTP_200_OK)


class ObservationsView(APIView):
    """Observations with summaries, coverage and exceedances for one station."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        try:
            station_id, date_range, aggregation, threshold = parse_observation_query(request.query_params)
        except QueryError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        provider = request.query_params.get("provider") or None
        orchestrator = get_orchestrator()
        result = build_observation_report(
            orchestrator,
            station_id,
            date_range,
            aggregation,
            station_name=station_name(orchestrator, station_id, provider),
            threshold=threshold,
            provider=provider,
        )
        if not result.ok:
            return error_response(result.error)
        return Response(serialize_report(result.data), status=status.HTTP_200_OK)


class ProvidersView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response(
            {"mode": settings.METEO.data_mode, "providers": get_orchestrator().provider_status()},
            status=status.HTTP_200_OK,
        )


def station_name(orchestrator: ProviderOrchestrator, station_id: str, provider: Optional[str]) -> Optional[str]:
    result = load_stations(orchestrator, provider)
    if not result.ok:
        logger.info("Station list unavailable, labelling %s by id", station_id)
        return None
    station = find_station(result.data, station_id)
    return station.name if station else None
