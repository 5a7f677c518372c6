"""Everything the dashboard shows for one station and date range."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Union

from ..aggregation import aggregate_wind_by_bucket, build_daily_summary, calculate_stats, day_bucket, hour_bucket
from ..coverage import compute_daily_coverage, compute_subdaily_coverage
from ..entities import (
    Aggregation,
    DailyCoverage,
    DailySummaryRow,
    DateRange,
    ExceedanceInterval,
    Observation,
    ProviderResult,
    SubdailyCoverage,
    Variable,
    WeatherStats,
    WindBucketAggregate,
)
from ..exceedance import exceedance_intervals
from ..sources import build_data_source_label
from .orchestrator import ProviderOrchestrator


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 5.0


@dataclass(frozen=True)
class ObservationReport:
    station_id: str
    provider: str
    aggregation: Aggregation
    date_range: DateRange
    data_source_label: str
    observations: List[Observation]
    daily_summary: List[DailySummaryRow]
    stats: WeatherStats
    wind: List[WindBucketAggregate]
    coverage: Union[DailyCoverage, SubdailyCoverage]
    threshold: float
    field: Variable
    exceedances: List[ExceedanceInterval]
    fetched_at: Optional[datetime] = None


def build_observation_report(
    orchestrator: ProviderOrchestrator,
    station_id: str,
    date_range: DateRange,
    aggregation: Aggregation,
    *,
    station_name: Optional[str] = None,
    threshold: float = DEFAULT_THRESHOLD,
    field: Variable = Variable.WIND_SPEED_MAX,
    provider: Optional[str] = None,
) -> ProviderResult[ObservationReport]:
    result = orchestrator.get_observations(station_id, date_range, aggregation, provider=provider)
    if not result.ok:
        return result

    label = build_data_source_label(result.provider, station_name or station_id)
    observations = [replace(obs, data_source_label=label) for obs in result.data]
    if aggregation is Aggregation.HALF_HOURLY:
        coverage = compute_subdaily_coverage(date_range, observations)
        wind = aggregate_wind_by_bucket(observations, hour_bucket)
    else:
        coverage = compute_daily_coverage(date_range, observations)
        wind = aggregate_wind_by_bucket(observations, day_bucket)
    logger.debug(
        "Report for %s via %s: %s observations, %s missing slots",
        station_id,
        result.provider,
        len(observations),
        coverage.missing_count,
    )

    report = ObservationReport(
        station_id=station_id,
        provider=result.provider,
        aggregation=aggregation,
        date_range=date_range,
        data_source_label=label,
        observations=observations,
        daily_summary=build_daily_summary(observations),
        stats=calculate_stats(observations),
        wind=wind,
        coverage=coverage,
        threshold=threshold,
        field=field,
        exceedances=exceedance_intervals(observations, threshold, field),
        fetched_at=result.fetched_at,
    )
    return ProviderResult.success(report, result.provider, cached=result.cached, fetched_at=result.fetched_at)


__all__ = ["DEFAULT_THRESHOLD", "ObservationReport", "build_observation_report"]
