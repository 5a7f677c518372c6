"""Per-variable timeseries fan-out and merge."""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from .dates import timestamp_sort_key
from .entities import Aggregation, Observation, TimeseriesResponse, Variable, observation_from_values


logger = logging.getLogger(__name__)

FetchSeries = Callable[[str, datetime, datetime, Variable, Aggregation], TimeseriesResponse]


def merge_timeseries(responses: Sequence[TimeseriesResponse]) -> List[Observation]:
    """Join single-variable series into observations keyed by timestamp."""

    merged: Dict[str, Dict[Variable, Optional[float]]] = {}
    for response in responses:
        for point in response.points:
            merged.setdefault(point.timestamp, {})[response.variable] = point.value
    ordered = sorted(merged, key=timestamp_sort_key)
    return [observation_from_values(timestamp, merged[timestamp]) for timestamp in ordered]


def fetch_merged_observations(
    fetch_series: FetchSeries,
    station_id: str,
    start: datetime,
    end: datetime,
    aggregation: Aggregation,
    variables: Sequence[Variable],
    max_workers: Optional[int] = None,
) -> List[Observation]:
    """Request every variable concurrently and merge the results.

    All or nothing: the first failing request is re-raised as soon as it is
    seen and the other results are discarded. Requests already in flight are
    left to finish on their own.
    """

    if not variables:
        return []
    executor = ThreadPoolExecutor(max_workers=max_workers or len(variables))
    try:
        futures = [
            executor.submit(fetch_series, station_id, start, end, variable, aggregation)
            for variable in variables
        ]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done and future.exception() is not None:
                logger.warning("Timeseries request for %s failed: %s", station_id, future.exception())
                raise future.exception()
        responses = [future.result() for future in futures]
    finally:
        executor.shutdown(wait=False)
    return merge_timeseries(responses)


__all__ = ["fetch_merged_observations", "merge_timeseries"]
