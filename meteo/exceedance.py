from __future__ import annotations

import math
from typing import Iterable, List, Optional

from .dates import timestamp_sort_key
from .entities import ExceedanceInterval, Observation, Variable


def exceedance_intervals(
    observations: Iterable[Observation],
    threshold: float,
    field: Variable = Variable.WIND_SPEED_MAX,
) -> List[ExceedanceInterval]:
    """Runs of consecutive readings whose ``field`` is strictly above ``threshold``.

    Input order is ignored: readings are sorted by timestamp first. Adjacent
    readings merge regardless of the time between them; a lone exceedance
    gives ``start == end``.
    """

    ordered = sorted(observations, key=lambda obs: timestamp_sort_key(obs.timestamp))
    intervals: List[ExceedanceInterval] = []
    start: Optional[str] = None
    end: Optional[str] = None
    for obs in ordered:
        value = obs.value(field)
        if value is not None and not math.isnan(value) and value > threshold:
            if start is None:
                start = obs.timestamp
            end = obs.timestamp
        elif start is not None:
            intervals.append(ExceedanceInterval(start=start, end=end))
            start = end = None
    if start is not None:
        intervals.append(ExceedanceInterval(start=start, end=end))
    return intervals


__all__ = ["exceedance_intervals"]
