"""Shape statistics of an observation series, logged when data debugging is on."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .dates import parse_timestamp
from .entities import Observation, Variable


logger = logging.getLogger(__name__)

_TRACKED = (Variable.TEMPERATURE, Variable.HUMIDITY, Variable.WIND_SPEED)


@dataclass(frozen=True)
class SeriesDescription:
    points: int
    first_timestamp: Optional[str]
    last_timestamp: Optional[str]
    step_minutes: Optional[float]
    duplicates: int
    irregular_gaps: int
    ranges: Dict[str, Tuple[Optional[float], Optional[float]]] = field(default_factory=dict)


def describe_series(observations: Sequence[Observation]) -> SeriesDescription:
    stamped = []
    for obs in observations:
        moment = parse_timestamp(obs.timestamp)
        if moment is not None:
            stamped.append((moment, obs.timestamp))
    stamped.sort()
    steps: List[float] = [
        (later[0] - earlier[0]).total_seconds() / 60 for earlier, later in zip(stamped, stamped[1:])
    ]
    step = sum(steps) / len(steps) if steps else None
    irregular = 0
    if step:
        irregular = sum(1 for s in steps if abs(s - step) > step * 0.5)

    ranges: Dict[str, Tuple[Optional[float], Optional[float]]] = {}
    for variable in _TRACKED:
        values = [v for v in (obs.value(variable) for obs in observations) if v is not None]
        ranges[variable.value] = (min(values), max(values)) if values else (None, None)

    return SeriesDescription(
        points=len(observations),
        first_timestamp=stamped[0][1] if stamped else None,
        last_timestamp=stamped[-1][1] if stamped else None,
        step_minutes=round(step, 2) if step is not None else None,
        duplicates=len(observations) - len({obs.timestamp for obs in observations}),
        irregular_gaps=irregular,
        ranges=ranges,
    )


def log_series(context: str, observations: Sequence[Observation]) -> None:
    description = describe_series(observations)
    logger.debug("[%s] %s", context, description)


__all__ = ["SeriesDescription", "describe_series", "log_series"]
