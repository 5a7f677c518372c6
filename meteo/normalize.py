"""Long-format XEMA rows to per-timestamp observations.

Upstream datasets return one row per (station, timestamp, variable code).
Each code resolves to one :class:`~meteo.entities.Variable` through the
lookup tables below; rows are then folded into one
:class:`~meteo.entities.Observation` per timestamp.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .dates import extract_clock, to_local_minute_key
from .entities import Observation, Variable, observation_from_values


logger = logging.getLogger(__name__)

Row = Mapping[str, Any]

# Semi-hourly readings (dataset nzvn-apee).
SUBDAILY_CODES: Dict[str, Variable] = {
    "32": Variable.TEMPERATURE,  # T
    "33": Variable.HUMIDITY,  # HR
    "35": Variable.PRECIPITATION,  # PPT
    "30": Variable.WIND_SPEED,  # VV10, scalar mean at 10 m
    "31": Variable.WIND_DIRECTION,  # DV10
    "50": Variable.WIND_SPEED_MAX,  # VVx10, gust at 10 m
}

# Daily statistics (dataset 7bvh-jvq2).
DAILY_CODES: Dict[str, Variable] = {
    "1000": Variable.TEMPERATURE,  # TM
    "1100": Variable.HUMIDITY,  # HRM
    "1300": Variable.PRECIPITATION,  # PPT
    "1503": Variable.WIND_SPEED,  # VVM10
    "1512": Variable.WIND_SPEED_MAX,  # VVX10
}

GUST_CODE = "50"


def codes_for(code_map: Mapping[str, Variable], variables: Iterable[Variable]) -> List[str]:
    wanted = set(variables)
    return [code for code, variable in code_map.items() if variable in wanted]


def parse_numeric(row: Row) -> Optional[float]:
    """Numeric reading of a row, ``None`` when missing or malformed.

    ``valor`` wins over ``valor_lectura`` when both are present.
    """

    raw = row.get("valor")
    if raw is None:
        raw = row.get("valor_lectura")
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def row_key(row: Row, *, daily: bool) -> str:
    raw = str(row.get("data_lectura") or "")
    if daily:
        return raw[:10]
    return to_local_minute_key(raw)


def normalize_rows(
    rows: Iterable[Row],
    code_map: Mapping[str, Variable],
    *,
    daily: bool = False,
) -> List[Observation]:
    """Fold variable-coded rows into observations sorted by timestamp key.

    Rows with a code outside ``code_map`` are ignored. An unparseable value
    leaves its field ``None`` without discarding the rest of the timestamp.
    """

    grouped: Dict[str, Dict[Variable, Optional[float]]] = {}
    skipped = 0
    for row in rows:
        variable = code_map.get(str(row.get("codi_variable")))
        if variable is None:
            skipped += 1
            continue
        key = row_key(row, daily=daily)
        if not key:
            skipped += 1
            continue
        grouped.setdefault(key, {})[variable] = parse_numeric(row)
    if skipped:
        logger.debug("Skipped %s rows without a usable code or timestamp", skipped)
    return [observation_from_values(key, grouped[key]) for key in sorted(grouped)]


def attach_daily_gust_times(daily: Iterable[Observation], gust_rows: Iterable[Row]) -> List[Observation]:
    """Annotate daily records with the local time of the day's top gust.

    Rows are scanned in ascending timestamp order and only a strictly larger
    gust replaces the current one, so the earliest of equal maxima wins.
    """

    best: Dict[str, Tuple[float, Optional[str]]] = {}
    ordered = sorted(gust_rows, key=lambda row: str(row.get("data_lectura") or ""))
    for row in ordered:
        speed = parse_numeric(row)
        if speed is None:
            continue
        stamp = str(row.get("data_lectura") or "")
        day = stamp[:10]
        current = best.get(day)
        if current is None or speed > current[0]:
            best[day] = (speed, extract_clock(stamp))

    result: List[Observation] = []
    for obs in daily:
        found = best.get(obs.timestamp[:10])
        gust_time = found[1] if found else None
        result.append(replace(obs, wind_gust_time=gust_time or obs.wind_gust_time))
    return result


__all__ = [
    "DAILY_CODES",
    "GUST_CODE",
    "SUBDAILY_CODES",
    "attach_daily_gust_times",
    "codes_for",
    "normalize_rows",
    "parse_numeric",
]
