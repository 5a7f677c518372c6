"""Wind vector helpers.

Directions follow the meteorological convention: degrees clockwise from
north, naming the direction the wind blows *from* (0 = N, 90 = E).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class WindVector:
    speed: float
    dir: float


def speed_dir_to_uv(speed: float, dir_deg: float) -> Tuple[float, float]:
    rad = math.radians(dir_deg)
    return -speed * math.sin(rad), -speed * math.cos(rad)


def uv_to_speed_dir(u: float, v: float) -> WindVector:
    speed = math.hypot(u, v)
    direction = math.degrees(math.atan2(-u, -v)) % 360.0
    if direction >= 360.0:
        direction = 0.0
    return WindVector(speed=speed, dir=direction)


def _is_number(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def vectorial_mean_wind(pairs: Iterable[Tuple[Optional[float], Optional[float]]]) -> Optional[WindVector]:
    """Mean of ``(speed, direction)`` pairs computed on u/v components.

    Pairs without a usable speed are skipped. A missing direction counts as
    0 degrees so the reading still contributes its magnitude.
    """

    u_sum = 0.0
    v_sum = 0.0
    count = 0
    for speed, direction in pairs:
        if not _is_number(speed):
            continue
        u, v = speed_dir_to_uv(speed, direction if _is_number(direction) else 0.0)
        u_sum += u
        v_sum += v
        count += 1
    if count == 0:
        return None
    return uv_to_speed_dir(u_sum / count, v_sum / count)


__all__ = ["WindVector", "speed_dir_to_uv", "uv_to_speed_dir", "vectorial_mean_wind"]
