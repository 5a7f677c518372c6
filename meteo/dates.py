"""Local-time helpers shared by the normalizer, aggregator and analyzers.

Every key produced here is local wall-clock time (Europe/Madrid for the
Barcelona stations). Naive inputs are taken as already local; aware inputs
are converted to :data:`LOCAL_TZ` and then stripped of their offset.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from .entities import DateRange


LOCAL_TZ = ZoneInfo("Europe/Madrid")

DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"T(\d{2}):(\d{2})")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string into a naive local datetime, or ``None``."""

    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(LOCAL_TZ).replace(tzinfo=None)
    return parsed


def format_minute_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M")


def to_local_minute_key(value: str) -> str:
    """Normalize a provider timestamp to ``YYYY-MM-DDTHH:MM``.

    Unparseable values are returned untouched so they still group by their
    exact text.
    """

    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return format_minute_key(parsed)


def to_day_key(moment: date) -> str:
    return moment.strftime("%Y-%m-%d")


def extract_clock(value: str) -> Optional[str]:
    """Return the local ``HH:MM`` written in a timestamp string."""

    match = _CLOCK_RE.search(value)
    if not match:
        return None
    return f"{match.group(1)}:{match.group(2)}"


def floor_to_half_hour(moment: datetime) -> datetime:
    return moment.replace(minute=0 if moment.minute < 30 else 30, second=0, microsecond=0)


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max)


def timestamp_sort_key(value: str) -> Tuple[int, datetime, str]:
    """Sort key ordering parseable timestamps chronologically, the rest last."""

    parsed = parse_timestamp(value)
    if parsed is None:
        return (1, datetime.min, value)
    return (0, parsed, value)


def build_quick_range_excluding_today(days: int, now: Optional[datetime] = None) -> DateRange:
    """Range covering the ``days`` whole days before today."""

    today = start_of_day(now or datetime.now(LOCAL_TZ).replace(tzinfo=None))
    yesterday = today - timedelta(days=1)
    return DateRange(start=today - timedelta(days=days), end=end_of_day(yesterday))


QUICK_RANGE_PRESETS = (7, 14, 30)


__all__ = [
    "DAY_KEY_RE",
    "LOCAL_TZ",
    "QUICK_RANGE_PRESETS",
    "build_quick_range_excluding_today",
    "end_of_day",
    "extract_clock",
    "floor_to_half_hour",
    "format_minute_key",
    "parse_timestamp",
    "start_of_day",
    "timestamp_sort_key",
    "to_day_key",
    "to_local_minute_key",
]
