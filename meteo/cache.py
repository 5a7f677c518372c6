from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional


@dataclass(frozen=True)
class CacheEntry:
    """A fetched value and when it was fetched.

    The entry carries no expiry of its own; whoever holds it decides whether
    it is still fresh for the TTL they care about.
    """

    data: Any
    fetched_at: datetime
    provider: Optional[str] = None

    def age(self, now: Optional[datetime] = None) -> timedelta:
        return (now or datetime.now()) - self.fetched_at

    def is_fresh(self, ttl: float, now: Optional[datetime] = None) -> bool:
        return self.age(now) <= timedelta(seconds=ttl)


__all__ = ["CacheEntry"]
