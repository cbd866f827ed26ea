"""In-memory TTL cache for progress timelines.

Cache key formats:
    "status:{submission_id}:timeline"
    "status:{submission_id}:overview"
    "status:stale:{minutes}"
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import structlog

from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)

logger = structlog.get_logger(__name__)

STALE_KEY_PREFIX = "status:stale:"


@dataclass
class CacheEntry:
    """Cache entry with TTL.

    Attributes:
        data: Cached data.
        cached_at: When data was cached.
        ttl_seconds: TTL in seconds.
    """

    data: Any
    cached_at: datetime
    ttl_seconds: int = 30

    def is_expired(self, now: datetime) -> bool:
        """Check if cache entry has expired."""
        return now >= self.cached_at + timedelta(seconds=self.ttl_seconds)


class TimelineCache:
    """Simple in-memory cache for timelines, overviews and stale reports.

    A TTL of 0 disables caching.
    """

    def __init__(self, time_authority: TimeAuthorityProtocol, ttl_seconds: int = 30) -> None:
        """Initialize the cache.

        Args:
            time_authority: Clock for expiry checks.
            ttl_seconds: Default entry TTL.
        """
        self._time = time_authority
        self._cache: dict[str, CacheEntry] = {}
        self._ttl_seconds = ttl_seconds
        self._log = logger.bind(component="timeline_cache")

    @staticmethod
    def timeline_key(submission_id: Any) -> str:
        return f"status:{submission_id}:timeline"

    @staticmethod
    def overview_key(submission_id: Any) -> str:
        return f"status:{submission_id}:overview"

    @staticmethod
    def stale_key(minutes: int) -> str:
        return f"{STALE_KEY_PREFIX}{minutes}"

    def get(self, key: str) -> Any | None:
        """Get cached data.

        Returns:
            Cached data if valid, None if not found or expired.
        """
        entry = self._cache.get(key)
        if entry is None:
            self._log.debug("cache_miss", key=key)
            return None

        if entry.is_expired(self._time.now()):
            self._log.debug("cache_expired", key=key)
            del self._cache[key]
            return None

        self._log.debug("cache_hit", key=key)
        return entry.data

    def set(self, key: str, data: Any, ttl_seconds: int | None = None) -> None:
        """Cache data under a key."""
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            return
        self._cache[key] = CacheEntry(
            data=data, cached_at=self._time.now(), ttl_seconds=ttl
        )
        self._log.debug("cache_set", key=key, ttl_seconds=ttl)

    def invalidate_submission(self, submission_id: Any) -> None:
        """Drop the timeline and overview of a submission.

        Stale reports are dropped too, since any of them may list the
        submission.
        """
        self._cache.pop(self.timeline_key(submission_id), None)
        self._cache.pop(self.overview_key(submission_id), None)
        for key in [k for k in self._cache if k.startswith(STALE_KEY_PREFIX)]:
            del self._cache[key]

    def clear(self) -> None:
        """Clear all cache entries."""
        count = len(self._cache)
        self._cache.clear()
        self._log.info("cache_cleared", entries_cleared=count)

    @property
    def size(self) -> int:
        """Number of entries currently held (including expired)."""
        return len(self._cache)
