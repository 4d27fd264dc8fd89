"""
Lookup statistics collection.

Counters for cache hits and misses, upstream attempts, rate-limit hits and
credential fallbacks, shared by the cache store and the upstream client.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class LookupMetrics:
    """Container for lookup metrics."""

    # Cache metrics
    cache_hits: int = 0
    cache_misses: int = 0
    cache_writes: int = 0
    cache_errors: int = 0

    # Upstream metrics
    api_calls: int = 0
    api_errors: int = 0
    rate_limit_hits: int = 0
    credential_fallbacks: int = 0
    api_time: float = 0.0

    hits_by_category: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    misses_by_category: dict[str, int] = field(
        default_factory=lambda: defaultdict(int)
    )

    @property
    def cache_hit_ratio(self) -> float:
        total = self.cache_hits + self.cache_misses
        return self.cache_hits / total if total > 0 else 0.0


class StatisticsCollector:
    """Thread-safe aggregator for lookup metrics.

    Cache operations run in worker threads via ``asyncio.to_thread`` while
    upstream attempts run on the event loop, so every update takes a lock.
    """

    def __init__(self) -> None:
        self.metrics = LookupMetrics()
        self.session_start = datetime.now(timezone.utc)
        self._lock = threading.Lock()

    def record_cache_hit(self, category: str) -> None:
        """Record a cache hit.

        Args:
            category: Cache category of the entry
        """
        with self._lock:
            self.metrics.cache_hits += 1
            self.metrics.hits_by_category[category] += 1

    def record_cache_miss(self, category: str) -> None:
        """Record a cache miss (absent or expired entry).

        Args:
            category: Cache category that was queried
        """
        with self._lock:
            self.metrics.cache_misses += 1
            self.metrics.misses_by_category[category] += 1

    def record_cache_write(self) -> None:
        with self._lock:
            self.metrics.cache_writes += 1

    def record_cache_error(self) -> None:
        with self._lock:
            self.metrics.cache_errors += 1

    def record_api_call(self, success: bool, duration: float | None = None) -> None:
        """Record one upstream HTTP attempt.

        Args:
            success: Whether the attempt was classified as a success
            duration: Attempt duration in seconds
        """
        with self._lock:
            self.metrics.api_calls += 1
            if not success:
                self.metrics.api_errors += 1
            if duration is not None:
                self.metrics.api_time += duration

    def record_rate_limit_hit(self) -> None:
        with self._lock:
            self.metrics.rate_limit_hits += 1

    def record_credential_fallback(self) -> None:
        """Record a move to the next credential after a failed attempt."""
        with self._lock:
            self.metrics.credential_fallbacks += 1

    def get_cache_hit_ratio(self) -> float:
        """Get cache hit ratio as a percentage.

        Returns:
            Hit ratio between 0.0 and 100.0
        """
        return self.metrics.cache_hit_ratio * 100.0

    def get_summary(self) -> dict[str, Any]:
        """Get a snapshot of all metrics."""
        with self._lock:
            return {
                "session_start": self.session_start.isoformat(),
                "cache_hits": self.metrics.cache_hits,
                "cache_misses": self.metrics.cache_misses,
                "cache_hit_ratio": self.metrics.cache_hit_ratio,
                "cache_writes": self.metrics.cache_writes,
                "cache_errors": self.metrics.cache_errors,
                "api_calls": self.metrics.api_calls,
                "api_errors": self.metrics.api_errors,
                "rate_limit_hits": self.metrics.rate_limit_hits,
                "credential_fallbacks": self.metrics.credential_fallbacks,
                "api_time": self.metrics.api_time,
                "hits_by_category": dict(self.metrics.hits_by_category),
                "misses_by_category": dict(self.metrics.misses_by_category),
            }

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self.metrics = LookupMetrics()
            self.session_start = datetime.now(timezone.utc)
        logger.debug("Statistics reset")
