"""In-memory cache for computed prayer days, owned by the calling layer."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from threading import Lock

from salat_times.contracts import CalculationConfig, Coordinates, PrayerTimesResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrayerTimesCacheKey:
    """Stable cache key for one computed prayer day."""

    day: date
    latitude: float
    longitude: float
    config_hash: str
    zone: str

    @classmethod
    def build(
        cls,
        day: date,
        coordinates: Coordinates,
        config: CalculationConfig,
        zone: str,
        precision: int = 3,
    ) -> PrayerTimesCacheKey:
        """Build a key from rounded coordinates and the config hash."""
        rounded = coordinates.rounded(precision)
        return cls(
            day=day,
            latitude=rounded.latitude,
            longitude=rounded.longitude,
            config_hash=config.config_hash(),
            zone=zone,
        )


@dataclass
class _Entry:
    result: PrayerTimesResult
    built_at: datetime


class PrayerTimesCache:
    """Thread-safe in-memory cache with optional TTL and LRU eviction."""

    def __init__(self, max_entries: int = 256, ttl_seconds: int | None = None) -> None:
        """Initialize cache with maximum retained entries and optional TTL."""
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self._max_entries = max_entries
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        self._lock = Lock()
        self._entries: OrderedDict[PrayerTimesCacheKey, _Entry] = OrderedDict()
        self.build_count = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, entry: _Entry, now: datetime) -> bool:
        return self._ttl is not None and entry.built_at + self._ttl <= now

    def get_or_compute(
        self,
        key: PrayerTimesCacheKey,
        compute: Callable[[], PrayerTimesResult],
    ) -> tuple[PrayerTimesResult, bool]:
        """Return `(result, cache_hit)`, computing once on miss."""
        now = datetime.now(timezone.utc)
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None and not self._is_expired(existing, now):
                self._entries.move_to_end(key)
                return existing.result, True

            result = compute()
            self._entries[key] = _Entry(result=result, built_at=now)
            self._entries.move_to_end(key)
            self.build_count += 1
            logger.debug("cached prayer day %s at (%s, %s)", key.day, key.latitude, key.longitude)

            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
            return result, False

    def clear(self) -> None:
        """Drop every cached entry."""
        with self._lock:
            self._entries.clear()
