"""TTL cache for the admin dashboard datasets."""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .models import DatasetKey

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot of one dataset. ``data`` is set iff ``timestamp`` is set."""

    data: Any = None
    timestamp: float | None = None
    loading: bool = False


class AdminDataCache:
    """Per-key cache with a fixed time-to-live.

    One entry per ``DatasetKey``; entries are replaced wholesale on every write.
    Runs on a single event loop, so no locking: last writer wins.
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[DatasetKey, CacheEntry] = {key: CacheEntry() for key in DatasetKey}

    def entry(self, key: DatasetKey) -> CacheEntry:
        return self._entries[key]

    def is_valid(self, key: DatasetKey) -> bool:
        """Check if the entry holds data younger than the TTL."""
        cached = self._entries[key]
        if cached.data is None or cached.timestamp is None:
            return False
        return self._clock() - cached.timestamp < self._ttl

    def get(self, key: DatasetKey) -> Any | None:
        """Get cached data, or None on a miss."""
        if self.is_valid(key):
            return self._entries[key].data
        return None

    def set(self, key: DatasetKey, data: Any) -> None:
        """Store data for key, stamping it with the current time.

        ``None`` is not a payload; storing it resets the entry.
        """
        if data is None:
            self.invalidate(key)
            return
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), loading=False)

    def set_loading(self, key: DatasetKey, loading: bool) -> None:
        """Flip the in-flight flag, keeping any stale data displayable."""
        self._entries[key] = dataclasses.replace(self._entries[key], loading=loading)

    def invalidate(self, key: DatasetKey | None = None) -> None:
        """Reset one key, or every key when none is given."""
        keys = [key] if key is not None else list(DatasetKey)
        for k in keys:
            self._entries[k] = CacheEntry()
        logger.debug("Cache invalidated: %s", ", ".join(k.value for k in keys))

    def age_seconds(self, key: DatasetKey) -> float:
        """Get entry age in seconds."""
        timestamp = self._entries[key].timestamp
        if timestamp is None:
            return float("inf")
        return self._clock() - timestamp
