"""
Result Cache - Load Layer

Time-expiring key/value store for sync results, keyed by query shape. Entries
leave only through expiry on read; there is no size bound.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 25


@dataclass(frozen=True)
class CacheEntry:
    """One cached sync result. Replaced on write, never mutated."""

    data: Any
    updated: str
    expires_at: float


class CacheStore:
    """In-memory TTL cache shared by all syncs of the process"""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def put(self, key: str, data: Any, updated: str) -> CacheEntry:
        entry = CacheEntry(
            data=data, updated=updated, expires_at=self._clock() + self.ttl_seconds
        )
        self._entries[key] = entry
        logger.debug(f"Cached {key} for {self.ttl_seconds}s")
        return entry

    def get(self, key: str) -> Optional[CacheEntry]:
        """Live entry for key, evicting it if it has expired"""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() > entry.expires_at:
            del self._entries[key]
            logger.debug(f"Evicted expired cache entry {key}")
            return None

        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
