"""Time-based cache shared by price and spread fetchers.

Each fetcher owns its own TTLCache instance (its own namespace). Entries are
immutable and replaced wholesale on refresh; expired entries are dropped on read.
"""
import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

LIVE_PRICE_TTL_SECONDS = 60.0
HISTORY_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A stored value and the clock reading at which it was stored."""

    value: T
    stored_at: float


class TTLCache(Generic[T]):
    """Key -> value store whose entries expire ttl seconds after set().

    get() never returns stale data: once an entry is older than ttl it is
    reported as not found. Whether stale data is acceptable is the caller's call.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: Hashable) -> tuple[T | None, bool]:
        """Return (value, True) if key holds a live entry, else (None, False)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            if self._clock() - entry.stored_at >= self._ttl:
                del self._entries[key]
                return None, False
            return entry.value, True

    def set(self, key: Hashable, value: T) -> None:
        """Store value under key, replacing any previous entry (last writer wins)."""
        entry = CacheEntry(value=value, stored_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def invalidate(self, key: Hashable) -> None:
        """Drop key if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
