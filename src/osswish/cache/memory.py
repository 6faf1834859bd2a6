"""In-process TTL cache store.

Process-wide key -> value map with a per-entry expiration instant. Expiry is
lazy: a stale entry is evicted by the first ``get`` that finds it, there is
no background sweeper. All operations are synchronous and never raise, so
they are safe to call from any request handler without awaiting.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Default TTL (45 seconds)
DEFAULT_TTL = 45


@dataclass
class CacheEntry:
    """A cached value and the monotonic instant it stops being served."""

    data: Any
    expires_at: float


@dataclass
class CacheStats:
    """Hit/miss counters for one key plus the store's current entry count."""

    hits: int = 0
    misses: int = 0
    size: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "size": self.size}


class TTLCacheStore:
    """Keyed store with per-entry or default time-to-live.

    Writes are last-writer-wins; the store provides no locking and no merge.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._stats: dict[str, CacheStats] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss.

        An entry is served while ``now < expires_at``. An expired entry is
        evicted and counted as a miss.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._record(key, hit=False)
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self._record(key, hit=False)
            return None

        self._record(key, hit=True)
        return entry.data

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` for ``ttl`` seconds (default TTL when None)."""
        effective_ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(data=value, expires_at=self._clock() + effective_ttl)

    def clear(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        return self._entries.pop(key, None) is not None

    def clear_all(self) -> None:
        """Remove every entry and reset all statistics."""
        self._entries.clear()
        self._stats.clear()

    def get_stats(self, key: str | None = None) -> CacheStats | dict[str, CacheStats]:
        """Return stats for ``key``, or for every key seen so far.

        Read-only: does not touch expiry or counters.
        """
        size = len(self._entries)
        if key is not None:
            stat = self._stats.get(key)
            return CacheStats(
                hits=stat.hits if stat else 0,
                misses=stat.misses if stat else 0,
                size=size,
            )
        return {
            k: CacheStats(hits=v.hits, misses=v.misses, size=size) for k, v in self._stats.items()
        }

    def keys(self) -> list[str]:
        """Keys currently held, including entries not yet found expired."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _record(self, key: str, hit: bool) -> None:
        stat = self._stats.setdefault(key, CacheStats())
        if hit:
            stat.hits += 1
        else:
            stat.misses += 1
