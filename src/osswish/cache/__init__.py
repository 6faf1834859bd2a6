"""Cache layer for the OSS Wishlist site.

Serves the wishlist snapshot from layered caches:
- Durable snapshot file with a freshness window
- In-memory TTL store for hot reads
- Live fetch from GitHub with a timeout and single-flight guard
- Incremental write-through so changes show up before the next refresh
- Invalidation by key, optionally broadcast across instances
"""

from osswish.cache.invalidation import (
    CacheInvalidator,
    InvalidationBroadcaster,
    InvalidationMessage,
    InvalidationType,
)
from osswish.cache.keys import CacheKeys
from osswish.cache.memory import CacheEntry, CacheStats, TTLCacheStore
from osswish.cache.orchestrator import CacheOrchestrator, CacheReadResult, CacheSource
from osswish.cache.service import (
    CacheService,
    close_cache_service,
    get_cache_service,
    init_cache_service,
)
from osswish.cache.snapshot_store import LocalSnapshotStore, SnapshotStore

__all__ = [
    # Stores
    "CacheEntry",
    "CacheKeys",
    "CacheStats",
    "LocalSnapshotStore",
    "SnapshotStore",
    "TTLCacheStore",
    # Read path
    "CacheOrchestrator",
    "CacheReadResult",
    "CacheSource",
    # Service
    "CacheService",
    "close_cache_service",
    "get_cache_service",
    "init_cache_service",
    # Invalidation
    "CacheInvalidator",
    "InvalidationBroadcaster",
    "InvalidationMessage",
    "InvalidationType",
]
