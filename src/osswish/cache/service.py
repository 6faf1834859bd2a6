"""Process-wide cache service.

Bundles the TTL store, the read orchestrator and the invalidator behind the
operations request handlers need. One instance is built at process start
(see ``init_cache_service``) and shared by every handler; its state lives in
memory only, so shutdown just drains background writes and closes the
fetcher.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from osswish.cache.invalidation import CacheInvalidator, InvalidationBroadcaster
from osswish.cache.keys import CacheKeys
from osswish.cache.memory import CacheStats, TTLCacheStore
from osswish.cache.orchestrator import CacheOrchestrator, CacheReadResult
from osswish.cache.snapshot_store import LocalSnapshotStore, SnapshotStore
from osswish.config import settings
from osswish.core import updater
from osswish.core.model import Snapshot, WishlistRecord
from osswish.sources import SourceFetcher, create_fetcher

logger = logging.getLogger(__name__)


class CacheService:
    """Read, write-through and invalidation entry points for the wishlist cache."""

    def __init__(
        self,
        memory: TTLCacheStore,
        orchestrator: CacheOrchestrator,
        invalidator: CacheInvalidator,
    ) -> None:
        self.memory = memory
        self.orchestrator = orchestrator
        self.invalidator = invalidator

    @classmethod
    def create(
        cls,
        fetcher: SourceFetcher,
        snapshot_store: SnapshotStore,
        default_ttl: float = 45,
        freshness_window: float = 600,
        fetch_timeout: float = 5.0,
        broadcaster: InvalidationBroadcaster | None = None,
    ) -> "CacheService":
        memory = TTLCacheStore(default_ttl=default_ttl)
        orchestrator = CacheOrchestrator(
            memory=memory,
            snapshot_store=snapshot_store,
            fetcher=fetcher,
            freshness_window=freshness_window,
            fetch_timeout=fetch_timeout,
        )
        return cls(memory, orchestrator, CacheInvalidator(memory, broadcaster=broadcaster))

    @property
    def fetcher(self) -> SourceFetcher:
        return self.orchestrator.fetcher

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_snapshot(self, force_refresh: bool = False) -> CacheReadResult:
        """Best-known snapshot; raises SnapshotUnavailableError on total failure."""
        return await self.orchestrator.get_snapshot(force_refresh=force_refresh)

    def get_stats(self, key: str | None = None) -> CacheStats | dict[str, CacheStats]:
        return self.memory.get_stats(key)

    # -------------------------------------------------------------------------
    # Writes (immediate visibility without a full refetch)
    # -------------------------------------------------------------------------

    async def add_or_update(self, record: WishlistRecord | Mapping[str, Any]) -> Snapshot:
        """Insert or replace one record in the current snapshot.

        Raises:
            RecordValidationError: If the record is invalid (nothing changes)
            SnapshotUnavailableError: If no base snapshot can be obtained
        """
        validated = updater.coerce_record(record)
        current = await self.get_snapshot()
        return await self._apply(
            updater.add_or_update(current.snapshot, validated, now=self.orchestrator.now())
        )

    async def remove(self, record_id: int) -> Snapshot:
        """Remove one record; removing an unknown id is a no-op."""
        current = await self.get_snapshot()
        return await self._apply(
            updater.remove(current.snapshot, record_id, now=self.orchestrator.now())
        )

    async def add_from_source(self, record_id: int) -> Snapshot:
        """Fetch one record from the source and add it to the snapshot."""
        record = await self.fetcher.fetch_record(record_id)
        return await self.add_or_update(record)

    async def _apply(self, snapshot: Snapshot) -> Snapshot:
        self.orchestrator.store(snapshot)
        # The snapshot file is consulted before memory, so it must carry the write too.
        # Pending live-fetch writes land first so they cannot overwrite this one.
        await self.orchestrator.drain()
        await self.orchestrator.persist(snapshot)
        # Per-user views are derived from the full list
        self.memory.clear(CacheKeys.USER_WISHLISTS_FULL)
        return snapshot

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate(self, key: str) -> bool:
        return self.invalidator.invalidate(key)

    def invalidate_refresh_keys(self) -> list[str]:
        """Expire every key derived from the snapshot source."""
        return self.invalidator.invalidate_many(CacheKeys.REFRESH_KEYS)

    def clear_all(self) -> None:
        self.invalidator.invalidate_all()

    async def close(self) -> None:
        await self.orchestrator.drain()
        await self.invalidator.drain()
        await self.fetcher.close()


_service: CacheService | None = None


def init_cache_service(
    fetcher: SourceFetcher | None = None,
    snapshot_store: SnapshotStore | None = None,
    broadcaster: InvalidationBroadcaster | None = None,
) -> CacheService:
    """Build the process-wide CacheService from settings."""
    global _service
    _service = CacheService.create(
        fetcher=fetcher or create_fetcher(),
        snapshot_store=snapshot_store or LocalSnapshotStore(settings.snapshot_path),
        default_ttl=settings.cache_ttl_seconds,
        freshness_window=settings.snapshot_freshness_seconds,
        fetch_timeout=settings.fetch_timeout_seconds,
        broadcaster=broadcaster,
    )
    logger.info(
        f"Cache service ready (ttl={settings.cache_ttl_seconds}s, "
        f"freshness={settings.snapshot_freshness_seconds}s, source={settings.snapshot_source})"
    )
    return _service


def get_cache_service() -> CacheService:
    """Return the process-wide CacheService, building it on first use."""
    if _service is None:
        return init_cache_service()
    return _service


async def close_cache_service() -> None:
    global _service
    if _service is not None:
        await _service.close()
        _service = None
