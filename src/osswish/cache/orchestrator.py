"""Layered read path for the wishlist snapshot.

Resolution order, each layer with its own staleness limit:

1. Durable snapshot file, served while younger than the freshness window
   (10 minutes by default). Answers the common case without touching the
   live source.
2. In-memory TTL store (45 seconds by default), absorbing bursts between
   snapshot refreshes.
3. Live fetch from the source fetcher, bounded by a timeout. The result is
   stored in memory, kept as last-known-good and written back to the
   snapshot file in the background.

If the live fetch fails or times out, ``SnapshotUnavailableError`` is raised;
an empty snapshot is never substituted. ``force_refresh`` skips layers 1-2.

When writing the snapshot file fails, memory holds newer data than disk.
Layer 1 is then skipped until a later write succeeds, so the older file
cannot shadow the in-memory snapshot. A file stamped more than
``CLOCK_SKEW_TOLERANCE`` seconds in the future counts as stale.

Concurrent misses for the same key share one in-flight fetch (single-flight),
so a burst of requests after expiry costs the source a single call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from osswish.cache.keys import CacheKeys
from osswish.cache.memory import TTLCacheStore
from osswish.cache.snapshot_store import SnapshotStore
from osswish.core.errors import SnapshotPersistenceError, SnapshotUnavailableError
from osswish.core.model import Snapshot
from osswish.sources.base import SourceFetcher

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = 600.0
DEFAULT_FETCH_TIMEOUT = 5.0
CLOCK_SKEW_TOLERANCE = 60.0


class CacheSource(str, Enum):
    """Layer that answered a read."""

    DISK = "disk"
    MEMORY = "memory"
    LIVE = "live"


@dataclass
class CacheReadResult:
    """A snapshot and the layer it came from."""

    snapshot: Snapshot
    source: CacheSource


class CacheOrchestrator:
    """Resolves reads for one logical cache key across disk, memory and source."""

    def __init__(
        self,
        memory: TTLCacheStore,
        snapshot_store: SnapshotStore,
        fetcher: SourceFetcher,
        cache_key: str = CacheKeys.WISHLISTS_FULL,
        freshness_window: float = DEFAULT_FRESHNESS_WINDOW,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.memory = memory
        self.snapshot_store = snapshot_store
        self.fetcher = fetcher
        self.cache_key = cache_key
        self.freshness_window = freshness_window
        self.fetch_timeout = fetch_timeout
        self._now = now
        self._inflight: asyncio.Task[Snapshot] | None = None
        self._background: set[asyncio.Task[None]] = set()
        self._last_known_good: Snapshot | None = None
        self._memory_ahead = False

    @property
    def last_known_good(self) -> Snapshot | None:
        """Most recent snapshot obtained from the live source or a write."""
        return self._last_known_good

    @property
    def pending_writes(self) -> int:
        return len(self._background)

    @property
    def memory_ahead_of_disk(self) -> bool:
        """True while the last snapshot write failed and the file is outdated."""
        return self._memory_ahead

    def now(self) -> datetime:
        """Current time on the clock used for freshness decisions."""
        return self._now()

    def is_fresh(self, snapshot: Snapshot) -> bool:
        """Whether a stored snapshot may be served without going to the source."""
        age = snapshot.age_seconds(self._now())
        if age < -CLOCK_SKEW_TOLERANCE:
            logger.warning(
                f"Snapshot generatedAt is {-age:.0f}s in the future, treating it as stale"
            )
            return False
        return age < self.freshness_window

    async def get_snapshot(self, force_refresh: bool = False) -> CacheReadResult:
        """Return the best-known snapshot.

        Raises:
            SnapshotUnavailableError: If no layer produced data
        """
        if not force_refresh:
            if self._memory_ahead:
                logger.debug("Snapshot file is behind memory, skipping disk layer")
            else:
                on_disk = await self._read_disk()
                if on_disk is not None and self.is_fresh(on_disk):
                    logger.debug(
                        f"Serving snapshot from disk (generated {on_disk.generated_at.isoformat()})"
                    )
                    return CacheReadResult(on_disk, CacheSource.DISK)

            cached = self.memory.get(self.cache_key)
            if cached is not None:
                return CacheReadResult(cached, CacheSource.MEMORY)

        snapshot = await self._fetch_single_flight(force_refresh)
        return CacheReadResult(snapshot, CacheSource.LIVE)

    def store(self, snapshot: Snapshot) -> None:
        """Make ``snapshot`` the in-memory view (used by the write path)."""
        self.memory.set(self.cache_key, snapshot)
        self._last_known_good = snapshot

    async def persist(self, snapshot: Snapshot) -> bool:
        """Write ``snapshot`` to durable storage. Failure is logged, not raised."""
        try:
            await self.snapshot_store.write(snapshot)
        except SnapshotPersistenceError as e:
            logger.warning(f"Snapshot persistence failed, memory cache stays authoritative: {e}")
            self._memory_ahead = True
            return False
        self._memory_ahead = False
        return True

    def persist_in_background(self, snapshot: Snapshot) -> None:
        """Schedule a fire-and-forget snapshot write."""
        task = asyncio.create_task(self._persist_quietly(snapshot))
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    async def drain(self) -> None:
        """Wait for pending background writes to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _persist_quietly(self, snapshot: Snapshot) -> None:
        await self.persist(snapshot)

    def _on_background_done(self, task: asyncio.Task[None]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background snapshot write crashed", exc_info=exc)

    async def _read_disk(self) -> Snapshot | None:
        try:
            return await self.snapshot_store.read()
        except SnapshotPersistenceError as e:
            logger.warning(f"Ignoring unreadable snapshot file: {e}")
            return None

    async def _fetch_single_flight(self, force_refresh: bool) -> Snapshot:
        task = self._inflight
        # A forced refresh must observe writes made after an older fetch began
        if task is None or task.done() or force_refresh:
            task = asyncio.create_task(self._fetch_live())
            self._inflight = task
            task.add_done_callback(self._clear_inflight)
        else:
            logger.debug(f"Joining in-flight fetch for {self.cache_key}")

        # Shielded so one caller giving up does not cancel the shared fetch
        return await asyncio.shield(task)

    def _clear_inflight(self, task: asyncio.Task[Snapshot]) -> None:
        if self._inflight is task:
            self._inflight = None
        # Every awaiting caller may have been cancelled; mark the outcome as retrieved
        if not task.cancelled():
            task.exception()

    async def _fetch_live(self) -> Snapshot:
        try:
            snapshot = await asyncio.wait_for(self.fetcher.fetch(), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Live fetch from {self.fetcher.name} timed out after {self.fetch_timeout}s"
            )
            raise SnapshotUnavailableError(
                self.cache_key, f"live fetch timed out after {self.fetch_timeout}s"
            ) from None
        except Exception as e:
            logger.error(f"Live fetch from {self.fetcher.name} failed: {e}")
            raise SnapshotUnavailableError(self.cache_key, str(e)) from e

        self.store(snapshot)
        self.persist_in_background(snapshot)
        logger.info(
            f"Refreshed {self.cache_key} from {self.fetcher.name} "
            f"({snapshot.total_wishlists} wishlists)"
        )
        return snapshot
