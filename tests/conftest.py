"""Global pytest configuration and fixtures.

Provides sample wishlist records, a controllable source fetcher and
manual clocks so cache tests never depend on wall time or the network.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from osswish.cache.memory import TTLCacheStore
from osswish.cache.orchestrator import CacheOrchestrator
from osswish.cache.snapshot_store import LocalSnapshotStore
from osswish.core.errors import SnapshotPersistenceError, SourceFetchError
from osswish.core.model import Snapshot, WishlistRecord
from osswish.core.updater import build_snapshot
from osswish.sources.base import SourceFetcher

BASE_TIME = datetime(2026, 1, 10, 12, 0, 0, tzinfo=UTC)


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualDateTime:
    """Wall clock advanced by hand."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeFetcher(SourceFetcher):
    """Source fetcher returning a configured snapshot and counting calls."""

    name = "fake"

    def __init__(self, snapshot: Snapshot | None = None, delay: float = 0.0) -> None:
        self.snapshot = snapshot
        self.delay = delay
        self.error: Exception | None = None
        self.calls = 0
        self.closed = False

    async def fetch(self) -> Snapshot:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.snapshot is None:
            raise SourceFetchError("no snapshot configured")
        return self.snapshot

    async def close(self) -> None:
        self.closed = True


class FailingWriteStore(LocalSnapshotStore):
    """Snapshot store whose writes fail once ``fail_writes`` is set."""

    def __init__(self, path: Any) -> None:
        super().__init__(path)
        self.fail_writes = False

    async def write(self, snapshot: Snapshot) -> None:
        if self.fail_writes:
            raise SnapshotPersistenceError(f"No space left writing {self.path}")
        await super().write(snapshot)


def make_record(record_id: int, **overrides: Any) -> WishlistRecord:
    data: dict[str, Any] = {
        "id": record_id,
        "project_name": f"project-{record_id}",
        "repository_url": f"https://github.com/example/project-{record_id}",
        "maintainer_username": f"maintainer{record_id}",
        "approved": True,
        "wishes": ["Security Audit"],
        "technologies": ["npm"],
    }
    data.update(overrides)
    return WishlistRecord(**data)


@pytest.fixture
def records() -> list[WishlistRecord]:
    return [
        make_record(1, wishes=["Security Audit", "Funding Strategy"], technologies=["npm"]),
        make_record(2, approved=False, technologies=["PyPI", "npm"]),
        make_record(3, wishes=["Documentation"], technologies=["Cargo"]),
    ]


@pytest.fixture
def snapshot(records: list[WishlistRecord]) -> Snapshot:
    return build_snapshot(records, now=BASE_TIME)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def wall_clock() -> ManualDateTime:
    return ManualDateTime()


@pytest.fixture
def fetcher(snapshot: Snapshot) -> FakeFetcher:
    return FakeFetcher(snapshot)


@pytest.fixture
def snapshot_store(tmp_path) -> LocalSnapshotStore:
    return LocalSnapshotStore(tmp_path / "wishlist-cache" / "all-wishlists.json")


@pytest.fixture
def memory(clock: ManualClock) -> TTLCacheStore:
    return TTLCacheStore(default_ttl=45, clock=clock)


@pytest.fixture
def orchestrator(
    memory: TTLCacheStore,
    snapshot_store: LocalSnapshotStore,
    fetcher: FakeFetcher,
    wall_clock: ManualDateTime,
) -> CacheOrchestrator:
    return CacheOrchestrator(
        memory=memory,
        snapshot_store=snapshot_store,
        fetcher=fetcher,
        freshness_window=600,
        fetch_timeout=0.5,
        now=wall_clock,
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def failing_store(tmp_path) -> FailingWriteStore:
    return FailingWriteStore(tmp_path / "wishlist-cache" / "all-wishlists.json")


@pytest.fixture
def failing_orchestrator(
    memory: TTLCacheStore,
    failing_store: FailingWriteStore,
    fetcher: FakeFetcher,
    wall_clock: ManualDateTime,
) -> CacheOrchestrator:
    return CacheOrchestrator(
        memory=memory,
        snapshot_store=failing_store,
        fetcher=fetcher,
        freshness_window=600,
        fetch_timeout=0.5,
        now=wall_clock,
    )
