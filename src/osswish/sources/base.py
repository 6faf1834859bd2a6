"""Source fetcher interface.

A source fetcher produces fresh data on a cache miss. Fetchers make a single
attempt per call; retries and fallbacks are the orchestrator's concern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from osswish.core.errors import SourceFetchError
from osswish.core.model import Snapshot, WishlistRecord


class SourceFetcher(ABC):
    """Abstract base class for snapshot sources."""

    name: str = "source"

    @abstractmethod
    async def fetch(self) -> Snapshot:
        """Fetch a complete snapshot from the source of truth.

        Raises:
            SourceFetchError: On network, auth or payload failure
        """
        ...

    async def fetch_record(self, record_id: int) -> WishlistRecord:
        """Fetch a single record by identity key.

        Sources that only publish whole snapshots fall back to a full fetch.

        Raises:
            SourceFetchError: If the record cannot be fetched
        """
        snapshot = await self.fetch()
        for record in snapshot.wishlists:
            if record.id == record_id:
                return record
        raise SourceFetchError(f"Wishlist #{record_id} not found in {self.name}", status_code=404)

    async def close(self) -> None:
        """Release any held connections."""
        return None
