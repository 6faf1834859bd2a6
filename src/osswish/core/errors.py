"""Domain exceptions for the wishlist cache.

HTTP mapping lives in osswish.api.errors; these stay transport-agnostic.
"""

from __future__ import annotations


class WishlistCacheError(Exception):
    """Base class for cache subsystem errors."""


class RecordValidationError(WishlistCacheError, ValueError):
    """A record cannot be applied to a snapshot (e.g. missing identity key)."""


class SourceFetchError(WishlistCacheError):
    """A source fetcher failed to produce data (network, auth, bad payload)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SnapshotUnavailableError(WishlistCacheError):
    """No cache layer produced data and the live fetch failed or timed out.

    Always retryable: the caller should try again later rather than treat
    the result as empty.
    """

    retryable = True

    def __init__(self, cache_key: str, reason: str) -> None:
        super().__init__(f"Snapshot '{cache_key}' temporarily unavailable: {reason}")
        self.cache_key = cache_key
        self.reason = reason


class SnapshotPersistenceError(WishlistCacheError):
    """Writing the durable snapshot failed."""
