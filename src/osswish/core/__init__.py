"""Wishlist domain: snapshot models, issue parsing and incremental updates."""

from osswish.core.errors import (
    RecordValidationError,
    SnapshotPersistenceError,
    SnapshotUnavailableError,
    SourceFetchError,
    WishlistCacheError,
)
from osswish.core.model import Snapshot, WishlistRecord

__all__ = [
    "RecordValidationError",
    "Snapshot",
    "SnapshotPersistenceError",
    "SnapshotUnavailableError",
    "SourceFetchError",
    "WishlistCacheError",
    "WishlistRecord",
]
