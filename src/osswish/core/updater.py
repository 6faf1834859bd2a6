"""Incremental snapshot updates.

Applies a single-record mutation to an already-fetched snapshot so a write
becomes visible without refetching every issue. Aggregates are always
recomputed from the full record list rather than adjusted in place, which
keeps them correct regardless of the input's prior counters. Cost is O(n)
per mutation.

Inputs are never mutated; every operation returns a new Snapshot.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from osswish.core.errors import RecordValidationError
from osswish.core.model import SNAPSHOT_VERSION, Snapshot, WishlistRecord


def _tag_counts(records: list[WishlistRecord], attr: str) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for record in records:
        # A tag listed twice on one record still counts that record once
        counts.update(set(getattr(record, attr)))
    return {tag: counts[tag] for tag in sorted(counts)}


def build_snapshot(
    records: Iterable[WishlistRecord],
    version: str = SNAPSHOT_VERSION,
    now: datetime | None = None,
) -> Snapshot:
    """Build a snapshot whose aggregates are derived from ``records``."""
    items = list(records)
    approved = sum(1 for record in items if record.approved)
    return Snapshot(
        version=version,
        generated_at=now or datetime.now(UTC),
        total_wishlists=len(items),
        approved_count=approved,
        pending_count=len(items) - approved,
        ecosystem_stats=_tag_counts(items, "technologies"),
        service_stats=_tag_counts(items, "wishes"),
        wishlists=items,
    )


def coerce_record(record: WishlistRecord | Mapping[str, Any]) -> WishlistRecord:
    """Validate a caller-supplied record.

    Raises:
        RecordValidationError: If the record has no usable identity key or
            fails model validation.
    """
    if isinstance(record, WishlistRecord):
        return record
    if not isinstance(record, Mapping):
        raise RecordValidationError(f"Unsupported record type: {type(record).__name__}")
    if record.get("id") is None:
        raise RecordValidationError("Record is missing its identity key 'id'")
    try:
        return WishlistRecord.model_validate(record)
    except ValidationError as e:
        raise RecordValidationError(f"Invalid wishlist record: {e}") from e


def add_or_update(
    snapshot: Snapshot,
    record: WishlistRecord | Mapping[str, Any],
    now: datetime | None = None,
) -> Snapshot:
    """Insert ``record`` or replace the record with the same id.

    The new or updated record is appended at the end of the list.
    """
    validated = coerce_record(record)
    records = [r for r in snapshot.wishlists if r.id != validated.id]
    records.append(validated)
    return build_snapshot(records, version=snapshot.version, now=now)


def remove(snapshot: Snapshot, record_id: int, now: datetime | None = None) -> Snapshot:
    """Remove the record with ``record_id``.

    Removing an unknown id is a no-op that still returns a freshly stamped
    snapshot, so deletions are idempotent.
    """
    records = [r for r in snapshot.wishlists if r.id != record_id]
    return build_snapshot(records, version=snapshot.version, now=now)


def check_invariants(snapshot: Snapshot) -> list[str]:
    """Return a list of aggregate invariant violations (empty when consistent)."""
    problems: list[str] = []
    records = snapshot.wishlists
    if snapshot.total_wishlists != len(records):
        problems.append(
            f"totalWishlists={snapshot.total_wishlists} but {len(records)} records present"
        )
    if snapshot.approved_count + snapshot.pending_count != snapshot.total_wishlists:
        problems.append("approvedCount + pendingCount != totalWishlists")
    if snapshot.approved_count != sum(1 for r in records if r.approved):
        problems.append("approvedCount does not match approved records")
    if snapshot.ecosystem_stats != _tag_counts(records, "technologies"):
        problems.append("ecosystemStats out of sync with record technologies")
    if snapshot.service_stats != _tag_counts(records, "wishes"):
        problems.append("serviceStats out of sync with record wishes")
    ids = [r.id for r in records]
    if len(ids) != len(set(ids)):
        problems.append("duplicate record ids")
    return problems
