"""Wishlist snapshot domain models.

The JSON shape matches the published all-wishlists.json document, so field
aliases use camelCase while Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, computed_field

SNAPSHOT_VERSION = "1.0.0"


class WishlistModel(BaseModel):
    """Base model for cache documents.

    Unknown fields are ignored so older or newer snapshot files still load.
    """

    model_config = {
        "extra": "ignore",
        "populate_by_name": True,
        "validate_default": True,
    }


class WishlistRecord(WishlistModel):
    """One wishlist, keyed by its GitHub issue number."""

    id: int = Field(..., gt=0, description="GitHub issue number (identity key)")
    project_name: str = Field(default="", alias="projectName")
    repository_url: str = Field(default="", alias="repositoryUrl")
    maintainer_username: str = Field(default="", alias="maintainerUsername")
    maintainer_avatar_url: str = Field(default="", alias="maintainerAvatarUrl")
    approved: bool = False
    wishes: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    urgency: str = ""
    project_size: str = Field(default="", alias="projectSize")
    additional_notes: str = Field(default="", alias="additionalNotes")
    additional_context: str = Field(default="", alias="additionalContext")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> Literal["approved", "pending"]:
        return "approved" if self.approved else "pending"


class Snapshot(WishlistModel):
    """Full cache document: every record plus derived aggregates."""

    version: str = SNAPSHOT_VERSION
    generated_at: datetime = Field(..., alias="generatedAt")
    total_wishlists: int = Field(default=0, alias="totalWishlists")
    approved_count: int = Field(default=0, alias="approvedCount")
    pending_count: int = Field(default=0, alias="pendingCount")
    ecosystem_stats: dict[str, int] = Field(default_factory=dict, alias="ecosystemStats")
    service_stats: dict[str, int] = Field(default_factory=dict, alias="serviceStats")
    wishlists: list[WishlistRecord] = Field(default_factory=list)

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds elapsed since the snapshot was generated.

        Naive timestamps are treated as UTC.
        """
        generated = self.generated_at
        if generated.tzinfo is None:
            generated = generated.replace(tzinfo=UTC)
        return ((now or datetime.now(UTC)) - generated).total_seconds()

    def record_ids(self) -> list[int]:
        return [record.id for record in self.wishlists]

    def to_json_dict(self) -> dict[str, object]:
        """Serialize with the published camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)
