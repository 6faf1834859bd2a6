"""Cache control endpoints.

Provides:
- Key invalidation for the write path (POST /api/cache-invalidate)
- Refresh webhook for the scheduled snapshot job (POST /api/webhook/cache-refresh)
- Incremental add/remove after a wishlist is created or deleted (POST /api/update-cache)
- Hit/miss statistics (GET /api/cache/stats)

Mutating endpoints require the shared webhook secret when one is configured.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field

from osswish.api.deps import CacheServiceDep, verify_webhook_secret
from osswish.api.errors import BadRequestError, NotFoundError, ServiceUnavailableError
from osswish.cache.keys import CacheKeys
from osswish.core.errors import SourceFetchError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Cache"])


class InvalidateRequest(BaseModel):
    """Body for POST /api/cache-invalidate (optional)."""

    model_config = {"populate_by_name": True}

    cache_key: str = Field(default=CacheKeys.WISHLISTS_FULL, alias="cacheKey")
    all: bool = False


class InvalidateResponse(BaseModel):
    success: bool
    message: str
    cache_key: str = Field(alias="cacheKey")
    existed: bool


class UpdateCacheRequest(BaseModel):
    """Body for POST /api/update-cache."""

    model_config = {"populate_by_name": True}

    action: Literal["add", "remove"]
    issue_number: int = Field(..., gt=0, alias="issueNumber")


@router.post(
    "/cache-invalidate",
    dependencies=[Depends(verify_webhook_secret)],
)
async def invalidate_cache(
    service: CacheServiceDep,
    body: InvalidateRequest | None = Body(default=None),
) -> dict[str, Any]:
    """Clear one cache key (default: the full wishlists cache) or everything."""
    request = body or InvalidateRequest()

    if request.all:
        existed = len(service.memory) > 0
        service.clear_all()
        return InvalidateResponse(
            success=True,
            message="All cache entries cleared",
            cacheKey="*",
            existed=existed,
        ).model_dump(by_alias=True)

    if not CacheKeys.is_valid(request.cache_key):
        raise BadRequestError(f"Unknown cache key: '{request.cache_key}'")

    existed = service.invalidate(request.cache_key)
    return InvalidateResponse(
        success=True,
        message=f"Cache key cleared: {request.cache_key}",
        cacheKey=request.cache_key,
        existed=existed,
    ).model_dump(by_alias=True)


@router.post(
    "/webhook/cache-refresh",
    dependencies=[Depends(verify_webhook_secret)],
)
async def cache_refresh_webhook(service: CacheServiceDep) -> dict[str, Any]:
    """Called after the published snapshot changes; next read fetches fresh data."""
    cleared = service.invalidate_refresh_keys()
    logger.info("Caches cleared via webhook")
    return {
        "success": True,
        "message": "Caches cleared successfully",
        "clearedKeys": cleared,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.post(
    "/update-cache",
    dependencies=[Depends(verify_webhook_secret)],
)
async def update_cache(request: UpdateCacheRequest, service: CacheServiceDep) -> dict[str, Any]:
    """Apply a single wishlist change to the cached snapshot."""
    if request.action == "add":
        try:
            snapshot = await service.add_from_source(request.issue_number)
        except SourceFetchError as e:
            if e.status_code == 404:
                raise NotFoundError("Issue", str(request.issue_number)) from e
            logger.error(f"Failed to fetch issue #{request.issue_number}: {e}")
            raise ServiceUnavailableError(
                f"Failed to fetch issue #{request.issue_number} from the source"
            ) from e
    else:
        snapshot = await service.remove(request.issue_number)

    return {
        "updated": True,
        "totalWishlists": snapshot.total_wishlists,
        "approvedCount": snapshot.approved_count,
    }


@router.get("/cache/stats")
async def cache_stats(
    service: CacheServiceDep,
    key: str | None = Query(default=None, description="Limit stats to one cache key"),
) -> dict[str, Any]:
    """Hit/miss counters from the in-memory store."""
    stats = service.get_stats(key)
    if isinstance(stats, dict):
        return {"stats": {k: v.to_dict() for k, v in stats.items()}}
    return {"key": key, "stats": stats.to_dict()}
