"""Wishlist read endpoints.

- GET /api/wishlists: site-facing snapshot (``?refresh=true`` forces a live fetch)
- GET /api/wishlists/{issue_number}: one wishlist from the snapshot
- GET /api/public/wishlists.json: CORS-enabled public feed for external consumers
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Response
from fastapi.responses import ORJSONResponse

from osswish.api.deps import CacheServiceDep
from osswish.api.errors import NotFoundError
from osswish.cache.orchestrator import CacheReadResult
from osswish.config import settings

router = APIRouter(prefix="/api", tags=["Wishlists"])

CACHE_SOURCE_HEADER = "X-Cache-Source"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _snapshot_response(result: CacheReadResult, headers: dict[str, str]) -> ORJSONResponse:
    return ORJSONResponse(
        content=result.snapshot.to_json_dict(),
        headers={CACHE_SOURCE_HEADER: result.source.value, **headers},
    )


@router.get("/wishlists")
async def list_wishlists(
    service: CacheServiceDep,
    refresh: bool = Query(default=False, description="Bypass caches and fetch live data"),
) -> ORJSONResponse:
    """Return the current wishlist snapshot.

    Responds 503 with Retry-After when no cache layer has data and the live
    source is unreachable.
    """
    result = await service.get_snapshot(force_refresh=refresh)
    return _snapshot_response(result, {"Cache-Control": "no-store"})


@router.get("/wishlists/{issue_number}")
async def get_wishlist(issue_number: int, service: CacheServiceDep) -> ORJSONResponse:
    """Return a single wishlist by issue number."""
    result = await service.get_snapshot()
    for record in result.snapshot.wishlists:
        if record.id == issue_number:
            return ORJSONResponse(
                content=record.model_dump(mode="json", by_alias=True),
                headers={CACHE_SOURCE_HEADER: result.source.value},
            )
    raise NotFoundError("Wishlist", str(issue_number))


@router.get("/public/wishlists.json")
async def public_wishlists(service: CacheServiceDep) -> ORJSONResponse:
    """Public JSON feed with CORS headers and a shared-cache lifetime."""
    result = await service.get_snapshot()
    return _snapshot_response(
        result,
        {**_CORS_HEADERS, "Cache-Control": f"public, max-age={settings.public_cache_max_age}"},
    )


@router.options("/public/wishlists.json")
async def public_wishlists_preflight() -> Response:
    return Response(status_code=204, headers=_CORS_HEADERS)
