"""Health check endpoints.

- /health/live  - Liveness check (always OK while the process runs)
- /health/ready - Readiness check (a snapshot can be served without the live source)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from osswish.api.deps import CacheServiceDep
from osswish.cache.service import CacheService
from osswish.core.errors import SnapshotPersistenceError

router = APIRouter(tags=["health"])


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def check_snapshot(service: CacheService) -> ComponentHealth:
    """Check that a snapshot is available from disk or memory."""
    start = time.monotonic()
    orchestrator = service.orchestrator
    try:
        on_disk = await orchestrator.snapshot_store.read()
    except SnapshotPersistenceError as e:
        return ComponentHealth(
            name="snapshot",
            status=HealthStatus.UNHEALTHY,
            latency_ms=(time.monotonic() - start) * 1000,
            message=str(e),
        )

    latency = (time.monotonic() - start) * 1000
    if on_disk is not None:
        stale = not orchestrator.is_fresh(on_disk)
        return ComponentHealth(
            name="snapshot",
            status=HealthStatus.DEGRADED if stale else HealthStatus.HEALTHY,
            latency_ms=latency,
            message="Snapshot file is outside the freshness window" if stale else None,
        )
    if orchestrator.last_known_good is not None:
        return ComponentHealth(
            name="snapshot",
            status=HealthStatus.DEGRADED,
            latency_ms=latency,
            message="No snapshot file, serving from memory",
        )
    return ComponentHealth(
        name="snapshot",
        status=HealthStatus.UNHEALTHY,
        latency_ms=latency,
        message="No snapshot loaded yet",
    )


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(service: CacheServiceDep) -> JSONResponse:
    """Readiness check.

    Returns 200 when a snapshot can be served (possibly stale), 503 otherwise.
    """
    component = await check_snapshot(service)
    status_code = 503 if component.status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(
        content={"status": component.status.value, "checks": [component.to_dict()]},
        status_code=status_code,
    )
