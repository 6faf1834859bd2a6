"""FastAPI application factory for the wishlist cache service.

Creates the application with:
- Wishlist read endpoints (site and public feed)
- Cache invalidation, refresh webhook and incremental update endpoints
- Health checks
- Lifecycle management for the cache service and optional Redis broadcaster
- Consistent error responses
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from osswish.api.errors import (
    WishlistApiError,
    generic_exception_handler,
    record_validation_handler,
    request_validation_handler,
    snapshot_unavailable_handler,
    wishlist_api_exception_handler,
)
from osswish.api.middleware import CorrelationMiddleware
from osswish.api.routers import cache, health, wishlists
from osswish.cache.invalidation import InvalidationBroadcaster
from osswish.cache.redis import close_redis
from osswish.cache.service import CacheService, close_cache_service, init_cache_service
from osswish.config import settings
from osswish.core.errors import RecordValidationError, SnapshotUnavailableError
from osswish.observability import configure_logging

logger = logging.getLogger(__name__)


def create_app(cache_service: CacheService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        cache_service: Prebuilt service to use instead of one built from
            settings at startup (tests pass their own).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle.

        On startup:
        - Configure structured logging
        - Build the process-wide cache service
        - Start the invalidation broadcaster (if enabled)

        On shutdown:
        - Stop the broadcaster and close Redis
        - Drain background snapshot writes and close the fetcher
        """
        configure_logging(json_format=settings.env != "dev", level=settings.log_level)
        logger.info(f"Starting {settings.app_name} ({settings.env})")

        broadcaster: InvalidationBroadcaster | None = None
        if settings.enable_invalidation_broadcast:
            broadcaster = InvalidationBroadcaster(instance_id=settings.instance_id)

        service = cache_service or init_cache_service(broadcaster=broadcaster)
        app.state.cache_service = service

        if broadcaster is not None:
            service.invalidator.broadcaster = broadcaster
            broadcaster.add_handler(service.invalidator.handle_message)
            await broadcaster.start()

        logger.info("Startup complete")

        yield

        logger.info(f"Shutting down {settings.app_name}")
        if broadcaster is not None:
            await broadcaster.stop()
            await close_redis()
        if cache_service is None:
            await close_cache_service()
        else:
            await cache_service.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="OSS Wishlist Cache",
        description="Cached wishlist snapshot and invalidation API for OSS Wishlist",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    if cache_service is not None:
        app.state.cache_service = cache_service

    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(
        WishlistApiError, cast(ExceptionHandler, wishlist_api_exception_handler)
    )
    app.add_exception_handler(
        SnapshotUnavailableError, cast(ExceptionHandler, snapshot_unavailable_handler)
    )
    app.add_exception_handler(
        RecordValidationError, cast(ExceptionHandler, record_validation_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast(ExceptionHandler, request_validation_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(wishlists.router)
    app.include_router(cache.router)

    return app
