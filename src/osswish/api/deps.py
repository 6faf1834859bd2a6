"""Shared FastAPI dependencies for the wishlist cache routers."""

from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header, Request

from osswish.api.errors import UnauthorizedError
from osswish.cache.service import CacheService
from osswish.config import settings

logger = logging.getLogger(__name__)


def cache_service(request: Request) -> CacheService:
    """FastAPI dependency returning the CacheService built in the lifespan."""
    service: CacheService = request.app.state.cache_service
    return service


CacheServiceDep = Annotated[CacheService, Depends(cache_service)]


def verify_webhook_secret(
    x_webhook_secret: Annotated[str | None, Header(alias="x-webhook-secret")] = None,
) -> None:
    """Reject webhook calls whose shared secret does not match.

    When no secret is configured the check is disabled.
    """
    expected = settings.webhook_secret
    if not expected:
        return
    if x_webhook_secret is None or not hmac.compare_digest(
        x_webhook_secret.encode(), expected.encode()
    ):
        logger.warning("Webhook called with invalid secret")
        raise UnauthorizedError()
