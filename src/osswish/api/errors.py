"""Error responses for the wishlist cache API.

Every error body uses the same Result/Message structure:

    {"messages": [{"code": "...", "messageType": "Error", "text": "...", "timestamp": "..."}]}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from osswish.core.errors import RecordValidationError, SnapshotUnavailableError

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a temporarily unavailable read
RETRY_AFTER_SECONDS = 30


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    """Single error message."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


def _result(code: str, text: str, message_type: MessageType = MessageType.ERROR) -> Result:
    return Result(
        messages=[
            Message(
                code=code,
                messageType=message_type,
                text=text,
                timestamp=datetime.now(UTC).isoformat(),
            )
        ]
    )


class WishlistApiError(HTTPException):
    """Base exception for API errors."""

    def __init__(
        self,
        status_code: int,
        code: str,
        text: str,
        message_type: MessageType = MessageType.ERROR,
        headers: dict[str, str] | None = None,
    ):
        self.code = code
        self.text = text
        self.message_type = message_type
        super().__init__(status_code=status_code, detail=text, headers=headers)

    def to_result(self) -> Result:
        return _result(self.code, self.text, self.message_type)


class BadRequestError(WishlistApiError):
    """Invalid request (400)."""

    def __init__(self, text: str):
        super().__init__(status_code=400, code="BadRequest", text=text)


class UnauthorizedError(WishlistApiError):
    """Missing or wrong shared secret (401)."""

    def __init__(self, text: str = "Unauthorized"):
        super().__init__(status_code=401, code="Unauthorized", text=text)


class NotFoundError(WishlistApiError):
    """Resource not found (404)."""

    def __init__(self, resource_type: str, identifier: str):
        super().__init__(
            status_code=404,
            code="NotFound",
            text=f"{resource_type} '{identifier}' not found",
        )


class ServiceUnavailableError(WishlistApiError):
    """Data temporarily unavailable, retry later (503)."""

    def __init__(self, text: str = "Wishlist data is temporarily unavailable"):
        super().__init__(
            status_code=503,
            code="ServiceUnavailable",
            text=text,
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )


class InternalServerError(WishlistApiError):
    """Internal server error (500)."""

    def __init__(self, text: str = "An unexpected error occurred"):
        super().__init__(
            status_code=500,
            code="InternalServerError",
            text=text,
            message_type=MessageType.EXCEPTION,
        )


async def wishlist_api_exception_handler(request: Request, exc: WishlistApiError) -> JSONResponse:
    """Exception handler for API errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_result().model_dump(by_alias=True),
        headers=exc.headers,
    )


async def snapshot_unavailable_handler(
    request: Request, exc: SnapshotUnavailableError
) -> JSONResponse:
    """Map a failed read to 503 so clients retry instead of showing an empty list."""
    logger.warning(f"{request.url.path}: {exc}")
    return await wishlist_api_exception_handler(request, ServiceUnavailableError())


async def record_validation_handler(request: Request, exc: RecordValidationError) -> JSONResponse:
    return await wishlist_api_exception_handler(request, BadRequestError(str(exc)))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render malformed request bodies and parameters as 400 BadRequest."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    )
    text = f"Invalid request: {details}" if details else "Invalid request"
    return await wishlist_api_exception_handler(request, BadRequestError(text))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=_result(
            "InternalServerError", "An unexpected error occurred", MessageType.EXCEPTION
        ).model_dump(by_alias=True),
    )
