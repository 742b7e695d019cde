from collections.abc import Awaitable, Callable
from logging import Logger, getLogger
from typing import cast

from fastapi import Request
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from halqa.configs import file_logger
from halqa.configs.settings import DEFAULT_ERROR_MESSAGE
from halqa.utils.helpers import host

logger = file_logger(getLogger(__name__))

BASE_EXCEPTION = (
    OSError,
    PermissionError,
    MemoryError,
    RuntimeError,
    ConnectionError,
    TimeoutError,
)


class BaseAppError(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        detail: str = "Internal Server Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        return self.detail


def error_envelope(detail: str, **extra: object) -> dict[str, object]:
    """Build the ``{"error": ...}`` body shared by every failure response."""
    return {"error": detail, **extra}


def create_exception_handler(
    logger: Logger,
) -> Callable[[Request, Exception], Awaitable[ORJSONResponse]]:
    """
    Create a standardized exception handler for the application.

    Args:
        logger: Logger instance to use for logging exceptions.

    Returns:
        A callable exception handler.
    """

    async def handler(request: Request, exc: Exception) -> ORJSONResponse:
        status_code = HTTP_500_INTERNAL_SERVER_ERROR
        detail = "Internal Server Error"

        if hasattr(exc, "status_code"):
            status_code = exc.status_code
        if hasattr(exc, "detail"):
            detail = exc.detail

        logger.warning(f"{detail} for ip: {host(request)} for endpoint {request.url.path}")

        # Any extra attributes set on the exception travel with the envelope
        extra = {k: v for k, v in exc.__dict__.items() if k not in ("status_code", "detail")}

        return ORJSONResponse(content=error_envelope(detail, **extra), status_code=status_code)

    return handler


async def http_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Render framework ``HTTPException`` instances with the error envelope."""
    http_exc = cast(StarletteHTTPException, exc)
    logger.warning(
        f"{http_exc.detail} for ip: {host(request)} for endpoint {request.url.path}",
    )
    return ORJSONResponse(
        content=error_envelope(str(http_exc.detail)),
        status_code=http_exc.status_code,
        headers=getattr(http_exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Last-resort handler so no failure escapes without an envelope."""
    logger.exception(f"Unhandled error at endpoint {request.url.path}", exc_info=exc)
    return ORJSONResponse(
        content=error_envelope(str(exc) or DEFAULT_ERROR_MESSAGE),
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )
