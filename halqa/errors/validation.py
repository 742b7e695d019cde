"""Custom validation error handling for FastAPI."""

from logging import getLogger
from typing import cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_400_BAD_REQUEST

from halqa.configs import file_logger
from halqa.errors.base import BaseAppError, create_exception_handler, error_envelope
from halqa.utils.helpers import host

logger = file_logger(getLogger(__name__))


class ValidationError(BaseAppError):
    """Raised for malformed input: bad handle, missing field, oversized comment."""

    def __init__(
        self,
        detail: str = "Validation Error",
    ) -> None:
        super().__init__(detail=detail, status_code=HTTP_400_BAD_REQUEST)


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Handle Pydantic request validation errors with the error envelope.

    The first failing field becomes the ``error`` message; the full list is
    kept under ``errors``.

    Args:
        request: The incoming request.
        exc: The RequestValidationError exception.

    Returns:
        ORJSONResponse with status 400.
    """
    exec_error = cast(RequestValidationError, exc)

    formatted_errors = []
    for error in exec_error.errors():
        field = ".".join(str(loc) for loc in error.get("loc", [])[1:])  # Skip 'body'
        formatted_errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
            },
        )

    logger.warning(
        f"Validation error for ip: {host(request)} at endpoint {request.url.path}: {formatted_errors}",
    )

    first = formatted_errors[0] if formatted_errors else None
    detail = f"{first['field']}: {first['message']}" if first and first["field"] else "Invalid request"

    return ORJSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=error_envelope(detail, errors=formatted_errors),
    )


app_validation_exception_handler = create_exception_handler(logger)
