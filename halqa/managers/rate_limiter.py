# halqa/managers/rate_limiter.py

"""Rate limiter configuration using slowapi."""

from logging import getLogger
from typing import cast

from fastapi import Request
from fastapi.responses import ORJSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from halqa.configs import LimiterConfig, file_logger
from halqa.errors.base import error_envelope
from halqa.utils import host

logger = file_logger(getLogger(__name__))


def get_identifier(request: Request) -> str:
    """
    Return the rate-limit bucket for a request.

    Bearer-authenticated callers (admin UI, author tools, cron) get their own
    bucket keyed by token prefix; everyone else is keyed by IP address.
    """
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer ") and len(auth) > len("Bearer "):
        return f"token:{auth[len('Bearer ') :][:12]}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(**LimiterConfig().model_dump(), key_func=get_identifier)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """Render ``RateLimitExceeded`` with the error envelope."""
    http_exc = cast(RateLimitExceeded, exc)
    logger.warning(f"Rate limit exceeded for {host(request)} at {request.url.path}")
    return ORJSONResponse(
        status_code=HTTP_429_TOO_MANY_REQUESTS,
        content=error_envelope("Rate limit exceeded", allowed_requests=http_exc.detail),
    )
