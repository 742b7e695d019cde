"""
Credential checks for admin, author and shared-secret routes.

All comparisons are constant time. A secret that is not configured never
authorizes anything: the admin token simply fails closed, while shared
secrets raise ``ConfigurationError`` so the affected route answers 500.
"""

from logging import getLogger
from secrets import compare_digest

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from halqa.configs import Settings, file_logger
from halqa.configs.settings import ADMIN_COOKIE_NAME
from halqa.errors.auth import (
    AuthenticationError,
    InvalidAuthorCredentialsError,
    SuspendedAuthorError,
)
from halqa.errors.config import ConfigurationError
from halqa.models.author import AuthorDB
from halqa.repositories.author import AuthorRepository
from halqa.schemas.sync import SecretBody

logger = file_logger(getLogger(__name__))


def matches(presented: str | None, expected: str | None) -> bool:
    if not presented or not expected:
        return False
    return compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


def bearer_token(request: Request) -> str | None:
    """Return the token of an ``Authorization: Bearer <t>`` header, if any."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def presented_secret(request: Request, body: SecretBody | None = None) -> str | None:
    """Shared secret from the body (``secret``/``token``) or the query string."""
    if body is not None and body.presented:
        return body.presented
    return request.query_params.get("secret") or request.query_params.get("token")


async def read_secret_body(request: Request) -> SecretBody | None:
    """
    ``secret``/``token`` of a JSON request body, ignoring every other field.

    Returns None for non-JSON bodies and for bodies that are not an object.
    """
    if "json" not in request.headers.get("content-type", ""):
        return None
    try:
        raw = await request.json()
    except ValueError:
        return None
    if not isinstance(raw, dict):
        return None
    try:
        return SecretBody.model_validate(raw)
    except PydanticValidationError:
        return None


def is_admin_request(request: Request, settings: Settings) -> bool:
    """True when the bearer token or the ``admin_token`` cookie is the admin token."""
    if not settings.ADMIN_API_TOKEN:
        logger.error("ADMIN_API_TOKEN is not set")
        return False
    return matches(bearer_token(request), settings.ADMIN_API_TOKEN) or matches(
        request.cookies.get(ADMIN_COOKIE_NAME),
        settings.ADMIN_API_TOKEN,
    )


def require_admin(request: Request, settings: Settings) -> None:
    if not is_admin_request(request, settings):
        logger.warning(f"Rejected admin request to {request.url.path}")
        raise AuthenticationError


def verify_admin_password(password: str, settings: Settings) -> str:
    """
    Check the admin login password.

    Returns:
        str: The admin token to store in the session cookie.

    Raises:
        ConfigurationError: If the password or admin token is not configured
        AuthenticationError: If the password is wrong
    """
    if not settings.ADMIN_PASSWORD:
        raise ConfigurationError("ADMIN_PASSWORD")
    if not settings.ADMIN_API_TOKEN:
        raise ConfigurationError("ADMIN_API_TOKEN")
    if not matches(password, settings.ADMIN_PASSWORD):
        raise AuthenticationError("Invalid password")
    return settings.ADMIN_API_TOKEN


def require_secret(presented: str | None, expected: str | None, name: str) -> None:
    """
    Check a shared secret taken from the body or query string.

    Raises:
        ConfigurationError: If ``expected`` is not configured
        AuthenticationError: If the secrets differ
    """
    if not expected:
        raise ConfigurationError(name)
    if not matches(presented, expected):
        raise AuthenticationError("Invalid token")


def require_cron(request: Request, settings: Settings) -> None:
    """Cron routes authenticate with ``Authorization: Bearer <CRON_SECRET>``."""
    require_secret(bearer_token(request), settings.CRON_SECRET, "CRON_SECRET")


async def authenticate_author(
    repository: AuthorRepository,
    handle: str | None,
    token: str | None,
) -> AuthorDB:
    """
    Resolve the author owning ``token``.

    Args:
        repository: Author repository
        handle: Author handle named by the request
        token: Bearer or body ``authorToken``

    Returns:
        AuthorDB: The authenticated, active author

    Raises:
        AuthenticationError: If handle or token is missing
        InvalidAuthorCredentialsError: If the token does not belong to the handle
        SuspendedAuthorError: If the author is suspended
    """
    if not handle or not token:
        raise AuthenticationError("Author token and handle are required")

    author = await repository.get_by_handle(handle)
    if author is None or not matches(token, author.api_token):
        logger.warning(f"Invalid author credentials for {handle}")
        raise InvalidAuthorCredentialsError
    if author.status == "suspended":
        raise SuspendedAuthorError(author.handle)
    return author
