"""Authentication errors."""

from logging import getLogger

from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from halqa.configs import file_logger
from halqa.configs.settings import UNAUTHORIZED_MESSAGE
from halqa.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class AuthenticationError(BaseAppError):
    """Raised when a token, cookie or shared secret does not match."""

    def __init__(
        self,
        detail: str = UNAUTHORIZED_MESSAGE,
        status_code: int = HTTP_401_UNAUTHORIZED,
    ) -> None:
        super().__init__(detail, status_code)


class InvalidAuthorCredentialsError(AuthenticationError):
    """Raised when an author token does not belong to the given handle."""

    def __init__(self) -> None:
        super().__init__("Invalid author credentials", HTTP_401_UNAUTHORIZED)


class SuspendedAuthorError(AuthenticationError):
    """Raised when a suspended author tries to act."""

    def __init__(self, handle: str) -> None:
        super().__init__(f"Author '{handle}' is suspended", HTTP_403_FORBIDDEN)


class JoinClosedError(BaseAppError):
    """Raised when the join form is disabled by an admin."""

    def __init__(self) -> None:
        super().__init__("Join requests are currently closed", HTTP_403_FORBIDDEN)


auth_exception_handler = create_exception_handler(logger)
