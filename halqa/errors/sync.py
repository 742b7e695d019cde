"""CSV sync pipeline errors."""

from logging import getLogger

from starlette.status import HTTP_400_BAD_REQUEST, HTTP_403_FORBIDDEN, HTTP_502_BAD_GATEWAY

from halqa.configs import file_logger
from halqa.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class SyncError(BaseAppError):
    """Base class for content sync failures."""


class CsvValidationError(SyncError):
    """Raised when CSV text is missing, unreadable or has the wrong header."""

    def __init__(self, detail: str = "Invalid CSV") -> None:
        super().__init__(detail, HTTP_400_BAD_REQUEST)


class SyncSourceError(SyncError):
    """Raised when neither the remote sheet nor the local fallback can be read."""

    def __init__(self, detail: str = "Content source unavailable") -> None:
        super().__init__(detail, HTTP_502_BAD_GATEWAY)


class QuotaExceededError(SyncError):
    """Raised when an author sync would create more posts than allowed."""

    def __init__(self, detail: str, posts_remaining: int) -> None:
        super().__init__(detail, HTTP_403_FORBIDDEN)
        self.posts_remaining = posts_remaining


sync_exception_handler = create_exception_handler(logger)
