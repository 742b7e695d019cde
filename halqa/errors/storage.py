"""Blob store errors."""

from logging import getLogger

from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from halqa.configs import file_logger
from halqa.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class StorageError(BaseAppError):
    """Raised when an upload, download or delete against the blob store fails."""

    def __init__(self, detail: str = "Blob storage error") -> None:
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR)


storage_exception_handler = create_exception_handler(logger)
