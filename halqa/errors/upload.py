"""Image upload errors."""

from logging import getLogger

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from halqa.configs import file_logger
from halqa.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class UploadError(BaseAppError):
    """Base class for avatar and post image upload failures."""

    def __init__(
        self,
        detail: str = "Upload failed",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail, status_code)


class ImageTooLargeError(UploadError):
    def __init__(self, max_size_mb: int) -> None:
        super().__init__(f"File too large (max {max_size_mb}MB)", HTTP_413_REQUEST_ENTITY_TOO_LARGE)


class UnsupportedImageTypeError(UploadError):
    """The declared content type is not an accepted image type."""

    def __init__(self) -> None:
        super().__init__("Only images are allowed", HTTP_415_UNSUPPORTED_MEDIA_TYPE)


class InvalidImageError(UploadError):
    """The bytes do not decode as an image."""

    def __init__(self, detail: str = "File is not a valid image") -> None:
        super().__init__(detail, HTTP_400_BAD_REQUEST)


class InvalidImagePathError(UploadError):
    """A delete named a path outside the managed image folder."""

    def __init__(self) -> None:
        super().__init__("Invalid path", HTTP_400_BAD_REQUEST)


upload_exception_handler = create_exception_handler(logger)
