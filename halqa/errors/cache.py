"""
Cache errors.

The codec errors come from ``halqa.utils.cache_serializer``. The cache
manager wraps them, and backend failures, in ``CacheKeyError`` naming the
entry; cached routes and the sitemap treat that as a miss, so the handler
only sees cache errors raised outside a cached read.
"""

from logging import getLogger

from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from halqa.configs import file_logger
from halqa.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class CacheError(BaseAppError):
    """A cache entry or tag could not be read, written or cleared."""

    def __init__(self, detail: str = "Cache operation failed") -> None:
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR)


class CacheKeyError(CacheError):
    """Operation on one entry (or one tag) failed."""


class CacheCodecError(CacheError):
    """A value could not pass through the cache codec."""

    stage = "be encoded"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or f"Cache value could not {self.stage}")


class CacheSerializationError(CacheCodecError):
    stage = "be serialized"


class CacheDeserializationError(CacheCodecError):
    stage = "be deserialized"


class CacheCompressionError(CacheCodecError):
    stage = "be compressed"


class CacheDecompressionError(CacheCodecError):
    stage = "be decompressed"


cache_exception_handler = create_exception_handler(logger)
