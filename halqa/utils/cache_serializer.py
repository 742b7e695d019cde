"""
Serialization and compression utilities for caching.

Values are encoded with orjson; large payloads (rendered pages, sitemap XML,
post lists) are gzip-compressed and base64 wrapped behind a marker.
"""

from base64 import b64decode, b64encode
from binascii import Error as BinasciiError
from gzip import BadGzipFile
from gzip import compress as gzip_compress
from gzip import decompress as gzip_decompress
from logging import getLogger

from orjson import OPT_NON_STR_KEYS, JSONDecodeError
from orjson import dumps as orjson_dumps
from orjson import loads as orjson_loads
from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from halqa.configs import file_logger
from halqa.errors.cache import (
    CacheCompressionError,
    CacheDecompressionError,
    CacheDeserializationError,
    CacheSerializationError,
)

logger = file_logger(getLogger(__name__))

COMPRESSION_MARKER = "\x00GZIP\x00"


def _default(value: object) -> object:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return str(value)


def serialize(value: object) -> str:
    """
    Serialize value to a JSON string.

    Args:
        value: Value to serialize.

    Returns:
        JSON serialized string.

    Raises:
        CacheSerializationError: If serialization fails.
    """
    try:
        return orjson_dumps(value, default=_default, option=OPT_NON_STR_KEYS).decode("utf-8")
    except (PydanticSerializationError, TypeError, ValueError) as e:
        logger.exception("Serialization failed")
        raise CacheSerializationError from e


def deserialize(value: str) -> object:
    """
    Deserialize a JSON string.

    Raises:
        CacheDeserializationError: If the payload is not valid JSON.
    """
    try:
        return orjson_loads(value)
    except (JSONDecodeError, TypeError) as e:
        logger.exception("Deserialization failed")
        raise CacheDeserializationError from e


def compress(data: str) -> str:
    """Gzip ``data`` and return it base64 encoded behind the marker."""
    try:
        compressed = gzip_compress(data.encode("utf-8"))
    except (OSError, ValueError) as e:
        logger.exception("Compression failed")
        raise CacheCompressionError from e
    return COMPRESSION_MARKER + b64encode(compressed).decode("utf-8")


def decompress(data: str) -> str:
    """Reverse :func:`compress`; unmarked strings are returned unchanged."""
    if not data.startswith(COMPRESSION_MARKER):
        return data

    try:
        compressed = b64decode(data[len(COMPRESSION_MARKER) :].encode("utf-8"))
        return gzip_decompress(compressed).decode("utf-8")
    except (BadGzipFile, BinasciiError, OSError, UnicodeDecodeError) as e:
        logger.exception("Decompression failed")
        raise CacheDecompressionError from e


def do_compress(data: str, threshold: int) -> bool:
    """Return True when ``data`` is larger than ``threshold`` bytes."""
    return len(data.encode("utf-8")) > threshold
