from halqa.errors.auth import (
    AuthenticationError,
    InvalidAuthorCredentialsError,
    JoinClosedError,
    SuspendedAuthorError,
    auth_exception_handler,
)
from halqa.errors.base import (
    BASE_EXCEPTION,
    BaseAppError,
    create_exception_handler,
    error_envelope,
    http_exception_handler,
    unhandled_exception_handler,
)
from halqa.errors.cache import (
    CacheCodecError,
    CacheCompressionError,
    CacheDecompressionError,
    CacheDeserializationError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    cache_exception_handler,
)
from halqa.errors.config import ConfigurationError, config_exception_handler
from halqa.errors.database import (
    DatabaseConnectionError,
    DatabaseError,
    DuplicateEntryError,
    RecordNotFoundError,
    database_exception_handler,
)
from halqa.errors.storage import StorageError, storage_exception_handler
from halqa.errors.sync import (
    CsvValidationError,
    QuotaExceededError,
    SyncError,
    SyncSourceError,
    sync_exception_handler,
)
from halqa.errors.upload import (
    ImageTooLargeError,
    InvalidImageError,
    InvalidImagePathError,
    UnsupportedImageTypeError,
    UploadError,
    upload_exception_handler,
)
from halqa.errors.validation import (
    ValidationError,
    app_validation_exception_handler,
    validation_exception_handler,
)

__all__ = [
    "BASE_EXCEPTION",
    "AuthenticationError",
    "BaseAppError",
    "CacheCodecError",
    "CacheCompressionError",
    "CacheDecompressionError",
    "CacheDeserializationError",
    "CacheError",
    "CacheKeyError",
    "CacheSerializationError",
    "ConfigurationError",
    "CsvValidationError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DuplicateEntryError",
    "ImageTooLargeError",
    "InvalidAuthorCredentialsError",
    "InvalidImageError",
    "InvalidImagePathError",
    "JoinClosedError",
    "QuotaExceededError",
    "RecordNotFoundError",
    "StorageError",
    "SuspendedAuthorError",
    "SyncError",
    "SyncSourceError",
    "UnsupportedImageTypeError",
    "UploadError",
    "ValidationError",
    "app_validation_exception_handler",
    "auth_exception_handler",
    "cache_exception_handler",
    "config_exception_handler",
    "create_exception_handler",
    "database_exception_handler",
    "error_envelope",
    "http_exception_handler",
    "storage_exception_handler",
    "sync_exception_handler",
    "unhandled_exception_handler",
    "upload_exception_handler",
    "validation_exception_handler",
]
