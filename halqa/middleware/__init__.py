from halqa.middleware.middleware import (
    PERMISSIVE_CORS_PATHS,
    LoggingMiddleware,
    ScopedCORSMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
    preflight_response,
)

__all__ = [
    "PERMISSIVE_CORS_PATHS",
    "LoggingMiddleware",
    "ScopedCORSMiddleware",
    "SecurityHeadersMiddleware",
    "configure_cors",
    "lifespan",
    "preflight_response",
]
