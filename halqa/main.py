# halqa/main.py

"""Halqa Backend - multi-author blogging API with tag-scoped caching."""

from time import perf_counter

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from halqa.configs import settings
from halqa.db import check_connection
from halqa.errors import (
    AuthenticationError,
    BaseAppError,
    CacheError,
    ConfigurationError,
    DatabaseError,
    StorageError,
    SyncError,
    UploadError,
    ValidationError,
    app_validation_exception_handler,
    auth_exception_handler,
    cache_exception_handler,
    config_exception_handler,
    create_exception_handler,
    database_exception_handler,
    http_exception_handler,
    storage_exception_handler,
    sync_exception_handler,
    unhandled_exception_handler,
    upload_exception_handler,
    validation_exception_handler,
)
from halqa.errors.base import logger as error_logger
from halqa.managers import (
    get_system_metrics,
    limiter,
    metrics_manager,
    rate_limit_exceeded_handler,
)
from halqa.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
)
from halqa.routes import (
    admin_router,
    admin_session_router,
    author_router,
    content_router,
    media_router,
    sitemap_router,
    sync_router,
    warming_router,
)
from halqa.schemas import ComponentStatus, HealthCheckResponse
from halqa.utils.helpers import iso_timestamp

app = FastAPI(
    title="Halqa Backend",
    description="Halqa multi-author blogging API",
    version="1.0.0",
    lifespan=lifespan,
    swagger_ui_parameters={
        "docExpansion": "none",
        "operationsSorter": "method",
    },
)

configure_cors(app)

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
# Behind the hosting platform's proxy
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


routes = [
    admin_session_router,
    admin_router,
    author_router,
    content_router,
    media_router,
    sync_router,
    sitemap_router,
    warming_router,
]

_ = [app.include_router(router) for router in routes]

errors = [
    (AuthenticationError, auth_exception_handler),
    (CacheError, cache_exception_handler),
    (ConfigurationError, config_exception_handler),
    (DatabaseError, database_exception_handler),
    (StorageError, storage_exception_handler),
    (SyncError, sync_exception_handler),
    (UploadError, upload_exception_handler),
    (ValidationError, app_validation_exception_handler),
    (BaseAppError, create_exception_handler(error_logger)),
    (RateLimitExceeded, rate_limit_exceeded_handler),
    (StarletteHTTPException, http_exception_handler),
    (RequestValidationError, validation_exception_handler),
    (Exception, unhandled_exception_handler),
]

_ = [app.add_exception_handler(exc_type, handler) for exc_type, handler in errors]

app.state.limiter = limiter
limiter: Limiter = app.state.limiter


@app.get(
    "/health",
    tags=["🩺 Health"],
    summary="Health check endpoint",
    response_model=HealthCheckResponse,
    response_class=ORJSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "version": "1.0.0",
                        "status": "ok",
                        "timestamp": "2025-01-01T00:00:00.000Z",
                        "checks": {
                            "database": {"status": "pass", "response_ms": 4, "backend": None},
                            "cache": {"status": "pass", "response_ms": None, "backend": "redis"},
                        },
                    },
                },
            },
        },
        503: {"description": "A dependency is down"},
    },
    operation_id="health_check",
)
@limiter.exempt
async def health_check(request: Request) -> ORJSONResponse:
    """
    Health check endpoint.

    Parameters
    ----------
    request : Request
        Current request context.

    Returns
    -------
    ORJSONResponse
        ``200`` when the database and cache answer, ``503`` otherwise.

    Examples
    --------
    Request
        GET /health
    Response
        200 OK
        {"version": "1.0.0", "status": "ok", "timestamp": "...", "checks": { ... }}
    """
    db_ok, db_ms = await check_connection()
    checks = {"database": ComponentStatus(status="pass" if db_ok else "fail", response_ms=db_ms)}

    cache_manager = getattr(request.app.state, "cache_manager", None)
    if cache_manager is None:
        checks["cache"] = ComponentStatus(status="fail")
    else:
        start = perf_counter()
        cache_health = await cache_manager.health_check()
        checks["cache"] = ComponentStatus(
            status="pass" if cache_health.get("status") == "healthy" else "fail",
            response_ms=int((perf_counter() - start) * 1000),
            backend=cache_health.get("backend"),
        )

    healthy = all(check.status == "pass" for check in checks.values())
    response = HealthCheckResponse(
        version=app.version,
        status="ok" if healthy else "degraded",
        timestamp=iso_timestamp(),
        checks=checks,
    )
    return ORJSONResponse(
        response.model_dump(),
        status_code=200 if healthy else HTTP_503_SERVICE_UNAVAILABLE,
    )


@app.get(
    "/metrics",
    tags=["📈 Metrics"],
    response_class=ORJSONResponse,
    summary="Get metrics",
    description="Get API performance metrics.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "timestamp": "2025-01-01T00:00:00.000Z",
                        "api_metrics": {"requests": 100, "latency_ms_avg": 12.3},
                        "system_metrics": {"cpu": 0.42, "mem": 0.58},
                    },
                },
            },
        },
        429: {
            "description": "Rate limit exceeded",
            "content": {"application/json": {"example": {"error": "Rate limit exceeded"}}},
        },
    },
    operation_id="get_metrics",
)
@limiter.limit("5/minute")
async def get_metrics(request: Request, response: Response) -> ORJSONResponse:
    """
    Get API performance metrics.

    Notes
    -----
    Rate limited to 5 requests per minute.
    """
    cache_manager = getattr(request.app.state, "cache_manager", None)
    return ORJSONResponse(
        content={
            "timestamp": iso_timestamp(),
            "api_metrics": metrics_manager.get_metrics(),
            "cache_metrics": cache_manager.get_statistics() if cache_manager else None,
            "system_metrics": await get_system_metrics(),
        },
    )


@app.get(
    "/",
    tags=["🏠 Root"],
    summary="Root access",
    response_model=dict[str, str],
    response_class=JSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {"example": {"message": "Welcome to Halqa Backend"}},
            },
        },
    },
    operation_id="root_access",
)
@limiter.limit("5/minute")
async def root(request: Request, response: Response) -> JSONResponse:
    response.headers["X-Frame-Options"] = "DENY"
    return JSONResponse(content={"message": f"Welcome to {settings.APP_NAME}"})


if __name__ == "__main__":
    from uvicorn import run

    run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level="info",
        loop="uvloop",
        http="httptools",
    )
