# halqa/middleware/middleware.py
"""
Middleware components for the Halqa backend.

Security headers, request logging and CORS, plus the lifespan handler
that creates the cache manager and the warming log on ``app.state``.
"""

from asyncio import get_running_loop
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import basicConfig, getLogger
from time import perf_counter

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pythonjsonlogger.json import JsonFormatter
from rich.logging import RichHandler
from rich.traceback import install
from starlette.datastructures import MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import HTTP_204_NO_CONTENT
from starlette.types import ASGIApp, Message, Receive, Scope, Send
from uvloop import Loop

from halqa.configs import file_logger, settings
from halqa.configs.settings import WARMING_LOG_SIZE
from halqa.db import close_db, init_db
from halqa.managers.cache_manager import CacheManager
from halqa.managers.warming_log import WarmingLog
from halqa.utils.helpers import get_summary, host

# Endpoints called cross-origin by the spreadsheet script and author tools.
PERMISSIVE_CORS_PATHS = frozenset(
    {
        "/api/revalidate",
        "/api/revalidate-post",
        "/api/preferences/update",
        "/api/settings/save",
        "/api/author/preferences",
        "/api/author/authenticate",
        "/api/delete-image",
        "/api/delete-images",
    },
)
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}

# --- Logging Configuration ---
basicConfig(
    level="NOTSET" if settings.DEBUG else "INFO",
    format="%(message)s",
    datefmt="%X",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = getLogger("rich")
file_logger(logger)
for handler in logger.handlers:
    handler.setFormatter(JsonFormatter())

install()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Create per-process state on startup and release it on shutdown."""
    logger.info(f"Starting {app.title}...")

    try:
        await init_db()
    except Exception:
        logger.exception("Database initialization failed; continuing without schema bootstrap")

    cache_manager = CacheManager()
    await cache_manager.initialize()
    app.state.cache_manager = cache_manager
    app.state.warming_log = WarmingLog(maxlen=WARMING_LOG_SIZE)

    logger.info(f"is uvloop: {type(get_running_loop()) is Loop}")
    logger.info("Services initialized successfully")
    logger.info("  - API Documentation: http://localhost:8000/docs")
    logger.info("  - Health Check: http://localhost:8000/health")
    logger.info("  - Sitemap: http://localhost:8000/sitemap.xml")

    yield

    logger.info(f"Shutting down {app.title}...")
    try:
        await cache_manager.shutdown()
        await close_db()
        logger.info("Services cleaned up successfully")
    except Exception:
        logger.exception("Error during service cleanup")


def preflight_response(methods: str | None = None) -> Response:
    """``204`` answer for ``OPTIONS`` on the permissive CORS endpoints."""
    headers = dict(PREFLIGHT_HEADERS)
    if methods is not None:
        headers["Access-Control-Allow-Methods"] = methods
    return Response(status_code=HTTP_204_NO_CONTENT, headers=headers)


class ScopedCORSMiddleware(CORSMiddleware):
    """
    CORS for the frontend origins, wildcard for ``open_paths``.

    Requests to an open path bypass the origin checks so the route's own
    ``OPTIONS`` handler answers the preflight, and every response on those
    paths carries ``Access-Control-Allow-Origin: *``.
    """

    def __init__(self, app: ASGIApp, open_paths: frozenset[str], **kwargs: object) -> None:
        super().__init__(app, **kwargs)  # type: ignore[arg-type]
        self.open_paths = open_paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"].rstrip("/") not in self.open_paths:
            await super().__call__(scope, receive, send)
            return

        async def send_with_origin(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["Access-Control-Allow-Origin"] = "*"
            await send(message)

        await self.app(scope, receive, send_with_origin)


def configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware for the application."""
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        settings.SITE_URL,
    ]
    if frontend_url := settings.PRODUCTION_FRONTEND_URL:
        allowed_origins.append(frontend_url)

    app.add_middleware(
        ScopedCORSMiddleware,
        open_paths=PERMISSIVE_CORS_PATHS,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Log request summary and timing information."""

        start_time = perf_counter()
        route_info = get_summary(request) or f"{request.method} {request.url.path}"
        logger.info(f"Request: {route_info}, from ip: {host(request)}")

        response = await call_next(request)

        logger.info(
            f"Response: {response.status_code} for {request.method} {request.url.path} "
            f"in {perf_counter() - start_time:.2f}s",
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Add security headers to all responses."""

        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
