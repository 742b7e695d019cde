# halqa/routes/warming.py

"""
Cache Warming Routes.

Trigger fresh renders of frontend pages after content changes and inspect
the last few warming runs. The diagnostic log is in-memory, bounded to the
ten most recent entries and reset on restart.
"""

from logging import getLogger
from fastapi import APIRouter, Depends, Request
from fastapi.responses import ORJSONResponse

from halqa.configs import file_logger
from halqa.decorators import timed
from halqa.dependencies import WarmerFactoryDep, WarmingLogDep, verify_revalidation_secret
from halqa.managers import limiter
from halqa.schemas import ReliableWarmRequest, WarmCacheRequest, WarmDiagnosticRequest
from halqa.services.warming import is_warmable
from halqa.utils.helpers import iso_timestamp

router = APIRouter(prefix="/api", tags=["🔥 Cache Warming"])

logger = file_logger(getLogger(__name__))

DEFAULT_WARM_PATHS = ["/", "/blog"]


@router.post(
    "/warm-cache",
    response_class=ORJSONResponse,
    summary="Warm rendered pages with retries",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "warmed": 2,
                        "failed": 0,
                        "results": [
                            {
                                "path": "/",
                                "success": True,
                                "attempts": 1,
                                "status": 200,
                                "timeMs": 312,
                                "error": None,
                            },
                        ],
                    },
                },
            },
        },
        401: {
            "description": "Wrong shared secret",
            "content": {"application/json": {"example": {"error": "Invalid token"}}},
        },
    },
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="warm_cache",
)
@timed("/api/warm-cache")
@limiter.limit("10/minute")
async def warm_cache(
    request: Request,
    body: WarmCacheRequest,
    warmer_factory: WarmerFactoryDep,
    warming_log: WarmingLogDep,
) -> dict:
    """
    Refresh each path, retrying failures with linear backoff.

    Parameters
    ----------
    request : Request
        Current request context.
    body : WarmCacheRequest
        Secret, paths and optional ``origin``, ``maxRetries`` and
        ``concurrent`` batch size.
    warmer_factory : Callable
        Builds a ``CacheWarmer`` from settings.
    warming_log : WarmingLog
        Diagnostic ring buffer.

    Returns
    -------
    dict
        Per-path results plus warmed/failed counts.
    """
    paths = body.paths or DEFAULT_WARM_PATHS
    skipped = [path for path in paths if not is_warmable(path)]
    warmer = warmer_factory(
        origin=body.origin,
        max_retries=body.max_retries,
        batch_size=body.concurrent,
    )
    results = await warmer.warm(paths)

    warmed = sum(result.success for result in results)
    failed = len(results) - warmed
    warming_log.record(paths, status="completed" if failed == 0 else "partial")
    return {
        "success": warmed > 0,
        "warmed": warmed,
        "failed": failed,
        "total": len(results),
        "skipped": skipped,
        "results": [result.model_dump(by_alias=True) for result in results],
        "timestamp": iso_timestamp(),
    }


@router.post(
    "/reliable-warm",
    response_class=ORJSONResponse,
    summary="Single-pass warm without retries",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "warmedPaths": ["/", "/nadia"],
                        "failedPaths": [],
                    },
                },
            },
        },
    },
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="reliable_warm",
)
@timed("/api/reliable-warm")
async def reliable_warm(
    request: Request,
    body: ReliableWarmRequest,
    warmer_factory: WarmerFactoryDep,
    warming_log: WarmingLogDep,
) -> dict:
    paths = body.paths or DEFAULT_WARM_PATHS
    warmed, failed = await warmer_factory().warm_once(paths)
    warming_log.record(paths, status="completed" if not failed else "partial")
    return {
        "success": not failed,
        "warmedPaths": warmed,
        "failedPaths": failed,
        "timestamp": iso_timestamp(),
    }


@router.get(
    "/warm-diagnostic",
    response_class=ORJSONResponse,
    summary="Recent warming runs",
    operation_id="warm_diagnostic",
)
async def warm_diagnostic(request: Request, warming_log: WarmingLogDep) -> dict:
    """Newest first, at most ten entries."""
    return {"entries": warming_log.entries(), "now": iso_timestamp()}


@router.post(
    "/warm-diagnostic",
    response_class=ORJSONResponse,
    summary="Record a warming run",
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="record_warm_diagnostic",
)
async def record_warm_diagnostic(
    request: Request,
    body: WarmDiagnosticRequest,
    warming_log: WarmingLogDep,
) -> dict:
    entry = warming_log.record(body.paths)
    logger.info(f"Recorded warming entry {entry.id} for {len(entry.paths)} path(s)")
    return {
        "success": True,
        "operationId": entry.id,
        "message": "Warming diagnostic recorded",
    }
