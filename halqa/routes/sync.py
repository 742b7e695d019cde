# halqa/routes/sync.py

"""
Sync Routes.

Shared-secret endpoints the editing tools call after changing content:
CSV snapshot uploads, tag/path revalidation, full site sync, site
preferences and editor settings.

Authentication
--------------
The body (or query string) carries ``secret`` or ``token`` matching
``REVALIDATION_SECRET``. The secret is checked by a route dependency before
the typed body is validated: a wrong secret gets ``401``, an unset one
``500``, and nothing is written either way.
"""

from logging import getLogger
from time import perf_counter

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import ORJSONResponse

from halqa.configs import file_logger
from halqa.configs.settings import POSTS_BLOB_PATH, SETTINGS_BLOB_PATH
from halqa.decorators import timed
from halqa.dependencies import (
    BlobStoreDep,
    ContentSourceDep,
    PostSyncDep,
    PreferenceRepoDep,
    RevalidatorDep,
    SettingsDep,
    verify_revalidation_secret,
)
from halqa.managers import limiter
from halqa.middleware import preflight_response
from halqa.schemas import (
    PreferencesUpdateRequest,
    RevalidatePostRequest,
    RevalidateRequest,
    SettingsSaveRequest,
    SyncContentRequest,
)
from halqa.services.csv_sync import (
    parse_posts_csv,
    settings_csv,
    validate_post_rows,
    validate_settings_csv,
)
from halqa.services.revalidation import author_tag
from halqa.utils.helpers import iso_timestamp, time_taken

router = APIRouter(prefix="/api", tags=["🔄 Sync"])

logger = file_logger(getLogger(__name__))

UNAUTHORIZED_RESPONSE = {
    401: {
        "description": "Wrong shared secret",
        "content": {"application/json": {"example": {"error": "Invalid token"}}},
    },
}


@router.get(
    "/revalidate",
    response_class=ORJSONResponse,
    summary="Revalidation endpoint info",
    operation_id="revalidate_info",
)
async def revalidate_info() -> dict:
    return {
        "message": "POST csvContent and/or path with the revalidation secret",
        "methods": ["POST", "OPTIONS"],
        "timestamp": iso_timestamp(),
    }


@router.post(
    "/revalidate",
    response_class=ORJSONResponse,
    summary="Upload a posts CSV snapshot and revalidate",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "revalidated": {
                            "tags": ["posts"],
                            "paths": ["/", "/blog"],
                            "failed": {"tags": [], "paths": []},
                        },
                        "stored": "/uploads/blogPosts.csv",
                    },
                },
            },
        },
        **UNAUTHORIZED_RESPONSE,
    },
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="revalidate",
)
@timed("/api/revalidate")
@limiter.limit("30/minute")
async def revalidate(
    request: Request,
    body: RevalidateRequest,
    blob_store: BlobStoreDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Store the posts CSV snapshot and refresh the posts cache.

    Parameters
    ----------
    request : Request
        Current request context.
    body : RevalidateRequest
        Optional ``csvContent`` and optional ``path``.
    blob_store : BlobStore
        Where the CSV snapshot is written.
    revalidator : Revalidator
        Tag and path invalidation.

    Returns
    -------
    dict
        What was revalidated and the stored snapshot URL, if any.
    """
    stored = None
    if body.csv_content:
        parse_posts_csv(body.csv_content)
        stored = await blob_store.put(POSTS_BLOB_PATH, body.csv_content)
        logger.info(f"Stored posts CSV snapshot at {stored}")

    paths = ["/", "/blog"]
    if body.path:
        paths.append(body.path)
    result = await revalidator.revalidate(tags=["posts"], paths=paths)
    return {
        "success": True,
        "revalidated": result.to_dict(),
        "stored": stored,
        "timestamp": iso_timestamp(),
    }


@router.options("/revalidate", include_in_schema=False)
async def revalidate_preflight() -> Response:
    return preflight_response()


@router.post(
    "/revalidate-post",
    response_class=ORJSONResponse,
    summary="Revalidate explicit tags and paths",
    responses=UNAUTHORIZED_RESPONSE,
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="revalidate_post",
)
@timed("/api/revalidate-post")
async def revalidate_post(
    request: Request,
    body: RevalidatePostRequest,
    revalidator: RevalidatorDep,
) -> dict:
    """Clear ``tags`` (plus the author's tag when ``authorHandle`` is given), then ``paths``."""
    tags = list(body.tags)
    if body.author_handle:
        tags.append(author_tag(body.author_handle))
    result = await revalidator.revalidate(tags=tags, paths=body.paths)
    return {"success": True, "revalidated": result.to_dict(), "timestamp": iso_timestamp()}


@router.options("/revalidate-post", include_in_schema=False)
async def revalidate_post_preflight() -> Response:
    return preflight_response()


@router.post(
    "/sync-content",
    response_class=ORJSONResponse,
    summary="Sync site posts from the main sheet",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "stats": {"inserted": 2, "updated": 14, "deleted": 1},
                        "duration": "0.84s",
                    },
                },
            },
        },
        400: {
            "description": "Malformed CSV or rows",
            "content": {"application/json": {"example": {"error": "Row 3 is missing a slug"}}},
        },
        **UNAUTHORIZED_RESPONSE,
        502: {
            "description": "Sheet unreachable and no local copy",
            "content": {"application/json": {"example": {"error": "Content source unavailable"}}},
        },
    },
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="sync_content",
)
@timed("/api/sync-content")
@limiter.limit("10/minute")
async def sync_content(
    request: Request,
    body: SyncContentRequest,
    settings: SettingsDep,
    sync: PostSyncDep,
    source: ContentSourceDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Mirror the site sheet into the posts table.

    Rows come from ``posts``, ``csvContent`` or ``sheetUrl``; with none of
    them the configured ``SHEETS_CSV_URL`` (or its local copy) is used. Site
    posts absent from the rows are deleted.
    """
    start = perf_counter()
    if body.posts is not None:
        rows = validate_post_rows(body.posts)
    elif body.csv_content is not None:
        rows = parse_posts_csv(body.csv_content)
    else:
        rows = parse_posts_csv(await source.fetch(body.sheet_url or settings.SHEETS_CSV_URL))

    stats = await sync.sync_site(rows)
    result = await revalidator.revalidate(tags=["posts", "sitemap"], paths=["/", "/blog"])
    return {
        "success": True,
        "message": "Content synced successfully",
        "stats": stats.model_dump(),
        "revalidated": result.to_dict(),
        "timestamp": iso_timestamp(),
        "duration": time_taken(start),
    }


@router.post(
    "/preferences/update",
    response_class=ORJSONResponse,
    summary="Update site-wide preferences",
    responses=UNAUTHORIZED_RESPONSE,
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="update_preferences",
)
@timed("/api/preferences/update")
async def update_preferences(
    request: Request,
    body: PreferencesUpdateRequest,
    preferences: PreferenceRepoDep,
    revalidator: RevalidatorDep,
) -> dict:
    saved = await preferences.upsert_many(body.preferences)
    await revalidator.revalidate(tags=["preferences"], paths=["/api/preferences", "/"])
    return {"success": True, "preferences": saved, "timestamp": iso_timestamp()}


@router.options("/preferences/update", include_in_schema=False)
async def update_preferences_preflight() -> Response:
    return preflight_response()


@router.post(
    "/settings/save",
    response_class=ORJSONResponse,
    summary="Save the editor settings CSV",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"success": True, "stored": "/uploads/settings.csv"},
                },
            },
        },
        400: {
            "description": "Bad header",
            "content": {
                "application/json": {
                    "example": {
                        "error": "Invalid settings CSV: header must be 'Settings,type,value'",
                    },
                },
            },
        },
        **UNAUTHORIZED_RESPONSE,
    },
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="save_settings",
)
@timed("/api/settings/save")
async def save_settings(
    request: Request,
    body: SettingsSaveRequest,
    blob_store: BlobStoreDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Write ``settings.csv`` to the blob store.

    Either a full CSV (``csvContent``) or just ``fontStyle`` is accepted.
    The header must be exactly ``Settings,type,value``; a bad header is
    rejected with ``400`` and nothing is stored.
    """
    csv_text = body.csv_content
    if csv_text is None and body.font_style:
        csv_text = settings_csv(body.font_style)
    validate_settings_csv(csv_text)

    stored = await blob_store.put(SETTINGS_BLOB_PATH, csv_text)
    await revalidator.revalidate(tags=["settings"], paths=["/api/settings"])
    logger.info(f"Saved settings CSV to {stored}")
    return {"success": True, "stored": stored, "timestamp": iso_timestamp()}


@router.options("/settings/save", include_in_schema=False)
async def save_settings_preflight() -> Response:
    return preflight_response()
