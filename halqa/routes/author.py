# halqa/routes/author.py

"""
Author Routes.

Join flow, public profiles and the endpoints author tools call with their
API token (``Authorization: Bearer <token>`` or ``authorToken`` in the body).

Summary
-------
Endpoints include:
  - Request to join / join form status and email check
  - Author credential check for the author tools
  - Public author profile
  - Author-scoped revalidation and content sync
  - Post quota
  - Per-author preferences
"""

from logging import getLogger
from secrets import token_hex
from time import perf_counter, time_ns
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.status import HTTP_201_CREATED

from halqa.configs import file_logger
from halqa.decorators import cached, timed
from halqa.dependencies import (
    AuthorRepoDep,
    AuthorRequestRepoDep,
    AuthorServiceDep,
    ContentSourceDep,
    PostSyncDep,
    PreferenceRepoDep,
    QuotaServiceDep,
    RevalidatorDep,
    SettingRepoDep,
    verify_revalidation_secret,
)
from halqa.errors import DatabaseError, JoinClosedError, RecordNotFoundError
from halqa.managers import limiter
from halqa.middleware import preflight_response
from halqa.models import AuthorDB
from halqa.repositories import JOIN_DISABLED_KEY, AuthorRepository
from halqa.schemas import (
    AuthorAuthenticateRequest,
    AuthorPreferencesRequest,
    AuthorPublic,
    AuthorRevalidateRequest,
    AuthorSyncRequest,
    JoinRequestCreate,
)
from halqa.services.credentials import authenticate_author, bearer_token
from halqa.services.csv_sync import parse_posts_csv
from halqa.services.revalidation import author_tag
from halqa.utils.helpers import iso_timestamp, time_taken

router = APIRouter(prefix="/api/author", tags=["✍️ Author"])

logger = file_logger(getLogger(__name__))

UNAUTHORIZED_RESPONSE = {
    401: {
        "description": "Missing or invalid author credentials",
        "content": {"application/json": {"example": {"error": "Invalid author credentials"}}},
    },
}


async def _authenticate(
    request: Request,
    authors: AuthorRepository,
    handle: str | None,
    body_token: str | None = None,
) -> AuthorDB:
    return await authenticate_author(authors, handle, bearer_token(request) or body_token)


def _request_id(prefix: str) -> str:
    return f"{prefix}-{time_ns() // 1_000_000}-{token_hex(3)[:5]}"


@router.post(
    "/request-join",
    response_class=ORJSONResponse,
    status_code=HTTP_201_CREATED,
    summary="Request to join as an author",
    responses={
        201: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Join request submitted",
                        "handle": "nadia",
                    },
                },
            },
        },
        403: {
            "description": "Join form disabled",
            "content": {
                "application/json": {"example": {"error": "Join requests are currently closed"}},
            },
        },
        409: {
            "description": "Handle taken",
            "content": {
                "application/json": {"example": {"error": "Handle 'nadia' is already taken"}},
            },
        },
    },
    operation_id="author_request_join",
)
@timed("/api/author/request-join")
@limiter.limit("3/minute")
async def request_join(
    request: Request,
    form: JoinRequestCreate,
    service: AuthorServiceDep,
    settings_repo: SettingRepoDep,
) -> dict:
    """
    Submit the public join form.

    The handle is stored lowercase and must be free among authors and
    pending requests. An API token is generated now and handed to the
    author once an admin approves the request.

    Parameters
    ----------
    request : Request
        Current request context.
    form : JoinRequestCreate
        Name, handle, email and optional bio/website.
    service : AuthorService
        Author lifecycle service.
    settings_repo : SettingRepository
        Site settings (``join_disabled``).

    Returns
    -------
    dict
        Confirmation with the normalised handle.
    """
    if await settings_repo.get_value(JOIN_DISABLED_KEY, default=False) is True:
        raise JoinClosedError
    join_request = await service.request_join(form)
    return {"success": True, "message": "Join request submitted", "handle": join_request.handle}


@router.get(
    "/join-status",
    response_class=ORJSONResponse,
    summary="Whether the join form is open",
    responses={200: {"content": {"application/json": {"example": {"enabled": True}}}}},
    operation_id="author_join_status",
)
async def join_status(request: Request, settings_repo: SettingRepoDep) -> dict:
    """Report ``enabled = not join_disabled``; defaults to open when unreadable."""
    try:
        disabled = await settings_repo.get_value(JOIN_DISABLED_KEY, default=False)
    except (DatabaseError, SQLAlchemyError):
        logger.exception("Could not read join status, reporting enabled")
        return {"enabled": True}
    return {"enabled": disabled is not True}


@router.get(
    "/check-email",
    response_class=ORJSONResponse,
    summary="Whether an email is already registered",
    responses={200: {"content": {"application/json": {"example": {"exists": False}}}}},
    operation_id="author_check_email",
)
@limiter.limit("10/minute")
async def check_email(
    request: Request,
    email: Annotated[str, Query(min_length=3, max_length=254)],
    authors: AuthorRepoDep,
    join_requests: AuthorRequestRepoDep,
) -> dict:
    """Pending join requests are checked before existing authors."""
    email = email.strip()
    exists = await join_requests.email_exists(email) or await authors.email_exists(email)
    return {"exists": exists}


@router.post(
    "/authenticate",
    response_class=ORJSONResponse,
    summary="Check an author's credentials",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "author": {"handle": "nadia", "name": "Nadia", "role": "regular"},
                    },
                },
            },
        },
        **UNAUTHORIZED_RESPONSE,
    },
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="author_authenticate",
)
@limiter.limit("10/minute")
async def authenticate(
    request: Request,
    response: Response,
    body: AuthorAuthenticateRequest,
    authors: AuthorRepoDep,
) -> dict:
    """
    Confirm that ``authorToken`` belongs to ``handle``.

    Called server-side by the author tools, so the body must also carry the
    revalidation secret. The answer is never cached.
    """
    author = await authenticate_author(authors, body.handle, body.author_token)
    response.headers["Cache-Control"] = "no-store"
    return {
        "success": True,
        "author": {"handle": author.handle, "name": author.name, "role": author.role},
    }


@router.options("/authenticate", include_in_schema=False)
async def authenticate_preflight() -> Response:
    return preflight_response()


@router.get(
    "/quota",
    response_class=ORJSONResponse,
    summary="Remaining post quota",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "handle": "nadia",
                        "withinQuota": True,
                        "unlimited": False,
                        "postsRemaining": 3,
                        "postCount": 7,
                        "maxPosts": 10,
                        "queryFailed": False,
                        "error": None,
                    },
                },
            },
        },
        **UNAUTHORIZED_RESPONSE,
    },
    operation_id="author_quota",
)
@timed("/api/author/quota")
async def quota(
    request: Request,
    handle: Annotated[str, Query(min_length=1)],
    authors: AuthorRepoDep,
    quota_service: QuotaServiceDep,
) -> dict:
    """
    Check how many more posts the author may publish.

    Admin authors are unlimited. A failed count is reported with
    ``queryFailed: true`` and ``withinQuota: false``.
    """
    author = await _authenticate(request, authors, handle)
    result = await quota_service.check(author.handle)
    return {"success": True, **result.to_response().model_dump(by_alias=True)}


@router.post(
    "/revalidate",
    response_class=ORJSONResponse,
    summary="Revalidate an author's pages",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="author_revalidate",
)
@timed("/api/author/revalidate")
async def revalidate(
    request: Request,
    body: AuthorRevalidateRequest,
    authors: AuthorRepoDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Revalidate the author's tag, then their home page and optional page/post.

    ``path`` is relative to the author's home (``/about`` purges
    ``/{handle}/about``); ``slug`` purges ``/{handle}/blog/{slug}``.
    """
    author = await _authenticate(request, authors, body.handle, body.author_token)
    paths = [f"/{author.handle}"]
    if body.path:
        paths.append(f"/{author.handle}/{body.path.lstrip('/')}")
    if body.slug:
        paths.append(f"/{author.handle}/blog/{body.slug}")

    result = await revalidator.revalidate(tags=[author_tag(author.handle)], paths=paths)
    return {
        "success": True,
        "message": f"Cache revalidated for author {author.handle}",
        "revalidated": result.to_dict(),
        "timestamp": iso_timestamp(),
    }


@router.post(
    "/sync-content",
    response_class=ORJSONResponse,
    summary="Sync an author's posts",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Content synced successfully for author nadia",
                        "stats": {"inserted": 1, "updated": 3, "deleted": 0},
                        "requestId": "author-sync-1718000000000-a1b2c",
                        "duration": "0.42s",
                    },
                },
            },
        },
        400: {
            "description": "Malformed CSV or rows",
            "content": {"application/json": {"example": {"error": "Row 2 is missing a slug"}}},
        },
        **UNAUTHORIZED_RESPONSE,
        403: {
            "description": "Quota exceeded",
            "content": {
                "application/json": {
                    "example": {"error": "Post limit reached", "posts_remaining": 0},
                },
            },
        },
    },
    operation_id="author_sync_content",
)
@timed("/api/author/sync-content")
@limiter.limit("10/minute")
async def sync_content(
    request: Request,
    body: AuthorSyncRequest,
    authors: AuthorRepoDep,
    sync: PostSyncDep,
    source: ContentSourceDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Upsert the author's posts by slug.

    Rows come from ``posts``, ``csvContent`` or ``sheetUrl`` (first given
    wins). Rows whose ``publish`` flag is false are deleted. New slugs count
    against the author's quota.
    """
    start = perf_counter()
    request_id = _request_id("author-sync")
    author = await _authenticate(request, authors, body.handle, body.author_token)
    logger.info(f"[{request_id}] Author {author.handle} authenticated, syncing content")

    if body.posts is not None:
        rows = body.posts
    elif body.csv_content is not None:
        rows = parse_posts_csv(body.csv_content)
    elif body.sheet_url:
        rows = parse_posts_csv(await source.fetch(body.sheet_url, fallback=False))
    else:
        rows = []

    stats = await sync.sync_author(author, rows)
    await revalidator.revalidate(
        tags=[author_tag(author.handle), "posts", "sitemap"],
        paths=[f"/{author.handle}", f"/{author.handle}/blog"],
    )
    duration = time_taken(start)
    logger.info(f"[{request_id}] Author sync completed in {duration} for {author.handle}")
    return {
        "success": True,
        "message": f"Content synced successfully for author {author.handle}",
        "stats": stats.model_dump(),
        "timestamp": iso_timestamp(),
        "requestId": request_id,
        "duration": duration,
    }


@router.get(
    "/preferences",
    response_class=ORJSONResponse,
    summary="Get an author's preferences",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="author_get_preferences",
)
async def get_preferences(
    request: Request,
    handle: Annotated[str, Query(min_length=1)],
    authors: AuthorRepoDep,
    preferences: PreferenceRepoDep,
) -> dict:
    author = await _authenticate(request, authors, handle)
    return {"success": True, "preferences": await preferences.get_all(author.handle)}


@router.post(
    "/preferences",
    response_class=ORJSONResponse,
    summary="Update an author's preferences",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="author_update_preferences",
)
@timed("/api/author/preferences")
async def update_preferences(
    request: Request,
    body: AuthorPreferencesRequest,
    authors: AuthorRepoDep,
    preferences: PreferenceRepoDep,
    revalidator: RevalidatorDep,
) -> dict:
    author = await _authenticate(request, authors, body.handle, body.author_token)
    saved = await preferences.upsert_many(body.preferences, author.handle)
    await revalidator.revalidate(tags=[author_tag(author.handle)], paths=[f"/{author.handle}"])
    return {"success": True, "preferences": saved, "timestamp": iso_timestamp()}


@router.options("/preferences", include_in_schema=False)
async def preferences_preflight() -> Response:
    return preflight_response()


@router.get(
    "/{handle}/public",
    response_class=ORJSONResponse,
    summary="Public author profile",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "handle": "nadia",
                        "name": "Nadia Rahman",
                        "bio": "Writes about cities.",
                        "website": "https://nadia.example.com",
                        "avatarUrl": None,
                    },
                },
            },
        },
        404: {
            "description": "Unknown or suspended author",
            "content": {"application/json": {"example": {"error": "Author not found"}}},
        },
    },
    operation_id="author_public_profile",
)
@cached(
    lambda handle, **_: author_tag(handle),
    key_builder=lambda handle, **_: "profile",
    page=lambda handle, **_: f"/{handle.lower()}",
)
async def public_profile(
    request: Request,
    handle: str,
    authors: AuthorRepoDep,
) -> dict:
    author = await authors.get_by_handle(handle)
    if author is None or author.status == "suspended":
        raise RecordNotFoundError(detail="Author not found")
    return AuthorPublic.model_validate(author).model_dump(mode="json", by_alias=True)
