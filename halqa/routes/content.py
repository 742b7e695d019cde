# halqa/routes/content.py

"""
Content Routes.

Public, cacheable reads for the frontend: authors, posts, site preferences,
editor settings and comments.

Cached reads are stored under the tag the matching mutation revalidates
(``authors``, ``posts``, ``preferences``), so entries stay until the next
write rather than expiring on a timer.
"""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_201_CREATED

from halqa.configs import file_logger
from halqa.configs.settings import DEFAULT_FONT_STYLE, SETTINGS_BLOB_PATH, settings
from halqa.decorators import cached, timed
from halqa.dependencies import (
    AuthorRepoDep,
    BlobStoreDep,
    CommentRepoDep,
    PostRepoDep,
    PreferenceRepoDep,
)
from halqa.errors import RecordNotFoundError, StorageError
from halqa.managers import limiter
from halqa.schemas import AuthorPublic, CommentCreate, CommentResponse, dump_post
from halqa.services.csv_sync import settings_csv

router = APIRouter(prefix="/api", tags=["📰 Content"])

logger = file_logger(getLogger(__name__))


def _posts_key(author: str | None = None, **_: object) -> str:
    return f"published:{author.lower() if author else 'all'}"


def _posts_page(author: str | None = None, **_: object) -> str:
    return f"/{author.lower()}/blog" if author else "/blog"


@router.get(
    "/authors",
    response_class=ORJSONResponse,
    summary="List public authors",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "authors": [
                            {
                                "handle": "nadia",
                                "name": "Nadia Rahman",
                                "bio": None,
                                "website": None,
                                "avatarUrl": None,
                            },
                        ],
                    },
                },
            },
        },
    },
    operation_id="list_authors",
)
@timed("/api/authors")
@cached(
    "authors",
    key_builder=lambda **_: "public",
    ttl=settings.CACHE_TTL_AUTHORS,
    page="/",
)
async def list_authors(request: Request, authors: AuthorRepoDep) -> dict:
    """Active, listed and visible authors ordered by name."""
    rows = await authors.list_public()
    return {
        "authors": [
            AuthorPublic.model_validate(row).model_dump(mode="json", by_alias=True)
            for row in rows
        ],
    }


@router.get(
    "/posts",
    response_class=ORJSONResponse,
    summary="List published posts",
    operation_id="list_posts",
)
@timed("/api/posts")
@cached("posts", key_builder=_posts_key, ttl=settings.CACHE_TTL_POSTS, page=_posts_page)
async def list_posts(
    request: Request,
    posts: PostRepoDep,
    author: Annotated[str | None, Query(max_length=50)] = None,
) -> dict:
    """
    Published posts, newest first.

    Parameters
    ----------
    request : Request
        Current request context.
    posts : PostRepository
        Posts repository.
    author : str, optional
        Restrict to one author's posts.

    Returns
    -------
    dict
        ``{"posts": [...]}`` with camelCase post objects.
    """
    rows = await posts.list_published(author.lower() if author else None)
    return {"posts": [dump_post(row) for row in rows]}


@router.get(
    "/posts/{slug}",
    response_class=ORJSONResponse,
    summary="Get a published post",
    responses={
        404: {
            "description": "Unknown or unpublished slug",
            "content": {"application/json": {"example": {"error": "Post 'hello' not found"}}},
        },
    },
    operation_id="get_post",
)
@cached("posts", key_builder=lambda slug, **_: f"slug:{slug}", ttl=settings.CACHE_TTL_POSTS)
async def get_post(request: Request, slug: str, posts: PostRepoDep) -> dict:
    post = await posts.get_by_slug(slug)
    if post is None or not post.published:
        mssg = f"Post '{slug}' not found"
        raise RecordNotFoundError(detail=mssg)
    return {"post": dump_post(post)}


@router.get(
    "/preferences",
    response_class=ORJSONResponse,
    summary="Site-wide display preferences",
    responses={
        200: {"content": {"application/json": {"example": {"preferences": {"theme": "dark"}}}}},
    },
    operation_id="get_preferences",
)
@cached("preferences", key_builder=lambda **_: "site", page="/api/preferences")
async def get_preferences(request: Request, preferences: PreferenceRepoDep) -> dict:
    return {"preferences": await preferences.get_all()}


@router.get(
    "/settings",
    summary="Editor settings CSV",
    responses={
        200: {
            "content": {"text/csv": {"example": "Settings,type,value\nEditor Layout,font style,serif"}},
        },
    },
    operation_id="get_settings",
)
async def get_settings_csv(request: Request, blob_store: BlobStoreDep) -> Response:
    """
    Return ``settings.csv`` as stored, never cached.

    Falls back to the default settings when the object is missing or the
    store cannot be read.
    """
    try:
        data = await blob_store.get(SETTINGS_BLOB_PATH)
    except StorageError:
        logger.exception("Reading settings CSV failed, serving defaults")
        data = None

    body = data.decode("utf-8") if data else settings_csv(DEFAULT_FONT_STYLE)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Cache-Control": "no-store, max-age=0"},
    )


@router.get(
    "/comments",
    response_class=ORJSONResponse,
    summary="Comments for a post",
    operation_id="list_comments",
)
async def list_comments(
    request: Request,
    comments: CommentRepoDep,
    post_slug: Annotated[str, Query(min_length=1, alias="postSlug")],
) -> dict:
    rows = await comments.list_for_post(post_slug)
    return {
        "comments": [
            CommentResponse.model_validate(row).model_dump(mode="json", by_alias=True)
            for row in rows
        ],
    }


@router.post(
    "/comments",
    response_class=ORJSONResponse,
    status_code=HTTP_201_CREATED,
    summary="Add a comment",
    responses={
        404: {
            "description": "Unknown post",
            "content": {"application/json": {"example": {"error": "Post 'hello' not found"}}},
        },
    },
    operation_id="create_comment",
)
@timed("/api/comments")
@limiter.limit("5/minute")
async def create_comment(
    request: Request,
    body: CommentCreate,
    comments: CommentRepoDep,
    posts: PostRepoDep,
) -> dict:
    """Store a comment on a published post that allows comments."""
    post = await posts.get_by_slug(body.post_slug)
    if post is None or not post.published or not post.comment:
        mssg = f"Post '{body.post_slug}' not found"
        raise RecordNotFoundError(detail=mssg)
    comment = await comments.create(body)
    return {
        "success": True,
        "comment": CommentResponse.model_validate(comment).model_dump(mode="json", by_alias=True),
    }
