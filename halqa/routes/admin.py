# halqa/routes/admin.py

"""
Admin Routes.

Token-gated administration of authors, join requests, posts and site
settings.

Summary
-------
Endpoints include:
  - Login / logout (admin session cookie)
  - Author listing, role, status, listing and visibility transitions
  - Cascading author delete and API token regeneration
  - Join request approval, rejection and removal
  - Post CRUD
  - Join form toggle

Authentication
--------------
Every endpoint except login and logout requires ``Authorization: Bearer
<ADMIN_API_TOKEN>`` or the ``admin_token`` cookie. Unauthorized requests get
``401`` before any write happens. Each mutation revalidates the affected
cache tags, then the affected paths.
"""

from logging import getLogger
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_201_CREATED

from halqa.configs import file_logger
from halqa.configs.settings import ADMIN_COOKIE_MAX_AGE, ADMIN_COOKIE_NAME
from halqa.decorators import revalidates, timed
from halqa.dependencies import (
    AuthorRepoDep,
    AuthorRequestRepoDep,
    AuthorServiceDep,
    PostRepoDep,
    RevalidatorDep,
    SettingRepoDep,
    SettingsDep,
    verify_admin,
)
from halqa.managers import limiter
from halqa.models import PostDB
from halqa.repositories import JOIN_DISABLED_KEY
from halqa.schemas import (
    AuthorRequestResponse,
    AuthorResponse,
    AuthorTokenRequest,
    JoinToggle,
    ListingStatusUpdate,
    PostCreate,
    PostUpdate,
    RoleUpdate,
    VisibilityUpdate,
    dump_post,
)
from halqa.services.authors import Transition
from halqa.services.credentials import verify_admin_password
from halqa.services.revalidation import author_tag

router = APIRouter(prefix="/api/admin", tags=["🛡️ Admin"])
gated = APIRouter(prefix="/api/admin", tags=["🛡️ Admin"], dependencies=[Depends(verify_admin)])

logger = file_logger(getLogger(__name__))

UNAUTHORIZED_RESPONSE = {
    401: {
        "description": "Missing or invalid admin token",
        "content": {"application/json": {"example": {"error": "Unauthorized"}}},
    },
}
NOT_FOUND_RESPONSE = {
    404: {
        "description": "Author not found",
        "content": {"application/json": {"example": {"error": "Author with handle x not found"}}},
    },
}


def dump_author(author: object) -> dict:
    return AuthorResponse.model_validate(author).model_dump(mode="json", by_alias=True)


def _author_tags(handle: str, **_: object) -> list[str]:
    return ["authors", author_tag(handle), "sitemap"]


def _author_paths(handle: str, **_: object) -> list[str]:
    return ["/", f"/{handle.lower()}", "/admin/authors"]


def _transition_response(transition: Transition, field: str, done: str) -> dict:
    author = transition.author
    message = (
        f"Author {author.handle} {done}"
        if transition.changed
        else f"Author {author.handle} is already {getattr(author, field)}"
    )
    return {"success": True, "message": message, "author": dump_author(author)}


def _post_tags(post: PostDB) -> list[str]:
    tags = ["posts", "sitemap"]
    if post.author_handle:
        tags.append(author_tag(post.author_handle))
    return tags


def _post_paths(post: PostDB) -> list[str]:
    if post.author_handle:
        return [f"/{post.author_handle}", f"/{post.author_handle}/blog/{post.slug}"]
    return ["/", "/blog", f"/blog/{post.slug}"]


# --- Session ---


@router.post(
    "/login",
    response_class=ORJSONResponse,
    summary="Admin login",
    responses={
        200: {"content": {"application/json": {"example": {"success": True}}}},
        **UNAUTHORIZED_RESPONSE,
    },
    operation_id="admin_login",
)
@timed("/api/admin/login")
@limiter.limit("5/minute")
async def login(
    request: Request,
    password: Annotated[str, Body(embed=True, min_length=1)],
    settings: SettingsDep,
) -> ORJSONResponse:
    """
    Exchange the admin password for the admin session cookie.

    Parameters
    ----------
    request : Request
        Current request context.
    password : str
        Admin password (``ADMIN_PASSWORD``).
    settings : Settings
        Application settings.

    Returns
    -------
    ORJSONResponse
        ``{"success": true}`` with an httpOnly ``admin_token`` cookie.
    """
    token = verify_admin_password(password, settings)
    response = ORJSONResponse(content={"success": True})
    response.set_cookie(
        ADMIN_COOKIE_NAME,
        token,
        max_age=ADMIN_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )
    logger.info("Admin logged in")
    return response


@router.post(
    "/logout",
    response_class=ORJSONResponse,
    summary="Admin logout",
    operation_id="admin_logout",
)
async def logout(request: Request) -> ORJSONResponse:
    response = ORJSONResponse(content={"success": True})
    response.delete_cookie(ADMIN_COOKIE_NAME, path="/")
    return response


# --- Authors ---


@gated.get(
    "/authors",
    response_class=ORJSONResponse,
    summary="List all authors",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_list_authors",
)
@timed("/api/admin/authors")
async def list_authors(request: Request, authors: AuthorRepoDep) -> dict:
    """
    List every author ordered by name.

    Returns
    -------
    dict
        ``{"success": true, "authors": [...]}``
    """
    return {"success": True, "authors": [dump_author(a) for a in await authors.list_all()]}


@gated.get(
    "/authors/suspended",
    response_class=ORJSONResponse,
    summary="List suspended authors",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_list_suspended_authors",
)
async def list_suspended_authors(request: Request, authors: AuthorRepoDep) -> dict:
    suspended = await authors.list_suspended()
    return {"success": True, "authors": [dump_author(a) for a in suspended]}


@gated.delete(
    "/authors/{handle}",
    response_class=ORJSONResponse,
    summary="Delete an author with their posts and preferences",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Author nadia has been permanently deleted",
                        "deleted": {"posts": 4, "preferences": 2},
                    },
                },
            },
        },
        **UNAUTHORIZED_RESPONSE,
        **NOT_FOUND_RESPONSE,
    },
    operation_id="admin_delete_author",
)
@timed("/api/admin/authors/delete")
@revalidates(
    tags=lambda handle, **_: [*_author_tags(handle), "posts", "preferences"],
    paths=_author_paths,
)
async def delete_author(
    request: Request,
    handle: str,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Permanently delete an author.

    Posts and preferences of the author are deleted with it; the avatar is
    removed from blob storage on a best-effort basis.

    Parameters
    ----------
    request : Request
        Current request context.
    handle : str
        Author handle.
    service : AuthorService
        Author lifecycle service.
    revalidator : Revalidator
        Commits the deletion, then clears the author's cached pages.

    Returns
    -------
    dict
        Deletion summary.
    """
    report = await service.delete_author(handle)
    return {
        "success": True,
        "message": f"Author {report.handle} has been permanently deleted",
        "deleted": {"posts": report.posts, "preferences": report.preferences},
        "avatarRemoved": report.avatar_removed,
    }


@gated.patch(
    "/authors/{handle}/role",
    response_class=ORJSONResponse,
    summary="Set an author's role",
    responses={**UNAUTHORIZED_RESPONSE, **NOT_FOUND_RESPONSE},
    operation_id="admin_set_author_role",
)
@revalidates(tags=_author_tags, paths=_author_paths)
async def set_role(
    request: Request,
    handle: str,
    body: RoleUpdate,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    transition = await service.set_role(handle, body.role)
    return _transition_response(transition, "role", f"is now {body.role}")


@gated.post(
    "/authors/{handle}/promote",
    response_class=ORJSONResponse,
    summary="Promote an author to admin",
    responses={**UNAUTHORIZED_RESPONSE, **NOT_FOUND_RESPONSE},
    operation_id="admin_promote_author",
)
@revalidates(tags=_author_tags, paths=_author_paths)
async def promote(
    request: Request,
    handle: str,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    transition = await service.set_role(handle, "admin")
    return _transition_response(transition, "role", "promoted to admin")


@gated.post(
    "/authors/{handle}/demote",
    response_class=ORJSONResponse,
    summary="Demote an author to regular",
    responses={**UNAUTHORIZED_RESPONSE, **NOT_FOUND_RESPONSE},
    operation_id="admin_demote_author",
)
@revalidates(tags=_author_tags, paths=_author_paths)
async def demote(
    request: Request,
    handle: str,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    transition = await service.set_role(handle, "regular")
    return _transition_response(transition, "role", "demoted to regular")


@gated.post(
    "/authors/{handle}/suspend",
    response_class=ORJSONResponse,
    summary="Suspend an author",
    responses={**UNAUTHORIZED_RESPONSE, **NOT_FOUND_RESPONSE},
    operation_id="admin_suspend_author",
)
@revalidates(tags=_author_tags, paths=_author_paths)
async def suspend(
    request: Request,
    handle: str,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Suspend an author.

    Suspended authors are hidden from public listings and refused by every
    author-authenticated endpoint. Suspending twice is not an error.
    """
    transition = await service.set_status(handle, "suspended")
    return _transition_response(transition, "status", "has been suspended")


@gated.post(
    "/authors/{handle}/reinstate",
    response_class=ORJSONResponse,
    summary="Reinstate a suspended author",
    responses={**UNAUTHORIZED_RESPONSE, **NOT_FOUND_RESPONSE},
    operation_id="admin_reinstate_author",
)
@revalidates(tags=_author_tags, paths=_author_paths)
async def reinstate(
    request: Request,
    handle: str,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    transition = await service.set_status(handle, "active")
    return _transition_response(transition, "status", "has been reinstated")


@gated.patch(
    "/authors/{handle}/listing-status",
    response_class=ORJSONResponse,
    summary="List or unlist an author",
    responses={**UNAUTHORIZED_RESPONSE, **NOT_FOUND_RESPONSE},
    operation_id="admin_set_listing_status",
)
@revalidates(tags=_author_tags, paths=_author_paths)
async def set_listing_status(
    request: Request,
    handle: str,
    body: ListingStatusUpdate,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    transition = await service.set_listing_status(handle, body.listing_status)
    return _transition_response(transition, "listing_status", f"is now {body.listing_status}")


@gated.patch(
    "/authors/{handle}/visibility",
    response_class=ORJSONResponse,
    summary="Show or hide an author",
    responses={**UNAUTHORIZED_RESPONSE, **NOT_FOUND_RESPONSE},
    operation_id="admin_set_visibility",
)
@revalidates(tags=_author_tags, paths=_author_paths)
async def set_visibility(
    request: Request,
    handle: str,
    body: VisibilityUpdate,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    transition = await service.set_visibility(handle, body.visibility)
    return _transition_response(transition, "visibility", f"is now {body.visibility}")


@gated.post(
    "/author-token",
    response_class=ORJSONResponse,
    summary="Regenerate an author's API token",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"success": True, "handle": "nadia", "apiToken": "3f9c..."},
                },
            },
        },
        **UNAUTHORIZED_RESPONSE,
        **NOT_FOUND_RESPONSE,
    },
    operation_id="admin_regenerate_author_token",
)
@timed("/api/admin/author-token")
async def regenerate_author_token(
    request: Request,
    body: AuthorTokenRequest,
    service: AuthorServiceDep,
) -> dict:
    token = await service.regenerate_token(body.handle)
    return {"success": True, "handle": body.handle.lower(), "apiToken": token}


# --- Join requests ---


@gated.get(
    "/author-requests",
    response_class=ORJSONResponse,
    summary="List author join requests",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_list_author_requests",
)
async def list_author_requests(request: Request, requests: AuthorRequestRepoDep) -> dict:
    rows = await requests.list_all()
    return {
        "success": True,
        "requests": [
            AuthorRequestResponse.model_validate(r).model_dump(mode="json", by_alias=True)
            for r in rows
        ],
    }


@gated.post(
    "/author-requests/{request_id}/approve",
    response_class=ORJSONResponse,
    summary="Approve a join request",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_approve_author_request",
)
@timed("/api/admin/author-requests/approve")
@revalidates(tags=["authors", "sitemap"], paths=["/", "/admin/authors"])
async def approve_author_request(
    request: Request,
    request_id: UUID,
    service: AuthorServiceDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Create the author for a join request and remove the request.

    Returns
    -------
    dict
        The new author (or the existing one when the handle was already
        approved).
    """
    transition = await service.approve(request_id)
    message = (
        "Author request approved successfully"
        if transition.changed
        else "Author request approved successfully (author already exists)"
    )
    return {
        "success": True,
        "message": message,
        "author": {"handle": transition.author.handle, "name": transition.author.name},
    }


@gated.post(
    "/author-requests/{request_id}/reject",
    response_class=ORJSONResponse,
    summary="Reject a join request",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_reject_author_request",
)
async def reject_author_request(
    request: Request,
    request_id: UUID,
    service: AuthorServiceDep,
) -> dict:
    rejected = await service.reject(request_id)
    return {"success": True, "message": f"Author request for {rejected.handle} rejected"}


@gated.delete(
    "/author-requests/{request_id}",
    response_class=ORJSONResponse,
    summary="Delete a join request",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_delete_author_request",
)
async def delete_author_request(
    request: Request,
    request_id: UUID,
    service: AuthorServiceDep,
) -> dict:
    await service.delete_request(request_id)
    return {"success": True, "message": "Author request deleted"}


# --- Posts ---


@gated.get(
    "/posts",
    response_class=ORJSONResponse,
    summary="List all posts",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_list_posts",
)
async def list_posts(request: Request, posts: PostRepoDep) -> dict:
    return {"success": True, "posts": [dump_post(p) for p in await posts.list_all()]}


@gated.post(
    "/posts",
    response_class=ORJSONResponse,
    status_code=HTTP_201_CREATED,
    summary="Create a post",
    responses={
        **UNAUTHORIZED_RESPONSE,
        409: {
            "description": "Slug already exists",
            "content": {"application/json": {"example": {"error": "duplicate key value"}}},
        },
    },
    operation_id="admin_create_post",
)
@timed("/api/admin/posts/create")
async def create_post(
    request: Request,
    body: PostCreate,
    posts: PostRepoDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Create a post.

    Categories may be sent as a list or a comma separated string.
    """
    post = await posts.create(body)
    await revalidator.revalidate(tags=_post_tags(post), paths=_post_paths(post))
    return {"success": True, "post": dump_post(post)}


@gated.patch(
    "/posts/{post_id}",
    response_class=ORJSONResponse,
    summary="Update a post",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_update_post",
)
@timed("/api/admin/posts/update")
async def update_post(
    request: Request,
    post_id: UUID,
    body: PostUpdate,
    posts: PostRepoDep,
    revalidator: RevalidatorDep,
) -> dict:
    before = await posts.get_or_raise(post_id)
    old_tags, old_paths = _post_tags(before), _post_paths(before)
    post = await posts.apply(before, **body.model_dump(exclude_unset=True))
    await revalidator.revalidate(
        tags=[*old_tags, *_post_tags(post)],
        paths=[*old_paths, *_post_paths(post)],
    )
    return {"success": True, "post": dump_post(post)}


@gated.delete(
    "/posts/{post_id}",
    response_class=ORJSONResponse,
    summary="Delete a post",
    responses=UNAUTHORIZED_RESPONSE,
    operation_id="admin_delete_post",
)
async def delete_post(
    request: Request,
    post_id: UUID,
    posts: PostRepoDep,
    revalidator: RevalidatorDep,
) -> dict:
    post = await posts.get_or_raise(post_id)
    tags, paths = _post_tags(post), _post_paths(post)
    await posts.delete(post_id)
    await revalidator.revalidate(tags=tags, paths=paths)
    return {"success": True, "message": f"Post {post.slug} deleted"}


# --- Settings ---


@gated.post(
    "/settings/toggle-join",
    response_class=ORJSONResponse,
    summary="Enable or disable the join form",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "enabled": True}}}},
        **UNAUTHORIZED_RESPONSE,
    },
    operation_id="admin_toggle_join",
)
@revalidates(tags=["settings"], paths=["/join"])
async def toggle_join(
    request: Request,
    body: JoinToggle,
    settings_repo: SettingRepoDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Open or close the public join form.

    ``enabled=true`` stores ``join_disabled=false`` and vice versa.
    """
    await settings_repo.set_value(JOIN_DISABLED_KEY, not body.enabled)
    logger.info(f"Join form {'enabled' if body.enabled else 'disabled'}")
    return {"success": True, "enabled": body.enabled}
