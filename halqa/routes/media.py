# halqa/routes/media.py

"""
Media Routes.

Image uploads and deletions.

Summary
-------
Endpoints include:
  - Avatar upload (the author's own token, or the admin token for any author)
  - Post image upload, listing and deletion for the admin editor
  - Blob deletion by path for the content tooling (``Bearer <REVALIDATION_SECRET>``)
"""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_200_OK, HTTP_207_MULTI_STATUS

from halqa.configs import Settings, file_logger
from halqa.configs.settings import MAX_HANDLE_LENGTH
from halqa.decorators import timed
from halqa.dependencies import (
    AuthorRepoDep,
    MediaServiceDep,
    RevalidatorDep,
    SettingsDep,
    verify_admin,
    verify_revalidation_bearer,
)
from halqa.errors import RecordNotFoundError, StorageError, ValidationError
from halqa.managers import limiter
from halqa.middleware import preflight_response
from halqa.models import AuthorDB
from halqa.repositories import AuthorRepository
from halqa.schemas import BlobBatchDeleteRequest, BlobDeleteRequest, ImageDeleteRequest
from halqa.services.authors import avatar_blob_path
from halqa.services.credentials import authenticate_author, bearer_token, is_admin_request
from halqa.services.revalidation import author_tag

router = APIRouter(prefix="/api", tags=["🖼️ Media"])

logger = file_logger(getLogger(__name__))

ADMIN_RESPONSES = {
    401: {
        "description": "Missing or invalid admin token",
        "content": {"application/json": {"example": {"error": "Unauthorized"}}},
    },
}
UPLOAD_RESPONSES = {
    400: {
        "description": "Not a decodable image",
        "content": {"application/json": {"example": {"error": "File is not a valid image"}}},
    },
    413: {
        "description": "File over the size limit",
        "content": {"application/json": {"example": {"error": "File too large (max 5MB)"}}},
    },
    415: {
        "description": "Not an accepted image type",
        "content": {"application/json": {"example": {"error": "Only images are allowed"}}},
    },
}


async def _avatar_owner(
    request: Request,
    authors: AuthorRepository,
    handle: str,
    author_token: str | None,
    settings: Settings,
) -> AuthorDB:
    if is_admin_request(request, settings):
        if (author := await authors.get_by_handle(handle)) is None:
            raise RecordNotFoundError(detail=f"Author with handle {handle} not found")
        return author
    return await authenticate_author(authors, handle, bearer_token(request) or author_token)


@router.post(
    "/upload/avatar",
    response_class=ORJSONResponse,
    summary="Upload an author avatar",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "avatarUrl": "/uploads/avatars/nadia.jpg?t=1735689600000",
                        "originalSize": 812345,
                        "optimizedSize": 40211,
                        "reduction": 95,
                    },
                },
            },
        },
        **UPLOAD_RESPONSES,
    },
    operation_id="upload_avatar",
)
@timed("/api/upload/avatar")
@limiter.limit("10/minute")
async def upload_avatar(
    request: Request,
    avatar: Annotated[UploadFile, File()],
    handle: Annotated[str, Form(min_length=1, max_length=MAX_HANDLE_LENGTH)],
    authors: AuthorRepoDep,
    media: MediaServiceDep,
    revalidator: RevalidatorDep,
    settings: SettingsDep,
    author_token: Annotated[str | None, Form(alias="authorToken")] = None,
) -> dict:
    """
    Replace an author's avatar.

    The image is cropped to a square, resized and stored as JPEG. The new
    URL carries a ``t`` parameter so browsers drop the old picture. A
    previous avatar at a different path is removed once the new URL is
    committed.

    Parameters
    ----------
    request : Request
        Current request context.
    avatar : UploadFile
        Image file (multipart field ``avatar``).
    handle : str
        Author whose avatar is replaced.
    authors : AuthorRepository
        Authors repository.
    media : MediaService
        Image processing and storage.
    revalidator : Revalidator
        Commits the new URL, then clears the author's cached pages.
    settings : Settings
        Settings holding the admin token.
    author_token : str, optional
        Author token when no bearer header is sent.

    Returns
    -------
    dict
        The new avatar URL and the size saved by re-encoding.
    """
    author = await _avatar_owner(request, authors, handle, author_token, settings)
    previous = avatar_blob_path(author.avatar_url)

    upload = await media.upload_avatar(author, avatar)
    await authors.apply(author, avatar_url=upload.url)
    await revalidator.revalidate(
        tags=["authors", author_tag(author.handle)],
        paths=["/", f"/{author.handle}"],
    )
    if previous and previous != upload.path:
        await media.discard(previous)

    return {
        "success": True,
        "avatarUrl": upload.url,
        "originalSize": upload.original_size,
        "optimizedSize": upload.optimized_size,
        "reduction": upload.reduction,
    }


@router.post(
    "/upload/post-image",
    response_class=ORJSONResponse,
    summary="Upload a post image",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "url": "/uploads/images/1735689600000-cover.png",
                        "path": "images/1735689600000-cover.png",
                    },
                },
            },
        },
        **ADMIN_RESPONSES,
        **UPLOAD_RESPONSES,
    },
    dependencies=[Depends(verify_admin)],
    operation_id="upload_post_image",
)
@timed("/api/upload/post-image")
async def upload_post_image(
    request: Request,
    file: Annotated[UploadFile, File()],
    media: MediaServiceDep,
) -> dict:
    """Store an image for the post editor under ``images/``."""
    stored = await media.upload_post_image(file)
    return {"url": stored.url, "path": stored.path}


@router.get(
    "/images/list",
    response_class=ORJSONResponse,
    summary="List post images",
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(verify_admin)],
    operation_id="list_images",
)
async def list_images(
    request: Request,
    media: MediaServiceDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict:
    """Post images, newest first."""
    images = await media.list_images(limit, offset)
    return {"images": [{"name": image.path, "url": image.url} for image in images]}


@router.post(
    "/images/delete",
    response_class=ORJSONResponse,
    summary="Delete a post image",
    responses={
        **ADMIN_RESPONSES,
        400: {
            "description": "Path outside images/",
            "content": {"application/json": {"example": {"error": "Invalid path"}}},
        },
    },
    dependencies=[Depends(verify_admin)],
    operation_id="delete_post_image",
)
async def delete_post_image(
    request: Request,
    body: ImageDeleteRequest,
    media: MediaServiceDep,
) -> dict:
    removed = await media.delete_image(body.path)
    logger.info(f"Post image {body.path} {'deleted' if removed else 'was already gone'}")
    return {"success": True, "removed": removed}


@router.post(
    "/delete-image",
    response_class=ORJSONResponse,
    summary="Delete a stored object by path",
    responses={
        401: {
            "description": "Wrong bearer secret",
            "content": {"application/json": {"example": {"error": "Invalid token"}}},
        },
    },
    dependencies=[Depends(verify_revalidation_bearer)],
    operation_id="delete_image",
)
async def delete_image(
    request: Request,
    body: BlobDeleteRequest,
    media: MediaServiceDep,
) -> dict:
    if not body.pathname:
        raise ValidationError("No pathname provided")
    outcome = (await media.delete_paths([body.pathname]))[0]
    if not outcome.success:
        raise StorageError(outcome.error or f"Failed to delete {body.pathname}")
    return {"success": True, "message": "Image deleted successfully", "pathname": body.pathname}


@router.options("/delete-image", include_in_schema=False)
async def delete_image_preflight() -> Response:
    return preflight_response()


@router.delete(
    "/delete-images",
    response_class=ORJSONResponse,
    summary="Delete stored objects by path",
    responses={
        207: {"description": "Some deletions failed; see ``results``"},
        401: {
            "description": "Wrong bearer secret",
            "content": {"application/json": {"example": {"error": "Invalid token"}}},
        },
    },
    dependencies=[Depends(verify_revalidation_bearer)],
    operation_id="delete_images",
)
async def delete_images(
    request: Request,
    body: BlobBatchDeleteRequest,
    media: MediaServiceDep,
) -> ORJSONResponse:
    """
    Delete ``pathname`` or every entry of ``pathnames``.

    Answers ``200`` when every deletion succeeded and ``207`` otherwise, with
    one result per path.
    """
    targets = body.targets()
    if targets is None:
        raise ValidationError("Either pathname (string) or pathnames (array) is required")
    if not targets:
        raise ValidationError("No pathnames provided")

    outcomes = await media.delete_paths(targets)
    all_deleted = all(outcome.success for outcome in outcomes)
    return ORJSONResponse(
        status_code=HTTP_200_OK if all_deleted else HTTP_207_MULTI_STATUS,
        content={
            "success": all_deleted,
            "message": (
                "All images deleted successfully" if all_deleted else "Some images failed to delete"
            ),
            "results": [
                {"path": o.path, "success": o.success, "error": o.error} for o in outcomes
            ],
        },
    )


@router.options("/delete-images", include_in_schema=False)
async def delete_images_preflight() -> Response:
    return preflight_response("DELETE, OPTIONS")
