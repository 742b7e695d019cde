"""
Author lifecycle.

Join requests, approval, the admin-only role/status/listing/visibility
transitions and the cascading delete (author, posts, preferences).
"""

import re
from dataclasses import dataclass
from logging import getLogger
from uuid import UUID

from halqa.configs import file_logger
from halqa.errors.database import DuplicateEntryError, RecordNotFoundError
from halqa.models.author import AuthorDB, AuthorRequestDB
from halqa.repositories.author import (
    AuthorRepository,
    AuthorRequestRepository,
    generate_api_token,
)
from halqa.repositories.post import PostRepository
from halqa.repositories.setting import PreferenceRepository
from halqa.schemas.author import JoinRequestCreate
from halqa.services.storage.base import BlobStore

logger = file_logger(getLogger(__name__))

_AVATAR_PATH = re.compile(r"(avatars/.+?)(?:\?.*)?$")


def avatar_blob_path(url: str | None) -> str | None:
    """Blob path of an avatar URL (``avatars/...``), or None."""
    if not url:
        return None
    match = _AVATAR_PATH.search(url)
    return match.group(1) if match else None


@dataclass(frozen=True)
class Transition:
    author: AuthorDB
    changed: bool


@dataclass(frozen=True)
class DeletionReport:
    handle: str
    posts: int
    preferences: int
    avatar_removed: bool


class AuthorService:
    def __init__(
        self,
        authors: AuthorRepository,
        requests: AuthorRequestRepository,
        posts: PostRepository,
        preferences: PreferenceRepository,
        blob_store: BlobStore | None = None,
    ) -> None:
        self.authors = authors
        self.requests = requests
        self.posts = posts
        self.preferences = preferences
        self.blob_store = blob_store

    async def get_or_raise(self, handle: str) -> AuthorDB:
        author = await self.authors.get_by_handle(handle)
        if author is None:
            raise RecordNotFoundError(detail=f"Author with handle {handle} not found")
        return author

    async def request_join(self, form: JoinRequestCreate) -> AuthorRequestDB:
        """
        Record a join request with a pre-generated API token.

        Raises:
            DuplicateEntryError: If the handle belongs to an author or request
        """
        if await self.authors.exists(form.handle) or await self.requests.handle_taken(
            form.handle,
        ):
            raise DuplicateEntryError(detail=f"Handle '{form.handle}' is already taken")
        request = await self.requests.create(form, api_token=generate_api_token())
        logger.info(f"Join request received for {request.handle}")
        return request

    async def approve(self, request_id: UUID) -> Transition:
        """
        Create the author for a join request and remove the request.

        Approving a request whose handle is already an author only removes
        the request (``changed`` is False).
        """
        request = await self.requests.get_or_raise(request_id)
        existing = await self.authors.get_by_handle(request.handle)
        if existing is None:
            author = await self.authors.create_from_request(request)
        else:
            author = existing
        await self.requests.delete(request_id)
        logger.info(f"Approved author request {request_id} for {request.handle}")
        return Transition(author, changed=existing is None)

    async def reject(self, request_id: UUID) -> AuthorRequestDB:
        request = await self.requests.get_or_raise(request_id)
        return await self.requests.apply(request, status="rejected")

    async def delete_request(self, request_id: UUID) -> None:
        if not await self.requests.delete(request_id):
            raise RecordNotFoundError(detail="Author request not found")

    async def _transition(self, handle: str, field: str, value: str) -> Transition:
        author = await self.get_or_raise(handle)
        if getattr(author, field) == value:
            return Transition(author, changed=False)
        author = await self.authors.apply(author, **{field: value})
        logger.info(f"Author {author.handle}: {field} -> {value}")
        return Transition(author, changed=True)

    async def set_role(self, handle: str, role: str) -> Transition:
        return await self._transition(handle, "role", role)

    async def set_status(self, handle: str, status: str) -> Transition:
        return await self._transition(handle, "status", status)

    async def set_listing_status(self, handle: str, listing_status: str) -> Transition:
        return await self._transition(handle, "listing_status", listing_status)

    async def set_visibility(self, handle: str, visibility: str) -> Transition:
        return await self._transition(handle, "visibility", visibility)

    async def regenerate_token(self, handle: str) -> str:
        return await self.authors.regenerate_token(await self.get_or_raise(handle))

    async def delete_author(self, handle: str) -> DeletionReport:
        """
        Delete an author with their posts and preferences.

        The rows are committed before the avatar is removed from the blob
        store, so a failed delete leaves the avatar in place. Avatar removal
        is best-effort.

        Raises:
            RecordNotFoundError: If the author does not exist
            DatabaseError: If a delete or the commit fails
        """
        author = await self.get_or_raise(handle)

        preferences = await self.preferences.delete_by_author(author.handle)
        posts = await self.posts.delete_by_author(author.handle)
        await self.authors.delete(author.handle)
        await self.authors.commit()

        avatar_removed = await self._remove_avatar(author)

        logger.info(
            f"Deleted author {author.handle} with {posts} posts and {preferences} preferences",
        )
        return DeletionReport(author.handle, posts, preferences, avatar_removed)

    async def _remove_avatar(self, author: AuthorDB) -> bool:
        path = avatar_blob_path(author.avatar_url)
        if path is None or self.blob_store is None:
            return False
        try:
            return await self.blob_store.delete(path)
        except Exception:
            logger.exception(f"Failed to delete avatar of {author.handle}")
            return False
