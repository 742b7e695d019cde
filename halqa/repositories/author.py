"""Author and author request repositories."""

from collections.abc import Sequence
from logging import getLogger
from secrets import token_hex

from pydantic import BaseModel
from sqlalchemy import func, select

from halqa.configs import file_logger
from halqa.errors.database import DuplicateEntryError
from halqa.models.author import AuthorDB, AuthorRequestDB
from halqa.repositories.base import BaseRepository
from halqa.schemas.author import JoinRequestCreate

logger = file_logger(getLogger(__name__))


def generate_api_token() -> str:
    """Return a fresh opaque author secret (64 hex characters)."""
    return token_hex(32)


class AuthorRepository(BaseRepository[AuthorDB, BaseModel, BaseModel]):
    """
    Repository for authors.

    Authors are keyed by their lowercase handle.
    """

    model = AuthorDB
    id_field = "handle"

    async def get_by_handle(self, handle: str) -> AuthorDB | None:
        return await self.get_by_id(handle.lower())

    async def list_all(self) -> Sequence[AuthorDB]:
        """All authors ordered by display name."""
        return await self._all(select(AuthorDB).order_by(AuthorDB.name))

    async def email_exists(self, email: str) -> bool:
        statement = select(1).where(func.lower(AuthorDB.email) == email.lower()).limit(1)
        return await self._scalar(statement) is not None

    async def list_suspended(self) -> Sequence[AuthorDB]:
        statement = (
            select(AuthorDB).where(AuthorDB.status == "suspended").order_by(AuthorDB.name)
        )
        return await self._all(statement)

    async def list_public(self) -> Sequence[AuthorDB]:
        """Authors shown on the site: active, listed and visible."""
        statement = (
            select(AuthorDB)
            .where(
                AuthorDB.status == "active",
                AuthorDB.listing_status == "listed",
                AuthorDB.visibility == "visible",
            )
            .order_by(AuthorDB.name)
        )
        return await self._all(statement)

    async def create_from_request(self, request: AuthorRequestDB) -> AuthorDB:
        """
        Create the author row for an approved join request.

        Raises:
            DuplicateEntryError: If the handle is already an author
        """
        if await self.exists(request.handle):
            raise DuplicateEntryError(detail=f"Author '{request.handle}' already exists")
        author = AuthorDB(
            handle=request.handle,
            name=request.name,
            email=request.email,
            bio=request.bio,
            website=request.website,
            api_token=request.api_token,
        )
        return await self._add_and_refresh(author)

    async def regenerate_token(self, author: AuthorDB) -> str:
        token = generate_api_token()
        await self.apply(author, api_token=token)
        logger.info(f"Regenerated API token for author {author.handle}")
        return token


class AuthorRequestRepository(BaseRepository[AuthorRequestDB, JoinRequestCreate, BaseModel]):
    """Repository for pending join requests."""

    model = AuthorRequestDB

    async def list_all(self) -> Sequence[AuthorRequestDB]:
        """All requests, newest first."""
        return await self._all(
            select(AuthorRequestDB).order_by(AuthorRequestDB.created_at.desc()),
        )

    async def handle_taken(self, handle: str) -> bool:
        statement = select(1).where(AuthorRequestDB.handle == handle.lower()).limit(1)
        return await self._scalar(statement) is not None

    async def email_exists(self, email: str) -> bool:
        statement = (
            select(1).where(func.lower(AuthorRequestDB.email) == email.lower()).limit(1)
        )
        return await self._scalar(statement) is not None
