"""Post repository for content store operations."""

from collections.abc import Iterable, Sequence
from logging import getLogger
from typing import Any, Literal

from sqlalchemy import select

from halqa.configs import file_logger
from halqa.errors.database import DuplicateEntryError
from halqa.models.post import PostDB
from halqa.repositories.base import BaseRepository
from halqa.schemas.post import PostCreate, PostUpdate

logger = file_logger(getLogger(__name__))


class PostRepository(BaseRepository[PostDB, PostCreate, PostUpdate]):
    """
    Repository for posts.

    Site posts have no author (``author_handle`` is NULL). Author posts are
    scoped by handle for listing, counting and sync deletes.
    """

    model = PostDB

    async def get_by_slug(self, slug: str) -> PostDB | None:
        return await self.get_by_field("slug", slug)

    async def list_all(self) -> Sequence[PostDB]:
        """Every post, most recently updated first (admin listing)."""
        statement = select(PostDB).order_by(
            PostDB.updated_at.desc().nulls_last(),
            PostDB.created_at.desc(),
        )
        return await self._all(statement)

    async def list_published(self, author_handle: str | None = None) -> Sequence[PostDB]:
        """
        Published posts, newest first.

        Args:
            author_handle: Restrict to one author's posts when given.

        Returns:
            Sequence[PostDB]: Matching posts
        """
        statement = select(PostDB).where(PostDB.published.is_(True))
        if author_handle is not None:
            statement = statement.where(PostDB.author_handle == author_handle.lower())
        statement = statement.order_by(PostDB.date.desc().nulls_last(), PostDB.created_at.desc())
        return await self._all(statement)

    async def count_by_author(self, author_handle: str) -> int:
        return await self.count(PostDB.author_handle == author_handle.lower())

    async def slugs(self, author_handle: str | None) -> set[str]:
        """Slugs owned by ``author_handle``; ``None`` selects site posts."""
        owner = (
            PostDB.author_handle.is_(None)
            if author_handle is None
            else PostDB.author_handle == author_handle
        )
        result = await self.session.execute(select(PostDB.slug).where(owner))
        return set(result.scalars().all())

    async def upsert(self, values: dict[str, Any]) -> Literal["inserted", "updated"]:
        """
        Insert or update the post identified by ``values["slug"]``.

        Returns:
            "inserted" or "updated"

        Raises:
            DuplicateEntryError: If the slug belongs to another owner
        """
        slug = values["slug"]
        existing = await self.get_by_slug(slug)
        if existing is not None and existing.author_handle != values.get("author_handle"):
            raise DuplicateEntryError(detail=f"Slug '{slug}' belongs to another author")
        if existing is None:
            await self._add_and_refresh(PostDB.model_validate(values))
            return "inserted"
        await self.apply(existing, **values)
        return "updated"

    async def delete_slugs(self, slugs: Iterable[str], author_handle: str | None) -> int:
        """Delete the given slugs, restricted to the same owner."""
        slugs = list(slugs)
        if not slugs:
            return 0
        owner = (
            PostDB.author_handle.is_(None)
            if author_handle is None
            else PostDB.author_handle == author_handle
        )
        return await self.delete_where(PostDB.slug.in_(slugs), owner)

    async def delete_by_author(self, author_handle: str) -> int:
        deleted = await self.delete_where(PostDB.author_handle == author_handle)
        logger.info(f"Deleted {deleted} posts of author {author_handle}")
        return deleted
