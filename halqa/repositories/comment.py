from collections.abc import Sequence

from pydantic import BaseModel
from sqlalchemy import select

from halqa.models.comment import CommentDB
from halqa.repositories.base import BaseRepository
from halqa.schemas.comment import CommentCreate


class CommentRepository(BaseRepository[CommentDB, CommentCreate, BaseModel]):
    """Append-only comments."""

    model = CommentDB

    async def list_for_post(self, post_slug: str) -> Sequence[CommentDB]:
        statement = (
            select(CommentDB)
            .where(CommentDB.post_slug == post_slug)
            .order_by(CommentDB.created_at.asc())
        )
        return await self._all(statement)
