"""Per-author post quota."""

from dataclasses import dataclass
from logging import getLogger

from sqlalchemy.exc import SQLAlchemyError

from halqa.configs import file_logger
from halqa.configs.settings import MAX_POSTS_PER_AUTHOR
from halqa.errors.database import DatabaseError, RecordNotFoundError
from halqa.repositories.author import AuthorRepository
from halqa.repositories.post import PostRepository
from halqa.schemas.quota import QuotaResponse

logger = file_logger(getLogger(__name__))


@dataclass(frozen=True)
class QuotaResult:
    """
    Outcome of a quota check.

    ``query_failed`` marks a result whose count could not be read; such a
    result is never within quota.
    """

    handle: str
    within_quota: bool
    unlimited: bool = False
    posts_remaining: int | None = None
    post_count: int | None = None
    max_posts: int | None = None
    query_failed: bool = False
    error: str | None = None

    def to_response(self) -> QuotaResponse:
        return QuotaResponse(
            handle=self.handle,
            within_quota=self.within_quota,
            unlimited=self.unlimited,
            posts_remaining=self.posts_remaining,
            post_count=self.post_count,
            max_posts=self.max_posts,
            query_failed=self.query_failed,
            error=self.error,
        )


class QuotaService:
    """Check how many more posts an author may create."""

    def __init__(
        self,
        authors: AuthorRepository,
        posts: PostRepository,
        max_posts: int = MAX_POSTS_PER_AUTHOR,
    ) -> None:
        self.authors = authors
        self.posts = posts
        self.max_posts = max_posts

    async def check(self, handle: str) -> QuotaResult:
        """
        Check the quota of ``handle``.

        Admins are unlimited. Regular authors may own ``max_posts`` posts.

        Raises:
            RecordNotFoundError: If the author does not exist
        """
        author = await self.authors.get_by_handle(handle)
        if author is None:
            raise RecordNotFoundError(detail=f"Author '{handle}' not found")

        if author.role == "admin":
            return QuotaResult(handle=author.handle, within_quota=True, unlimited=True)

        try:
            count = await self.posts.count_by_author(author.handle)
        except (DatabaseError, SQLAlchemyError) as e:
            logger.exception(f"Post count query failed for {author.handle}")
            return QuotaResult(
                handle=author.handle,
                within_quota=False,
                max_posts=self.max_posts,
                query_failed=True,
                error=str(e),
            )

        remaining = max(0, self.max_posts - count)
        return QuotaResult(
            handle=author.handle,
            within_quota=remaining > 0,
            posts_remaining=remaining,
            post_count=count,
            max_posts=self.max_posts,
        )
