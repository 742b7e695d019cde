"""
Cache invalidation for tags (data caches) and paths (rendered routes).

Cached reads live in the namespace of their tag. A read that feeds a
rendered page is also linked to that page's path in the page index, so
purging a path drops every entry the page was built from.
"""

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from halqa.configs import CacheConfig, file_logger
from halqa.errors.database import DatabaseError
from halqa.managers.metrics import MetricsManager, metrics_manager

if TYPE_CHECKING:
    from halqa.managers.cache_manager import CacheManager

logger = file_logger(getLogger(__name__))

PAGE_MEMBER_SEPARATOR = "|"


def normalize_path(path: str) -> str:
    """Return ``path`` with one leading slash and no trailing slash (root excepted)."""
    return "/" + path.strip().strip("/")


def author_tag(handle: str) -> str:
    return f"author:{handle.lower()}"


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(item for item in items if item))


@dataclass
class RevalidationResult:
    """Which tags and paths were invalidated and which failed."""

    tags: list[str] = field(default_factory=list)
    paths: list[str] = field(default_factory=list)
    failed_tags: list[str] = field(default_factory=list)
    failed_paths: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.failed_tags or self.failed_paths)

    def to_dict(self) -> dict[str, object]:
        return {
            "tags": self.tags,
            "paths": self.paths,
            "failed": {"tags": self.failed_tags, "paths": self.failed_paths},
        }


class Revalidator:
    """
    Invalidate cached data by tag and cached routes by path.

    A tag is a cache namespace and is cleared as a whole. A path is an entry
    of the page index listing the cached reads its page was rendered from.
    Pending writes of ``session`` are committed before anything is cleared,
    so a read refilling the cache sees the new rows. Every tag is processed
    before the first path and each item is attempted even when an earlier
    one fails.
    """

    def __init__(
        self,
        cache_manager: "CacheManager",
        metrics: MetricsManager | None = None,
        session: AsyncSession | None = None,
    ) -> None:
        config = CacheConfig()
        self.cache_manager = cache_manager
        self.page_namespace = config.page_namespace
        self.page_ttl = config.max_ttl
        self.metrics = metrics or metrics_manager
        self.session = session

    async def commit(self) -> None:
        """
        Commit the request's pending writes.

        Raises:
            DatabaseError: If the commit fails; nothing is invalidated then
        """
        if self.session is None:
            return
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(detail=f"Failed to commit changes: {e}") from e

    async def link_page(self, path: str, tag: str, key: str) -> None:
        """Record that the entry ``key`` under ``tag`` feeds the page at ``path``."""
        path = normalize_path(path)
        member = f"{tag}{PAGE_MEMBER_SEPARATOR}{key}"
        members = await self._page_members(path)
        if member in members:
            return
        await self.cache_manager.set(
            path,
            [*members, member],
            ttl=self.page_ttl,
            namespace=self.page_namespace,
        )

    async def _page_members(self, path: str) -> list[str]:
        members = await self.cache_manager.get(path, namespace=self.page_namespace)
        if not isinstance(members, list):
            return []
        return [str(member) for member in members]

    async def revalidate_tag(self, tag: str) -> int:
        removed = await self.cache_manager.clear(namespace=tag)
        self.cache_manager.statistics.record_invalidation(tag=True)
        return removed

    async def revalidate_path(self, path: str) -> int:
        """Delete the cached reads linked to ``path`` and the link itself."""
        path = normalize_path(path)
        removed = 0
        for member in await self._page_members(path):
            tag, _, key = member.partition(PAGE_MEMBER_SEPARATOR)
            removed += await self.cache_manager.delete(key, namespace=tag)
        removed += await self.cache_manager.delete(path, namespace=self.page_namespace)
        self.cache_manager.statistics.record_invalidation(tag=False)
        return removed

    async def revalidate(
        self,
        tags: list[str] | None = None,
        paths: list[str] | None = None,
    ) -> RevalidationResult:
        """
        Commit pending writes, then invalidate ``tags`` and then ``paths``.

        Args:
            tags: Cache tags to clear.
            paths: Rendered paths to purge.

        Returns:
            RevalidationResult listing successes and failures.

        Raises:
            DatabaseError: If the pending writes cannot be committed
        """
        await self.commit()
        result = RevalidationResult()

        for tag in _unique(tags or []):
            try:
                await self.revalidate_tag(tag)
                result.tags.append(tag)
            except Exception:
                logger.exception(f"Failed to revalidate tag {tag}")
                result.failed_tags.append(tag)

        for path in _unique([normalize_path(p) for p in paths or []]):
            try:
                await self.revalidate_path(path)
                result.paths.append(path)
            except Exception:
                logger.exception(f"Failed to revalidate path {path}")
                result.failed_paths.append(path)

        failures = len(result.failed_tags) + len(result.failed_paths)
        if failures:
            self.metrics.record_event("revalidation_failures", failures)
        logger.info(
            f"Revalidated tags={result.tags} paths={result.paths} failures={failures}",
        )
        return result
