# tests/services/test_revalidation.py
"""Tests for tag and path revalidation."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from halqa.errors.database import DatabaseError
from halqa.managers.cache_manager import CacheManager
from halqa.services.revalidation import Revalidator, author_tag, normalize_path


class RecordingCache:
    """Cache manager double recording invalidation order."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.failing = failing or set()
        self.statistics = MagicMock()

    async def clear(self, namespace: str | None = None) -> int:
        self.calls.append(("tag", namespace))
        if namespace in self.failing:
            raise ConnectionError(namespace)
        return 1

    async def get(self, key: str, namespace: str | None = None) -> None:
        return None

    async def delete(self, *keys: str, namespace: str | None = None) -> int:
        self.calls.append(("path", keys[0]))
        if keys[0] in self.failing:
            raise ConnectionError(keys[0])
        return 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("/", "/"), ("", "/"), ("blog/", "/blog"), ("/nadia/post/", "/nadia/post"), (" /a ", "/a")],
)
def test_normalize_path(raw: str, expected: str) -> None:
    assert normalize_path(raw) == expected


def test_author_tag_is_lowercase() -> None:
    assert author_tag("Nadia") == "author:nadia"


class TestRevalidator:
    """Tests for Revalidator.revalidate."""

    @pytest.mark.asyncio
    async def test_all_tags_before_any_path(self) -> None:
        cache = RecordingCache()

        await Revalidator(cache, metrics=MagicMock()).revalidate(
            tags=["posts", "sitemap"],
            paths=["/", "/blog"],
        )

        kinds = [kind for kind, _ in cache.calls]
        assert kinds == ["tag", "tag", "path", "path"]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self) -> None:
        cache = RecordingCache(failing={"posts", "/blog"})
        metrics = MagicMock()

        result = await Revalidator(cache, metrics=metrics).revalidate(
            tags=["posts", "authors"],
            paths=["/blog", "/"],
        )

        assert result.tags == ["authors"]
        assert result.failed_tags == ["posts"]
        assert result.paths == ["/"]
        assert result.failed_paths == ["/blog"]
        assert result.ok is False
        metrics.record_event.assert_called_once_with("revalidation_failures", 2)

    @pytest.mark.asyncio
    async def test_duplicates_are_collapsed(self) -> None:
        cache = RecordingCache()

        result = await Revalidator(cache, metrics=MagicMock()).revalidate(
            tags=["posts", "posts", ""],
            paths=["/blog", "blog/"],
        )

        assert result.to_dict() == {
            "tags": ["posts"],
            "paths": ["/blog"],
            "failed": {"tags": [], "paths": []},
        }

    @pytest.mark.asyncio
    async def test_against_real_cache(self, cache_manager: CacheManager) -> None:
        await cache_manager.set("public", {"authors": []}, namespace="authors")
        await cache_manager.set("public", {"keep": True}, namespace="preferences")
        await cache_manager.set("profile", {"handle": "nadia"}, namespace="author:nadia")
        revalidator = Revalidator(cache_manager)
        await revalidator.link_page("/nadia", "author:nadia", "profile")

        await revalidator.revalidate(tags=["authors"], paths=["nadia"])

        assert await cache_manager.get("public", namespace="authors") is None
        assert await cache_manager.get("profile", namespace="author:nadia") is None
        assert await cache_manager.get("/nadia", namespace="page") is None
        assert await cache_manager.get("public", namespace="preferences") == {"keep": True}
        stats = cache_manager.get_statistics()
        assert stats["tags_invalidated"] == 1
        assert stats["paths_invalidated"] == 1


class TestPageIndex:
    """Tests for linking cached reads to rendered paths."""

    @pytest.mark.asyncio
    async def test_path_clear_only_drops_linked_entries(self, cache_manager: CacheManager) -> None:
        await cache_manager.set("published:all", ["a"], namespace="posts")
        await cache_manager.set("published:nadia", ["b"], namespace="posts")
        revalidator = Revalidator(cache_manager)
        await revalidator.link_page("/blog", "posts", "published:all")
        await revalidator.link_page("/nadia/blog", "posts", "published:nadia")

        await revalidator.revalidate(paths=["/blog/"])

        assert await cache_manager.get("published:all", namespace="posts") is None
        assert await cache_manager.get("published:nadia", namespace="posts") == ["b"]

    @pytest.mark.asyncio
    async def test_linking_twice_keeps_one_member(self, cache_manager: CacheManager) -> None:
        revalidator = Revalidator(cache_manager)

        await revalidator.link_page("/", "authors", "public")
        await revalidator.link_page("/", "authors", "public")
        await revalidator.link_page("/", "posts", "published:all")

        assert await cache_manager.get("/", namespace="page") == [
            "authors|public",
            "posts|published:all",
        ]

    @pytest.mark.asyncio
    async def test_unlinked_path_reports_success(self, cache_manager: CacheManager) -> None:
        result = await Revalidator(cache_manager).revalidate(paths=["/never-rendered"])

        assert result.paths == ["/never-rendered"]
        assert result.ok is True


class TestCommit:
    """Tests for committing pending writes before invalidating."""

    @pytest.mark.asyncio
    async def test_commit_precedes_every_clear(self) -> None:
        cache = RecordingCache()
        session = AsyncMock()
        session.commit.side_effect = lambda: cache.calls.append(("commit", ""))

        await Revalidator(cache, metrics=MagicMock(), session=session).revalidate(
            tags=["posts"],
            paths=["/blog"],
        )

        assert [kind for kind, _ in cache.calls] == ["commit", "tag", "path"]

    @pytest.mark.asyncio
    async def test_failed_commit_invalidates_nothing(self) -> None:
        cache = RecordingCache()
        session = AsyncMock()
        session.commit.side_effect = OperationalError("COMMIT", {}, Exception("gone"))

        with pytest.raises(DatabaseError, match="Failed to commit"):
            await Revalidator(cache, metrics=MagicMock(), session=session).revalidate(
                tags=["posts"],
            )

        assert cache.calls == []
        session.rollback.assert_awaited_once()
