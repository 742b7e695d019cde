# tests/managers/test_cache_manager.py
"""Tests for the namespaced cache manager (in-memory backend)."""

import pytest
from fastapi import status

from halqa.errors import CacheDeserializationError, CacheKeyError
from halqa.managers.cache_manager import CacheManager


class TestNamespaces:
    """A namespace is a revalidation tag."""

    @pytest.mark.asyncio
    async def test_clear_namespace_leaves_others(self, cache_manager: CacheManager) -> None:
        await cache_manager.set("a", 1, namespace="posts")
        await cache_manager.set("b", 2, namespace="posts")
        await cache_manager.set("a", 3, namespace="authors")

        removed = await cache_manager.clear(namespace="posts")

        assert removed == 2
        assert await cache_manager.get("a", namespace="posts") is None
        assert await cache_manager.get("a", namespace="authors") == 3

    @pytest.mark.asyncio
    async def test_author_tags_are_independent(self, cache_manager: CacheManager) -> None:
        await cache_manager.set("profile", {"h": "nadia"}, namespace="author:nadia")
        await cache_manager.set("profile", {"h": "omar"}, namespace="author:omar")

        await cache_manager.clear(namespace="author:nadia")

        assert await cache_manager.get("profile", namespace="author:omar") == {"h": "omar"}

    @pytest.mark.asyncio
    async def test_delete_single_key(self, cache_manager: CacheManager) -> None:
        await cache_manager.set("/blog", "<html>", namespace="page")
        assert await cache_manager.delete("/blog", namespace="page") == 1
        assert await cache_manager.delete("/blog", namespace="page") == 0


class TestValues:
    @pytest.mark.asyncio
    async def test_large_values_round_trip_compressed(self, cache_manager: CacheManager) -> None:
        xml = "<url><loc>https://halqa.test/p</loc></url>" * 500
        await cache_manager.set("xml", xml, namespace="sitemap")
        assert await cache_manager.get("xml", namespace="sitemap") == xml

    @pytest.mark.asyncio
    async def test_get_or_set_runs_callback_once(self, cache_manager: CacheManager) -> None:
        calls = 0

        async def build() -> str:
            nonlocal calls
            calls += 1
            return "<urlset/>"

        first = await cache_manager.get_or_set("xml", build, namespace="sitemap")
        second = await cache_manager.get_or_set("xml", build, namespace="sitemap")

        assert first == second == "<urlset/>"
        assert calls == 1

    @pytest.mark.asyncio
    async def test_get_or_set_skips_rejected_values(self, cache_manager: CacheManager) -> None:
        async def build() -> str:
            return "<urlset/>"

        value = await cache_manager.get_or_set(
            "xml",
            build,
            namespace="sitemap",
            cacheable=lambda _: False,
        )

        assert value == "<urlset/>"
        assert await cache_manager.get("xml", namespace="sitemap") is None

    @pytest.mark.asyncio
    async def test_corrupt_entry_raises_key_error(self, cache_manager: CacheManager) -> None:
        await cache_manager._client.set(cache_manager._build_key("xml", "sitemap"), "not json {{{", ex=60)

        with pytest.raises(CacheKeyError, match="xml") as exc_info:
            await cache_manager.get("xml", namespace="sitemap")

        assert isinstance(exc_info.value.__cause__, CacheDeserializationError)
        assert exc_info.value.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR


    @pytest.mark.asyncio
    async def test_statistics(self, cache_manager: CacheManager) -> None:
        await cache_manager.get("missing", namespace="posts")
        await cache_manager.set("k", {"v": 1}, namespace="posts")
        await cache_manager.get("k", namespace="posts")

        stats = cache_manager.get_statistics()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 1

    @pytest.mark.asyncio
    async def test_health_check_reports_memory_backend(self, cache_manager: CacheManager) -> None:
        health = await cache_manager.health_check()
        assert health["backend"] == "in-memory"
        assert health["status"] == "healthy"
