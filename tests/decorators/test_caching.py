# tests/decorators/test_caching.py
"""Tests for halqa/decorators/caching.py module."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Request

from halqa.decorators.caching import cached, revalidates
from halqa.managers.cache_manager import CacheManager
from halqa.services.revalidation import Revalidator


def make_request(cache_manager: CacheManager | None) -> Request:
    app = SimpleNamespace(state=SimpleNamespace())
    if cache_manager is not None:
        app.state.cache_manager = cache_manager
    return Request({"type": "http", "method": "GET", "path": "/", "headers": [], "app": app})


class TestCached:
    """Tests for the cached decorator."""

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, cache_manager: CacheManager) -> None:
        calls = 0

        @cached("posts", key_builder=lambda **_: "published:all")
        async def route(request: Request) -> dict:
            nonlocal calls
            calls += 1
            return {"posts": [calls]}

        request = make_request(cache_manager)
        first = await route(request=request)
        second = await route(request=request)

        assert first == second == {"posts": [1]}
        assert calls == 1
        assert await cache_manager.get("published:all", namespace="posts") == {"posts": [1]}

    @pytest.mark.asyncio
    async def test_callable_namespace(self, cache_manager: CacheManager) -> None:
        @cached(lambda handle, **_: f"author:{handle}", key_builder=lambda **_: "profile")
        async def route(request: Request, handle: str) -> dict:
            return {"handle": handle}

        await route(request=make_request(cache_manager), handle="nadia")

        assert await cache_manager.get("profile", namespace="author:nadia") == {"handle": "nadia"}

    @pytest.mark.asyncio
    async def test_without_cache_manager_calls_through(self) -> None:
        @cached("posts", key_builder=lambda **_: "k")
        async def route(request: Request) -> str:
            return "fresh"

        assert await route(request=make_request(None)) == "fresh"

    @pytest.mark.asyncio
    async def test_requires_request_parameter(self) -> None:
        @cached("posts", key_builder=lambda **_: "k")
        async def route() -> str:
            return "x"

        with pytest.raises(TypeError, match="request: Request"):
            await route()

    @pytest.mark.asyncio
    async def test_page_link_lets_a_path_clear_drop_the_entry(
        self,
        cache_manager: CacheManager,
    ) -> None:
        calls = 0

        @cached("authors", key_builder=lambda **_: "public", page="/")
        async def route(request: Request) -> dict:
            nonlocal calls
            calls += 1
            return {"authors": calls}

        request = make_request(cache_manager)
        await route(request=request)
        await Revalidator(cache_manager).revalidate(paths=["/"])

        assert await route(request=request) == {"authors": 2}
        assert calls == 2


class TestRevalidates:
    """Tests for the revalidates decorator."""

    @pytest.mark.asyncio
    async def test_clears_tags_and_paths_after_success(self, cache_manager: CacheManager) -> None:
        await cache_manager.set("public", [], namespace="authors")
        await cache_manager.set("profile", {"handle": "nadia"}, namespace="author:nadia")
        revalidator = Revalidator(cache_manager)
        await revalidator.link_page("/nadia", "author:nadia", "profile")

        @revalidates(tags=["authors"], paths=lambda handle, **_: [f"/{handle}"])
        async def route(request: Request, handle: str, revalidator: Revalidator) -> dict:
            return {"success": True}

        result = await route(
            request=make_request(cache_manager),
            handle="nadia",
            revalidator=revalidator,
        )

        assert result == {"success": True}
        assert await cache_manager.get("public", namespace="authors") is None
        assert await cache_manager.get("profile", namespace="author:nadia") is None

    @pytest.mark.asyncio
    async def test_commits_before_clearing(self, cache_manager: CacheManager) -> None:
        events: list[str] = []
        session = AsyncMock()
        session.commit.side_effect = lambda: events.append("commit")
        clear = cache_manager.clear

        async def recording_clear(namespace: str | None = None) -> int:
            events.append(f"clear:{namespace}")
            return await clear(namespace=namespace)

        cache_manager.clear = recording_clear  # type: ignore[method-assign]

        @revalidates(tags=["settings"])
        async def route(request: Request, revalidator: Revalidator) -> dict:
            events.append("write")
            return {"success": True}

        await route(
            request=make_request(cache_manager),
            revalidator=Revalidator(cache_manager, session=session),
        )

        assert events == ["write", "commit", "clear:settings"]

    @pytest.mark.asyncio
    async def test_failed_route_revalidates_nothing(self) -> None:
        revalidator = AsyncMock()

        @revalidates(tags=["authors"])
        async def route(request: Request, revalidator: Revalidator) -> None:
            raise ValueError

        with pytest.raises(ValueError):
            await route(request=make_request(MagicMock()), revalidator=revalidator)

        revalidator.revalidate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_revalidator_parameter(self) -> None:
        @revalidates(tags=["authors"])
        async def route(request: Request) -> None:
            return None

        with pytest.raises(TypeError, match="revalidator"):
            await route(request=make_request(None))
