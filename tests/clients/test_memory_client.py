# tests/clients/test_memory_client.py
"""Tests for the in-memory cache client."""

from collections.abc import AsyncGenerator
from unittest.mock import patch

import pytest

from halqa.clients.memory_client import MemoryClient


@pytest.fixture
async def client() -> AsyncGenerator[MemoryClient]:
    memory = MemoryClient(max_entries=3)
    yield memory
    await memory.close()


class TestMemoryClient:
    """Tests for MemoryClient."""

    @pytest.mark.asyncio
    async def test_set_get_delete(self, client: MemoryClient) -> None:
        assert await client.set("k", "v")
        assert await client.get("k") == "v"
        assert await client.delete("k", "missing") == 1
        assert await client.get("k") is None

    @pytest.mark.asyncio
    async def test_least_recently_used_is_evicted(self, client: MemoryClient) -> None:
        for key in ("a", "b", "c"):
            await client.set(key, key)
        await client.get("a")
        await client.set("d", "d")

        assert await client.get("b") is None
        assert await client.get("a") == "a"

    @pytest.mark.asyncio
    async def test_expiry(self, client: MemoryClient) -> None:
        with patch("halqa.clients.memory_client.time", return_value=1000.0):
            await client.set("k", "v", ex=10)
            assert await client.ttl("k") == 10
        with patch("halqa.clients.memory_client.time", return_value=1011.0):
            assert await client.get("k") is None
            assert await client.ttl("k") == -2

    @pytest.mark.asyncio
    async def test_plain_set_clears_ttl(self, client: MemoryClient) -> None:
        await client.set("k", "v", ex=10)
        await client.set("k", "v2")
        assert await client.ttl("k") == -1

    @pytest.mark.asyncio
    async def test_scan_iter_matches_glob(self, client: MemoryClient) -> None:
        await client.set("halqa:posts:a", "1")
        await client.set("halqa:posts:b", "2")
        await client.set("halqa:authors:a", "3")

        keys = [key async for key in client.scan_iter("halqa:posts:*")]

        assert sorted(keys) == ["halqa:posts:a", "halqa:posts:b"]

    @pytest.mark.asyncio
    async def test_lifecycle(self, client: MemoryClient) -> None:
        await client.start_lifecycle()
        assert await client.ping() is True
        await client.close()
        assert await client.ping() is False
