"""Protocol definitions for cache client implementations."""

from collections.abc import AsyncIterator, Awaitable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheClientProtocol(Protocol):
    """
    Interface shared by RedisClient and MemoryClient.

    Methods return Awaitable so that both native coroutines and wrapped
    implementations satisfy the protocol.
    """

    def get(self, key: str) -> Awaitable[str | None]: ...

    def set(self, key: str, value: str, ex: int | None = None) -> Awaitable[bool]: ...

    def delete(self, *keys: str) -> Awaitable[int]: ...

    def exists(self, *keys: str) -> Awaitable[int]: ...

    def expire(self, key: str, seconds: int) -> Awaitable[bool]: ...

    def ttl(self, key: str) -> Awaitable[int]: ...

    def ping(self) -> Awaitable[bool]: ...

    def info(self) -> Awaitable[dict[str, Any]]: ...

    def scan_iter(self, pattern: str, count: int = 100) -> AsyncIterator[str]:
        """Iterate keys matching a glob pattern; used for tag invalidation."""
        ...
