"""In-memory cache client used when Redis is disabled or unreachable."""

from asyncio import CancelledError, Lock, Task, create_task
from asyncio import sleep as asyncio_sleep
from collections import OrderedDict
from collections.abc import AsyncGenerator
from contextlib import suppress
from fnmatch import fnmatch
from logging import DEBUG, getLogger
from time import time

from halqa.configs import file_logger

logger = file_logger(getLogger(__name__))


class MemoryClient:
    """
    Async in-memory stand-in for :class:`RedisClient`.

    Entries are kept in LRU order with an entry cap; expired keys are removed
    lazily on read and by a periodic sweep started with ``start_lifecycle``.
    """

    DEFAULT_MAX_ENTRIES: int = 50_000
    DEFAULT_CLEANUP_INTERVAL: int = 60  # seconds

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        cleanup_interval: int = DEFAULT_CLEANUP_INTERVAL,
    ) -> None:
        self._cache: OrderedDict[str, str] = OrderedDict()
        self._expires: dict[str, float] = {}
        self._max_entries = max_entries
        self._cleanup_interval = cleanup_interval
        self._cleanup_task: Task[None] | None = None
        self._lock = Lock()
        self.is_connected: bool = True

    async def start_lifecycle(self) -> None:
        """Start the background expiry sweep."""
        async with self._lock:
            if not self._cleanup_task:
                self.is_connected = True
                self._cleanup_task = create_task(self._cleanup_loop())
                logger.info("MemoryClient expiry sweep started.")

    async def _cleanup_loop(self) -> None:
        while self.is_connected:
            try:
                await asyncio_sleep(self._cleanup_interval)
                async with self._lock:
                    expired = [k for k in self._expires if self._expired(k)]
                    removed = self._drop(*expired)
                if removed and logger.isEnabledFor(DEBUG):
                    logger.debug("Memory cleanup: removed %d expired keys.", removed)
            except CancelledError:
                break

    def _expired(self, key: str) -> bool:
        deadline = self._expires.get(key)
        return deadline is not None and time() > deadline

    def _drop(self, *keys: str) -> int:
        count = 0
        for key in keys:
            if self._cache.pop(key, None) is not None:
                count += 1
            self._expires.pop(key, None)
        return count

    async def get(self, key: str) -> str | None:
        async with self._lock:
            if self._expired(key):
                self._drop(key)
                return None
            value = self._cache.get(key)
            if value is not None:
                self._cache.move_to_end(key)
            return value

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        async with self._lock:
            while len(self._cache) >= self._max_entries and key not in self._cache:
                oldest, _ = self._cache.popitem(last=False)
                self._expires.pop(oldest, None)

            self._cache[key] = value
            self._cache.move_to_end(key)
            if ex:
                self._expires[key] = time() + ex
            else:
                # Plain SET clears any previous TTL, as Redis does
                self._expires.pop(key, None)
            return True

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            return self._drop(*keys)

    async def exists(self, *keys: str) -> int:
        async with self._lock:
            return sum(1 for key in keys if key in self._cache and not self._expired(key))

    async def expire(self, key: str, seconds: int) -> bool:
        async with self._lock:
            if key not in self._cache:
                return False
            self._expires[key] = time() + seconds
            return True

    async def ttl(self, key: str) -> int:
        async with self._lock:
            if key not in self._cache or self._expired(key):
                self._drop(key)
                return -2
            if key not in self._expires:
                return -1
            return int(self._expires[key] - time())

    async def flush_all(self) -> bool:
        async with self._lock:
            self._cache.clear()
            self._expires.clear()
            return True

    async def ping(self) -> bool:
        return self.is_connected

    async def info(self) -> dict[str, str | int]:
        async with self._lock:
            return {
                "server": "In-Memory Cache",
                "total_keys": len(self._cache),
                "max_entries": self._max_entries,
            }

    async def scan_iter(
        self,
        pattern: str,
        count: int = 100,  # noqa: ARG002 - signature shared with RedisClient
    ) -> AsyncGenerator[str]:
        """Yield keys matching a glob-style pattern."""
        async with self._lock:
            keys = list(self._cache.keys())

        for key in keys:
            if fnmatch(key, pattern):
                yield key

    async def close(self) -> None:
        async with self._lock:
            self.is_connected = False
            if self._cleanup_task:
                self._cleanup_task.cancel()
                with suppress(CancelledError):
                    await self._cleanup_task
                self._cleanup_task = None
