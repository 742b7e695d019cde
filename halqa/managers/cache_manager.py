# halqa/managers/cache_manager.py
"""Cache manager for data-fetch and rendered-route caches."""

from asyncio import Lock as AsyncLock
from collections import OrderedDict
from collections.abc import Callable, Coroutine
from logging import DEBUG, getLogger
from threading import Lock as ThreadLock
from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError

from halqa.clients.memory_client import MemoryClient
from halqa.clients.protocols import CacheClientProtocol
from halqa.clients.redis_client import RedisClient
from halqa.configs import CacheConfig, file_logger, settings
from halqa.data import CacheStatistics
from halqa.errors import BASE_EXCEPTION, CacheCodecError, CacheKeyError
from halqa.utils.cache_serializer import (
    compress,
    decompress,
    deserialize,
    do_compress,
    serialize,
)

logger = file_logger(getLogger(__name__))


CacheCallback = Callable[..., Coroutine[Any, Any, Any]]

_CLEAR_BATCH = 500


class CacheManager:
    """
    Namespaced cache over Redis with an in-memory fallback.

    Keys are ``{prefix}:{namespace}:{key}``. A namespace doubles as a
    revalidation tag: clearing it drops every entry cached under that tag.

    Features:
        - Request coalescing on ``get_or_set``
        - Automatic fallback to the in-memory client
        - Compression for large values
        - Statistics tracking
    """

    MAX_LOCKS: int = 10_000

    def __init__(self) -> None:
        self.redis_client = RedisClient()
        self.memory_client = MemoryClient()
        self._client: CacheClientProtocol = self.memory_client
        self.is_redis_available = False
        self.cache_config = CacheConfig()
        self.statistics = CacheStatistics()

        self._locks: OrderedDict[str, AsyncLock] = OrderedDict()
        self._locks_lock = ThreadLock()

    async def initialize(self) -> None:
        """Connect to Redis when enabled, otherwise start the memory client."""
        if settings.REDIS_ENABLED:
            try:
                await self.redis_client.connect()
                self._client = self.redis_client
                self.is_redis_available = True
                logger.info("Cache manager initialized with Redis.")
                return
            except RedisConnectionError as e:
                logger.warning(f"Redis connection failed: {e}. Falling back to in-memory cache.")
        else:
            logger.info("Redis disabled. Using in-memory cache.")

        self._client = self.memory_client
        self.is_redis_available = False
        await self.memory_client.start_lifecycle()

    async def shutdown(self) -> None:
        if self.is_redis_available:
            await self.redis_client.disconnect()
        await self.memory_client.close()
        logger.info("Cache manager shutdown successfully.")

    def _build_key(self, key: str, namespace: str | None = None) -> str:
        prefix = self.cache_config.key_prefix
        return f"{prefix}:{namespace}:{key}" if namespace else f"{prefix}:{key}"

    async def _fallback_to_memory(self) -> None:
        """Switch to the in-memory client after a Redis failure at runtime."""
        if self.is_redis_available:
            logger.warning("Redis connection lost. Falling back to in-memory cache.")
            self._client = self.memory_client
            self.is_redis_available = False
            await self.memory_client.start_lifecycle()

    async def get(self, key: str, namespace: str | None = None) -> object | None:
        """Return the cached value or ``None`` on a miss."""
        full_key = self._build_key(key, namespace)
        try:
            if logger.isEnabledFor(DEBUG):
                logger.debug("Getting from cache: %s", full_key)
            cached_value = await self._client.get(full_key)
            if cached_value is None:
                self.statistics.record_miss()
                return None

            self.statistics.record_hit(len(cached_value.encode("utf-8")))
            return deserialize(decompress(cached_value))
        except RedisConnectionError:
            await self._fallback_to_memory()
            return None
        except (*BASE_EXCEPTION, CacheCodecError) as e:
            logger.exception("Cache get failed for key: %s", full_key)
            self.statistics.record_error()
            mssg = f"Cache get failed for key {key}, {e}"
            raise CacheKeyError(mssg) from e

    async def set(
        self,
        key: str,
        value: object,
        ttl: int | None = None,
        namespace: str | None = None,
    ) -> bool:
        full_key = self._build_key(key, namespace)
        try:
            serialized = serialize(value)
            if self.cache_config.compression_enabled and do_compress(
                serialized,
                self.cache_config.compression_threshold,
            ):
                serialized = compress(serialized)

            ex = ttl if ttl is not None else self.cache_config.default_ttl
            ex = min(ex, self.cache_config.max_ttl)

            success = await self._client.set(full_key, serialized, ex=ex)
            self.statistics.record_set(len(serialized.encode("utf-8")))
        except RedisConnectionError:
            await self._fallback_to_memory()
            return False
        except BASE_EXCEPTION as e:
            logger.exception("Cache set failed for key %s", full_key)
            self.statistics.record_error()
            mssg = f"Cache set failed for key {key}"
            raise CacheKeyError(mssg) from e
        return success

    async def delete(self, *keys: str, namespace: str | None = None) -> int:
        try:
            full_keys = [self._build_key(key, namespace) for key in keys]
            deleted_count = await self._client.delete(*full_keys)
            if deleted_count:
                self.statistics.record_delete(deleted_count)
        except (RedisConnectionError,) + BASE_EXCEPTION as e:
            logger.exception("Cache delete failed for keys: %s", keys)
            self.statistics.record_error()
            mssg = "Cache delete failed"
            raise CacheKeyError(mssg) from e
        return deleted_count

    async def clear(self, namespace: str | None = None) -> int:
        """
        Delete every entry under ``namespace`` (or all entries) in batches.

        Returns:
            Number of keys removed.

        Raises:
            CacheKeyError: When the backend rejects the scan or delete.
        """
        prefix = self.cache_config.key_prefix
        pattern = f"{prefix}:{namespace}:*" if namespace else f"{prefix}:*"

        deleted_total = 0
        keys_batch: list[str] = []
        try:
            async for key in self._client.scan_iter(pattern):
                keys_batch.append(key)
                if len(keys_batch) >= _CLEAR_BATCH:
                    deleted_total += await self._client.delete(*keys_batch)
                    keys_batch = []
            if keys_batch:
                deleted_total += await self._client.delete(*keys_batch)
        except (RedisConnectionError,) + BASE_EXCEPTION as e:
            logger.exception("Cache clear failed for pattern '%s'", pattern)
            self.statistics.record_error()
            mssg = f"Cache clear failed for {namespace or 'all namespaces'}"
            raise CacheKeyError(mssg) from e

        if deleted_total:
            self.statistics.record_delete(deleted_total)
            logger.info("Cleared %d keys for pattern '%s'.", deleted_total, pattern)
        return deleted_total

    def _get_or_create_lock(self, key: str) -> AsyncLock:
        with self._locks_lock:
            if key in self._locks:
                self._locks.move_to_end(key)
                return self._locks[key]

            while len(self._locks) >= self.MAX_LOCKS:
                self._locks.popitem(last=False)

            lock = AsyncLock()
            self._locks[key] = lock
            return lock

    async def get_or_set(
        self,
        key: str,
        callback: CacheCallback,
        ttl: int | None = None,
        namespace: str | None = None,
        cacheable: Callable[[object], bool] | None = None,
    ) -> object:
        """
        Return the cached value or compute, store and return it.

        Concurrent misses for the same key wait on one lock so the callback
        runs once. A computed value is stored only when ``cacheable`` (if
        given) accepts it.
        """
        try:
            cached = await self.get(key, namespace)
            if cached is not None:
                return cached
        except CacheKeyError as e:
            logger.warning("Failed to retrieve from cache: %s", e)

        async with self._get_or_create_lock(self._build_key(key, namespace)):
            try:
                cached = await self.get(key, namespace)
                if cached is not None:
                    return cached
            except CacheKeyError as e:
                logger.warning("Cache re-check failed: %s", e)

            value = await callback()
            if cacheable is not None and not cacheable(value):
                return value
            try:
                await self.set(key, value, ttl, namespace)
            except CacheKeyError as e:
                logger.warning("Failed to store computed value: %s", e)
            return value

    async def health_check(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "backend": "redis" if self.is_redis_available else "in-memory",
            "statistics": self.get_statistics(),
        }

        try:
            if self.is_redis_available:
                result.update(await self.redis_client.health_check())
            else:
                result["status"] = "healthy" if await self._client.ping() else "unhealthy"
                result["info"] = await self._client.info()
        except (RedisConnectionError,) + BASE_EXCEPTION as e:
            result["status"] = "unhealthy"
            result["error"] = str(e)

        return result

    def get_statistics(self) -> dict[str, int | str]:
        return self.statistics.to_dict()
