"""
Cache warming.

``CacheWarmer.refresh`` is the ISR refresh helper: it requests a rendered
page with cache-busting headers and retries with linear backoff. Any non-2xx
response or transport error counts as a failed attempt. Warming is best
effort: failures are reported, never raised.
"""

from asyncio import gather, sleep
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging import getLogger
from time import perf_counter, time_ns

from httpx import AsyncClient, HTTPError

from halqa.configs import Settings, file_logger
from halqa.decorators.with_retry import with_retry
from halqa.schemas.warming import WarmResult

logger = file_logger(getLogger(__name__))

WARMER_HEADERS = {
    "X-Cache-Warmer": "true",
    "User-Agent": "Halqa Cache Warmer",
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}
RESERVED_SEGMENTS = frozenset({"api", "admin", "_next", "static", "public", "assets", "images"})


def is_warmable(path: str) -> bool:
    """Content pages only: API routes and reserved prefixes are skipped."""
    segments = [s for s in path.split("?")[0].split("/") if s]
    return not segments or segments[0].lower() not in RESERVED_SEGMENTS


def prioritize(paths: list[str]) -> list[str]:
    """Order ``/`` first, then author pages (one segment), then the rest."""

    def rank(path: str) -> int:
        if path in {"/", "/index"}:
            return 0
        return 1 if len([s for s in path.split("/") if s]) == 1 else 2

    return sorted(dict.fromkeys(paths), key=rank)


class CacheWarmer:
    """Request rendered pages so their caches are rebuilt."""

    def __init__(
        self,
        origin: str,
        *,
        max_retries: int = 2,
        backoff_ms: int = 500,
        batch_size: int = 5,
        timeout: float = 15.0,
        batch_pause: float = 0.3,
        client: AsyncClient | None = None,
    ) -> None:
        self.origin = origin.rstrip("/")
        self.max_retries = max_retries
        self.backoff_ms = backoff_ms
        self.batch_size = max(1, batch_size)
        self.timeout = timeout
        self.batch_pause = batch_pause
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        origin: str | None = None,
        max_retries: int | None = None,
        batch_size: int | None = None,
    ) -> "CacheWarmer":
        return cls(
            origin or settings.SITE_URL,
            max_retries=settings.WARM_MAX_RETRIES if max_retries is None else max_retries,
            backoff_ms=settings.WARM_BACKOFF_MS,
            batch_size=batch_size or settings.WARM_BATCH_SIZE,
            timeout=settings.WARM_TIMEOUT,
        )

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.origin}/{path.lstrip('/')}"

    async def refresh(self, client: AsyncClient, path: str) -> WarmResult:
        """
        Force a fresh render of ``path``.

        Makes up to ``max_retries + 1`` attempts, waiting
        ``backoff_ms * attempt`` between them.
        """
        attempts = 0
        status = 0
        elapsed_ms = 0

        @with_retry(max_attempts=self.max_retries + 1, backoff=self.backoff_ms / 1000)
        async def attempt() -> None:
            nonlocal attempts, status, elapsed_ms
            attempts += 1
            start = perf_counter()
            response = await client.get(
                self.url_for(path),
                params={"_cache_bust": str(time_ns() // 1_000_000)},
                headers=WARMER_HEADERS,
            )
            elapsed_ms = int((perf_counter() - start) * 1000)
            status = response.status_code
            response.raise_for_status()

        try:
            await attempt()
        except HTTPError as e:
            logger.warning(f"Warming {path} failed after {attempts} attempt(s): {e}")
            return WarmResult(
                path=path,
                success=False,
                attempts=attempts,
                status=status,
                time_ms=elapsed_ms,
                error=str(e) or type(e).__name__,
            )
        return WarmResult(
            path=path,
            success=True,
            attempts=attempts,
            status=status,
            time_ms=elapsed_ms,
        )

    async def warm(self, paths: list[str]) -> list[WarmResult]:
        """Refresh ``paths`` in priority order, ``batch_size`` at a time."""
        ordered = prioritize([p for p in paths if is_warmable(p)])
        results: list[WarmResult] = []
        async with self._session() as client:
            for index in range(0, len(ordered), self.batch_size):
                batch = ordered[index : index + self.batch_size]
                results.extend(await gather(*(self.refresh(client, path) for path in batch)))
                if index + self.batch_size < len(ordered) and self.batch_pause:
                    await sleep(self.batch_pause)
        warmed = sum(result.success for result in results)
        logger.info(f"Warmed {warmed}/{len(results)} paths")
        return results

    async def warm_once(self, paths: list[str]) -> tuple[list[str], list[str]]:
        """Single concurrent pass without retries; returns (warmed, failed)."""
        warmer = CacheWarmer(
            self.origin,
            max_retries=0,
            batch_size=max(1, len(paths)),
            timeout=self.timeout,
            batch_pause=0,
            client=self._client,
        )
        results = await warmer.warm(paths)
        return (
            [result.path for result in results if result.success],
            [result.path for result in results if not result.success],
        )

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            yield client
