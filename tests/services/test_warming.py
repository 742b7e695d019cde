# tests/services/test_warming.py
"""Tests for the cache warmer."""

import pytest
from httpx import AsyncClient, ConnectError, MockTransport, Request, Response

from halqa.configs import Settings
from halqa.services.warming import WARMER_HEADERS, CacheWarmer, is_warmable, prioritize


def _warmer(handler: object, **kwargs: object) -> CacheWarmer:
    options = {"max_retries": 2, "backoff_ms": 0, "batch_pause": 0}
    options.update(kwargs)
    return CacheWarmer(
        "https://halqa.test/",
        client=AsyncClient(transport=MockTransport(handler)),
        **options,
    )


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/", True),
        ("/nadia", True),
        ("/blog/hello", True),
        ("/api/posts", False),
        ("/_next/static/chunk.js", False),
        ("/Admin", False),
        ("/images/a.png?w=10", False),
    ],
)
def test_is_warmable(path: str, expected: bool) -> None:
    assert is_warmable(path) is expected


def test_prioritize_root_then_authors_then_posts() -> None:
    ordered = prioritize(["/blog/a", "/nadia/post", "/nadia", "/", "/blog/a"])
    assert ordered == ["/", "/nadia", "/blog/a", "/nadia/post"]


class TestRefresh:
    """Tests for CacheWarmer.refresh."""

    @pytest.mark.asyncio
    async def test_sends_cache_busting_request(self) -> None:
        seen: list[Request] = []

        def handler(request: Request) -> Response:
            seen.append(request)
            return Response(200)

        warmer = _warmer(handler)
        async with AsyncClient(transport=MockTransport(handler)) as client:
            result = await warmer.refresh(client, "/nadia")

        assert result.success is True
        assert result.attempts == 1
        request = seen[0]
        assert str(request.url).startswith("https://halqa.test/nadia?_cache_bust=")
        for name, value in WARMER_HEADERS.items():
            assert request.headers[name] == value

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self) -> None:
        calls = 0

        def handler(request: Request) -> Response:
            nonlocal calls
            calls += 1
            return Response(503 if calls == 1 else 200)

        warmer = _warmer(handler)
        async with AsyncClient(transport=MockTransport(handler)) as client:
            result = await warmer.refresh(client, "/")

        assert result.success is True
        assert result.attempts == 2
        assert result.status == 200

    @pytest.mark.asyncio
    async def test_transport_error_exhausts_retries(self) -> None:
        def handler(request: Request) -> Response:
            raise ConnectError("refused", request=request)

        warmer = _warmer(handler, max_retries=1)
        async with AsyncClient(transport=MockTransport(handler)) as client:
            result = await warmer.refresh(client, "/")

        assert result.success is False
        assert result.attempts == 2
        assert result.status == 0
        assert result.error == "refused"


class TestWarm:
    @pytest.mark.asyncio
    async def test_batches_respect_batch_size(self) -> None:
        paths = [f"/author{n}" for n in range(7)]
        seen: list[str] = []

        def handler(request: Request) -> Response:
            seen.append(request.url.path)
            return Response(200)

        results = await _warmer(handler, batch_size=3).warm([*paths, "/api/skip"])

        assert [r.path for r in results] == paths
        assert sorted(seen) == sorted(paths)

    @pytest.mark.asyncio
    async def test_warm_once_does_not_retry(self) -> None:
        seen: list[str] = []

        def handler(request: Request) -> Response:
            seen.append(request.url.path)
            return Response(404 if request.url.path == "/gone" else 200)

        warmed, failed = await _warmer(handler).warm_once(["/", "/gone"])

        assert warmed == ["/"]
        assert failed == ["/gone"]
        assert seen.count("/gone") == 1

    def test_from_settings(self, test_settings: Settings) -> None:
        warmer = CacheWarmer.from_settings(test_settings, max_retries=0, batch_size=2)
        assert warmer.origin == "https://halqa.test"
        assert warmer.max_retries == 0
        assert warmer.batch_size == 2
        assert warmer.url_for("https://other.test/x") == "https://other.test/x"
