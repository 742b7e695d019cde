# halqa/decorators/caching.py
"""Route decorators for tag-scoped caching and revalidation."""

from collections.abc import Callable
from functools import wraps
from logging import getLogger
from typing import TYPE_CHECKING, Any

from fastapi import Request

from halqa.configs import file_logger
from halqa.errors import CacheKeyError
from halqa.services.revalidation import Revalidator

if TYPE_CHECKING:
    from halqa.managers.cache_manager import CacheManager

logger = file_logger(getLogger(__name__))


def _request_from(kwargs: dict[str, Any]) -> Request:
    request = kwargs.get("request")
    if not isinstance(request, Request):
        mssg = "Decorated route must declare a 'request: Request' parameter"
        raise TypeError(mssg)
    return request


def _revalidator_from(kwargs: dict[str, Any]) -> Revalidator:
    revalidator = kwargs.get("revalidator")
    if revalidator is None:
        mssg = "Decorated route must declare a 'revalidator: RevalidatorDep' parameter"
        raise TypeError(mssg)
    return revalidator


def _cache_manager(request: Request) -> "CacheManager | None":
    return getattr(request.app.state, "cache_manager", None)


def cached(
    namespace: str | Callable[..., str],
    key_builder: Callable[..., str],
    ttl: int | None = None,
    page: str | Callable[..., str] | None = None,
) -> Callable:
    """
    Cache a route's JSON-serialisable result under a revalidation tag.

    Args:
        namespace: Tag to store the entry under, or a callable building it
            from the route kwargs (e.g. ``author:{handle}``).
        key_builder: Builds the entry key from the route kwargs.
        ttl: Time to live in seconds; defaults to the cache config.
        page: Rendered path the result feeds, or a builder over route
            kwargs. Revalidating that path drops the entry.

    Returns:
        Decorated function.

    Example:
        @router.get("/posts")
        @cached("posts", key_builder=lambda **kw: "published", page="/blog")
        async def list_posts(request: Request, ...) -> dict: ...
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> object:  # noqa: ANN401
            manager = _cache_manager(_request_from(kwargs))
            if manager is None:
                return await func(*args, **kwargs)

            tag = namespace(**kwargs) if callable(namespace) else namespace
            cache_key = key_builder(**kwargs)

            try:
                if (cached_value := await manager.get(cache_key, tag)) is not None:
                    logger.debug(f"Cache hit for {tag}:{cache_key}")
                    return cached_value
            except CacheKeyError as e:
                logger.warning(f"Cache retrieval failed: {e}")

            result = await func(*args, **kwargs)

            try:
                await manager.set(cache_key, result, ttl=ttl, namespace=tag)
                if page is not None:
                    page_path = page(**kwargs) if callable(page) else page
                    await Revalidator(manager).link_page(page_path, tag, cache_key)
            except CacheKeyError as e:
                logger.warning(f"Cache store failed: {e}")

            return result

        return wrapper

    return decorator


def revalidates(
    tags: Callable[..., list[str]] | list[str] | None = None,
    paths: Callable[..., list[str]] | list[str] | None = None,
) -> Callable:
    """
    Revalidate tags then paths after a successful mutation.

    The route runs first; revalidation happens only when it returned without
    raising. The route's ``revalidator`` commits the request's writes before
    clearing anything. Failures while clearing are logged by the revalidator
    and do not change the route's response.

    Args:
        tags: Tags (cache namespaces) to clear, or a builder over route kwargs.
        paths: Rendered paths to purge, or a builder over route kwargs.

    Returns:
        Decorated function.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> object:  # noqa: ANN401
            revalidator = _revalidator_from(kwargs)
            result = await func(*args, **kwargs)

            await revalidator.revalidate(
                tags=tags(**kwargs) if callable(tags) else list(tags or []),
                paths=paths(**kwargs) if callable(paths) else list(paths or []),
            )
            return result

        return wrapper

    return decorator
