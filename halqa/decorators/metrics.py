from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from halqa.managers.metrics import MetricsManager, RequestTimer

P = ParamSpec("P")
R = TypeVar("R")


def timed(
    endpoint: str | None = None,
    metrics: MetricsManager | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Time an async route and record it under ``endpoint``.

    Args:
        endpoint: Metrics label (defaults to the function name).
        metrics: Metrics manager (defaults to the global instance).

    Example:
        @timed("/api/sync-content")
        async def sync_content(...) -> ORJSONResponse: ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        label = endpoint or func.__name__

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            async with RequestTimer(label, metrics):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
