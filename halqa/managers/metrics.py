"""
Metrics for API performance and content pipeline activity.

Features:
    - Thread-safe counters guarded by threading.Lock
    - Bounded response-time windows built on deque
    - Async context manager for request timing
    - System metrics (CPU, memory, disk) via psutil
"""

from asyncio import to_thread
from collections import defaultdict, deque
from dataclasses import dataclass, field
from logging import getLogger
from threading import Lock
from time import perf_counter
from types import TracebackType
from typing import Any, Self

from psutil import cpu_percent as get_cpu_percent
from psutil import disk_usage, virtual_memory

from halqa.configs import file_logger

logger = file_logger(getLogger(__name__))

_BYTES_PER_MB: int = 1024 * 1024
_MAX_RESPONSE_TIMES: int = 1000
_CPU_SAMPLE_INTERVAL: float = 0.1


@dataclass(slots=True)
class ResponseTimeStats:
    """Rolling response-time window with an O(1) running average."""

    times: deque[float] = field(default_factory=lambda: deque(maxlen=_MAX_RESPONSE_TIMES))
    _sum: float = field(default=0.0, repr=False)

    def add(self, duration: float) -> None:
        if len(self.times) == self.times.maxlen:
            self._sum -= self.times[0]
        self.times.append(duration)
        self._sum += duration

    @property
    def average(self) -> float:
        return self._sum / len(self.times) if self.times else 0.0


class MetricsManager:
    """Thread-safe collector for request timings and pipeline counters."""

    __slots__ = (
        "_lock",
        "_request_counts",
        "_error_counts",
        "_response_times",
        "_pipeline_counts",
    )

    def __init__(self) -> None:
        self._lock = Lock()
        self._request_counts: dict[str, int] = defaultdict(int)
        self._error_counts: dict[str, int] = defaultdict(int)
        self._response_times: dict[str, ResponseTimeStats] = defaultdict(ResponseTimeStats)
        self._pipeline_counts: dict[str, int] = defaultdict(int)

    def record_request(self, endpoint: str) -> None:
        with self._lock:
            self._request_counts[endpoint] += 1

    def record_error(self, endpoint: str) -> None:
        with self._lock:
            self._error_counts[endpoint] += 1

    def record_response_time(self, endpoint: str, duration: float) -> None:
        with self._lock:
            self._response_times[endpoint].add(duration)

    def record_event(self, name: str, amount: int = 1) -> None:
        """
        Count a pipeline event.

        Used for ``rows_synced``, ``revalidation_failures``, ``paths_warmed``
        and similar counters.
        """
        with self._lock:
            self._pipeline_counts[name] += amount

    def get_metrics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "request_counts": dict(self._request_counts),
                "error_counts": dict(self._error_counts),
                "avg_response_times": {
                    endpoint: stats.average
                    for endpoint, stats in self._response_times.items()
                    if stats.times
                },
                "pipeline": dict(self._pipeline_counts),
            }

    def reset_metrics(self) -> None:
        with self._lock:
            self._request_counts.clear()
            self._error_counts.clear()
            self._response_times.clear()
            self._pipeline_counts.clear()
        logger.info("Metrics reset")


metrics_manager = MetricsManager()


class RequestTimer:
    """Time a block and record request count, duration and errors."""

    __slots__ = ("_endpoint", "_start_time", "_metrics")

    def __init__(self, endpoint: str, metrics: MetricsManager | None = None) -> None:
        self._endpoint = endpoint
        self._start_time: float = 0.0
        self._metrics = metrics or metrics_manager

    def __enter__(self) -> Self:
        self._start_time = perf_counter()
        self._metrics.record_request(self._endpoint)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._metrics.record_response_time(self._endpoint, perf_counter() - self._start_time)
        if exc_type is not None:
            self._metrics.record_error(self._endpoint)

    async def __aenter__(self) -> Self:
        return self.__enter__()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


async def get_system_metrics() -> dict[str, Any]:
    """
    Collect CPU, memory and disk usage.

    The blocking psutil calls run in a worker thread.
    """

    def _collect() -> dict[str, Any]:
        memory = virtual_memory()
        return {
            "cpu_percent": get_cpu_percent(interval=_CPU_SAMPLE_INTERVAL),
            "memory": {
                "percent": memory.percent,
                "used_mb": round(memory.used / _BYTES_PER_MB, 2),
                "total_mb": round(memory.total / _BYTES_PER_MB, 2),
            },
            "disk_percent": disk_usage("/").percent,
        }

    try:
        return await to_thread(_collect)
    except OSError as e:
        logger.warning(f"System metrics unavailable: {e}")
        return {"error": str(e)}
