from halqa.managers.cache_manager import CacheManager
from halqa.managers.metrics import RequestTimer, get_system_metrics, metrics_manager
from halqa.managers.rate_limiter import limiter, rate_limit_exceeded_handler
from halqa.managers.warming_log import WarmingEntry, WarmingLog

__all__ = [
    "CacheManager",
    "RequestTimer",
    "WarmingEntry",
    "WarmingLog",
    "get_system_metrics",
    "limiter",
    "metrics_manager",
    "rate_limit_exceeded_handler",
]
