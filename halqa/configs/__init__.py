from halqa.configs.logger import file_logger
from halqa.configs.settings import (
    CacheConfig,
    LimiterConfig,
    RedisCacheConfig,
    Settings,
    get_settings,
    pool_kwargs,
    settings,
)

__all__ = [
    "CacheConfig",
    "LimiterConfig",
    "RedisCacheConfig",
    "Settings",
    "file_logger",
    "get_settings",
    "pool_kwargs",
    "settings",
]
