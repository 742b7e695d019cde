from halqa.clients.memory_client import MemoryClient
from halqa.clients.protocols import CacheClientProtocol
from halqa.clients.redis_client import RedisClient
from halqa.clients.sheets_client import SheetsClient

__all__ = [
    "CacheClientProtocol",
    "MemoryClient",
    "RedisClient",
    "SheetsClient",
]
