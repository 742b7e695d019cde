"""Bounded diagnostic log of cache-warming runs."""

from collections import deque
from dataclasses import asdict, dataclass
from secrets import token_hex
from threading import Lock
from time import time

from halqa.configs.settings import WARMING_LOG_SIZE
from halqa.utils import iso_timestamp


@dataclass(frozen=True, slots=True)
class WarmingEntry:
    id: str
    timestamp: str
    paths: list[str]
    status: str


class WarmingLog:
    """
    Ring buffer of the most recent warming runs, newest first.

    One instance is created per application in the lifespan and handed to
    routes through a dependency; losing it on restart is harmless.
    """

    def __init__(self, maxlen: int = WARMING_LOG_SIZE) -> None:
        self._entries: deque[WarmingEntry] = deque(maxlen=maxlen)
        self._lock = Lock()

    @property
    def maxlen(self) -> int:
        return self._entries.maxlen or 0

    def record(self, paths: list[str], status: str = "initiated") -> WarmingEntry:
        """Add an entry; the oldest one is dropped once the buffer is full."""
        entry = WarmingEntry(
            id=f"warm-{int(time() * 1000)}-{token_hex(4)}",
            timestamp=iso_timestamp(),
            paths=list(paths),
            status=status,
        )
        with self._lock:
            self._entries.appendleft(entry)
        return entry

    def entries(self) -> list[dict[str, object]]:
        with self._lock:
            return [asdict(entry) for entry in self._entries]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
