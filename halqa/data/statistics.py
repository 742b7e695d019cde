"""Cache statistics tracked by the cache manager."""

from dataclasses import dataclass, field
from threading import Lock

from halqa.utils import today_str


@dataclass
class CacheStatistics:
    """Counters for reads, writes and revalidation activity."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    errors: int = 0
    tags_invalidated: int = 0
    paths_invalidated: int = 0
    total_bytes_written: int = 0
    total_bytes_read: int = 0
    created_at: str = field(default_factory=today_str)
    last_updated_at: str = field(default_factory=today_str)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False)

    def _touch(self) -> None:
        self.last_updated_at = today_str()

    def record_hit(self, bytes_read: int = 0) -> None:
        with self._lock:
            self.hits += 1
            self.total_bytes_read += bytes_read
            self._touch()

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1
            self._touch()

    def record_set(self, bytes_written: int = 0) -> None:
        with self._lock:
            self.sets += 1
            self.total_bytes_written += bytes_written
            self._touch()

    def record_delete(self, count: int = 1) -> None:
        with self._lock:
            self.deletes += count
            self._touch()

    def record_error(self) -> None:
        with self._lock:
            self.errors += 1
            self._touch()

    def record_invalidation(self, *, tag: bool) -> None:
        """Count one revalidated tag (namespace) or path."""
        with self._lock:
            if tag:
                self.tags_invalidated += 1
            else:
                self.paths_invalidated += 1
            self._touch()

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage (0-100)."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def reset(self) -> None:
        with self._lock:
            self.hits = self.misses = self.sets = self.deletes = self.errors = 0
            self.tags_invalidated = self.paths_invalidated = 0
            self.total_bytes_written = self.total_bytes_read = 0
            self.created_at = today_str()
            self._touch()

    def to_dict(self) -> dict[str, int | str]:
        with self._lock:
            return {
                "hits": self.hits,
                "misses": self.misses,
                "sets": self.sets,
                "deletes": self.deletes,
                "errors": self.errors,
                "tags_invalidated": self.tags_invalidated,
                "paths_invalidated": self.paths_invalidated,
                "total_bytes_written": self.total_bytes_written,
                "total_bytes_read": self.total_bytes_read,
                "hit_rate": f"{self.hit_rate:.2f}%",
                "created_at": self.created_at,
                "last_updated_at": self.last_updated_at,
            }
