"""
Blob store protocol.

Backends store flat files (CSV snapshots, the sitemap, avatars, post images)
under a relative path and hand back a public URL.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class BlobInfo:
    """A stored object as returned by a listing."""

    path: str
    url: str
    created_at: str | None = None


class BlobStore(Protocol):
    """Interface shared by the local and Cloudinary backends."""

    @abstractmethod
    async def put(
        self,
        path: str,
        data: bytes | str,
        content_type: str = "text/csv",
    ) -> str:
        """
        Write ``data`` at ``path``, replacing any previous object.

        Args:
            path: Relative object path, e.g. ``settings.csv``.
            data: Raw bytes or text (encoded as UTF-8).
            content_type: MIME type of the object.

        Returns:
            str: Public URL of the stored object.
        """
        ...

    @abstractmethod
    async def get(self, path: str) -> bytes | None:
        """Return the object's bytes, or None when it does not exist."""
        ...

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete the object; True when something was removed."""
        ...

    @abstractmethod
    async def list_objects(self, prefix: str, limit: int = 100, offset: int = 0) -> list[BlobInfo]:
        """
        List objects under ``prefix``, newest first.

        Args:
            prefix: Folder to list, e.g. ``images``.
            limit: Maximum number of objects returned.
            offset: Number of newest objects skipped.

        Returns:
            list[BlobInfo]: Paths relative to the store root with their URLs.
        """
        ...
