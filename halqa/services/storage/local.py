"""
Local filesystem blob store.

Used in development and tests. Objects live under ``UPLOADS_DIR`` and are
served from ``/uploads``.
"""

from datetime import UTC, datetime
from pathlib import Path

import aiofiles

from halqa.configs.settings import settings
from halqa.errors.storage import StorageError
from halqa.services.storage.base import BlobInfo


class LocalStorage:
    """Blob store backed by the local filesystem."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = base_dir or settings.UPLOADS_DIR
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        target = (self.base_dir / path.lstrip("/")).resolve()
        if not target.is_relative_to(self.base_dir.resolve()):
            mssg = f"Refusing to access '{path}' outside the storage root"
            raise StorageError(mssg)
        return target

    async def put(
        self,
        path: str,
        data: bytes | str,
        content_type: str = "text/csv",  # noqa: ARG002 - part of the BlobStore interface
    ) -> str:
        target = self._resolve(path)
        payload = data.encode("utf-8") if isinstance(data, str) else data
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(payload)
        except OSError as e:
            mssg = f"Failed to write {path}: {e}"
            raise StorageError(mssg) from e
        return f"/uploads/{path.lstrip('/')}"

    async def get(self, path: str) -> bytes | None:
        target = self._resolve(path)
        if not target.exists():
            return None
        try:
            async with aiofiles.open(target, "rb") as f:
                return await f.read()
        except OSError as e:
            mssg = f"Failed to read {path}: {e}"
            raise StorageError(mssg) from e

    async def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.exists():
            return False
        try:
            target.unlink()
        except OSError as e:
            mssg = f"Failed to delete {path}: {e}"
            raise StorageError(mssg) from e
        return True

    async def list_objects(self, prefix: str, limit: int = 100, offset: int = 0) -> list[BlobInfo]:
        folder = self._resolve(prefix)
        if not folder.is_dir():
            return []
        root = self.base_dir.resolve()
        try:
            stamped = [(p.stat().st_mtime, p) for p in folder.rglob("*") if p.is_file()]
        except OSError as e:
            mssg = f"Failed to list {prefix}: {e}"
            raise StorageError(mssg) from e

        stamped.sort(key=lambda item: item[0], reverse=True)
        objects = []
        for mtime, file in stamped[offset : offset + limit]:
            path = file.relative_to(root).as_posix()
            created = datetime.fromtimestamp(mtime, UTC).isoformat()
            objects.append(BlobInfo(path, f"/uploads/{path}", created))
        return objects
