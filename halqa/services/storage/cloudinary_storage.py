"""
Cloudinary blob store.

CSV snapshots and the sitemap are stored as ``raw`` resources, avatars and
post images as images. Blocking SDK calls run in the default executor.
"""

import asyncio
from functools import partial
from typing import Any

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
from httpx import AsyncClient, HTTPError

from halqa.configs.settings import settings
from halqa.errors.storage import StorageError
from halqa.services.storage.base import BlobInfo

# Admin API page size limit
MAX_RESULTS = 500


class CloudinaryStorage:
    """Blob store backed by Cloudinary's CDN."""

    def __init__(self) -> None:
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )
        self.folder = settings.CLOUDINARY_FOLDER

    def _public_id(self, path: str) -> str:
        return f"{self.folder}/{path.lstrip('/')}"

    @staticmethod
    def _resource_type(path: str) -> str:
        return "image" if path.lower().endswith((".jpg", ".jpeg", ".png", ".gif", ".webp")) else "raw"

    async def _run(self, func: Any, *args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, *args, **kwargs))
        except cloudinary.exceptions.NotFound:
            raise
        except cloudinary.exceptions.Error as e:
            mssg = f"Cloudinary request failed: {e}"
            raise StorageError(mssg) from e

    async def put(
        self,
        path: str,
        data: bytes | str,
        content_type: str = "text/csv",  # noqa: ARG002 - part of the BlobStore interface
    ) -> str:
        payload = data.encode("utf-8") if isinstance(data, str) else data
        result = await self._run(
            cloudinary.uploader.upload,
            payload,
            public_id=self._public_id(path),
            resource_type=self._resource_type(path),
            overwrite=True,
            invalidate=True,
        )
        return result["secure_url"]

    async def get(self, path: str) -> bytes | None:
        try:
            resource = await self._run(
                cloudinary.api.resource,
                self._public_id(path),
                resource_type=self._resource_type(path),
            )
        except cloudinary.exceptions.NotFound:
            return None

        async with AsyncClient(timeout=settings.SHEETS_TIMEOUT) as client:
            try:
                response = await client.get(resource["secure_url"])
                response.raise_for_status()
            except HTTPError as e:
                mssg = f"Failed to download {path}: {e}"
                raise StorageError(mssg) from e
        return response.content

    async def delete(self, path: str) -> bool:
        result = await self._run(
            cloudinary.uploader.destroy,
            self._public_id(path),
            resource_type=self._resource_type(path),
            invalidate=True,
        )
        return result.get("result") == "ok"

    async def list_objects(self, prefix: str, limit: int = 100, offset: int = 0) -> list[BlobInfo]:
        result = await self._run(
            cloudinary.api.resources,
            type="upload",
            resource_type="image",
            prefix=self._public_id(prefix),
            max_results=min(offset + limit, MAX_RESULTS),
        )
        resources = sorted(
            result.get("resources", []),
            key=lambda r: r.get("created_at", ""),
            reverse=True,
        )
        strip = len(self.folder) + 1
        return [
            BlobInfo(r["public_id"][strip:], r["secure_url"], r.get("created_at"))
            for r in resources[offset : offset + limit]
        ]
