"""
Image upload service.

Avatars are center-cropped to a square, resized and re-encoded as JPEG under
``avatars/<handle>.jpg``. Post images are checked with Pillow and stored as
uploaded under ``images/``, which is also the only folder the admin image
browser lists or deletes from.
"""

import re
from dataclasses import dataclass
from io import BytesIO
from logging import getLogger
from time import time_ns

from fastapi import UploadFile
from PIL import Image, ImageOps

from halqa.configs import Settings, file_logger
from halqa.configs.settings import AVATARS_FOLDER, IMAGE_EXTENSIONS, IMAGES_FOLDER
from halqa.errors.storage import StorageError
from halqa.errors.upload import (
    ImageTooLargeError,
    InvalidImageError,
    InvalidImagePathError,
    UnsupportedImageTypeError,
    UploadError,
)
from halqa.models.author import AuthorDB
from halqa.services.storage import BlobInfo, BlobStore

logger = file_logger(getLogger(__name__))

_UNSAFE_FILENAME = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_filename(name: str) -> str:
    return _UNSAFE_FILENAME.sub("-", name)


def cache_busted(url: str) -> str:
    """Append a millisecond ``t`` parameter so browsers refetch a replaced image."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}t={time_ns() // 1_000_000}"


@dataclass(frozen=True)
class AvatarUpload:
    url: str
    path: str
    original_size: int
    optimized_size: int

    @property
    def reduction(self) -> int:
        """Size saved by re-encoding, in percent of the original."""
        if not self.original_size:
            return 0
        return round((1 - self.optimized_size / self.original_size) * 100)


@dataclass(frozen=True)
class DeleteOutcome:
    path: str
    success: bool
    error: str | None = None


class MediaService:
    """
    Validation, processing and storage of uploaded images.

    Args:
        blob_store: Backend the images are written to.
        config: Settings holding the size limits and accepted types.
    """

    def __init__(self, blob_store: BlobStore, config: Settings) -> None:
        self.blob_store = blob_store
        self.allowed_types = config.IMAGE_ALLOWED_TYPES
        self.avatar_max_size_mb = config.AVATAR_MAX_SIZE_MB
        self.avatar_dimension = config.AVATAR_DIMENSION
        self.avatar_quality = config.AVATAR_QUALITY
        self.image_max_size_mb = config.POST_IMAGE_MAX_SIZE_MB

    async def _read(self, file: UploadFile, max_size_mb: int) -> bytes:
        if not file.content_type or file.content_type not in self.allowed_types:
            logger.info(f"Refused upload of type {file.content_type}")
            raise UnsupportedImageTypeError
        data = await file.read()
        if len(data) > max_size_mb * 1024 * 1024:
            raise ImageTooLargeError(max_size_mb)
        return data

    @staticmethod
    def _open_image(data: bytes) -> Image.Image:
        try:
            img = Image.open(BytesIO(data))
            img.verify()
            # verify() leaves the image unusable
            return Image.open(BytesIO(data))
        except Exception as e:
            mssg = f"Invalid or corrupted image file: {e!s}"
            raise InvalidImageError(mssg) from e

    def _process_avatar(self, img: Image.Image) -> bytes:
        try:
            if img.mode != "RGB":
                img = img.convert("RGB")
            size = (self.avatar_dimension, self.avatar_dimension)
            img = ImageOps.fit(img, size, Image.Resampling.LANCZOS)

            buffer = BytesIO()
            img.save(buffer, format="JPEG", quality=self.avatar_quality, optimize=True)
            return buffer.getvalue()
        except Exception as e:
            mssg = f"Failed to process image: {e!s}"
            raise UploadError(mssg) from e

    async def upload_avatar(self, author: AuthorDB, file: UploadFile) -> AvatarUpload:
        """
        Store a new avatar for ``author``, replacing any previous one at the same path.

        Raises:
            UnsupportedImageTypeError: If the content type is not an accepted image
            ImageTooLargeError: If the file exceeds ``AVATAR_MAX_SIZE_MB``
            InvalidImageError: If the bytes do not decode as an image
            StorageError: If the blob store rejects the write
        """
        data = await self._read(file, self.avatar_max_size_mb)
        optimized = self._process_avatar(self._open_image(data))

        path = f"{AVATARS_FOLDER}/{author.handle}.jpg"
        url = await self.blob_store.put(path, optimized, content_type="image/jpeg")
        upload = AvatarUpload(cache_busted(url), path, len(data), len(optimized))
        logger.info(
            f"Avatar for {author.handle} stored at {path} "
            f"({upload.original_size} -> {upload.optimized_size} bytes)",
        )
        return upload

    async def upload_post_image(self, file: UploadFile) -> BlobInfo:
        """Store a post image under ``images/<timestamp>-<name>``."""
        data = await self._read(file, self.image_max_size_mb)
        self._open_image(data)

        content_type = file.content_type or "image/jpeg"
        extension = content_type.split("/")[1]
        name = sanitize_filename(file.filename or f"image.{extension}")
        path = f"{IMAGES_FOLDER}/{time_ns() // 1_000_000}-{name}"

        url = await self.blob_store.put(path, data, content_type=content_type)
        logger.info(f"Post image stored at {path}")
        return BlobInfo(path, url)

    async def list_images(self, limit: int = 100, offset: int = 0) -> list[BlobInfo]:
        """Post images, newest first."""
        objects = await self.blob_store.list_objects(IMAGES_FOLDER, limit, offset)
        return [obj for obj in objects if obj.path.lower().endswith(IMAGE_EXTENSIONS)]

    async def delete_image(self, path: str | None) -> bool:
        """
        Delete one post image.

        Raises:
            InvalidImagePathError: If ``path`` is not inside ``images/``
        """
        if not path or not path.startswith(f"{IMAGES_FOLDER}/") or ".." in path.split("/"):
            raise InvalidImagePathError
        return await self.blob_store.delete(path)

    async def delete_paths(self, paths: list[str]) -> list[DeleteOutcome]:
        """Delete each path; one failure does not stop the others."""
        outcomes = []
        for path in paths:
            try:
                await self.blob_store.delete(path)
            except StorageError as e:
                logger.warning(f"Failed to delete {path}: {e}")
                outcomes.append(DeleteOutcome(path, success=False, error=e.detail))
            else:
                outcomes.append(DeleteOutcome(path, success=True))
        return outcomes

    async def discard(self, path: str) -> bool:
        """Best-effort removal of a replaced object."""
        try:
            return await self.blob_store.delete(path)
        except StorageError as e:
            logger.warning(f"Failed to remove replaced object {path}: {e}")
            return False
