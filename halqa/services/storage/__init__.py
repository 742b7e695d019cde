"""
Blob storage package.

Backends for CSV snapshots, the sitemap, avatars and post images: local
filesystem or Cloudinary, selected by ``STORAGE_PROVIDER``.
"""

from halqa.configs.settings import Settings, settings
from halqa.services.storage.base import BlobInfo, BlobStore
from halqa.services.storage.cloudinary_storage import CloudinaryStorage
from halqa.services.storage.local import LocalStorage


def get_blob_store(config: Settings = settings) -> BlobStore:
    """
    Return the configured blob store.

    Returns:
        BlobStore: Cloudinary when ``STORAGE_PROVIDER`` is ``cloudinary``,
        the local filesystem otherwise.
    """
    if config.STORAGE_PROVIDER == "cloudinary":
        return CloudinaryStorage()
    return LocalStorage(config.UPLOADS_DIR)


__all__ = [
    "BlobInfo",
    "BlobStore",
    "CloudinaryStorage",
    "LocalStorage",
    "get_blob_store",
]
