"""Image upload and deletion schemas."""

from pydantic import BaseModel


class ImageDeleteRequest(BaseModel):
    """Delete one post image; ``path`` must sit under ``images/``."""

    path: str | None = None


class BlobDeleteRequest(BaseModel):
    pathname: str | None = None


class BlobBatchDeleteRequest(BaseModel):
    """One ``pathname`` or a list of ``pathnames``; the single form wins."""

    pathname: str | None = None
    pathnames: list[str] | None = None

    def targets(self) -> list[str] | None:
        if self.pathname is not None:
            return [self.pathname]
        return self.pathnames
