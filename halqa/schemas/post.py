"""Post schemas."""

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from halqa.utils.helpers import split_categories

Categories = Annotated[list[str], BeforeValidator(split_categories)]


class PostBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=300)
    slug: str = Field(..., min_length=1, max_length=200, pattern=r"^[a-zA-Z0-9_-]+$")
    content: str = ""
    description: str | None = None
    date: str | None = None
    categories: Categories = Field(default_factory=list)
    image: str | None = None
    author_handle: str | None = Field(default=None, alias="authorHandle")
    published: bool = True
    featured: bool = False
    comment: bool = True
    socmed: bool = True


class PostCreate(PostBase):
    """Admin post creation payload."""


class PostUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    slug: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    description: str | None = None
    date: str | None = None
    categories: Categories | None = None
    image: str | None = None
    author_handle: str | None = Field(default=None, alias="authorHandle")
    published: bool | None = None
    featured: bool | None = None
    comment: bool | None = None
    socmed: bool | None = None


class PostResponse(PostBase):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    slug: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


def dump_post(post: Any) -> dict[str, Any]:  # noqa: ANN401
    """Serialise a post row with camelCase keys."""
    return PostResponse.model_validate(post).model_dump(mode="json", by_alias=True)
