"""Comment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from halqa.configs.settings import MAX_COMMENT_LENGTH
from halqa.schemas.author import EMAIL_PATTERN


class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    post_slug: str = Field(..., min_length=1, max_length=200, alias="postSlug")
    author_email: str = Field(..., pattern=EMAIL_PATTERN, alias="authorEmail")
    author_name: str = Field(..., min_length=1, max_length=100, alias="authorName")
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)


class CommentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    post_slug: str = Field(alias="postSlug")
    author_name: str = Field(alias="authorName")
    content: str
    created_at: datetime = Field(alias="createdAt")
