"""Comment database model."""

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String

from halqa.configs.settings import MAX_COMMENT_LENGTH
from halqa.models._types import utcnow


class CommentDB(SQLModel, table=True):
    """Reader comment on a post. Append-only."""

    __tablename__ = cast("declared_attr[str]", "comments")

    id: UUID = Field(default_factory=uuid4, primary_key=True, nullable=False)
    post_slug: str = Field(sa_column=Column(String(200), nullable=False, index=True))
    author_email: str = Field(sa_column=Column(String(255), nullable=False))
    author_name: str = Field(sa_column=Column(String(100), nullable=False))
    content: str = Field(sa_column=Column(String(MAX_COMMENT_LENGTH), nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
