"""Blog post database model."""

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String, Text

from halqa.models._types import JSONType, utcnow


class PostDB(SQLModel, table=True):
    """
    Post database model for PostgreSQL.

    ``author_handle`` is NULL for site posts synced from the main sheet and
    references ``authors.handle`` otherwise. Deleting the author deletes
    their posts.
    """

    __tablename__ = cast("declared_attr[str]", "posts")

    __table_args__ = (
        Index("ix_posts_author_published", "author_handle", "published"),
        Index("ix_posts_published_date", "published", "date"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, nullable=False)
    slug: str = Field(
        sa_column=Column(String(200), unique=True, nullable=False, index=True),
        description="URL-friendly slug (unique)",
    )
    title: str = Field(sa_column=Column(String(300), nullable=False))
    content: str = Field(default="", sa_column=Column(Text, nullable=False))
    description: str | None = Field(default=None, sa_column=Column(Text))
    date: str | None = Field(
        default=None,
        sa_column=Column(String(40)),
        description="Publication date as written in the sheet",
    )
    categories: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSONType, nullable=False),
    )
    image: str | None = Field(default=None, sa_column=Column(String(500)))
    author_handle: str | None = Field(
        default=None,
        sa_column=Column(
            "author_handle",
            ForeignKey("authors.handle", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
    )
    published: bool = Field(default=True, sa_column=Column(Boolean, nullable=False))
    featured: bool = Field(default=False, sa_column=Column(Boolean, nullable=False))
    comment: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False),
        description="Comments enabled",
    )
    socmed: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False),
        description="Social sharing enabled",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )
