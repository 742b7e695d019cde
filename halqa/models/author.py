"""Author and author request database models."""

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

from pydantic import ConfigDict
from sqlalchemy import DateTime, Index
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String, Text

from halqa.models._types import utcnow


class AuthorDB(SQLModel, table=True):
    """
    Author database model for PostgreSQL.

    Authors are identified by their lowercase, url-safe ``handle``. Rows are
    created when an admin approves an author request and removed only by the
    cascading author delete.
    """

    __tablename__ = cast("declared_attr[str]", "authors")

    __table_args__ = (Index("ix_authors_listing", "status", "listing_status", "visibility"),)

    handle: str = Field(
        sa_column=Column(String(50), primary_key=True),
        description="Unique lowercase handle",
    )
    name: str = Field(sa_column=Column(String(100), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False))
    bio: str | None = Field(default=None, sa_column=Column(Text))
    website: str | None = Field(default=None, sa_column=Column(String(255)))
    avatar_url: str | None = Field(default=None, sa_column=Column(String(500)))

    role: str = Field(
        default="regular",
        sa_column=Column(String(20), nullable=False, server_default="regular"),
        description="regular or admin",
    )
    status: str = Field(
        default="active",
        sa_column=Column(String(20), nullable=False, server_default="active"),
        description="active or suspended",
    )
    listing_status: str = Field(
        default="listed",
        sa_column=Column(String(20), nullable=False, server_default="listed"),
        description="listed or unlisted",
    )
    visibility: str = Field(
        default="visible",
        sa_column=Column(String(20), nullable=False, server_default="visible"),
        description="visible or hidden",
    )
    api_token: str = Field(
        sa_column=Column(String(128), nullable=False, unique=True),
        description="Opaque author secret",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "handle": "nadia",
                "name": "Nadia Rahman",
                "email": "nadia@example.com",
                "role": "regular",
                "status": "active",
                "listing_status": "listed",
                "visibility": "visible",
            },
        },
    )


class AuthorRequestDB(SQLModel, table=True):
    """Pending request from the public join form."""

    __tablename__ = cast("declared_attr[str]", "author_requests")

    id: UUID = Field(default_factory=uuid4, primary_key=True, nullable=False)
    handle: str = Field(sa_column=Column(String(50), nullable=False, unique=True, index=True))
    name: str = Field(sa_column=Column(String(100), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False))
    bio: str | None = Field(default=None, sa_column=Column(Text))
    website: str | None = Field(default=None, sa_column=Column(String(255)))
    api_token: str = Field(sa_column=Column(String(128), nullable=False))
    status: str = Field(
        default="pending",
        sa_column=Column(String(20), nullable=False, server_default="pending", index=True),
        description="pending, approved or rejected",
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
