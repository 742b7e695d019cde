"""Key/value settings and preference models."""

from datetime import datetime
from typing import Any, cast

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String

from halqa.models._types import JSONType, utcnow


class SettingDB(SQLModel, table=True):
    """Single site setting, e.g. ``join_disabled``. Upserted, no history."""

    __tablename__ = cast("declared_attr[str]", "settings")

    key: str = Field(sa_column=Column(String(100), primary_key=True))
    value: Any = Field(default=None, sa_column=Column(JSONType))
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class PreferenceDB(SQLModel, table=True):
    """
    Display preference.

    ``author_handle`` NULL holds the site-wide value; otherwise the row
    belongs to (and is deleted with) that author.
    """

    __tablename__ = cast("declared_attr[str]", "preferences")

    __table_args__ = (
        UniqueConstraint("author_handle", "key", name="uq_preferences_author_key"),
    )

    id: int | None = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    author_handle: str | None = Field(
        default=None,
        sa_column=Column(
            "author_handle",
            ForeignKey("authors.handle", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
    )
    key: str = Field(sa_column=Column(String(100), nullable=False))
    value: Any = Field(default=None, sa_column=Column(JSONType))
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
