"""
Author schemas.

Request and response models for authors, join requests and the admin
author lifecycle. JSON field names are camelCase; Python attributes stay
snake_case (``populate_by_name``).
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from halqa.configs.settings import HANDLE_PATTERN, MAX_HANDLE_LENGTH

type AuthorRole = Literal["regular", "admin"]
type AuthorStatus = Literal["active", "suspended"]
type ListingStatus = Literal["listed", "unlisted"]
type Visibility = Literal["visible", "hidden"]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class AuthorPublic(BaseModel):
    """Public author profile (no contact details or secrets)."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    handle: str
    name: str
    bio: str | None = None
    website: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")


class AuthorResponse(AuthorPublic):
    """Author as seen by admins."""

    email: str
    role: AuthorRole
    status: AuthorStatus
    listing_status: ListingStatus = Field(alias="listingStatus")
    visibility: Visibility
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class JoinRequestCreate(BaseModel):
    """Public join form submission."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100, examples=["Nadia Rahman"])
    handle: str = Field(
        ...,
        min_length=1,
        max_length=MAX_HANDLE_LENGTH,
        pattern=HANDLE_PATTERN,
        examples=["nadia"],
    )
    email: str = Field(..., pattern=EMAIL_PATTERN, examples=["nadia@example.com"])
    bio: str | None = Field(default=None, max_length=1000)
    website: str | None = Field(default=None, max_length=255)

    @field_validator("handle")
    @classmethod
    def lowercase_handle(cls, value: str) -> str:
        return value.lower()


class AuthorRequestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    handle: str
    name: str
    email: str
    bio: str | None = None
    website: str | None = None
    status: Literal["pending", "approved", "rejected"]
    created_at: datetime = Field(alias="createdAt")


class RoleUpdate(BaseModel):
    role: AuthorRole


class ListingStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    listing_status: ListingStatus = Field(alias="listingStatus")


class VisibilityUpdate(BaseModel):
    visibility: Visibility


class AuthorTokenRequest(BaseModel):
    handle: str = Field(..., min_length=1, max_length=MAX_HANDLE_LENGTH)


class JoinToggle(BaseModel):
    enabled: bool


class AuthorCredentials(BaseModel):
    """Author handle plus token given in the body instead of a bearer header."""

    model_config = ConfigDict(populate_by_name=True)

    handle: str = Field(..., min_length=1, max_length=MAX_HANDLE_LENGTH)
    author_token: str | None = Field(default=None, alias="authorToken")
