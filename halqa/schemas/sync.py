"""
Request bodies for the sync, revalidation and preference endpoints.

Shared-secret routes carry the secret in the body as ``secret`` (or
``token`` for the warming endpoints).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from halqa.configs.settings import MAX_HANDLE_LENGTH
from halqa.schemas.author import AuthorCredentials


class SecretBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    secret: str | None = None
    token: str | None = None

    @property
    def presented(self) -> str | None:
        return self.secret or self.token


class RevalidateRequest(SecretBody):
    """CSV snapshot upload followed by path revalidation."""

    csv_content: str | None = Field(default=None, alias="csvContent")
    path: str | None = None


class RevalidatePostRequest(SecretBody):
    tags: list[str] = Field(default_factory=list)
    paths: list[str] = Field(default_factory=list)
    author_handle: str | None = Field(default=None, alias="authorHandle")


class SyncContentRequest(SecretBody):
    """Full posts sync from rows, raw CSV or a sheet URL (first one given wins)."""

    posts: list[dict[str, Any]] | None = None
    csv_content: str | None = Field(default=None, alias="csvContent")
    sheet_url: str | None = Field(default=None, alias="sheetUrl")


class AuthorSyncRequest(AuthorCredentials):
    posts: list[dict[str, Any]] | None = None
    csv_content: str | None = Field(default=None, alias="csvContent")
    sheet_url: str | None = Field(default=None, alias="sheetUrl")


class AuthorRevalidateRequest(AuthorCredentials):
    path: str | None = None
    slug: str | None = None


class PreferencesUpdateRequest(SecretBody):
    preferences: dict[str, Any] = Field(default_factory=dict)


class AuthorPreferencesRequest(AuthorCredentials):
    preferences: dict[str, Any] = Field(default_factory=dict)


class SettingsSaveRequest(SecretBody):
    csv_content: str | None = Field(default=None, alias="csvContent")
    font_style: str | None = Field(default=None, alias="fontStyle", max_length=50)


class SyncStats(BaseModel):
    inserted: int = 0
    updated: int = 0
    deleted: int = 0


class AuthorAuthenticateRequest(SecretBody):
    """Server secret plus the author credentials being checked."""

    handle: str | None = Field(default=None, max_length=MAX_HANDLE_LENGTH)
    author_token: str | None = Field(default=None, alias="authorToken")
