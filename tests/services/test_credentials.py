# tests/services/test_credentials.py
"""Tests for credential checks."""

import pytest
from starlette.requests import Request

from halqa.configs import Settings
from halqa.errors.auth import (
    AuthenticationError,
    InvalidAuthorCredentialsError,
    SuspendedAuthorError,
)
from halqa.errors.config import ConfigurationError
from halqa.schemas.sync import SecretBody
from halqa.services.credentials import (
    authenticate_author,
    bearer_token,
    is_admin_request,
    matches,
    presented_secret,
    require_cron,
    require_secret,
    verify_admin_password,
)


def make_request(headers: dict[str, str] | None = None, query: str = "") -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/api/test",
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "query_string": query.encode(),
        },
    )


class TestPrimitives:
    @pytest.mark.parametrize(
        ("presented", "expected", "result"),
        [("abc", "abc", True), ("abc", "abd", False), ("", "", False), (None, "abc", False)],
    )
    def test_matches(self, presented: str | None, expected: str, result: bool) -> None:
        assert matches(presented, expected) is result

    @pytest.mark.parametrize(
        ("header", "token"),
        [("Bearer abc", "abc"), ("bearer  abc ", "abc"), ("Basic abc", None), ("Bearer ", None)],
    )
    def test_bearer_token(self, header: str, token: str | None) -> None:
        assert bearer_token(make_request({"Authorization": header})) == token

    def test_presented_secret_prefers_body(self) -> None:
        request = make_request(query="secret=from-query")
        assert presented_secret(request, SecretBody(token="from-body")) == "from-body"
        assert presented_secret(request, SecretBody()) == "from-query"
        assert presented_secret(make_request(query="token=t")) == "t"


class TestAdmin:
    def test_cookie_or_bearer(self, test_settings: Settings) -> None:
        assert is_admin_request(make_request({"Authorization": "Bearer admin-token"}), test_settings)
        assert is_admin_request(make_request({"Cookie": "admin_token=admin-token"}), test_settings)
        assert not is_admin_request(make_request({"Cookie": "admin_token=nope"}), test_settings)

    def test_unset_token_fails_closed(self, test_settings: Settings) -> None:
        test_settings.ADMIN_API_TOKEN = None
        assert not is_admin_request(make_request({"Authorization": "Bearer "}), test_settings)

    def test_password(self, test_settings: Settings) -> None:
        assert verify_admin_password("open-sesame", test_settings) == "admin-token"
        with pytest.raises(AuthenticationError):
            verify_admin_password("guess", test_settings)

    def test_password_not_configured(self, test_settings: Settings) -> None:
        test_settings.ADMIN_PASSWORD = None
        with pytest.raises(ConfigurationError, match="ADMIN_PASSWORD is not configured"):
            verify_admin_password("", test_settings)


class TestSharedSecrets:
    def test_missing_secret_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            require_secret("anything", None, "REVALIDATION_SECRET")

    def test_wrong_secret(self) -> None:
        with pytest.raises(AuthenticationError) as exc_info:
            require_secret("nope", "reval-secret", "REVALIDATION_SECRET")
        assert exc_info.value.status_code == 401

    def test_cron_uses_bearer_only(self, test_settings: Settings) -> None:
        require_cron(make_request({"Authorization": "Bearer cron-secret"}), test_settings)
        with pytest.raises(AuthenticationError):
            require_cron(make_request(query="secret=cron-secret"), test_settings)


class TestAuthenticateAuthor:
    @pytest.mark.asyncio
    async def test_valid_token(self, fake_authors: object) -> None:
        author = await authenticate_author(fake_authors, "Nadia", "nadia-token")
        assert author.handle == "nadia"

    @pytest.mark.asyncio
    async def test_token_of_another_author(self, fake_authors: object) -> None:
        with pytest.raises(InvalidAuthorCredentialsError):
            await authenticate_author(fake_authors, "nadia", "editor-token")

    @pytest.mark.asyncio
    async def test_missing_values(self, fake_authors: object) -> None:
        with pytest.raises(AuthenticationError, match="required"):
            await authenticate_author(fake_authors, "nadia", None)

    @pytest.mark.asyncio
    async def test_suspended(self, fake_authors: object, author: object) -> None:
        author.status = "suspended"
        with pytest.raises(SuspendedAuthorError) as exc_info:
            await authenticate_author(fake_authors, "nadia", "nadia-token")
        assert exc_info.value.status_code == 403
