# tests/routes/test_media_routes.py
"""Tests for the image upload and deletion routes."""

from io import BytesIO

import pytest
from fastapi import status
from httpx import AsyncClient
from PIL import Image

from halqa.dependencies.dependencies import get_author_repository
from halqa.errors.storage import StorageError
from halqa.main import app
from halqa.models import AuthorDB


@pytest.fixture
def wired(fake_authors: object) -> None:
    app.dependency_overrides[get_author_repository] = lambda: fake_authors


def png_bytes(size: tuple[int, int] = (120, 80)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, (10, 120, 200)).save(buffer, "PNG")
    return buffer.getvalue()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestAvatarUpload:
    """Tests for POST /api/upload/avatar."""

    @pytest.mark.asyncio
    async def test_author_token_replaces_avatar(
        self,
        client: AsyncClient,
        wired: None,
        author: AuthorDB,
        blob_store: object,
    ) -> None:
        await blob_store.put("avatars/nadia.png", b"old")
        author.avatar_url = "/uploads/avatars/nadia.png"

        response = await client.post(
            "/api/upload/avatar",
            files={"avatar": ("me.png", png_bytes(), "image/png")},
            data={"handle": "nadia", "authorToken": "nadia-token"},
        )

        body = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert body["success"] is True
        assert body["avatarUrl"].startswith("/uploads/avatars/nadia.jpg?t=")
        assert author.avatar_url == body["avatarUrl"]
        assert "avatars/nadia.jpg" in blob_store.objects
        assert "avatars/nadia.png" not in blob_store.objects

    @pytest.mark.asyncio
    async def test_admin_may_upload_for_any_author(
        self,
        client: AsyncClient,
        wired: None,
        admin_headers: dict[str, str],
        blob_store: object,
    ) -> None:
        response = await client.post(
            "/api/upload/avatar",
            files={"avatar": ("me.png", png_bytes(), "image/png")},
            data={"handle": "nadia"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert "avatars/nadia.jpg" in blob_store.objects

    @pytest.mark.asyncio
    async def test_wrong_token_stores_nothing(
        self,
        client: AsyncClient,
        wired: None,
        blob_store: object,
    ) -> None:
        response = await client.post(
            "/api/upload/avatar",
            files={"avatar": ("me.png", png_bytes(), "image/png")},
            data={"handle": "nadia"},
            headers=bearer("editor-token"),
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert blob_store.objects == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("content_type", "data", "expected"),
        [
            ("application/pdf", b"%PDF-1.4", status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
            ("image/png", b"not really a png", status.HTTP_400_BAD_REQUEST),
        ],
    )
    async def test_non_images_are_refused(
        self,
        client: AsyncClient,
        wired: None,
        content_type: str,
        data: bytes,
        expected: int,
    ) -> None:
        response = await client.post(
            "/api/upload/avatar",
            files={"avatar": ("file", data, content_type)},
            data={"handle": "nadia", "authorToken": "nadia-token"},
        )

        assert response.status_code == expected
        assert "error" in response.json()


class TestPostImages:
    """Tests for the admin image endpoints."""

    @pytest.mark.asyncio
    async def test_upload_requires_admin(self, client: AsyncClient, blob_store: object) -> None:
        response = await client.post(
            "/api/upload/post-image",
            files={"file": ("cover.png", png_bytes(), "image/png")},
            headers=bearer("nadia-token"),
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert blob_store.objects == {}

    @pytest.mark.asyncio
    async def test_upload_then_list(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        blob_store: object,
    ) -> None:
        await blob_store.put("images/readme.txt", b"x")

        uploaded = await client.post(
            "/api/upload/post-image",
            files={"file": ("cover.png", png_bytes(), "image/png")},
            headers=admin_headers,
        )
        listed = await client.get("/api/images/list", headers=admin_headers)

        path = uploaded.json()["path"]
        assert uploaded.status_code == status.HTTP_200_OK
        assert listed.json() == {"images": [{"name": path, "url": f"/uploads/{path}"}]}

    @pytest.mark.asyncio
    async def test_delete_outside_images_is_bad_request(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        blob_store: object,
    ) -> None:
        await blob_store.put("avatars/nadia.jpg", b"x")

        response = await client.post(
            "/api/images/delete",
            json={"path": "avatars/nadia.jpg"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Invalid path"}
        assert "avatars/nadia.jpg" in blob_store.objects

    @pytest.mark.asyncio
    async def test_delete_image(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        blob_store: object,
    ) -> None:
        await blob_store.put("images/a.png", b"x")

        response = await client.post(
            "/api/images/delete",
            json={"path": "images/a.png"},
            headers=admin_headers,
        )

        assert response.json() == {"success": True, "removed": True}
        assert blob_store.objects == {}


class TestBlobDeletion:
    """Tests for /api/delete-image and /api/delete-images."""

    @pytest.mark.asyncio
    async def test_single_delete_with_secret(self, client: AsyncClient, blob_store: object) -> None:
        await blob_store.put("csv/posts.csv", "x")

        response = await client.post(
            "/api/delete-image",
            json={"pathname": "csv/posts.csv"},
            headers=bearer("reval-secret"),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["pathname"] == "csv/posts.csv"
        assert blob_store.objects == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer guess"}])
    async def test_single_delete_needs_secret(
        self,
        client: AsyncClient,
        blob_store: object,
        headers: dict[str, str],
    ) -> None:
        await blob_store.put("csv/posts.csv", "x")

        response = await client.post(
            "/api/delete-image",
            json={"pathname": "csv/posts.csv"},
            headers=headers,
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert "csv/posts.csv" in blob_store.objects

    @pytest.mark.asyncio
    async def test_single_delete_without_pathname(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/delete-image",
            json={},
            headers=bearer("reval-secret"),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "No pathname provided"}

    @pytest.mark.asyncio
    async def test_batch_reports_partial_failure(
        self,
        client: AsyncClient,
        blob_store: object,
    ) -> None:
        await blob_store.put("images/a.png", b"1")
        await blob_store.put("images/b.png", b"2")
        original_delete = blob_store.delete

        async def flaky_delete(path: str) -> bool:
            if path == "images/b.png":
                raise StorageError("backend down")
            return await original_delete(path)

        blob_store.delete = flaky_delete

        response = await client.request(
            "DELETE",
            "/api/delete-images",
            json={"pathnames": ["images/a.png", "images/b.png"]},
            headers=bearer("reval-secret"),
        )

        body = response.json()
        assert response.status_code == status.HTTP_207_MULTI_STATUS
        assert body["success"] is False
        assert [r["success"] for r in body["results"]] == [True, False]
        assert body["results"][1]["error"] == "backend down"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("payload", "error"),
        [
            ({}, "Either pathname (string) or pathnames (array) is required"),
            ({"pathnames": []}, "No pathnames provided"),
        ],
    )
    async def test_batch_needs_targets(
        self,
        client: AsyncClient,
        payload: dict,
        error: str,
    ) -> None:
        response = await client.request(
            "DELETE",
            "/api/delete-images",
            json=payload,
            headers=bearer("reval-secret"),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": error}

    @pytest.mark.asyncio
    async def test_batch_preflight_allows_delete(self, client: AsyncClient) -> None:
        response = await client.options(
            "/api/delete-images",
            headers={
                "Origin": "https://elsewhere.example",
                "Access-Control-Request-Method": "DELETE",
            },
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert "DELETE" in response.headers["access-control-allow-methods"]
