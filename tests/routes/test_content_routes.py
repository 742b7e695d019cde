# tests/routes/test_content_routes.py
"""Tests for the public content routes."""

from unittest.mock import AsyncMock

import pytest
from fastapi import status
from httpx import AsyncClient

from halqa.dependencies.dependencies import (
    get_author_repository,
    get_blob_store_dep,
    get_comment_repository,
    get_post_repository,
)
from halqa.errors import StorageError
from halqa.main import app
from halqa.managers.cache_manager import CacheManager
from halqa.models import CommentDB


class TestPosts:
    """Tests for GET /api/posts and /api/posts/{slug}."""

    @pytest.mark.asyncio
    async def test_list_is_cached_until_posts_tag_cleared(
        self,
        client: AsyncClient,
        cache_manager: CacheManager,
        fake_posts: object,
        post_factory: object,
    ) -> None:
        fake_posts.rows = {"hello": post_factory("hello")}
        app.dependency_overrides[get_post_repository] = lambda: fake_posts

        first = await client.get("/api/posts")
        fake_posts.rows["second"] = post_factory("second")
        cached = await client.get("/api/posts")

        assert [p["slug"] for p in first.json()["posts"]] == ["hello"]
        assert cached.json() == first.json()

        await cache_manager.clear(namespace="posts")
        fresh = await client.get("/api/posts")
        assert {p["slug"] for p in fresh.json()["posts"]} == {"hello", "second"}

    @pytest.mark.asyncio
    async def test_author_filter(
        self,
        client: AsyncClient,
        fake_posts: object,
        post_factory: object,
    ) -> None:
        fake_posts.rows = {
            "site": post_factory("site"),
            "mine": post_factory("mine", "nadia"),
        }
        app.dependency_overrides[get_post_repository] = lambda: fake_posts

        response = await client.get("/api/posts", params={"author": "Nadia"})

        assert [p["slug"] for p in response.json()["posts"]] == ["mine"]

    @pytest.mark.asyncio
    async def test_unpublished_post_is_not_found(
        self,
        client: AsyncClient,
        mock_post_repo: AsyncMock,
        post_factory: object,
    ) -> None:
        mock_post_repo.get_by_slug.return_value = post_factory("draft", published=False)
        app.dependency_overrides[get_post_repository] = lambda: mock_post_repo

        response = await client.get("/api/posts/draft")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "Post 'draft' not found"}


class TestAuthors:
    @pytest.mark.asyncio
    async def test_only_public_authors_are_listed(
        self,
        client: AsyncClient,
        fake_authors: object,
        author_factory: object,
    ) -> None:
        for author in (
            author_factory("hidden", visibility="hidden"),
            author_factory("gone", status="suspended"),
            author_factory("quiet", listing_status="unlisted"),
        ):
            fake_authors.rows[author.handle] = author
        app.dependency_overrides[get_author_repository] = lambda: fake_authors

        response = await client.get("/api/authors")

        handles = [a["handle"] for a in response.json()["authors"]]
        assert handles == ["editor", "nadia"]
        assert "apiToken" not in response.json()["authors"][0]


class TestSettingsFallback:
    @pytest.mark.asyncio
    async def test_storage_failure_serves_defaults(self, client: AsyncClient) -> None:
        broken = AsyncMock()
        broken.get.side_effect = StorageError("blob store unreachable")
        app.dependency_overrides[get_blob_store_dep] = lambda: broken

        response = await client.get("/api/settings")

        assert response.status_code == status.HTTP_200_OK
        assert response.text.endswith("Editor Layout,font style,serif")


class TestComments:
    """Tests for the comment routes."""

    @pytest.mark.asyncio
    async def test_comment_on_commentable_post(
        self,
        client: AsyncClient,
        mock_post_repo: AsyncMock,
        post_factory: object,
    ) -> None:
        comments = AsyncMock()
        comments.create.return_value = CommentDB(
            post_slug="hello",
            author_email="reader@example.com",
            author_name="Reader",
            content="Lovely",
        )
        mock_post_repo.get_by_slug.return_value = post_factory("hello")
        app.dependency_overrides[get_post_repository] = lambda: mock_post_repo
        app.dependency_overrides[get_comment_repository] = lambda: comments

        response = await client.post(
            "/api/comments",
            json={
                "postSlug": "hello",
                "authorEmail": "reader@example.com",
                "authorName": "Reader",
                "content": "Lovely",
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["comment"]["content"] == "Lovely"
        comments.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_comments_disabled_is_not_found(
        self,
        client: AsyncClient,
        mock_post_repo: AsyncMock,
        post_factory: object,
    ) -> None:
        comments = AsyncMock()
        mock_post_repo.get_by_slug.return_value = post_factory("quiet", comment=False)
        app.dependency_overrides[get_post_repository] = lambda: mock_post_repo
        app.dependency_overrides[get_comment_repository] = lambda: comments

        response = await client.post(
            "/api/comments",
            json={
                "postSlug": "quiet",
                "authorEmail": "reader@example.com",
                "authorName": "Reader",
                "content": "Hi",
            },
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        comments.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_overlong_comment_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/comments",
            json={
                "postSlug": "hello",
                "authorEmail": "reader@example.com",
                "authorName": "Reader",
                "content": "x" * 2001,
            },
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
