# tests/services/test_authors.py
"""Tests for the author lifecycle service."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from halqa.errors.database import DatabaseError, DuplicateEntryError, RecordNotFoundError
from halqa.errors.storage import StorageError
from halqa.models.author import AuthorRequestDB
from halqa.schemas.author import JoinRequestCreate
from halqa.services.authors import AuthorService, avatar_blob_path


@pytest.fixture
def requests_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.handle_taken.return_value = False
    return repo


@pytest.fixture
def service(
    fake_authors: object,
    requests_repo: AsyncMock,
    fake_posts: object,
    fake_preferences: object,
    blob_store: object,
) -> AuthorService:
    return AuthorService(fake_authors, requests_repo, fake_posts, fake_preferences, blob_store)


@pytest.mark.parametrize(
    ("url", "path"),
    [
        ("/uploads/avatars/nadia.png", "avatars/nadia.png"),
        ("https://res.cloudinary.com/x/image/upload/v1/avatars/nadia.jpg?v=2", "avatars/nadia.jpg"),
        ("https://gravatar.test/abc", None),
        (None, None),
    ],
)
def test_avatar_blob_path(url: str | None, path: str | None) -> None:
    assert avatar_blob_path(url) == path


class TestJoinRequests:
    @pytest.mark.asyncio
    async def test_taken_handle(self, service: AuthorService, requests_repo: AsyncMock) -> None:
        form = JoinRequestCreate(name="Nadia", handle="nadia", email="n@example.com")

        with pytest.raises(DuplicateEntryError):
            await service.request_join(form)

        requests_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_handle_gets_token(
        self,
        service: AuthorService,
        requests_repo: AsyncMock,
    ) -> None:
        form = JoinRequestCreate(name="Omar", handle="omar", email="o@example.com")
        requests_repo.create.return_value = AuthorRequestDB(
            handle="omar",
            name="Omar",
            email="o@example.com",
            api_token="t",
        )

        await service.request_join(form)

        assert requests_repo.create.await_args.kwargs["api_token"]

    @pytest.mark.asyncio
    async def test_approve_existing_handle_only_drops_request(
        self,
        service: AuthorService,
        requests_repo: AsyncMock,
    ) -> None:
        request_id = uuid4()
        requests_repo.get_or_raise.return_value = AuthorRequestDB(
            id=request_id,
            handle="nadia",
            name="Nadia",
            email="n@example.com",
            api_token="t",
        )

        transition = await service.approve(request_id)

        assert transition.changed is False
        assert transition.author.handle == "nadia"
        requests_repo.delete.assert_awaited_once_with(request_id)


class TestTransitions:
    @pytest.mark.asyncio
    async def test_repeated_transition_is_unchanged(self, service: AuthorService) -> None:
        first = await service.set_status("nadia", "suspended")
        second = await service.set_status("nadia", "suspended")

        assert first.changed is True
        assert second.changed is False
        assert second.author.status == "suspended"

    @pytest.mark.asyncio
    async def test_unknown_author(self, service: AuthorService) -> None:
        with pytest.raises(RecordNotFoundError):
            await service.set_role("ghost", "admin")


class TestDeleteAuthor:
    """Tests for the cascading delete."""

    @pytest.mark.asyncio
    async def test_avatar_failure_does_not_block_delete(
        self,
        fake_authors: object,
        requests_repo: AsyncMock,
        fake_posts: object,
        fake_preferences: object,
        post_factory: object,
        author: object,
    ) -> None:
        author.avatar_url = "/uploads/avatars/nadia.png"
        fake_posts.rows = {"a": post_factory("a", "nadia"), "site": post_factory("site")}
        await fake_preferences.upsert_many({"theme": "dark"}, author_handle="nadia")
        broken_store = AsyncMock()
        broken_store.delete.side_effect = StorageError("unreachable")
        service = AuthorService(
            fake_authors,
            requests_repo,
            fake_posts,
            fake_preferences,
            broken_store,
        )

        report = await service.delete_author("nadia")

        assert report.posts == 1
        assert report.preferences == 1
        assert report.avatar_removed is False
        assert set(fake_posts.rows) == {"site"}
        assert await fake_authors.get_by_handle("nadia") is None

    @pytest.mark.asyncio
    async def test_avatar_removed_from_store(
        self,
        service: AuthorService,
        blob_store: object,
        author: object,
    ) -> None:
        blob_store.objects["avatars/nadia.png"] = b"png"
        author.avatar_url = "/uploads/avatars/nadia.png"

        report = await service.delete_author("nadia")

        assert report.avatar_removed is True
        assert blob_store.objects == {}

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_avatar(
        self,
        fake_authors: object,
        requests_repo: AsyncMock,
        fake_preferences: object,
        blob_store: object,
        author: object,
    ) -> None:
        blob_store.objects["avatars/nadia.png"] = b"png"
        author.avatar_url = "/uploads/avatars/nadia.png"
        posts = AsyncMock()
        posts.delete_by_author.side_effect = DatabaseError(detail="Failed to delete PostDB")
        service = AuthorService(fake_authors, requests_repo, posts, fake_preferences, blob_store)

        with pytest.raises(DatabaseError):
            await service.delete_author("nadia")

        assert blob_store.objects == {"avatars/nadia.png": b"png"}
        assert fake_authors.commits == 0

    @pytest.mark.asyncio
    async def test_avatar_removed_only_after_commit(
        self,
        fake_authors: object,
        blob_store: object,
        author: object,
        service: AuthorService,
    ) -> None:
        blob_store.objects["avatars/nadia.png"] = b"png"
        author.avatar_url = "/uploads/avatars/nadia.png"
        commits_seen: list[int] = []
        delete = blob_store.delete

        async def recording_delete(path: str) -> bool:
            commits_seen.append(fake_authors.commits)
            return await delete(path)

        blob_store.delete = recording_delete

        await service.delete_author("nadia")

        assert commits_seen == [1]
