# tests/conftest.py
"""Root pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable

import pytest

from halqa.configs import Settings
from halqa.managers.cache_manager import CacheManager
from halqa.models import AuthorDB, PostDB
from halqa.services.storage import BlobInfo


class InMemoryBlobStore:
    """Blob store double keeping objects in a dict."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.puts: list[str] = []

    async def put(self, path: str, data: bytes | str, content_type: str = "text/csv") -> str:
        self.objects[path] = data.encode("utf-8") if isinstance(data, str) else data
        self.puts.append(path)
        return f"/uploads/{path}"

    async def get(self, path: str) -> bytes | None:
        return self.objects.get(path)

    async def delete(self, path: str) -> bool:
        return self.objects.pop(path, None) is not None

    async def list_objects(self, prefix: str, limit: int = 100, offset: int = 0) -> list[BlobInfo]:
        paths = [path for path in reversed(self.objects) if path.startswith(f"{prefix}/")]
        return [BlobInfo(path, f"/uploads/{path}") for path in paths[offset : offset + limit]]


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every secret configured and no .env file."""
    return Settings(
        _env_file=None,
        ADMIN_PASSWORD="open-sesame",
        ADMIN_API_TOKEN="admin-token",
        REVALIDATION_SECRET="reval-secret",
        CRON_SECRET="cron-secret",
        SITE_URL="https://halqa.test",
        LOG_TO_FILE=False,
    )


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
async def cache_manager() -> AsyncGenerator[CacheManager]:
    """In-memory cache manager, cleared before and after each test."""
    manager = CacheManager()
    await manager.initialize()
    await manager.clear()
    manager.statistics.reset()
    yield manager
    await manager.clear()
    await manager.shutdown()


def make_author(handle: str = "nadia", **overrides: object) -> AuthorDB:
    values = {
        "handle": handle,
        "name": handle.title(),
        "email": f"{handle}@example.com",
        "api_token": f"{handle}-token",
        "role": "regular",
        "status": "active",
        "listing_status": "listed",
        "visibility": "visible",
    }
    values.update(overrides)
    return AuthorDB(**values)


@pytest.fixture
def author() -> AuthorDB:
    return make_author()


@pytest.fixture
def admin_author() -> AuthorDB:
    return make_author("editor", role="admin")


@pytest.fixture
def author_factory() -> Callable[..., AuthorDB]:
    return make_author


class FakeAuthorRepository:
    def __init__(self, *authors: AuthorDB) -> None:
        self.rows = {a.handle: a for a in authors}
        self.commits = 0

    async def get_by_handle(self, handle: str) -> AuthorDB | None:
        return self.rows.get(handle.lower())

    async def exists(self, handle: str) -> bool:
        return handle.lower() in self.rows

    async def email_exists(self, email: str) -> bool:
        return any(a.email.lower() == email.lower() for a in self.rows.values())

    async def list_public(self) -> list[AuthorDB]:
        return [
            a
            for a in sorted(self.rows.values(), key=lambda a: a.name)
            if a.status == "active" and a.listing_status == "listed" and a.visibility == "visible"
        ]

    async def apply(self, author: AuthorDB, **values: object) -> AuthorDB:
        for key, value in values.items():
            setattr(author, key, value)
        return author

    async def delete(self, handle: str) -> bool:
        return self.rows.pop(handle, None) is not None

    async def commit(self) -> None:
        self.commits += 1


class FakePostRepository:
    def __init__(self, posts: list[PostDB] | None = None) -> None:
        self.rows = {p.slug: p for p in posts or []}

    async def count_by_author(self, author_handle: str) -> int:
        return sum(p.author_handle == author_handle for p in self.rows.values())

    async def slugs(self, author_handle: str | None) -> set[str]:
        return {p.slug for p in self.rows.values() if p.author_handle == author_handle}

    async def upsert(self, values: dict) -> str:
        existing = self.rows.get(values["slug"])
        if existing is None:
            self.rows[values["slug"]] = PostDB(**values)
            return "inserted"
        for key, value in values.items():
            setattr(existing, key, value)
        return "updated"

    async def delete_slugs(self, slugs: set[str], author_handle: str | None) -> int:
        doomed = [s for s in slugs if s in self.rows and self.rows[s].author_handle == author_handle]
        for slug in doomed:
            del self.rows[slug]
        return len(doomed)

    async def delete_by_author(self, author_handle: str) -> int:
        return await self.delete_slugs(await self.slugs(author_handle), author_handle)

    async def list_published(self, author_handle: str | None = None) -> list[PostDB]:
        return [
            p
            for p in self.rows.values()
            if p.published and (author_handle is None or p.author_handle == author_handle)
        ]


class FakePreferenceRepository:
    def __init__(self) -> None:
        self.rows: dict[tuple[str | None, str], object] = {}

    async def get_all(self, author_handle: str | None = None) -> dict[str, object]:
        return {key: value for (owner, key), value in self.rows.items() if owner == author_handle}

    async def upsert_many(
        self,
        values: dict[str, object],
        author_handle: str | None = None,
    ) -> dict[str, object]:
        for key, value in values.items():
            self.rows[(author_handle, key)] = value
        return await self.get_all(author_handle)

    async def delete_by_author(self, author_handle: str) -> int:
        doomed = [k for k in self.rows if k[0] == author_handle]
        for key in doomed:
            del self.rows[key]
        return len(doomed)


class FakeSettingRepository:
    def __init__(self) -> None:
        self.values: dict[str, object] = {}

    async def get_value(self, key: str, default: object = None) -> object:
        return self.values.get(key, default)

    async def set_value(self, key: str, value: object) -> None:
        self.values[key] = value


def make_post(slug: str, author_handle: str | None = None, **overrides: object) -> PostDB:
    values = {"slug": slug, "title": slug.replace("-", " ").title(), "content": "<p>Hi</p>"}
    values.update(overrides)
    return PostDB(author_handle=author_handle, **values)


@pytest.fixture
def post_factory() -> Callable[..., PostDB]:
    return make_post


@pytest.fixture
def fake_posts() -> FakePostRepository:
    return FakePostRepository()


@pytest.fixture
def fake_preferences() -> FakePreferenceRepository:
    return FakePreferenceRepository()


@pytest.fixture
def fake_settings_repo() -> FakeSettingRepository:
    return FakeSettingRepository()


@pytest.fixture
def fake_authors(author: AuthorDB, admin_author: AuthorDB) -> FakeAuthorRepository:
    return FakeAuthorRepository(author, admin_author)
