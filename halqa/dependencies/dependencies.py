# halqa/dependencies/dependencies.py

"""FastAPI dependencies: settings, repositories, services and access guards."""

from collections.abc import Callable
from functools import partial
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from halqa.clients.sheets_client import SheetsClient
from halqa.configs import Settings, get_settings
from halqa.db import get_session
from halqa.managers.cache_manager import CacheManager
from halqa.managers.warming_log import WarmingLog
from halqa.repositories import (
    AuthorRepository,
    AuthorRequestRepository,
    CommentRepository,
    PostRepository,
    PreferenceRepository,
    SettingRepository,
)
from halqa.services.authors import AuthorService
from halqa.services.credentials import (
    bearer_token,
    presented_secret,
    read_secret_body,
    require_admin,
    require_cron,
    require_secret,
)
from halqa.services.csv_sync import ContentSource, PostSyncService
from halqa.services.media import MediaService
from halqa.services.quota import QuotaService
from halqa.services.revalidation import Revalidator
from halqa.services.sitemap import SitemapService
from halqa.services.storage import BlobStore, get_blob_store
from halqa.services.warming import CacheWarmer

SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_author_repository(session: SessionDep) -> AuthorRepository:
    return AuthorRepository(session)


def get_author_request_repository(session: SessionDep) -> AuthorRequestRepository:
    return AuthorRequestRepository(session)


def get_post_repository(session: SessionDep) -> PostRepository:
    return PostRepository(session)


def get_setting_repository(session: SessionDep) -> SettingRepository:
    return SettingRepository(session)


def get_preference_repository(session: SessionDep) -> PreferenceRepository:
    return PreferenceRepository(session)


def get_comment_repository(session: SessionDep) -> CommentRepository:
    return CommentRepository(session)


AuthorRepoDep = Annotated[AuthorRepository, Depends(get_author_repository)]
AuthorRequestRepoDep = Annotated[AuthorRequestRepository, Depends(get_author_request_repository)]
PostRepoDep = Annotated[PostRepository, Depends(get_post_repository)]
SettingRepoDep = Annotated[SettingRepository, Depends(get_setting_repository)]
PreferenceRepoDep = Annotated[PreferenceRepository, Depends(get_preference_repository)]
CommentRepoDep = Annotated[CommentRepository, Depends(get_comment_repository)]


def get_cache_manager(request: Request) -> CacheManager:
    """Dependency to get the application's cache manager."""
    return request.app.state.cache_manager


CacheDep = Annotated[CacheManager, Depends(get_cache_manager)]


def get_revalidator(cache_manager: CacheDep, session: SessionDep) -> Revalidator:
    """Revalidator bound to the request session; it commits before clearing."""
    return Revalidator(cache_manager, session=session)


RevalidatorDep = Annotated[Revalidator, Depends(get_revalidator)]


def get_warming_log(request: Request) -> WarmingLog:
    """The diagnostic warming log created at startup."""
    return request.app.state.warming_log


WarmingLogDep = Annotated[WarmingLog, Depends(get_warming_log)]


def get_blob_store_dep(settings: SettingsDep) -> BlobStore:
    return get_blob_store(settings)


BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store_dep)]


def get_content_source(settings: SettingsDep) -> ContentSource:
    return ContentSource(SheetsClient(settings.SHEETS_TIMEOUT), settings.CONTENT_FALLBACK_PATH)


ContentSourceDep = Annotated[ContentSource, Depends(get_content_source)]


def get_media_service(blob_store: BlobStoreDep, settings: SettingsDep) -> MediaService:
    return MediaService(blob_store, settings)


MediaServiceDep = Annotated[MediaService, Depends(get_media_service)]


def get_quota_service(
    authors: AuthorRepoDep,
    posts: PostRepoDep,
    settings: SettingsDep,
) -> QuotaService:
    return QuotaService(authors, posts, settings.MAX_POSTS_PER_AUTHOR)


QuotaServiceDep = Annotated[QuotaService, Depends(get_quota_service)]


def get_post_sync_service(posts: PostRepoDep, quota: QuotaServiceDep) -> PostSyncService:
    return PostSyncService(posts, quota)


PostSyncDep = Annotated[PostSyncService, Depends(get_post_sync_service)]


def get_author_service(
    authors: AuthorRepoDep,
    requests: AuthorRequestRepoDep,
    posts: PostRepoDep,
    preferences: PreferenceRepoDep,
    blob_store: BlobStoreDep,
) -> AuthorService:
    return AuthorService(authors, requests, posts, preferences, blob_store)


AuthorServiceDep = Annotated[AuthorService, Depends(get_author_service)]


def get_sitemap_service(
    authors: AuthorRepoDep,
    posts: PostRepoDep,
    settings: SettingsDep,
) -> SitemapService:
    return SitemapService(authors, posts, settings.SITE_URL)


SitemapServiceDep = Annotated[SitemapService, Depends(get_sitemap_service)]


def get_warmer_factory(settings: SettingsDep) -> Callable[..., CacheWarmer]:
    """Build warmers from settings; callers may override origin and retries."""
    return partial(CacheWarmer.from_settings, settings)


WarmerFactoryDep = Annotated[Callable[..., CacheWarmer], Depends(get_warmer_factory)]


def verify_admin(request: Request, settings: SettingsDep) -> None:
    """
    Guard for admin routes.

    Parameters
    ----------
    request : Request
        Incoming request carrying a bearer token or the admin cookie.
    settings : Settings
        Application settings holding ``ADMIN_API_TOKEN``.

    Raises
    ------
    AuthenticationError
        When neither credential matches the admin token.
    """
    require_admin(request, settings)


def verify_cron(request: Request, settings: SettingsDep) -> None:
    require_cron(request, settings)


async def verify_revalidation_secret(request: Request, settings: SettingsDep) -> None:
    """
    Guard for shared-secret routes.

    Reads ``secret``/``token`` from the raw JSON body or the query string.
    It runs before the typed body is validated, so a caller without the
    secret gets ``401`` whatever else the body holds.
    """
    require_secret(
        presented_secret(request, await read_secret_body(request)),
        settings.REVALIDATION_SECRET,
        "REVALIDATION_SECRET",
    )


def verify_revalidation_bearer(request: Request, settings: SettingsDep) -> None:
    """Blob deletion routes take the shared secret as ``Authorization: Bearer``."""
    require_secret(bearer_token(request), settings.REVALIDATION_SECRET, "REVALIDATION_SECRET")
