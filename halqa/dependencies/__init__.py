# halqa/dependencies/__init__.py

from halqa.dependencies.dependencies import (
    AuthorRepoDep,
    AuthorRequestRepoDep,
    AuthorServiceDep,
    BlobStoreDep,
    CacheDep,
    CommentRepoDep,
    ContentSourceDep,
    MediaServiceDep,
    PostRepoDep,
    PostSyncDep,
    PreferenceRepoDep,
    QuotaServiceDep,
    RevalidatorDep,
    SessionDep,
    SettingRepoDep,
    SettingsDep,
    SitemapServiceDep,
    WarmerFactoryDep,
    WarmingLogDep,
    get_author_repository,
    get_author_request_repository,
    get_author_service,
    get_blob_store_dep,
    get_cache_manager,
    get_comment_repository,
    get_content_source,
    get_media_service,
    get_post_repository,
    get_post_sync_service,
    get_preference_repository,
    get_quota_service,
    get_setting_repository,
    get_sitemap_service,
    get_warmer_factory,
    get_warming_log,
    verify_admin,
    verify_cron,
    verify_revalidation_bearer,
    verify_revalidation_secret,
)

__all__ = [
    "AuthorRepoDep",
    "AuthorRequestRepoDep",
    "AuthorServiceDep",
    "BlobStoreDep",
    "CacheDep",
    "CommentRepoDep",
    "ContentSourceDep",
    "MediaServiceDep",
    "PostRepoDep",
    "PostSyncDep",
    "PreferenceRepoDep",
    "QuotaServiceDep",
    "RevalidatorDep",
    "SessionDep",
    "SettingRepoDep",
    "SettingsDep",
    "SitemapServiceDep",
    "WarmerFactoryDep",
    "WarmingLogDep",
    "get_author_repository",
    "get_author_request_repository",
    "get_author_service",
    "get_blob_store_dep",
    "get_cache_manager",
    "get_comment_repository",
    "get_content_source",
    "get_media_service",
    "get_post_repository",
    "get_post_sync_service",
    "get_preference_repository",
    "get_quota_service",
    "get_setting_repository",
    "get_sitemap_service",
    "get_warmer_factory",
    "get_warming_log",
    "verify_admin",
    "verify_cron",
    "verify_revalidation_bearer",
    "verify_revalidation_secret",
]
