from halqa.services.authors import AuthorService
from halqa.services.csv_sync import ContentSource, PostSyncService
from halqa.services.media import MediaService
from halqa.services.quota import QuotaResult, QuotaService
from halqa.services.revalidation import RevalidationResult, Revalidator
from halqa.services.sitemap import SitemapService
from halqa.services.warming import CacheWarmer

__all__ = [
    "AuthorService",
    "CacheWarmer",
    "ContentSource",
    "MediaService",
    "PostSyncService",
    "QuotaResult",
    "QuotaService",
    "RevalidationResult",
    "Revalidator",
    "SitemapService",
]
