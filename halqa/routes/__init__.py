from halqa.routes.admin import gated as admin_router
from halqa.routes.admin import router as admin_session_router
from halqa.routes.author import router as author_router
from halqa.routes.content import router as content_router
from halqa.routes.media import router as media_router
from halqa.routes.sitemap import router as sitemap_router
from halqa.routes.sync import router as sync_router
from halqa.routes.warming import router as warming_router

__all__ = [
    "admin_router",
    "admin_session_router",
    "author_router",
    "content_router",
    "media_router",
    "sitemap_router",
    "sync_router",
    "warming_router",
]
