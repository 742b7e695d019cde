# halqa/routes/sitemap.py

"""
Sitemap Routes.

``/sitemap.xml`` lists the site root, public authors and published posts.
The rendered XML is cached under the ``sitemap`` tag and linked to the
``/sitemap.xml`` path, so content syncs and the refresh endpoints can drop
it. When the database cannot be read the sitemap still answers with the
root URL only, and that degraded answer is neither cached nor stored.
"""

from logging import getLogger

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import ORJSONResponse

from halqa.configs import file_logger
from halqa.configs.settings import SITEMAP_BLOB_PATH
from halqa.dependencies import (
    BlobStoreDep,
    RevalidatorDep,
    SettingsDep,
    SitemapServiceDep,
    verify_cron,
    verify_revalidation_secret,
)
from halqa.errors import CacheKeyError
from halqa.managers.cache_manager import CacheManager
from halqa.services.revalidation import Revalidator
from halqa.services.sitemap import RenderedSitemap, SitemapService
from halqa.services.storage import BlobStore
from halqa.utils.helpers import iso_timestamp

router = APIRouter(tags=["🗺️ Sitemap"])

logger = file_logger(getLogger(__name__))

SITEMAP_TAG = "sitemap"
SITEMAP_KEY = "xml"
SITEMAP_PATH = "/sitemap.xml"
SITEMAP_HEADERS = {"Cache-Control": "public, max-age=3600, stale-while-revalidate=86400"}


async def _cached_sitemap(
    manager: CacheManager | None,
    service: SitemapService,
    ttl: int,
) -> str:
    """Serve the cached sitemap; only a complete render is stored."""
    if manager is None:
        return await service.generate()

    rendered: list[RenderedSitemap] = []

    async def render_xml() -> str:
        rendered.append(await service.render())
        return rendered[-1].xml

    xml = await manager.get_or_set(
        SITEMAP_KEY,
        render_xml,
        ttl=ttl,
        namespace=SITEMAP_TAG,
        cacheable=lambda _: not rendered[-1].degraded,
    )
    if rendered and not rendered[-1].degraded:
        try:
            await Revalidator(manager).link_page(SITEMAP_PATH, SITEMAP_TAG, SITEMAP_KEY)
        except CacheKeyError as e:
            logger.warning(f"Sitemap page link failed: {e}")
    return str(xml)


async def _refresh(
    service: SitemapService,
    blob_store: BlobStore,
    revalidator: Revalidator,
) -> dict:
    await revalidator.revalidate(tags=[SITEMAP_TAG], paths=[SITEMAP_PATH])
    rendered = await service.render()
    if rendered.degraded:
        logger.warning("Content store unreadable, keeping the stored sitemap")
        return {
            "success": False,
            "message": "Sitemap could not be generated; stored copy kept",
            "stored": None,
            "timestamp": iso_timestamp(),
        }

    stored = await blob_store.put(SITEMAP_BLOB_PATH, rendered.xml, content_type="application/xml")
    logger.info(f"Sitemap refreshed and stored at {stored}")
    return {
        "success": True,
        "message": "Sitemap refreshed",
        "stored": stored,
        "timestamp": iso_timestamp(),
    }


@router.get(
    "/sitemap.xml",
    summary="XML sitemap",
    responses={
        200: {
            "content": {
                "application/xml": {
                    "example": (
                        '<?xml version="1.0" encoding="UTF-8"?>\n'
                        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
                        "<url><loc>https://halqa.xyz/</loc></url></urlset>"
                    ),
                },
            },
        },
    },
    operation_id="sitemap",
)
async def sitemap(
    request: Request,
    service: SitemapServiceDep,
    settings: SettingsDep,
) -> Response:
    manager = getattr(request.app.state, "cache_manager", None)
    xml = await _cached_sitemap(manager, service, settings.CACHE_TTL_SITEMAP)
    return Response(content=xml, media_type="application/xml", headers=SITEMAP_HEADERS)


@router.post(
    "/api/refresh-sitemap",
    response_class=ORJSONResponse,
    summary="Regenerate the sitemap",
    responses={
        401: {
            "description": "Wrong token",
            "content": {"application/json": {"example": {"error": "Invalid token"}}},
        },
    },
    dependencies=[Depends(verify_revalidation_secret)],
    operation_id="refresh_sitemap",
)
async def refresh_sitemap(
    request: Request,
    service: SitemapServiceDep,
    blob_store: BlobStoreDep,
    revalidator: RevalidatorDep,
) -> dict:
    """
    Drop the cached sitemap, regenerate it and store a copy in the blob store.

    Authenticated with ``?token=<REVALIDATION_SECRET>``.
    """
    return await _refresh(service, blob_store, revalidator)


@router.get(
    "/api/cron/refresh-sitemap",
    response_class=ORJSONResponse,
    summary="Scheduled sitemap refresh",
    dependencies=[Depends(verify_cron)],
    operation_id="cron_refresh_sitemap",
)
async def cron_refresh_sitemap(
    request: Request,
    service: SitemapServiceDep,
    blob_store: BlobStoreDep,
    revalidator: RevalidatorDep,
) -> dict:
    """Same as ``/api/refresh-sitemap``, authenticated with ``Bearer <CRON_SECRET>``."""
    return await _refresh(service, blob_store, revalidator)
