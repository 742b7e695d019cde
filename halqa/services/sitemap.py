"""
Sitemap generation.

Builds a sitemap-protocol ``urlset`` for the site root, every public author
and every published post. When the content store cannot be read the
sitemap degrades to the root entry alone.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from logging import getLogger
from xml.etree.ElementTree import Element, SubElement, tostring

from halqa.configs import file_logger
from halqa.models.author import AuthorDB
from halqa.models.post import PostDB
from halqa.repositories.author import AuthorRepository
from halqa.repositories.post import PostRepository
from halqa.utils.helpers import iso_timestamp, utc_now

logger = file_logger(getLogger(__name__))

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: str
    priority: str


def _lastmod(updated_at: datetime | None, created_at: datetime | None) -> str:
    return iso_timestamp(updated_at or created_at or utc_now())


def post_path(post: PostDB) -> str:
    """``/{author}/{slug}`` for author posts, ``/blog/{slug}`` for site posts."""
    if post.author_handle:
        return f"/{post.author_handle}/{post.slug}"
    return f"/blog/{post.slug}"


def root_entry(base_url: str) -> SitemapEntry:
    return SitemapEntry(base_url.rstrip("/"), iso_timestamp(), "daily", "1.0")


def build_entries(
    base_url: str,
    authors: Iterable[AuthorDB],
    posts: Iterable[PostDB],
) -> list[SitemapEntry]:
    base = base_url.rstrip("/")
    entries = [root_entry(base)]
    entries.extend(
        SitemapEntry(
            f"{base}/{author.handle}",
            _lastmod(author.updated_at, author.created_at),
            "weekly",
            "0.8",
        )
        for author in authors
    )
    entries.extend(
        SitemapEntry(
            f"{base}{post_path(post)}",
            _lastmod(post.updated_at, post.created_at),
            "monthly",
            "0.7",
        )
        for post in posts
    )
    return entries


def render_sitemap(entries: Iterable[SitemapEntry]) -> str:
    """Serialise entries as sitemap XML; text content is escaped."""
    urlset = Element("urlset", xmlns=SITEMAP_NAMESPACE)
    for entry in entries:
        url = SubElement(urlset, "url")
        SubElement(url, "loc").text = entry.loc
        SubElement(url, "lastmod").text = entry.lastmod
        SubElement(url, "changefreq").text = entry.changefreq
        SubElement(url, "priority").text = entry.priority
    return XML_DECLARATION + tostring(urlset, encoding="unicode")


def fallback_sitemap(base_url: str) -> str:
    return render_sitemap([root_entry(base_url)])


@dataclass(frozen=True)
class RenderedSitemap:
    xml: str
    degraded: bool = False


class SitemapService:
    """Read authors and posts and render the sitemap."""

    def __init__(
        self,
        authors: AuthorRepository,
        posts: PostRepository,
        base_url: str,
    ) -> None:
        self.authors = authors
        self.posts = posts
        self.base_url = base_url

    async def render(self) -> RenderedSitemap:
        """
        Render the full sitemap.

        A failed read yields the root-only sitemap flagged ``degraded`` so
        callers can avoid caching or storing it.
        """
        try:
            authors = await self.authors.list_public()
            posts = await self.posts.list_published()
        except Exception:
            logger.exception("Sitemap query failed, serving root-only sitemap")
            return RenderedSitemap(fallback_sitemap(self.base_url), degraded=True)
        entries = build_entries(self.base_url, authors, posts)
        logger.info(f"Generated sitemap with {len(entries)} URLs")
        return RenderedSitemap(render_sitemap(entries))

    async def generate(self) -> str:
        return (await self.render()).xml
