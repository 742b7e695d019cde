# tests/services/test_sitemap.py
"""Tests for sitemap generation."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock
from xml.etree.ElementTree import fromstring

import pytest

from halqa.services.sitemap import (
    SitemapService,
    build_entries,
    fallback_sitemap,
    post_path,
    render_sitemap,
)

NS = "{http://www.sitemaps.org/schemas/sitemap/0.9}"


def _parse(xml: str) -> list[dict[str, str]]:
    declaration, body = xml.split("\n", 1)
    assert declaration == '<?xml version="1.0" encoding="UTF-8"?>'
    root = fromstring(body)
    assert root.tag == f"{NS}urlset"
    return [{child.tag.removeprefix(NS): child.text for child in url} for url in root]


class TestRendering:
    def test_fallback_has_only_root(self) -> None:
        urls = _parse(fallback_sitemap("https://halqa.test/"))
        assert len(urls) == 1
        assert urls[0]["loc"] == "https://halqa.test"
        assert urls[0]["priority"] == "1.0"

    def test_special_characters_are_escaped(self, post_factory: object) -> None:
        xml = render_sitemap(
            build_entries("https://halqa.test", [], [post_factory("fish-&-chips<1>")]),
        )

        assert "fish-&amp;-chips&lt;1&gt;" in xml
        assert _parse(xml)[1]["loc"] == "https://halqa.test/blog/fish-&-chips<1>"

    def test_lastmod_prefers_updated_at(self, post_factory: object) -> None:
        post = post_factory(
            "hello",
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
            updated_at=datetime(2024, 3, 5, 12, tzinfo=UTC),
        )
        entry = build_entries("https://halqa.test", [], [post])[1]
        assert entry.lastmod == "2024-03-05T12:00:00.000Z"
        assert entry.changefreq == "monthly"

    def test_post_paths(self, post_factory: object) -> None:
        assert post_path(post_factory("a")) == "/blog/a"
        assert post_path(post_factory("a", "nadia")) == "/nadia/a"


class TestSitemapService:
    @pytest.mark.asyncio
    async def test_generate_lists_authors_and_posts(
        self,
        fake_authors: object,
        fake_posts: object,
        post_factory: object,
    ) -> None:
        fake_posts.rows = {"p": post_factory("p", "nadia")}

        urls = _parse(await SitemapService(fake_authors, fake_posts, "https://halqa.test").generate())

        assert [u["loc"] for u in urls] == [
            "https://halqa.test",
            "https://halqa.test/editor",
            "https://halqa.test/nadia",
            "https://halqa.test/nadia/p",
        ]

    @pytest.mark.asyncio
    async def test_query_failure_degrades_to_root(self, fake_authors: object) -> None:
        posts = AsyncMock()
        posts.list_published.side_effect = RuntimeError("pool exhausted")

        urls = _parse(await SitemapService(fake_authors, posts, "https://halqa.test").generate())

        assert [u["loc"] for u in urls] == ["https://halqa.test"]

    @pytest.mark.asyncio
    async def test_render_flags_degraded_output(
        self,
        fake_authors: object,
        fake_posts: object,
    ) -> None:
        posts = AsyncMock()
        posts.list_published.side_effect = RuntimeError("pool exhausted")

        healthy = await SitemapService(fake_authors, fake_posts, "https://halqa.test").render()
        degraded = await SitemapService(fake_authors, posts, "https://halqa.test").render()

        assert healthy.degraded is False
        assert degraded.degraded is True
