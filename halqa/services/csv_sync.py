"""
CSV sync pipeline.

Turns spreadsheet CSV exports into settings snapshots and post rows. The
reader is permissive about the shape of individual rows but strict about
the header: a file with the wrong header is rejected before anything is
written.
"""

import csv
from collections.abc import Callable, Iterable, Mapping
from io import StringIO
from logging import getLogger
from pathlib import Path
from time import perf_counter
from typing import Any

import aiofiles
from httpx import HTTPError

from halqa.clients.sheets_client import SheetsClient
from halqa.configs import file_logger
from halqa.configs.settings import POSTS_CSV_REQUIRED_COLUMNS, SETTINGS_CSV_HEADER
from halqa.errors.database import DatabaseError
from halqa.errors.sync import CsvValidationError, QuotaExceededError, SyncSourceError
from halqa.models.author import AuthorDB
from halqa.repositories.post import PostRepository
from halqa.schemas.sync import SyncStats
from halqa.services.quota import QuotaService
from halqa.utils.helpers import parse_flag, split_categories

logger = file_logger(getLogger(__name__))

# Sheet column -> posts column
FIELD_MAPPING: dict[str, str] = {
    "title": "title",
    "slug": "slug",
    "content": "content",
    "excerpt": "description",
    "description": "description",
    "date": "date",
    "categories": "categories",
    "featured": "featured",
    "featuredImage": "image",
    "image": "image",
    "comment": "comment",
    "socmed": "socmed",
    "load": "published",
    "publish": "published",
    "published": "published",
}

_FLAGS: dict[str, bool] = {"published": True, "featured": False, "comment": True, "socmed": True}


def read_csv(text: str) -> list[list[str]]:
    """
    Read CSV text into stripped rows.

    A leading BOM is dropped, blank lines are skipped and quoting errors are
    tolerated by the reader.
    """
    reader = csv.reader(StringIO(text.lstrip("\ufeff")), skipinitialspace=True, strict=False)
    try:
        rows = [[cell.strip() for cell in row] for row in reader]
    except csv.Error as e:
        mssg = f"Unreadable CSV: {e}"
        raise CsvValidationError(mssg) from e
    return [row for row in rows if any(row)]


def validate_settings_csv(text: str | None) -> list[list[str]]:
    """
    Check that ``text`` is a settings CSV.

    Raises:
        CsvValidationError: If the text is empty or the header is not
            exactly ``Settings,type,value``
    """
    if not text or not text.strip():
        raise CsvValidationError("No CSV content provided")
    rows = read_csv(text)
    if not rows or tuple(rows[0]) != SETTINGS_CSV_HEADER:
        expected = ",".join(SETTINGS_CSV_HEADER)
        mssg = f"Invalid settings CSV: header must be '{expected}'"
        raise CsvValidationError(mssg)
    return rows


def settings_csv(font_style: str) -> str:
    header = ",".join(SETTINGS_CSV_HEADER)
    return f"{header}\nEditor Layout,font style,{font_style.strip()}"


def parse_posts_csv(text: str | None) -> list[dict[str, str]]:
    """
    Parse a posts CSV into one mapping per row.

    Ragged rows are padded with empty cells or truncated to the header
    width.

    Raises:
        CsvValidationError: If the text is empty, a required column is
            missing or a row has no slug
    """
    if not text or not text.strip():
        raise CsvValidationError("No CSV content provided")

    rows = read_csv(text)
    if not rows:
        raise CsvValidationError("CSV has no header row")

    header = rows[0]
    if missing := [col for col in POSTS_CSV_REQUIRED_COLUMNS if col not in header]:
        mssg = f"Invalid posts CSV: missing column(s) {', '.join(missing)}"
        raise CsvValidationError(mssg)

    width = len(header)
    records = [dict(zip(header, (row + [""] * width)[:width], strict=True)) for row in rows[1:]]
    return validate_post_rows(records)


def validate_post_rows(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Reject the whole batch when any row lacks a slug."""
    validated = []
    for number, row in enumerate(rows, start=1):
        if not str(row.get("slug") or "").strip():
            mssg = f"Row {number} is missing a slug"
            raise CsvValidationError(mssg)
        validated.append(dict(row))
    return validated


def row_to_post(row: Mapping[str, Any], author_handle: str | None = None) -> dict[str, Any]:
    """Map a sheet row onto ``posts`` column values."""
    values: dict[str, Any] = {}
    for column, field in FIELD_MAPPING.items():
        if column in row and field not in values:
            values[field] = row[column]

    post: dict[str, Any] = {
        "slug": str(values["slug"]).strip(),
        "title": str(values.get("title") or values["slug"]).strip(),
        "content": str(values.get("content") or ""),
        "description": values.get("description") or None,
        "date": str(values["date"]).strip() if values.get("date") else None,
        "categories": split_categories(values.get("categories")),
        "image": values.get("image") or None,
        "author_handle": author_handle,
    }
    for flag, default in _FLAGS.items():
        post[flag] = parse_flag(values.get(flag), default=default)
    return post


class ContentSource:
    """
    Published sheet with a local last-good copy.

    A fetch that parses as a posts CSV refreshes the fallback file. A failed
    fetch, or one that returns something other than a posts CSV (a login page,
    an error page), is logged and the fallback is served instead.
    """

    def __init__(
        self,
        client: SheetsClient,
        fallback_path: Path,
        validator: Callable[[str], object] = parse_posts_csv,
    ) -> None:
        self.client = client
        self.fallback_path = fallback_path
        self.validator = validator

    async def fetch(self, url: str | None, *, fallback: bool = True) -> str:
        """
        Return CSV text from ``url`` or the local fallback.

        With ``fallback=False`` the local copy is neither read nor refreshed;
        author sheets use this so they never touch the site copy.

        Raises:
            SyncSourceError: If neither source is available
            CsvValidationError: If the sheet is invalid and no fallback is used
        """
        invalid: CsvValidationError | None = None
        if url:
            try:
                text = await self.client.fetch_csv(url)
                self.validator(text)
            except HTTPError as e:
                logger.warning(f"Sheet fetch failed: {e}")
                if not fallback:
                    raise SyncSourceError(f"Content sheet unavailable: {e}") from e
            except CsvValidationError as e:
                logger.warning(f"Sheet returned invalid CSV, keeping last good copy: {e}")
                if not fallback:
                    raise
                invalid = e
            else:
                if fallback:
                    await self._save_fallback(text)
                return text

        if fallback and (cached := await self._read_fallback()):
            return cached
        if invalid is not None:
            raise invalid
        mssg = "Content sheet unavailable and no local fallback exists"
        raise SyncSourceError(mssg)

    async def _save_fallback(self, text: str) -> None:
        try:
            self.fallback_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.fallback_path, "w", encoding="utf-8") as f:
                await f.write(text)
        except OSError as e:
            logger.warning(f"Could not refresh {self.fallback_path}: {e}")

    async def _read_fallback(self) -> str | None:
        if not self.fallback_path.exists():
            return None
        async with aiofiles.open(self.fallback_path, encoding="utf-8") as f:
            return await f.read()


class PostSyncService:
    """Upsert sheet rows into the posts table."""

    def __init__(self, posts: PostRepository, quota: QuotaService | None = None) -> None:
        self.posts = posts
        self.quota = quota

    async def sync_site(self, rows: Iterable[Mapping[str, Any]]) -> SyncStats:
        """
        Mirror the main sheet into the site posts.

        Site posts missing from ``rows`` are deleted; author posts are never
        touched.
        """
        start = perf_counter()
        posts = [row_to_post(row) for row in validate_post_rows(rows)]
        existing = await self.posts.slugs(None)
        stats = SyncStats()

        for post in posts:
            outcome = await self.posts.upsert(post)
            setattr(stats, outcome, getattr(stats, outcome) + 1)

        stale = existing - {post["slug"] for post in posts}
        stats.deleted = await self.posts.delete_slugs(stale, None)

        logger.info(
            f"Site sync: {stats.inserted} inserted, {stats.updated} updated, "
            f"{stats.deleted} deleted in {perf_counter() - start:.2f}s",
        )
        return stats

    async def sync_author(
        self,
        author: AuthorDB,
        rows: Iterable[Mapping[str, Any]],
    ) -> SyncStats:
        """
        Sync one author's sheet.

        Rows with ``publish`` false are deleted, the rest upserted. New slugs
        count against the author's quota.

        Raises:
            QuotaExceededError: If the new slugs exceed the remaining quota
            DatabaseError: If the quota could not be read
        """
        posts = [row_to_post(row, author.handle) for row in validate_post_rows(rows)]
        keep = [post for post in posts if post["published"]]
        drop = {post["slug"] for post in posts if not post["published"]}

        existing = await self.posts.slugs(author.handle)
        await self._enforce_quota(author, {p["slug"] for p in keep} - existing)

        stats = SyncStats()
        for post in keep:
            outcome = await self.posts.upsert(post)
            setattr(stats, outcome, getattr(stats, outcome) + 1)
        stats.deleted = await self.posts.delete_slugs(drop, author.handle)
        return stats

    async def _enforce_quota(self, author: AuthorDB, new_slugs: set[str]) -> None:
        if self.quota is None or not new_slugs:
            return
        result = await self.quota.check(author.handle)
        if result.query_failed:
            raise DatabaseError(detail=result.error or "Quota check failed")
        if result.unlimited:
            return
        remaining = result.posts_remaining or 0
        if len(new_slugs) > remaining:
            mssg = (
                f"Post limit reached: {len(new_slugs)} new post(s) but only "
                f"{remaining} remaining for {author.handle}"
            )
            raise QuotaExceededError(mssg, posts_remaining=remaining)
