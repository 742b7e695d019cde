"""
Build-time content fetch.

Downloads the published posts sheet into the local fallback file used by
the sync endpoints. A network failure keeps the existing copy and exits 0
so the build carries on.
"""

from argparse import ArgumentParser
from asyncio import run as asyncio_run
from pathlib import Path

from httpx import HTTPError

from halqa.clients.sheets_client import SheetsClient
from halqa.configs import settings
from halqa.errors.sync import CsvValidationError
from halqa.services.csv_sync import parse_posts_csv


async def main(url: str | None, output: Path) -> None:
    if not url:
        print("SHEETS_CSV_URL is not set; keeping existing content")
        return

    print(f"Fetching posts from {url}...")
    try:
        text = await SheetsClient(settings.SHEETS_TIMEOUT).fetch_csv(url)
        rows = parse_posts_csv(text)
    except (HTTPError, CsvValidationError) as e:
        print(f"Fetch failed: {e}")
        print(f"Using existing fallback data at {output}" if output.exists() else "No fallback data")
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    print(f"Wrote {len(rows)} posts to {output}")


if __name__ == "__main__":
    parser = ArgumentParser(description="Fetch the posts sheet into the local fallback file.")
    parser.add_argument("--url", default=settings.SHEETS_CSV_URL)
    parser.add_argument("--output", type=Path, default=settings.CONTENT_FALLBACK_PATH)
    args = parser.parse_args()
    asyncio_run(main(args.url, args.output))
