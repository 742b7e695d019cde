"""HTTP client for published spreadsheet CSV exports."""

from logging import getLogger

from httpx import AsyncClient, HTTPError

from halqa.configs import file_logger

logger = file_logger(getLogger(__name__))


class SheetsClient:
    """
    Fetch CSV text from a spreadsheet "publish to web" URL.

    Transport and status errors propagate as ``httpx.HTTPError`` so callers
    decide whether a failure is fatal or best-effort.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    async def fetch_csv(self, url: str) -> str:
        """
        Download the CSV export at ``url``.

        Args:
            url: Published CSV URL.

        Returns:
            The response body as text.

        Raises:
            HTTPError: On network failure, timeout or a non-2xx status.
        """
        async with AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            try:
                response = await client.get(url, headers={"Accept": "text/csv"})
                response.raise_for_status()
            except HTTPError:
                logger.warning(f"Fetching sheet CSV from {url} failed")
                raise
        logger.info(f"Fetched {len(response.text)} characters of CSV from {url}")
        return response.text
