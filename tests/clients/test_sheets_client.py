# tests/clients/test_sheets_client.py
"""Tests for the published-sheet CSV client."""

import pytest
from httpx import AsyncClient, HTTPStatusError, MockTransport, Request, Response
from pytest_mock import MockerFixture

from halqa.clients.sheets_client import SheetsClient

SHEET_URL = "https://docs.google.com/spreadsheets/d/e/abc/pub?output=csv"


def _patch_transport(mocker: MockerFixture, handler: object) -> None:
    def factory(**kwargs: object) -> AsyncClient:
        return AsyncClient(transport=MockTransport(handler), **kwargs)

    mocker.patch("halqa.clients.sheets_client.AsyncClient", side_effect=factory)


class TestSheetsClient:
    @pytest.mark.asyncio
    async def test_fetch_csv(self, mocker: MockerFixture) -> None:
        def handler(request: Request) -> Response:
            assert request.headers["accept"] == "text/csv"
            return Response(200, text="title,slug,content\nA,a,x")

        _patch_transport(mocker, handler)

        text = await SheetsClient(timeout=1.0).fetch_csv(SHEET_URL)

        assert text == "title,slug,content\nA,a,x"

    @pytest.mark.asyncio
    async def test_error_status_propagates(self, mocker: MockerFixture) -> None:
        _patch_transport(mocker, lambda request: Response(404))

        with pytest.raises(HTTPStatusError):
            await SheetsClient().fetch_csv(SHEET_URL)
