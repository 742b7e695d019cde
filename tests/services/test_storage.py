# tests/services/test_storage.py
"""Tests for the local blob store."""

import os
from pathlib import Path

import pytest

from halqa.configs import Settings
from halqa.errors.storage import StorageError
from halqa.services.storage import LocalStorage, get_blob_store


class TestLocalStorage:
    @pytest.mark.asyncio
    async def test_put_get_delete(self, tmp_path: Path) -> None:
        store = LocalStorage(tmp_path)

        url = await store.put("settings.csv", "Settings,type,value")

        assert url == "/uploads/settings.csv"
        assert await store.get("settings.csv") == b"Settings,type,value"
        assert await store.delete("settings.csv") is True
        assert await store.get("settings.csv") is None
        assert await store.delete("settings.csv") is False

    @pytest.mark.asyncio
    async def test_nested_paths_are_created(self, tmp_path: Path) -> None:
        store = LocalStorage(tmp_path)
        await store.put("avatars/nadia.png", b"\x89PNG")
        assert (tmp_path / "avatars" / "nadia.png").read_bytes() == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_paths_outside_root_are_refused(self, tmp_path: Path) -> None:
        store = LocalStorage(tmp_path / "uploads")
        with pytest.raises(StorageError):
            await store.put("../escape.csv", "x")

    @pytest.mark.asyncio
    async def test_list_objects_is_newest_first(self, tmp_path: Path) -> None:
        store = LocalStorage(tmp_path)
        await store.put("images/old.png", b"1")
        await store.put("images/new.png", b"2")
        await store.put("avatars/nadia.jpg", b"3")
        os.utime(tmp_path / "images" / "old.png", (1_000, 1_000))

        objects = await store.list_objects("images")

        assert [o.path for o in objects] == ["images/new.png", "images/old.png"]
        assert objects[0].url == "/uploads/images/new.png"
        assert await store.list_objects("images", limit=1, offset=1) == objects[1:]
        assert await store.list_objects("missing") == []


def test_local_provider_by_default(test_settings: Settings, tmp_path: Path) -> None:
    test_settings.UPLOADS_DIR = tmp_path
    assert isinstance(get_blob_store(test_settings), LocalStorage)
