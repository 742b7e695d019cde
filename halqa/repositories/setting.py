"""Settings and preferences repositories."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select

from halqa.models.setting import PreferenceDB, SettingDB
from halqa.repositories.base import BaseRepository

JOIN_DISABLED_KEY = "join_disabled"


class SettingRepository(BaseRepository[SettingDB, BaseModel, BaseModel]):
    """Key/value site settings with upsert semantics."""

    model = SettingDB
    id_field = "key"

    async def get_value(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
        setting = await self.get_by_id(key)
        return default if setting is None else setting.value

    async def set_value(self, key: str, value: Any) -> SettingDB:  # noqa: ANN401
        setting = await self.get_by_id(key)
        if setting is None:
            return await self._add_and_refresh(SettingDB(key=key, value=value))
        return await self.apply(setting, value=value)


class PreferenceRepository(BaseRepository[PreferenceDB, BaseModel, BaseModel]):
    """
    Display preferences, site-wide (``author_handle`` NULL) or per author.

    Unique on (author_handle, key).
    """

    model = PreferenceDB

    def _owner(self, author_handle: str | None) -> Any:  # noqa: ANN401
        if author_handle is None:
            return PreferenceDB.author_handle.is_(None)
        return PreferenceDB.author_handle == author_handle

    async def get_all(self, author_handle: str | None = None) -> dict[str, Any]:
        """Return the owner's preferences as a ``{key: value}`` mapping."""
        rows = await self._all(
            select(PreferenceDB).where(self._owner(author_handle)).order_by(PreferenceDB.key),
        )
        return {row.key: row.value for row in rows}

    async def upsert_many(
        self,
        values: Mapping[str, Any],
        author_handle: str | None = None,
    ) -> dict[str, Any]:
        for key, value in values.items():
            existing = await self._scalar(
                select(PreferenceDB).where(
                    self._owner(author_handle),
                    PreferenceDB.key == key,
                ),
            )
            if existing is None:
                await self._add_and_refresh(
                    PreferenceDB(author_handle=author_handle, key=key, value=value),
                )
            else:
                await self.apply(existing, value=value)
        return await self.get_all(author_handle)

    async def delete_by_author(self, author_handle: str) -> int:
        return await self.delete_where(PreferenceDB.author_handle == author_handle)
