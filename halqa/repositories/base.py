"""Base repository for content store operations."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import ColumnElement, delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from halqa.errors.database import (
    DatabaseConnectionError,
    DatabaseError,
    DuplicateEntryError,
    RecordNotFoundError,
)
from halqa.utils.helpers import utc_now

type RecordId = UUID | str | int
type FilterValue = str | int | float | bool | UUID | datetime | None


class BaseRepository[ModelT: SQLModel, CreateSchemaT: BaseModel, UpdateSchemaT: BaseModel]:
    """
    Base repository implementing common CRUD operations.

    Subclasses set ``model`` and, when the primary key is not ``id``,
    ``id_field`` (authors are keyed by ``handle``). Every write goes through
    ``_add_and_refresh`` so constraint violations surface as
    ``DuplicateEntryError`` and other store failures as ``DatabaseError``.

    Attributes:
        model: The SQLModel database model type.
        id_field: The name of the primary key field (default: "id").
    """

    model: type[ModelT]
    id_field: str = "id"

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with database session.

        Args:
            session: Async database session
        """
        self.session = session

    @property
    def _id_column(self) -> Any:  # noqa: ANN401
        return getattr(self.model, self.id_field)

    async def create(self, schema: CreateSchemaT, **extra: Any) -> ModelT:  # noqa: ANN401
        """
        Create a new record in the database.

        Args:
            schema: Creation schema with data
            **extra: Column values not carried by the schema

        Returns:
            ModelT: Created database model
        """
        data = schema.model_dump(exclude_unset=True) | extra
        return await self._add_and_refresh(self.model.model_validate(data))

    async def get_by_id(self, record_id: RecordId) -> ModelT | None:
        """
        Get a record by its primary key.

        Args:
            record_id: Primary key value

        Returns:
            ModelT | None: Record if found, None otherwise
        """
        return await self._scalar(select(self.model).where(self._id_column == record_id))

    async def get_by_field(self, field_name: str, value: FilterValue) -> ModelT | None:
        field = getattr(self.model, field_name)
        return await self._scalar(select(self.model).where(field == value))

    async def get_or_raise(self, record_id: RecordId) -> ModelT:
        """
        Get a record by primary key or raise if it does not exist.

        Raises:
            RecordNotFoundError: If record is not found
        """
        record = await self.get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(
                detail=f"{self.model.__name__.removesuffix('DB')} '{record_id}' not found",
            )
        return record

    async def update(self, record_id: RecordId, schema: UpdateSchemaT) -> ModelT | None:
        """
        Apply the fields set on ``schema`` to a record.

        Returns:
            ModelT | None: Updated record if found, None otherwise
        """
        record = await self.get_by_id(record_id)
        if record is None:
            return None
        return await self.apply(record, **schema.model_dump(exclude_unset=True))

    async def apply(self, record: ModelT, **values: Any) -> ModelT:  # noqa: ANN401
        """Set ``values`` on ``record``, stamp ``updated_at`` and flush."""
        for key, value in values.items():
            setattr(record, key, value)
        if hasattr(record, "updated_at"):
            record.updated_at = utc_now()
        return await self._add_and_refresh(record)

    async def delete(self, record_id: RecordId) -> bool:
        """
        Delete a record by primary key.

        Returns:
            bool: True if record was deleted, False if not found
        """
        record = await self.get_by_id(record_id)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True

    async def delete_where(self, *criteria: ColumnElement[bool]) -> int:
        """Bulk delete rows matching ``criteria``; returns the row count."""
        try:
            result = await self.session.execute(delete(self.model).where(*criteria))
            await self.session.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(detail=f"Failed to delete {self.model.__name__}: {e}") from e
        return result.rowcount or 0

    async def commit(self) -> None:
        """
        Commit the session's pending writes.

        Raises:
            DatabaseError: If the commit fails; the session is rolled back
        """
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(detail=f"Failed to commit {self.model.__name__}: {e}") from e

    async def exists(self, record_id: RecordId) -> bool:

        statement = select(1).where(self._id_column == record_id).limit(1)
        return await self._scalar(statement) is not None

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        """
        Count records, optionally filtered.

        Returns:
            int: Number of matching records
        """
        statement = select(func.count()).select_from(self.model)
        if criteria:
            statement = statement.where(*criteria)
        count = await self._scalar(statement)
        return count if count is not None else 0

    async def _all(self, statement: Any) -> Sequence[ModelT]:  # noqa: ANN401
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def _scalar(self, statement: Any) -> Any:  # noqa: ANN401
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def _add_and_refresh(self, record: ModelT) -> ModelT:
        """
        Add a record and refresh it from the database with error handling.

        Args:
            record: Record to add

        Returns:
            ModelT: Refreshed record

        Raises:
            DuplicateEntryError: If a unique constraint is violated
            DatabaseError: For other database errors
        """
        try:
            self.session.add(record)
            await self.session.flush()
            await self.session.refresh(record)
            return record
        except IntegrityError as e:
            await self.session.rollback()
            error_msg = str(e.orig) if e.orig else str(e)
            if "unique" in error_msg.lower() or "duplicate" in error_msg.lower():
                raise DuplicateEntryError(detail=error_msg) from e
            raise DatabaseError(detail=f"Database integrity error: {error_msg}") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseConnectionError(
                detail=f"Failed to save record: {e}",
            ) from e
