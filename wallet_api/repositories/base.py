"""
Base repository.

Shared lookups and writes for the user, wallet and transaction
repositories. Statements are SQLAlchemy constructs, so caller values
only ever reach the database as bound parameters.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_api.models.base import Base
from wallet_api.utils.errors import ConflictError

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository bound to one model and one session.

    Writes are flushed, never committed. The unit of work belongs to
    the caller (see session_scope).
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """Get row by primary key."""
        return await self.session.get(self.model, id)

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get the single row matching all filters.

        Args:
            **filters: Column equality filters

        Returns:
            Row or None
        """
        result = await self.session.execute(
            select(self.model).filter_by(**filters)
        )
        return result.scalar_one_or_none()

    async def create(
        self, conflict_message: str | None = None, **data: Any
    ) -> ModelType:
        """
        Insert a row and load server defaults.

        Args:
            conflict_message: Raise ConflictError with this message on a
                unique key violation (IntegrityError propagates if None)
            **data: Column values

        Returns:
            Created row

        Raises:
            ConflictError: Unique key already taken
        """
        entity = self.model(**data)
        self.session.add(entity)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if conflict_message is None:
                raise
            raise ConflictError(conflict_message) from e

        await self.session.refresh(entity)
        return entity

    async def update(self, id: int, **data: Any) -> ModelType | None:
        """
        Set columns on the row with this primary key.

        Returns:
            Updated row or None if absent
        """
        entity = await self.get_by_id(id)
        if entity is None:
            return None

        for key, value in data.items():
            setattr(entity, key, value)

        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self, **filters: Any) -> int:
        """Count rows matching all filters."""
        stmt = select(func.count()).select_from(self.model).filter_by(**filters)
        return (await self.session.execute(stmt)).scalar_one()

    async def exists(self, **filters: Any) -> bool:
        return await self.count(**filters) > 0
