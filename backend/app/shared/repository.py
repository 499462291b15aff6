"""
Base repository with common CRUD operations.

Provides generic database operations for all feature repositories.
Uses SQLAlchemy async session for non-blocking database access.

Usage:
    class FitnessActivityRepository(BaseRepository[FitnessActivity]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, FitnessActivity)

        async def get_by_strava_id(self, user_id: str, strava_id: str):
            return await self.get_by(user_id=user_id, strava_id=strava_id)
"""

from typing import TypeVar, Generic, Type
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for database operations.

    Write methods flush but never commit: the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    def _filtered(self, query, **kwargs):
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        return query

    async def get_by_id(self, id: str | int) -> T | None:
        """Get entity by primary key ID."""
        return await self.db.get(self.model, id)

    async def get_by(self, **kwargs) -> T | None:
        """
        Get single entity by arbitrary field values.

        Args:
            **kwargs: Field name-value pairs to filter by

        Returns:
            First matching entity or None
        """
        query = self._filtered(select(self.model), **kwargs).limit(1)
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_all(self, **kwargs) -> list[T]:
        """Get all entities matching field values."""
        result = await self.db.execute(self._filtered(select(self.model), **kwargs))
        return list(result.scalars().all())

    async def exists(self, **kwargs) -> bool:
        """Check whether any entity matches the given field values."""
        return await self.count(**kwargs) > 0

    async def create(self, **kwargs) -> T:
        """
        Create new entity.

        Args:
            **kwargs: Field values for new entity

        Returns:
            Created entity with generated ID
        """
        entity = self.model(**kwargs)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def update(self, entity: T, **kwargs) -> T:
        """Set fields on an entity and flush."""
        for key, value in kwargs.items():
            setattr(entity, key, value)
        await self.db.flush()
        return entity

    async def delete(self, entity: T) -> None:
        await self.db.delete(entity)
        await self.db.flush()

    async def count(self, **kwargs) -> int:
        """Count entities matching field values."""
        query = self._filtered(select(func.count()).select_from(self.model), **kwargs)
        result = await self.db.execute(query)
        return result.scalar() or 0
