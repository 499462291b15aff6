"""
User repositories.

Data access layer for the User model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.repository import BaseRepository
from .models import User


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def list_users(self) -> list[User]:
        """All users ordered by name."""
        result = await self.db.execute(select(User).order_by(User.name))
        return list(result.scalars().all())
