"""
Fitness repositories.

Data access layer for activities and badges.
"""

from datetime import date

from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.repository import BaseRepository
from app.shared.constants import ActivityCategory, ActivitySource
from .models import FitnessActivity, FitnessBadge


class FitnessActivityRepository(BaseRepository[FitnessActivity]):
    """Repository for fitness activities."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, FitnessActivity)

    async def get_by_strava_id(self, user_id: str, strava_id: str) -> FitnessActivity | None:
        """
        Get a user's activity by Strava activity ID.

        Args:
            user_id: Owner's ID
            strava_id: Strava's activity ID (as string)

        Returns:
            FitnessActivity if found, None otherwise
        """
        return await self.get_by(user_id=user_id, strava_id=strava_id)

    async def strava_id_exists(self, user_id: str, strava_id: str) -> bool:
        return await self.exists(user_id=user_id, strava_id=strava_id)

    async def get_user_activities(
        self,
        user_id: str | None = None,
        category: str | None = None,
        limit: int = 50,
        offset: int = 0
    ) -> list[FitnessActivity]:
        """
        Get activities with pagination, newest first.

        Args:
            user_id: Filter by owner (all users when None)
            category: Filter by category
            limit: Maximum activities to return
            offset: Pagination offset
        """
        query = select(FitnessActivity)
        if user_id:
            query = query.where(FitnessActivity.user_id == user_id)
        if category:
            query = query.where(FitnessActivity.category == category)

        query = (
            query
            .order_by(desc(FitnessActivity.date), desc(FitnessActivity.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_all_for_user(self, user_id: str) -> list[FitnessActivity]:
        """Every activity of a user, newest first (badge and streak checks)."""
        result = await self.db.execute(
            select(FitnessActivity)
            .where(FitnessActivity.user_id == user_id)
            .order_by(desc(FitnessActivity.date))
        )
        return list(result.scalars().all())

    async def get_in_range(self, start: date, end: date) -> list[FitnessActivity]:
        """All users' activities with start <= date <= end."""
        result = await self.db.execute(
            select(FitnessActivity)
            .where(FitnessActivity.date >= start)
            .where(FitnessActivity.date <= end)
        )
        return list(result.scalars().all())

    async def get_reclassification_candidates(self) -> list[FitnessActivity]:
        """Strava activities still tagged 'other'."""
        result = await self.db.execute(
            select(FitnessActivity)
            .where(FitnessActivity.category == ActivityCategory.OTHER.value)
            .where(FitnessActivity.source == ActivitySource.STRAVA.value)
            .order_by(FitnessActivity.id)
        )
        return list(result.scalars().all())

    async def activity_dates(self, user_id: str) -> list[date]:
        result = await self.db.execute(
            select(func.distinct(FitnessActivity.date))
            .where(FitnessActivity.user_id == user_id)
        )
        return list(result.scalars().all())


class FitnessBadgeRepository(BaseRepository[FitnessBadge]):
    """Repository for unlocked badges."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, FitnessBadge)

    async def get_user_badges(self, user_id: str) -> list[FitnessBadge]:
        """Badges of a user, most recently unlocked first."""
        result = await self.db.execute(
            select(FitnessBadge)
            .where(FitnessBadge.user_id == user_id)
            .order_by(desc(FitnessBadge.unlocked_at), desc(FitnessBadge.id))
        )
        return list(result.scalars().all())

    async def badge_counts(self) -> dict[str, int]:
        """user_id -> number of unlocked badges."""
        result = await self.db.execute(
            select(FitnessBadge.user_id, func.count())
            .group_by(FitnessBadge.user_id)
        )
        return {user_id: count for user_id, count in result.all()}
