"""
Fitness gamification service.

Business logic on top of the activity and badge repositories:
- Recording activities (points + calories computed server-side)
- Badge unlocks after every insert
- Category reassignment with point recomputation
- Operator-triggered reclassification of Strava activities tagged 'other'
- Weekly summary and leaderboard
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.users import UserRepository
from app.shared.constants import ActivityCategory, ActivitySource
from .badges import BadgeDefinition, check_badge_unlocks
from .calories import resolve_calories
from .classifier import ActivityFeatures, infer_category
from .models import FitnessActivity
from .points import compute_points, current_streak, streak_bonus
from .repository import FitnessActivityRepository, FitnessBadgeRepository

logger = logging.getLogger(__name__)


class DuplicateActivityError(Exception):
    """An activity with the same (user, strava_id) is already stored."""
    pass


@dataclass
class ReclassificationSummary:
    total: int = 0
    changed: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    dry_run: bool = False


@dataclass
class WeekSummary:
    week_start: date
    week_end: date
    total_points: int
    total_workouts: int
    total_distance_km: float
    total_calories: int
    streak: int
    streak_bonus: int
    badges_count: int


@dataclass
class LeaderboardEntry:
    user_id: str
    name: str
    points: int
    workouts: int
    distance_km: float
    streak: int
    badges: int
    rank: int = 0


def week_bounds(today: date) -> tuple[date, date]:
    """Monday..Sunday of the week containing `today`."""
    start = today - timedelta(days=today.weekday())
    return start, start + timedelta(days=6)


def features_of(activity: FitnessActivity) -> ActivityFeatures:
    """Classifier input rebuilt from a stored record."""
    return ActivityFeatures(
        raw_type=None,
        duration_min=activity.duration_min or 0,
        distance_km=activity.distance_km,
        heart_rate=activity.heart_rate,
        notes=activity.notes or "",
    )


class FitnessService:
    """
    Fitness activity operations.

    Usage:
        service = FitnessService(db)
        activity = await service.add_activity(user_id, ActivityCategory.RUN, date.today(), 30, 5.0)
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.activities = FitnessActivityRepository(db)
        self.badges = FitnessBadgeRepository(db)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    async def add_activity(
        self,
        user_id: str,
        category: ActivityCategory | str,
        activity_date: date,
        duration_min: int,
        distance_km: Optional[float] = None,
        heart_rate: Optional[int] = None,
        calories: Optional[float] = None,
        notes: Optional[str] = None,
        source: ActivitySource = ActivitySource.MANUAL,
        strava_id: Optional[str] = None,
    ) -> FitnessActivity:
        """
        Insert an activity and commit it.

        Raises:
            DuplicateActivityError: (user_id, strava_id) already stored
        """
        category = ActivityCategory(category)
        activity = FitnessActivity(
            user_id=user_id,
            category=category.value,
            date=activity_date,
            duration_min=duration_min,
            distance_km=distance_km,
            heart_rate=heart_rate,
            calories=resolve_calories(calories, category, distance_km, duration_min),
            points=compute_points(category, duration_min, distance_km, heart_rate),
            source=ActivitySource(source).value,
            strava_id=strava_id,
            notes=notes,
        )
        self.db.add(activity)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateActivityError(
                f"Activity strava_id={strava_id} already stored for user {user_id}"
            ) from e

        logger.info(
            f"Recorded {category.value} activity {activity.id} for user {user_id}: "
            f"{activity.points} pts ({activity.source})"
        )

        await self.unlock_badges(user_id)
        # A badge conflict rolls the session back, which expires loaded instances
        await self.db.refresh(activity)
        return activity

    async def unlock_badges(self, user_id: str, today: Optional[date] = None) -> list[BadgeDefinition]:
        """
        Evaluate badge conditions and store newly unlocked badges.

        Each badge is committed on its own. A unique-constraint conflict means
        a concurrent insert for the same user unlocked it first; it is skipped
        and never undoes the activity that triggered the check.

        Returns:
            Badges unlocked by this call
        """
        activities = await self.activities.get_all_for_user(user_id)
        owned = [badge.badge_type for badge in await self.badges.get_user_badges(user_id)]

        unlocked = []
        for badge in check_badge_unlocks(activities, owned, today):
            try:
                await self.badges.create(user_id=user_id, badge_type=badge.id)
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.debug(f"Badge {badge.id} already unlocked for user {user_id}")
                continue

            unlocked.append(badge)
            logger.info(f"Badge unlocked for user {user_id}: {badge.id}")

        return unlocked

    # -------------------------------------------------------------------------
    # Category changes
    # -------------------------------------------------------------------------

    async def set_category(
        self,
        activity: FitnessActivity,
        category: ActivityCategory | str,
        commit: bool = True
    ) -> FitnessActivity:
        """Reassign category; points are recomputed in the same write."""
        category = ActivityCategory(category)
        activity.category = category.value
        activity.points = compute_points(
            category,
            activity.duration_min,
            activity.distance_km,
            activity.heart_rate,
        )
        if commit:
            await self.db.commit()
        return activity

    async def reclassify_other_activities(self, dry_run: bool = False) -> ReclassificationSummary:
        """
        Re-infer categories for Strava activities stored as 'other'.

        Operator action: ingestion classifies once and never revisits.
        Uses the heuristic rules only (the provider type is not stored).
        """
        candidates = await self.activities.get_reclassification_candidates()
        summary = ReclassificationSummary(total=len(candidates), dry_run=dry_run)
        counts: Counter[str] = Counter()

        for activity in candidates:
            match = infer_category(features_of(activity))
            if match is None or match.category == ActivityCategory.OTHER:
                continue

            counts[match.category.value] += 1
            logger.debug(
                f"Reclassify activity {activity.id}: other -> {match.category.value} "
                f"({match.rule})"
            )
            if not dry_run:
                await self.set_category(activity, match.category, commit=False)

        if not dry_run and counts:
            await self.db.commit()

        summary.changed = sum(counts.values())
        summary.by_category = dict(counts)
        logger.info(
            f"Reclassification {'preview' if dry_run else 'done'}: "
            f"{summary.changed}/{summary.total} activities changed {summary.by_category}"
        )
        return summary

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def week_summary(self, user_id: str, today: Optional[date] = None) -> WeekSummary:
        today = today or date.today()
        start, end = week_bounds(today)

        activities = await self.activities.get_all_for_user(user_id)
        week = [a for a in activities if start <= a.date <= end]
        streak = current_streak((a.date for a in activities), today)

        return WeekSummary(
            week_start=start,
            week_end=end,
            total_points=sum(a.points for a in week),
            total_workouts=len(week),
            total_distance_km=round(sum(a.distance_km or 0 for a in week), 2),
            total_calories=sum(a.calories or 0 for a in week),
            streak=streak,
            streak_bonus=streak_bonus(streak),
            badges_count=await self.badges.count(user_id=user_id),
        )

    async def weekly_leaderboard(self, today: Optional[date] = None) -> list[LeaderboardEntry]:
        """All users ranked by points earned this week."""
        today = today or date.today()
        start, end = week_bounds(today)

        users = await UserRepository(self.db).list_users()
        week = await self.activities.get_in_range(start, end)
        badge_counts = await self.badges.badge_counts()

        entries = []
        for user in users:
            mine = [a for a in week if a.user_id == user.id]
            dates = await self.activities.activity_dates(user.id)
            entries.append(LeaderboardEntry(
                user_id=user.id,
                name=user.name,
                points=sum(a.points for a in mine),
                workouts=len(mine),
                distance_km=round(sum(a.distance_km or 0 for a in mine), 2),
                streak=current_streak(dates, today),
                badges=badge_counts.get(user.id, 0),
            ))

        entries.sort(key=lambda e: e.points, reverse=True)
        for rank, entry in enumerate(entries, start=1):
            entry.rank = rank
        return entries
