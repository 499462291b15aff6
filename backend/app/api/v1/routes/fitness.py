"""
Fitness Routes

Endpoints for the gamification layer:
- /fitness/activities - Log and list workouts, change a category (admin)
- /fitness/summary - Current week for one user
- /fitness/leaderboard - Weekly ranking of all users
- /fitness/badges - Unlocked badges
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import verify_admin_key
from app.db.session import get_async_db
from app.features.fitness import FitnessService, get_badge
from app.features.fitness.schemas import (
    ActivityCategoryUpdate,
    ActivityCreate,
    ActivityResponse,
    BadgeResponse,
    LeaderboardEntryResponse,
    WeekSummaryResponse,
)
from app.features.users import UserRepository
from app.shared.constants import ActivityCategory, ActivitySource

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Activities
# =============================================================================

@router.post("/activities", response_model=ActivityResponse, status_code=201)
async def create_activity(
    request: ActivityCreate,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Log a workout manually.

    Points and (missing) calories are computed server-side.
    """
    if not await UserRepository(db).get_by_id(request.user_id):
        raise HTTPException(status_code=404, detail="User not found")

    activity = await FitnessService(db).add_activity(
        user_id=request.user_id,
        category=request.category,
        activity_date=request.date,
        duration_min=request.duration_min,
        distance_km=request.distance_km,
        heart_rate=request.heart_rate,
        calories=request.calories,
        notes=request.notes,
        source=ActivitySource.MANUAL,
    )
    return activity


@router.get("/activities", response_model=list[ActivityResponse])
async def list_activities(
    user_id: Optional[str] = Query(None),
    category: Optional[ActivityCategory] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_db),
):
    """Newest activities first, optionally for one user and/or category."""
    service = FitnessService(db)
    return await service.activities.get_user_activities(
        user_id=user_id,
        category=category.value if category else None,
        limit=limit,
        offset=offset,
    )


@router.patch(
    "/activities/{activity_id}",
    response_model=ActivityResponse,
    dependencies=[Depends(verify_admin_key)],
)
async def update_activity_category(
    activity_id: int,
    request: ActivityCategoryUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    """Reassign an activity's category; points follow the new category."""
    service = FitnessService(db)
    activity = await service.activities.get_by_id(activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")

    previous = activity.category
    activity = await service.set_category(activity, request.category)

    logger.info(
        f"Activity {activity_id} recategorized {previous} -> {activity.category} "
        f"({activity.points} pts)"
    )
    return activity


# =============================================================================
# Aggregates
# =============================================================================

@router.get("/summary/{user_id}", response_model=WeekSummaryResponse)
async def get_week_summary(user_id: str, db: AsyncSession = Depends(get_async_db)):
    """Points, workouts and streak for the current week."""
    if not await UserRepository(db).get_by_id(user_id):
        raise HTTPException(status_code=404, detail="User not found")

    return await FitnessService(db).week_summary(user_id)


@router.get("/leaderboard", response_model=list[LeaderboardEntryResponse])
async def get_leaderboard(db: AsyncSession = Depends(get_async_db)):
    """Weekly points ranking."""
    return await FitnessService(db).weekly_leaderboard()


@router.get("/badges/{user_id}", response_model=list[BadgeResponse])
async def get_user_badges(user_id: str, db: AsyncSession = Depends(get_async_db)):
    """Badges the user has unlocked, with their definitions."""
    service = FitnessService(db)
    badges = []
    for badge in await service.badges.get_user_badges(user_id):
        definition = get_badge(badge.badge_type)
        if not definition:
            continue
        badges.append(BadgeResponse(
            badge_type=badge.badge_type,
            name=definition.name,
            description=definition.description,
            emoji=definition.emoji,
            category=definition.category,
            unlocked_at=badge.unlocked_at,
        ))
    return badges
