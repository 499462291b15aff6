"""
Fitness schemas.

Pydantic models for the fitness API.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.shared.constants import ActivityCategory


class ActivityCreate(BaseModel):
    """Manually logged workout."""

    user_id: str
    category: ActivityCategory
    date: date
    duration_min: int = Field(..., ge=0, le=24 * 60)
    distance_km: Optional[float] = Field(default=None, ge=0)
    heart_rate: Optional[int] = Field(default=None, ge=0, le=250)
    calories: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=2000)


class ActivityCategoryUpdate(BaseModel):
    category: ActivityCategory


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    category: ActivityCategory
    date: date
    duration_min: int
    distance_km: Optional[float]
    calories: Optional[int]
    heart_rate: Optional[int]
    points: int
    source: str
    strava_id: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]


class BadgeResponse(BaseModel):
    badge_type: str
    name: str
    description: str
    emoji: str
    category: str
    unlocked_at: Optional[datetime]


class WeekSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    week_start: date
    week_end: date
    total_points: int
    total_workouts: int
    total_distance_km: float
    total_calories: int
    streak: int
    streak_bonus: int
    badges_count: int


class LeaderboardEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    user_id: str
    name: str
    points: int
    workouts: int
    distance_km: float
    streak: int
    badges: int


class ReclassifyRequest(BaseModel):
    dry_run: bool = False


class ReclassifyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    changed: int
    by_category: dict[str, int]
    dry_run: bool
