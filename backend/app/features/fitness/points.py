"""
Points and streak formulas.

Pure functions, no I/O. Points are a derived value: whenever an activity's
category or metrics change, call compute_points again and overwrite.
"""

import math
from datetime import date, timedelta
from typing import Iterable, Optional

from app.shared.constants import ActivityCategory, DISTANCE_CATEGORIES

# Cardio: points per km
DISTANCE_POINTS_PER_KM = 10

# Time-based categories: points per 10 minutes
POINTS_PER_10_MIN: dict[ActivityCategory, float] = {
    ActivityCategory.GYM: 5,
    ActivityCategory.YOGA: 3,
    ActivityCategory.OTHER: 3,
}

# HIIT effort multiplier bounds
HIIT_EFFORT_MIN = 0.5
HIIT_EFFORT_MAX = 2.0
HIIT_DEFAULT_EFFORT = 1.5

MIN_POINTS = 1

STREAK_BONUSES: tuple[tuple[int, int], ...] = (
    (7, 50),
    (3, 20),
)


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up (2.5 -> 3, where round() gives 2)."""
    return math.floor(value + 0.5)


def hiit_effort(heart_rate: Optional[float]) -> float:
    """
    Effort multiplier from average heart rate.

    100 bpm -> 1.0, 150 bpm -> 1.5, clamped to [0.5, 2.0].
    Without heart rate data the effort defaults to 1.5.
    """
    if not heart_rate:
        return HIIT_DEFAULT_EFFORT
    effort = (heart_rate - 100) / 100 + 1
    return min(HIIT_EFFORT_MAX, max(HIIT_EFFORT_MIN, effort))


def compute_points(
    category: ActivityCategory | str,
    duration_min: float,
    distance_km: Optional[float] = None,
    heart_rate: Optional[float] = None,
) -> int:
    """
    Gamification score for one activity.

    - run / bike / swim / walk / hike: 10 points per km
    - hiit: effort x minutes (effort from heart rate)
    - gym: 5 points per 10 minutes
    - yoga / other: 3 points per 10 minutes

    Every activity earns at least 1 point.
    """
    category = ActivityCategory(category)
    duration_min = max(duration_min or 0, 0)
    distance_km = max(distance_km or 0, 0)

    if category in DISTANCE_CATEGORIES:
        points = round_half_up(distance_km * DISTANCE_POINTS_PER_KM)
    elif category == ActivityCategory.HIIT:
        points = round_half_up(hiit_effort(heart_rate) * duration_min)
    else:
        points = round_half_up(duration_min / 10 * POINTS_PER_10_MIN[category])

    return max(points, MIN_POINTS)


def current_streak(activity_dates: Iterable[date], today: Optional[date] = None) -> int:
    """
    Consecutive days with at least one activity.

    The streak is anchored at today; a streak that ended yesterday still
    counts (the user has until midnight to extend it).
    """
    today = today or date.today()
    days = set(activity_dates)

    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def streak_bonus(streak: int) -> int:
    """Bonus points for an active streak: 50 at 7+ days, 20 at 3+ days."""
    for min_days, bonus in STREAK_BONUSES:
        if streak >= min_days:
            return bonus
    return 0
