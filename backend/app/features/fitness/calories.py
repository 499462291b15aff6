"""
Calorie estimation.

MET-style rough estimates for an average 70 kg adult. Used only when the
provider does not report calories.
"""

from typing import Optional

from app.shared.constants import ActivityCategory
from .points import round_half_up

# Distance-driven categories: kcal per km
KCAL_PER_KM: dict[ActivityCategory, float] = {
    ActivityCategory.RUN: 100,
    ActivityCategory.BIKE: 50,
    ActivityCategory.WALK: 65,
    ActivityCategory.HIKE: 65,
}

# Time-driven categories: kcal per hour
KCAL_PER_HOUR: dict[ActivityCategory, float] = {
    ActivityCategory.SWIM: 600,
    ActivityCategory.GYM: 375,
    ActivityCategory.YOGA: 225,
    ActivityCategory.HIIT: 500,
    ActivityCategory.OTHER: 200,
}


def estimate_calories(
    category: ActivityCategory | str,
    distance_km: Optional[float],
    duration_min: float,
) -> int:
    category = ActivityCategory(category)
    if category in KCAL_PER_KM:
        return round_half_up((distance_km or 0) * KCAL_PER_KM[category])
    return round_half_up((duration_min or 0) / 60 * KCAL_PER_HOUR[category])


def resolve_calories(
    reported: Optional[float],
    category: ActivityCategory | str,
    distance_km: Optional[float],
    duration_min: float,
) -> int:
    """Provider-reported calories when present and positive, else an estimate."""
    if reported and reported > 0:
        return round_half_up(reported)
    return estimate_calories(category, distance_km, duration_min)
