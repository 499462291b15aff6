"""
Unified constants for workout categories and activity sources.

This module provides a single source of truth for category naming
across the entire application.
"""

from enum import Enum


class ActivityCategory(str, Enum):
    """
    Our internal workout categories.

    Used in:
    - Stored fitness activities
    - Points and calorie formulas
    - Badge conditions
    """
    RUN = "run"
    BIKE = "bike"
    SWIM = "swim"
    GYM = "gym"
    YOGA = "yoga"
    WALK = "walk"
    HIKE = "hike"
    HIIT = "hiit"
    OTHER = "other"


class ActivitySource(str, Enum):
    """Where a fitness activity record came from."""
    MANUAL = "manual"
    STRAVA = "strava"


class StravaActivityType(str, Enum):
    """
    Activity types from Strava API.

    These are Strava's naming conventions, not ours.
    Use STRAVA_TO_CATEGORY to map to our categories.
    """
    RUN = "Run"
    VIRTUAL_RUN = "VirtualRun"
    RIDE = "Ride"
    VIRTUAL_RIDE = "VirtualRide"
    SWIM = "Swim"
    WEIGHT_TRAINING = "WeightTraining"
    YOGA = "Yoga"
    WALK = "Walk"
    HIKE = "Hike"


# Mapping: Strava type -> our category
STRAVA_TO_CATEGORY: dict[str, ActivityCategory] = {
    StravaActivityType.RUN.value: ActivityCategory.RUN,
    StravaActivityType.VIRTUAL_RUN.value: ActivityCategory.RUN,
    StravaActivityType.RIDE.value: ActivityCategory.BIKE,
    StravaActivityType.VIRTUAL_RIDE.value: ActivityCategory.BIKE,
    StravaActivityType.SWIM.value: ActivityCategory.SWIM,
    StravaActivityType.WEIGHT_TRAINING.value: ActivityCategory.GYM,
    StravaActivityType.YOGA.value: ActivityCategory.YOGA,
    StravaActivityType.WALK.value: ActivityCategory.WALK,
    StravaActivityType.HIKE.value: ActivityCategory.HIKE,
}

# Categories scored by distance rather than time
DISTANCE_CATEGORIES: frozenset[ActivityCategory] = frozenset({
    ActivityCategory.RUN,
    ActivityCategory.BIKE,
    ActivityCategory.SWIM,
    ActivityCategory.WALK,
    ActivityCategory.HIKE,
})

# Free-text keywords used by the classifier (matched case-insensitively)
HIIT_KEYWORDS: tuple[str, ...] = (
    "hiit", "workout", "crossfit", "circuit", "tabata", "interval",
)
GYM_KEYWORDS: tuple[str, ...] = (
    "gym", "weights", "strength", "lifting", "resistance",
)
