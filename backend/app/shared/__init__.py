"""
Shared utilities (NOT business logic).

Usage:
    from app.shared import ActivityCategory, BaseRepository
    from app.shared.constants import HIIT_KEYWORDS
"""
from .constants import (
    ActivityCategory,
    ActivitySource,
    StravaActivityType,
    STRAVA_TO_CATEGORY,
    DISTANCE_CATEGORIES,
    HIIT_KEYWORDS,
    GYM_KEYWORDS,
)
from .repository import BaseRepository
