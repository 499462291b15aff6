"""
Fitness gamification module.

Usage:
    from app.features.fitness import FitnessService, classify, compute_points

Components:
- classifier: ordered rules mapping raw signals to a workout category
- points: points, streak and streak bonus formulas
- calories: calorie estimates when the provider reports none
- badges: badge definitions and unlock checks
- FitnessService: recording, reclassification, summaries

Models:
- FitnessActivity: Workout record with computed points
- FitnessBadge: Unlocked badge
"""

from .models import FitnessActivity, FitnessBadge
from .classifier import (
    ActivityFeatures,
    ClassificationMatch,
    ClassificationRule,
    HEURISTIC_RULES,
    classify,
    explain,
    infer_category,
    direct_category,
)
from .points import compute_points, current_streak, streak_bonus, hiit_effort
from .calories import estimate_calories, resolve_calories
from .badges import BADGE_DEFINITIONS, BadgeDefinition, check_badge_unlocks, get_badge
from .repository import FitnessActivityRepository, FitnessBadgeRepository
from .service import (
    FitnessService,
    DuplicateActivityError,
    ReclassificationSummary,
    WeekSummary,
    LeaderboardEntry,
)

__all__ = [
    # Models
    "FitnessActivity",
    "FitnessBadge",
    # Classifier
    "ActivityFeatures",
    "ClassificationMatch",
    "ClassificationRule",
    "HEURISTIC_RULES",
    "classify",
    "explain",
    "infer_category",
    "direct_category",
    # Formulas
    "compute_points",
    "current_streak",
    "streak_bonus",
    "hiit_effort",
    "estimate_calories",
    "resolve_calories",
    # Badges
    "BADGE_DEFINITIONS",
    "BadgeDefinition",
    "check_badge_unlocks",
    "get_badge",
    # Repositories
    "FitnessActivityRepository",
    "FitnessBadgeRepository",
    # Service
    "FitnessService",
    "DuplicateActivityError",
    "ReclassificationSummary",
    "WeekSummary",
    "LeaderboardEntry",
]
