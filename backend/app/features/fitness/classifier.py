"""
Workout classifier.

Maps raw activity signals (provider type, notes, heart rate, duration,
distance) to one of our ActivityCategory values.

Strava's taxonomy is coarser than ours: a "Workout" or an unknown type says
nothing about intensity, so free text and heart rate fill the gap. Rules are
evaluated strictly in order and the first match wins.

Usage:
    category = classify(ActivityFeatures(raw_type="Workout", notes="Tabata"))
    match = explain(features)  # -> ClassificationMatch(rule="hiit_keywords", ...)
"""

from dataclasses import dataclass
from typing import Callable, Optional

from app.shared.constants import (
    ActivityCategory,
    STRAVA_TO_CATEGORY,
    HIIT_KEYWORDS,
    GYM_KEYWORDS,
)

HIIT_HEART_RATE_THRESHOLD = 130  # bpm, exclusive
HIIT_MIN_DURATION_MIN = 10  # exclusive
GYM_MIN_DURATION_MIN = 20  # inclusive


@dataclass(frozen=True)
class ActivityFeatures:
    """Signals the classifier looks at. Duration in minutes, distance in km."""
    raw_type: Optional[str] = None
    duration_min: float = 0
    distance_km: Optional[float] = None
    heart_rate: Optional[float] = None
    notes: str = ""

    @property
    def notes_lower(self) -> str:
        return (self.notes or "").lower()


@dataclass(frozen=True)
class ClassificationRule:
    """A predicate -> category pair."""
    name: str
    predicate: Callable[[ActivityFeatures], bool]
    category: ActivityCategory


@dataclass(frozen=True)
class ClassificationMatch:
    category: ActivityCategory
    rule: str


def direct_category(raw_type: Optional[str]) -> Optional[ActivityCategory]:
    """
    Resolve a provider type that maps straight onto one of our categories.

    Accepts Strava names ("Ride", "WeightTraining") and our own values
    ("bike", "gym"). "other" is not a direct match: it carries no signal
    and falls through to the heuristics.
    """
    if not raw_type:
        return None
    if raw_type in STRAVA_TO_CATEGORY:
        return STRAVA_TO_CATEGORY[raw_type]
    try:
        category = ActivityCategory(raw_type.lower())
    except ValueError:
        return None
    if category in (ActivityCategory.OTHER, ActivityCategory.HIIT):
        return None
    return category


def _contains_any(keywords: tuple[str, ...]) -> Callable[[ActivityFeatures], bool]:
    def predicate(features: ActivityFeatures) -> bool:
        notes = features.notes_lower
        return any(keyword in notes for keyword in keywords)
    return predicate


def _high_heart_rate(features: ActivityFeatures) -> bool:
    return (
        features.heart_rate is not None
        and features.heart_rate > HIIT_HEART_RATE_THRESHOLD
        and features.duration_min > HIIT_MIN_DURATION_MIN
    )


def _long_without_distance(features: ActivityFeatures) -> bool:
    return (
        features.duration_min >= GYM_MIN_DURATION_MIN
        and not features.distance_km
    )


# Heuristic rules, highest priority first. Direct type mapping runs before these.
HEURISTIC_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("hiit_keywords", _contains_any(HIIT_KEYWORDS), ActivityCategory.HIIT),
    ClassificationRule("gym_keywords", _contains_any(GYM_KEYWORDS), ActivityCategory.GYM),
    ClassificationRule("high_heart_rate", _high_heart_rate, ActivityCategory.HIIT),
    ClassificationRule("long_without_distance", _long_without_distance, ActivityCategory.GYM),
)

DIRECT_RULE = "direct_type"
FALLBACK_RULE = "fallback"


def infer_category(features: ActivityFeatures) -> Optional[ClassificationMatch]:
    """Run only the heuristic rules. None when nothing matches."""
    for rule in HEURISTIC_RULES:
        if rule.predicate(features):
            return ClassificationMatch(rule.category, rule.name)
    return None


def explain(features: ActivityFeatures) -> ClassificationMatch:
    """Classify and report which rule decided."""
    direct = direct_category(features.raw_type)
    if direct is not None:
        return ClassificationMatch(direct, DIRECT_RULE)

    return infer_category(features) or ClassificationMatch(
        ActivityCategory.OTHER, FALLBACK_RULE
    )


def classify(features: ActivityFeatures) -> ActivityCategory:
    return explain(features).category
