"""
Badge definitions and unlock checks.

A badge condition looks at all of a user's activities. Conditions are pure:
they receive the activities and the reference day, so they can be tested
without a database.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Iterable, Optional, Protocol, Sequence

from app.shared.constants import ActivityCategory
from .points import current_streak


class _ActivityLike(Protocol):
    category: str
    date: date
    distance_km: Optional[float]


Condition = Callable[[Sequence[_ActivityLike], date], bool]


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    emoji: str
    category: str  # cardio | strength | streak | special
    condition: Condition


def _of(activities, category: ActivityCategory):
    return [a for a in activities if a.category == category.value]


def _within_week(activities, today: date):
    cutoff = today - timedelta(days=7)
    return [a for a in activities if a.date >= cutoff]


def _distance(activities) -> float:
    return sum(a.distance_km or 0 for a in activities)


def _single_run_of(km: float) -> Condition:
    return lambda activities, today: any(
        (a.distance_km or 0) >= km for a in _of(activities, ActivityCategory.RUN)
    )


def _weekly_distance(category: ActivityCategory, km: float) -> Condition:
    return lambda activities, today: (
        _distance(_within_week(_of(activities, category), today)) >= km
    )


def _session_count(category: ActivityCategory, count: int) -> Condition:
    return lambda activities, today: len(_of(activities, category)) >= count


def _streak_of(days: int) -> Condition:
    return lambda activities, today: (
        current_streak((a.date for a in activities), today) >= days
    )


def _weekend_workouts(activities, today) -> bool:
    # date.weekday(): Saturday = 5, Sunday = 6
    return len([a for a in activities if a.date.weekday() >= 5]) >= 10


BADGE_DEFINITIONS: tuple[BadgeDefinition, ...] = (
    # Cardio
    BadgeDefinition("first_steps", "First Steps", "Complete your first workout", "👟", "cardio",
                    lambda activities, today: len(activities) >= 1),
    BadgeDefinition("5k_runner", "5K Runner", "Run 5km in a single session", "🏃", "cardio",
                    _single_run_of(5)),
    BadgeDefinition("10k_runner", "10K Champion", "Run 10km in a single session", "🏃‍♂️", "cardio",
                    _single_run_of(10)),
    BadgeDefinition("marathon_runner", "Marathon Runner", "Run 42km in a week", "🏅", "cardio",
                    _weekly_distance(ActivityCategory.RUN, 42)),
    BadgeDefinition("century_cyclist", "Century Cyclist", "Bike 100km in a week", "🚴", "cardio",
                    _weekly_distance(ActivityCategory.BIKE, 100)),
    BadgeDefinition("ocean_swimmer", "Ocean Swimmer", "Swim 10km total", "🏊", "cardio",
                    lambda activities, today: _distance(_of(activities, ActivityCategory.SWIM)) >= 10),

    # Strength
    BadgeDefinition("iron_lifter", "Iron Lifter", "Complete 10 gym sessions", "💪", "strength",
                    _session_count(ActivityCategory.GYM, 10)),
    BadgeDefinition("beast_mode", "Beast Mode", "Complete 20 gym sessions", "🏋️", "strength",
                    _session_count(ActivityCategory.GYM, 20)),
    BadgeDefinition("diamond_grinder", "Diamond Grinder", "Complete 50 gym sessions", "💎", "strength",
                    _session_count(ActivityCategory.GYM, 50)),

    # Streaks
    BadgeDefinition("hot_streak", "Hot Streak", "Workout 3 days in a row", "🔥", "streak",
                    _streak_of(3)),
    BadgeDefinition("lightning_streak", "Lightning Streak", "Workout 7 days in a row", "⚡", "streak",
                    _streak_of(7)),
    BadgeDefinition("unstoppable", "Unstoppable", "Workout 30 days in a row", "🌟", "streak",
                    _streak_of(30)),

    # Special
    BadgeDefinition("weekend_warrior", "Weekend Warrior", "Complete 10 weekend workouts", "🎉", "special",
                    _weekend_workouts),
    BadgeDefinition("hundred_club", "100 Club", "Complete 100 total workouts", "💯", "special",
                    lambda activities, today: len(activities) >= 100),
)

_BY_ID = {badge.id: badge for badge in BADGE_DEFINITIONS}


def get_badge(badge_id: str) -> Optional[BadgeDefinition]:
    return _BY_ID.get(badge_id)


def check_badge_unlocks(
    activities: Sequence[_ActivityLike],
    unlocked: Iterable[str],
    today: Optional[date] = None,
) -> list[BadgeDefinition]:
    """Badges whose condition now holds and which are not unlocked yet."""
    today = today or date.today()
    already = set(unlocked)
    return [
        badge for badge in BADGE_DEFINITIONS
        if badge.id not in already and badge.condition(activities, today)
    ]
