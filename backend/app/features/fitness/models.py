"""
Fitness gamification models.

Models:
- FitnessActivity: A logged or synced workout with its computed points
- FitnessBadge: A badge unlocked by a user
"""

from datetime import datetime

from sqlalchemy import (
    Column, String, DateTime, Date, Integer, Float, ForeignKey, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.shared.constants import ActivityCategory, ActivitySource


class FitnessActivity(Base):
    """
    Workout record.

    Strava-sourced rows carry the Strava activity id in `strava_id`;
    (user_id, strava_id) is unique so a re-run sync cannot duplicate rows.
    Points are derived from category and metrics and must be recomputed
    whenever either changes.
    """

    __tablename__ = "fitness_activities"
    __table_args__ = (
        UniqueConstraint("user_id", "strava_id", name="uq_fitness_activities_user_strava"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    category = Column(String(20), nullable=False, default=ActivityCategory.OTHER.value)
    date = Column(Date, nullable=False, index=True)

    # Metrics
    duration_min = Column(Integer, nullable=False, default=0)
    distance_km = Column(Float, nullable=True)
    calories = Column(Integer, nullable=True)
    heart_rate = Column(Integer, nullable=True)  # average bpm

    points = Column(Integer, nullable=False, default=0)

    # Provenance
    source = Column(String(20), nullable=False, default=ActivitySource.MANUAL.value)
    strava_id = Column(String(32), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", backref="fitness_activities")

    def __repr__(self):
        return f"<FitnessActivity {self.id} {self.category} {self.points}pts>"


class FitnessBadge(Base):
    """Badge unlocked by a user. A badge type unlocks at most once per user."""

    __tablename__ = "fitness_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_type", name="uq_fitness_badges_user_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    badge_type = Column(String(50), nullable=False)
    unlocked_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", backref="fitness_badges")

    def __repr__(self):
        return f"<FitnessBadge {self.badge_type} user={self.user_id}>"
