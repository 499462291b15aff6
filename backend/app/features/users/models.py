"""
User-related models.

Models:
- User: A friend in the squad
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
import uuid

from app.models.base import Base


class User(Base):
    """
    Application user (a squad friend).

    Owns one optional Strava connection plus fitness activities and badges.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Profile
    name = Column(String(100), nullable=False)
    image_url = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    strava_connection = relationship(
        "StravaConnection",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.id} ({self.name})>"
