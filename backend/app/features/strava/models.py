"""
Strava-related database models.

Models:
- StravaConnection: OAuth credentials and sync bookkeeping, one per user
"""

import time
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, BigInteger, Text
from sqlalchemy.orm import relationship

from app.models.base import Base


class StravaConnection(Base):
    """
    Strava OAuth connection.

    Created on the OAuth callback, updated on every token refresh and
    successful sync, deleted on disconnect or deauthorization.
    Tokens should be encrypted in production.
    """

    __tablename__ = "strava_connections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)

    # Strava athlete (owner_id in webhook events)
    athlete_id = Column(BigInteger, unique=True, nullable=False, index=True)

    # OAuth tokens
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    expires_at = Column(Integer, nullable=False)  # Unix timestamp
    scope = Column(String(255), nullable=True)

    # Timestamps
    connected_at = Column(DateTime, default=datetime.utcnow)
    last_sync_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="strava_connection")

    def expires_within(self, seconds: int, now: float | None = None) -> bool:
        """True if the access token expires within `seconds` from now."""
        now = time.time() if now is None else now
        return self.expires_at <= now + seconds

    def __repr__(self):
        return f"<StravaConnection user_id={self.user_id} athlete_id={self.athlete_id}>"
