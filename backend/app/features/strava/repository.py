"""
Strava repositories.

Data access layer for Strava connections.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.repository import BaseRepository
from .models import StravaConnection


class StravaConnectionRepository(BaseRepository[StravaConnection]):
    """Repository for Strava connections."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, StravaConnection)

    async def get_by_user_id(self, user_id: str) -> StravaConnection | None:
        """
        Get connection for user.

        Args:
            user_id: User's ID

        Returns:
            StravaConnection if found, None otherwise
        """
        return await self.get_by(user_id=user_id)

    async def get_by_athlete_id(self, athlete_id: int) -> StravaConnection | None:
        """
        Get connection by Strava athlete ID (webhook owner_id).

        Args:
            athlete_id: Strava athlete ID

        Returns:
            StravaConnection if found, None otherwise
        """
        return await self.get_by(athlete_id=athlete_id)

    async def upsert(
        self,
        user_id: str,
        token_data: dict,
        scope: str | None = None
    ) -> StravaConnection:
        """
        Create or replace the user's connection from an OAuth token response.

        Args:
            user_id: User's ID
            token_data: Token response from Strava OAuth (includes "athlete")
            scope: OAuth scope granted

        Returns:
            Saved connection
        """
        fields = {
            "athlete_id": int(token_data["athlete"]["id"]),
            "access_token": token_data["access_token"],
            "refresh_token": token_data["refresh_token"],
            "expires_at": int(token_data["expires_at"]),
            "scope": scope,
        }

        # Athlete re-linked to another user: the old link goes
        previous = await self.get_by_athlete_id(fields["athlete_id"])
        if previous and previous.user_id != user_id:
            await self.delete(previous)

        existing = await self.get_by_user_id(user_id)
        if existing:
            return await self.update(existing, connected_at=datetime.utcnow(), **fields)
        return await self.create(user_id=user_id, **fields)

    async def update_tokens(
        self,
        connection: StravaConnection,
        access_token: str,
        refresh_token: str,
        expires_at: int
    ) -> StravaConnection:
        """
        Update OAuth tokens after refresh.

        Args:
            connection: Existing connection
            access_token: New access token
            refresh_token: New refresh token
            expires_at: Token expiration timestamp

        Returns:
            Updated connection
        """
        return await self.update(
            connection,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(expires_at),
            updated_at=datetime.utcnow()
        )

    async def mark_synced(self, connection: StravaConnection, when: datetime | None = None) -> StravaConnection:
        return await self.update(connection, last_sync_at=when or datetime.utcnow())
