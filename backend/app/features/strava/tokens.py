"""
Strava token store.

Hands out a usable access token for a user, refreshing it through the OAuth
token endpoint when it is expired or about to expire, and persisting the
rotated pair.

A missing connection or a rejected refresh yields None: callers treat that as
"disconnected", not as something to retry.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .models import StravaConnection
from .oauth import StravaOAuth, StravaOAuthError
from .repository import StravaConnectionRepository

logger = logging.getLogger(__name__)

# Refresh tokens expiring within this window
REFRESH_BUFFER_SECONDS = 300


class TokenStore:
    """
    Per-user access token provider.

    Usage:
        store = TokenStore(db, StravaOAuth(settings))
        token = await store.get_valid_token(user_id)
        if token is None:
            ...  # disconnected
    """

    def __init__(self, db: AsyncSession, oauth: StravaOAuth):
        self.db = db
        self.oauth = oauth
        self.connections = StravaConnectionRepository(db)

    async def get_valid_token(self, user_id: str) -> Optional[str]:
        """
        Get a valid access token for user, refreshing if needed.

        Returns None if the user has no connection or Strava rejects the
        refresh token.

        Raises:
            StravaTransientError: token endpoint unreachable
        """
        connection = await self.connections.get_by_user_id(user_id)
        if not connection:
            return None

        if not connection.expires_within(REFRESH_BUFFER_SECONDS):
            return connection.access_token

        return await self._refresh(connection)

    async def force_refresh(self, user_id: str) -> Optional[str]:
        """
        Refresh regardless of the stored expiry.

        Used after the API answered 401 for a token we believed valid.
        """
        connection = await self.connections.get_by_user_id(user_id)
        if not connection:
            return None
        return await self._refresh(connection)

    async def _refresh(self, connection: StravaConnection) -> Optional[str]:
        user_id = connection.user_id
        logger.info(f"Refreshing Strava token for user {user_id}")

        try:
            new_tokens = await self.oauth.refresh_token(connection.refresh_token)
        except StravaOAuthError as e:
            logger.warning(f"Strava refresh rejected for user {user_id}: {e}")
            return None

        await self.connections.update_tokens(
            connection,
            access_token=new_tokens["access_token"],
            refresh_token=new_tokens["refresh_token"],
            expires_at=new_tokens["expires_at"],
        )
        await self.db.commit()

        logger.debug(f"Strava token for user {user_id} now expires at {connection.expires_at}")
        return connection.access_token
