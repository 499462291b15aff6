"""
Strava webhook receiver.

Handles the push-subscription handshake and event delivery. Strava retries
deliveries that are not acknowledged, so event handling never raises: every
outcome, failures included, is logged and reported as acknowledged.

Event shape (Strava push API):
    {
        "object_type": "activity" | "athlete",
        "object_id": 123,
        "aspect_type": "create" | "update" | "delete",
        "owner_id": 456,            # Strava athlete id
        "updates": {...},
        "subscription_id": 1,
        "event_time": 1700000000
    }
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings as default_settings
from .repository import StravaConnectionRepository
from .sync import StravaSyncService, SyncStatus

logger = logging.getLogger(__name__)


class WebhookOutcome(str, Enum):
    SYNCED = "synced"
    IGNORED = "ignored"
    UNKNOWN_ATHLETE = "unknown_athlete"
    DEAUTHORIZED = "deauthorized"
    FAILED = "failed"


class WebhookReceiver:
    """
    Validates and dispatches Strava push events.

    Usage:
        receiver = WebhookReceiver(db)
        outcome = await receiver.handle_event(payload)
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings = default_settings,
        sync_service: StravaSyncService | None = None,
    ):
        self.db = db
        self.settings = settings
        self.connections = StravaConnectionRepository(db)
        self.sync_service = sync_service or StravaSyncService(db, settings)

    def verify(self, mode: Optional[str], verify_token: Optional[str], challenge: Optional[str]) -> Optional[str]:
        """
        Subscription handshake.

        Returns:
            The challenge to echo back, or None if the request must be rejected
        """
        expected = self.settings.strava_webhook_verify_token
        if not expected:
            logger.warning("Strava webhook verification attempted but no verify token is configured")
            return None

        if mode != "subscribe" or verify_token != expected or not challenge:
            logger.warning(f"Strava webhook verification rejected (mode={mode})")
            return None

        logger.info("Strava webhook subscription verified")
        return challenge

    async def handle_event(self, event: dict) -> WebhookOutcome:
        """Process one push event. Never raises."""
        try:
            return await self._dispatch(event)
        except Exception as e:
            logger.error(f"Strava webhook event processing failed: {e}", exc_info=True)
            try:
                await self.db.rollback()
            except Exception as rollback_error:
                logger.error(f"Rollback after webhook failure failed: {rollback_error}")
            return WebhookOutcome.FAILED

    async def _dispatch(self, event: dict) -> WebhookOutcome:
        object_type = event.get("object_type")
        aspect_type = event.get("aspect_type")
        owner_id = event.get("owner_id")
        object_id = event.get("object_id")

        logger.info(
            f"Strava webhook: {object_type}/{aspect_type} object={object_id} owner={owner_id}"
        )

        if owner_id is None:
            logger.warning("Strava webhook event without owner_id ignored")
            return WebhookOutcome.IGNORED

        connection = await self.connections.get_by_athlete_id(int(owner_id))
        if not connection:
            logger.info(f"Strava webhook for unknown athlete {owner_id}, acknowledged")
            return WebhookOutcome.UNKNOWN_ATHLETE

        if object_type == "athlete":
            updates = event.get("updates") or {}
            if str(updates.get("authorized", "")).lower() == "false":
                user_id = connection.user_id
                await self.connections.delete(connection)
                await self.db.commit()
                logger.info(f"Athlete {owner_id} revoked access, connection of user {user_id} removed")
                return WebhookOutcome.DEAUTHORIZED
            return WebhookOutcome.IGNORED

        if object_type != "activity" or aspect_type != "create" or object_id is None:
            return WebhookOutcome.IGNORED

        result = await self.sync_service.sync_single_activity(connection.user_id, int(object_id))
        if result.status != SyncStatus.DONE:
            logger.warning(
                f"Strava webhook activity {object_id} for user {connection.user_id}: "
                f"{result.status.value} ({result.error})"
            )
            return WebhookOutcome.FAILED

        return WebhookOutcome.SYNCED
