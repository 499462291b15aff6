"""
Strava sync orchestration.

Pulls a user's recent Strava activities and records the new ones as fitness
activities. Main entry point for both manual syncs and webhook events.

Sync Flow:
1. Resolve a valid token (refresh if near expiry)
2. List activities since last sync (minus overlap), bounded page count
3. For each activity not yet stored (by strava_id):
   - fetch detail (calories, description)
   - classify, score, insert
4. On full success, advance the connection's last_sync_at

A 401 from the API triggers one forced refresh and one retry. Any other
failure stops the run; activities already inserted stay, last_sync_at does
not move, so the next run retries the rest.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings as default_settings
from app.features.fitness.classifier import classify
from app.features.fitness.points import round_half_up
from app.features.fitness.repository import FitnessActivityRepository
from app.features.fitness.service import DuplicateActivityError, FitnessService
from app.shared.constants import ActivitySource
from ..client import StravaAuthError, StravaClient, StravaError, StravaNotFoundError
from ..oauth import StravaOAuth
from ..repository import StravaConnectionRepository
from ..tokens import TokenStore
from .activities import ActivityFetcher, RawActivity
from .config import SyncConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncStatus(str, Enum):
    DONE = "done"
    DISCONNECTED = "disconnected"
    FAILED = "failed"


@dataclass
class SyncResult:
    status: SyncStatus
    synced_count: int = 0
    fetched_count: int = 0
    skipped_count: int = 0
    error: Optional[str] = None

    @property
    def message(self) -> str:
        if self.status == SyncStatus.DISCONNECTED:
            return "Strava is not connected"
        if self.status == SyncStatus.FAILED:
            return f"Sync failed after {self.synced_count} new activities: {self.error}"
        return f"Synced {self.synced_count} new of {self.fetched_count} fetched activities"


class _Disconnected(Exception):
    """No usable token: connection missing or refresh rejected."""
    pass


class StravaSyncService:
    """
    Sync engine for one user at a time.

    Usage:
        service = StravaSyncService(db)
        result = await service.sync_user_activities(user_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings = default_settings,
        oauth: StravaOAuth | None = None,
        client: StravaClient | None = None,
    ):
        self.db = db
        self.settings = settings
        self.token_store = TokenStore(db, oauth or StravaOAuth(settings))
        self.fetcher = ActivityFetcher(
            client or StravaClient(),
            max_pages=settings.strava_sync_max_pages,
            per_page=settings.strava_sync_per_page,
        )
        self.connections = StravaConnectionRepository(db)
        self.activities = FitnessActivityRepository(db)
        self.fitness = FitnessService(db)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def sync_user_activities(self, user_id: str) -> SyncResult:
        """
        Incremental sync of recent activities.

        Never raises for Strava failures; the outcome is in SyncResult.status.
        """
        connection = await self.connections.get_by_user_id(user_id)
        if not connection:
            return SyncResult(SyncStatus.DISCONNECTED, error="not_connected")

        since = self._sync_window_start(connection.last_sync_at)
        logger.info(f"Strava sync for user {user_id}: activities after {since.isoformat()}")

        try:
            raw_activities = await self._with_token(
                user_id,
                lambda token: self.fetcher.list_recent_activities(token, since)
            )
        except _Disconnected:
            return self._disconnected(user_id)
        except StravaError as e:
            logger.warning(f"Strava sync for user {user_id} failed while listing: {e}")
            return SyncResult(SyncStatus.FAILED, error=str(e))

        result = SyncResult(SyncStatus.DONE, fetched_count=len(raw_activities))

        for summary in raw_activities:
            if await self.activities.strava_id_exists(user_id, str(summary.id)):
                result.skipped_count += 1
                continue

            try:
                detail = await self._with_token(
                    user_id,
                    lambda token, activity_id=summary.id: self.fetcher.get_activity(token, activity_id)
                )
                await self._store(user_id, detail)
                result.synced_count += 1
            except DuplicateActivityError:
                # Inserted concurrently (webhook vs manual sync)
                result.skipped_count += 1
            except StravaNotFoundError:
                logger.info(f"Strava activity {summary.id} vanished before detail fetch, skipping")
                result.skipped_count += 1
            except _Disconnected:
                result.status = SyncStatus.DISCONNECTED
                result.error = "not_connected"
                logger.warning(f"Strava sync for user {user_id} lost authorization mid-run")
                return result
            except StravaError as e:
                result.status = SyncStatus.FAILED
                result.error = str(e)
                logger.warning(
                    f"Strava sync for user {user_id} aborted at activity {summary.id} "
                    f"after {result.synced_count} new: {e}"
                )
                return result

        await self._mark_synced(user_id)

        logger.info(
            f"Strava sync for user {user_id} done: {result.synced_count} new, "
            f"{result.skipped_count} already stored, {result.fetched_count} fetched"
        )
        return result

    async def sync_single_activity(self, user_id: str, activity_id: int) -> SyncResult:
        """
        Ingest one activity by id (webhook 'create' event).

        fetched_count is 1 only when the detail call returned the activity.
        """
        if await self.activities.strava_id_exists(user_id, str(activity_id)):
            return SyncResult(SyncStatus.DONE, skipped_count=1)

        try:
            detail = await self._with_token(
                user_id,
                lambda token: self.fetcher.get_activity(token, activity_id)
            )
        except _Disconnected:
            return self._disconnected(user_id)
        except StravaError as e:
            logger.warning(f"Strava activity {activity_id} for user {user_id} not ingested: {e}")
            return SyncResult(SyncStatus.FAILED, error=str(e))

        try:
            await self._store(user_id, detail)
        except DuplicateActivityError:
            # Stored by a concurrent sync between the lookup and the insert
            return SyncResult(SyncStatus.DONE, fetched_count=1, skipped_count=1)

        return SyncResult(SyncStatus.DONE, synced_count=1, fetched_count=1)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _sync_window_start(self, last_sync_at: Optional[datetime]) -> datetime:
        if last_sync_at:
            return last_sync_at - timedelta(hours=SyncConfig.SYNC_OVERLAP_HOURS)
        return datetime.utcnow() - timedelta(days=self.settings.strava_first_sync_lookback_days)

    async def _with_token(self, user_id: str, call: Callable[[str], Awaitable[T]]) -> T:
        """
        Run an API call with the user's token.

        On 401 the token is force-refreshed once and the call retried once.
        """
        token = await self.token_store.get_valid_token(user_id)
        if token is None:
            raise _Disconnected()

        try:
            return await call(token)
        except StravaAuthError:
            logger.info(f"Strava rejected token of user {user_id}, forcing refresh")

        token = await self.token_store.force_refresh(user_id)
        if token is None:
            raise _Disconnected()

        try:
            return await call(token)
        except StravaAuthError as e:
            raise _Disconnected() from e

    async def _store(self, user_id: str, raw: RawActivity) -> None:
        category = classify(raw.to_features())
        await self.fitness.add_activity(
            user_id=user_id,
            category=category,
            activity_date=raw.local_date,
            duration_min=raw.duration_min,
            distance_km=round(raw.distance_km, 2) if raw.distance_m else None,
            heart_rate=round_half_up(raw.average_heartrate) if raw.average_heartrate else None,
            calories=raw.calories,
            notes=raw.notes or None,
            source=ActivitySource.STRAVA,
            strava_id=str(raw.id),
        )

    async def _mark_synced(self, user_id: str) -> None:
        # Re-read: a rollback on a duplicate insert expires loaded instances
        connection = await self.connections.get_by_user_id(user_id)
        if connection:
            await self.connections.mark_synced(connection)
            await self.db.commit()

    def _disconnected(self, user_id: str) -> SyncResult:
        logger.info(f"Strava sync for user {user_id} skipped: not connected")
        return SyncResult(SyncStatus.DISCONNECTED, error="not_connected")
