"""
Activity fetching.

Turns Strava activity JSON into RawActivity values and pages through the
athlete's activity list within a fixed page budget.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from app.features.fitness.classifier import ActivityFeatures
from app.features.fitness.points import round_half_up
from ..client import StravaClient, StravaMalformedResponseError
from .config import SyncConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawActivity:
    """
    Unprocessed Strava activity.

    Never persisted as-is; the sync engine classifies and scores it into a
    FitnessActivity.
    """
    id: int
    raw_type: str
    duration_s: int
    distance_m: float
    start_date: datetime
    start_date_local: datetime
    average_heartrate: Optional[float] = None
    notes: str = ""
    calories: Optional[float] = None

    @property
    def duration_min(self) -> int:
        return round_half_up(self.duration_s / 60)

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000

    @property
    def local_date(self) -> date:
        return self.start_date_local.date()

    def to_features(self) -> ActivityFeatures:
        return ActivityFeatures(
            raw_type=self.raw_type,
            duration_min=self.duration_min,
            distance_km=self.distance_km,
            heart_rate=self.average_heartrate,
            notes=self.notes,
        )


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


def _number(data: dict, key: str, default=None):
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise StravaMalformedResponseError(f"Activity field {key!r} is not numeric")
    return value


def parse_raw_activity(data: dict) -> RawActivity:
    """
    Build a RawActivity from list or detail JSON.

    Notes are the activity name plus its description (detail only).

    Raises:
        StravaMalformedResponseError: missing id/type/start date or bad numbers
    """
    if not isinstance(data, dict):
        raise StravaMalformedResponseError("Activity is not a JSON object")

    try:
        activity_id = int(data["id"])
        raw_type = data.get("type") or data["sport_type"]
        start_date = _parse_timestamp(data["start_date"])
        start_date_local = _parse_timestamp(data.get("start_date_local") or data["start_date"])
    except (KeyError, TypeError, ValueError) as e:
        raise StravaMalformedResponseError(f"Malformed activity: {e!r}") from e

    notes = "\n".join(
        part.strip() for part in (data.get("name"), data.get("description"))
        if isinstance(part, str) and part.strip()
    )

    return RawActivity(
        id=activity_id,
        raw_type=str(raw_type),
        duration_s=int(_number(data, "moving_time", 0)),
        distance_m=float(_number(data, "distance", 0)),
        start_date=start_date,
        start_date_local=start_date_local,
        average_heartrate=_number(data, "average_heartrate"),
        notes=notes,
        calories=_number(data, "calories"),
    )


class ActivityFetcher:
    """
    Bounded, restartable listing of a user's Strava activities.

    Calling list_recent_activities twice with the same `since` asks Strava the
    same question twice; nothing is remembered between calls.
    """

    def __init__(self, client: StravaClient, max_pages: int = 3, per_page: int = 30):
        self.client = client
        self.max_pages = max(1, max_pages)
        self.per_page = min(max(1, per_page), SyncConfig.MAX_PER_PAGE)

    async def list_recent_activities(
        self,
        access_token: str,
        since: Optional[datetime] = None
    ) -> list[RawActivity]:
        """
        Fetch activities started after `since`, at most max_pages pages.

        Every item is parsed before anything is returned, so a malformed page
        aborts the whole listing.

        Raises:
            StravaAuthError, StravaTransientError, StravaMalformedResponseError
        """
        activities: list[RawActivity] = []

        for page in range(1, self.max_pages + 1):
            items = await self.client.list_activities(
                access_token, after=since, page=page, per_page=self.per_page
            )
            activities.extend(parse_raw_activity(item) for item in items)

            if len(items) < self.per_page:
                break
        else:
            logger.info(
                f"Activity listing stopped at page limit ({self.max_pages} x {self.per_page})"
            )

        return activities

    async def get_activity(self, access_token: str, activity_id: int) -> RawActivity:
        """Fetch one activity in detailed representation."""
        return parse_raw_activity(await self.client.get_activity(access_token, activity_id))
