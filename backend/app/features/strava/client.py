"""
Strava API client.

Provides methods for interacting with Strava API.
Handles authentication headers and maps failures onto a small error taxonomy.

Error taxonomy:
- StravaAuthError: token invalid, expired or revoked (401). Refresh once, then
  treat the user as disconnected.
- StravaNotFoundError: referenced object does not exist (404).
- StravaTransientError: network failure, 5xx, 429. Not retried here; the
  caller decides.
- StravaMalformedResponseError: body is not JSON or lacks required fields.
  Abort the batch, persist nothing from it.

Strava API Limits:
- 200 requests per 15 minutes
- 2,000 requests per day
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class StravaError(Exception):
    """Base Strava error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StravaAuthError(StravaError):
    """Authentication/authorization error."""
    pass


class StravaNotFoundError(StravaError):
    """Referenced athlete/activity does not exist."""
    pass


class StravaTransientError(StravaError):
    """Network or provider-side failure; retry is up to the caller."""
    pass


class StravaRateLimitError(StravaTransientError):
    """Rate limit exceeded."""
    pass


class StravaMalformedResponseError(StravaError):
    """Unexpected response shape."""
    pass


# =============================================================================
# Strava Client
# =============================================================================

class StravaClient:
    """
    Async client for Strava API v3.

    Stateless apart from configuration: the access token is passed per call
    (see TokenStore for obtaining one).

    Usage:
        client = StravaClient()
        athlete = await client.get_athlete(token)
        page = await client.list_activities(token, after=since, page=1)
    """

    API_URL = "https://www.strava.com/api/v3"
    TIMEOUT_SECONDS = 15.0

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.TIMEOUT_SECONDS)

    async def _api_request(
        self,
        method: str,
        endpoint: str,
        access_token: str,
        params: Optional[dict] = None
    ) -> Any:
        """
        Make an authenticated API request.

        Raises:
            StravaAuthError: 401
            StravaNotFoundError: 404
            StravaRateLimitError: 429
            StravaTransientError: network failure or 5xx
            StravaMalformedResponseError: body is not JSON
            StravaError: any other non-200 status
        """
        try:
            async with self._http() as client:
                response = await client.request(
                    method=method,
                    url=f"{self.API_URL}{endpoint}",
                    headers={"Authorization": f"Bearer {access_token}"},
                    params=params
                )
        except httpx.HTTPError as e:
            raise StravaTransientError(f"Strava request failed: {e}") from e

        # Log rate limit headers from Strava
        if "X-RateLimit-Limit" in response.headers:
            logger.debug(
                f"Strava rate limit: {response.headers.get('X-RateLimit-Usage')} "
                f"/ {response.headers.get('X-RateLimit-Limit')}"
            )

        status = response.status_code
        if status == 401:
            raise StravaAuthError("Invalid or expired token", status)
        elif status == 404:
            raise StravaNotFoundError(f"Not found: {endpoint}", status)
        elif status == 429:
            raise StravaRateLimitError("Strava rate limit exceeded", status)
        elif status >= 500:
            raise StravaTransientError(f"Strava unavailable: {status}", status)
        elif status != 200:
            raise StravaError(f"API error: {status} - {response.text}", status)

        try:
            return response.json()
        except ValueError as e:
            raise StravaMalformedResponseError(
                f"Non-JSON response from {endpoint}", status
            ) from e

    async def get_athlete(self, access_token: str) -> dict:
        """Get authenticated athlete profile."""
        return await self._api_request("GET", "/athlete", access_token)

    async def get_athlete_stats(self, access_token: str, athlete_id: int) -> dict:
        """Get athlete totals (recent, year-to-date, all-time)."""
        return await self._api_request("GET", f"/athletes/{athlete_id}/stats", access_token)

    async def list_activities(
        self,
        access_token: str,
        after: Optional[datetime] = None,
        page: int = 1,
        per_page: int = 30
    ) -> list:
        """
        Get one page of athlete activities (summary representation).

        Args:
            access_token: Valid access token
            after: Only activities that started after this time
            page: Page number (1-based)
            per_page: Results per page (max 200)
        """
        params = {"page": page, "per_page": min(per_page, 200)}
        if after:
            # Naive datetimes are UTC throughout this service
            if after.tzinfo is None:
                after = after.replace(tzinfo=timezone.utc)
            params["after"] = int(after.timestamp())

        data = await self._api_request("GET", "/athlete/activities", access_token, params)
        if not isinstance(data, list):
            raise StravaMalformedResponseError("Activity list is not a JSON array")
        return data

    async def get_activity(self, access_token: str, activity_id: int) -> dict:
        """
        Get detailed activity (includes calories and description).

        WARNING: This returns GPS data - do NOT cache for >7 days!
        """
        data = await self._api_request(
            "GET",
            f"/activities/{activity_id}",
            access_token,
            params={"include_all_efforts": "false"}
        )
        if not isinstance(data, dict):
            raise StravaMalformedResponseError("Activity detail is not a JSON object")
        return data


# =============================================================================
# Helper Functions
# =============================================================================

def _totals(stats: dict, key: str, with_elevation: bool = True) -> dict:
    totals = stats.get(key) or {}
    result = {
        "count": totals.get("count", 0),
        "distance_km": round((totals.get("distance") or 0) / 1000),
        "moving_time_hours": round((totals.get("moving_time") or 0) / 3600),
    }
    if with_elevation:
        result["elevation_gain_m"] = round(totals.get("elevation_gain") or 0)
    return result


def summarize_athlete_stats(stats: dict) -> dict:
    """
    Aggregate Strava athlete stats per period and sport.

    Returns {"all_time"|"ytd"|"recent": {"runs"|"rides"|"swims": {...}}}.
    Swims carry no elevation.
    """
    periods = {"all_time": "all", "ytd": "ytd", "recent": "recent"}
    return {
        name: {
            "runs": _totals(stats, f"{prefix}_run_totals"),
            "rides": _totals(stats, f"{prefix}_ride_totals"),
            "swims": _totals(stats, f"{prefix}_swim_totals", with_elevation=False),
        }
        for name, prefix in periods.items()
    }


def summarize_athlete(profile: dict) -> dict:
    """Public profile fields worth showing."""
    return {
        "id": profile.get("id"),
        "username": profile.get("username"),
        "firstname": profile.get("firstname"),
        "lastname": profile.get("lastname"),
        "city": profile.get("city"),
        "state": profile.get("state"),
        "country": profile.get("country"),
        "sex": profile.get("sex"),
        "premium": profile.get("premium"),
        "summit": profile.get("summit"),
        "created_at": profile.get("created_at"),
        "profile_photo": profile.get("profile_medium") or profile.get("profile"),
        "weight": profile.get("weight"),
        "bio": profile.get("bio"),
    }
