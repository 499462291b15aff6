"""
Shared test fixtures.

- settings: Settings with Strava, webhook and admin secrets filled in
- run_db: run an async scenario against a fresh in-memory SQLite database
- strava: FakeStrava, an httpx.MockTransport-backed stand-in for the Strava API
- make_activity: Strava activity JSON builder
- seed_connection: create a user with a Strava connection
"""

import asyncio
import re
import time
from datetime import datetime, timedelta
from urllib.parse import parse_qsl

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.db.session import init_db
from app.features.strava.models import StravaConnection
from app.features.users.models import User


ATHLETE_ID = 9001


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture
def settings():
    return Settings(
        strava_client_id="12345",
        strava_client_secret="client-secret",
        strava_webhook_verify_token="verify-me",
        admin_api_key="admin-key",
        base_url="http://testserver",
        database_url="sqlite:///:memory:",
        strava_first_sync_lookback_days=30,
        strava_sync_max_pages=3,
        strava_sync_per_page=2,
    )


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def run_db():
    """
    Run `scenario(db)` in a fresh in-memory database and return its result.

    Each call gets its own engine and event loop.
    """
    def runner(scenario):
        async def _run():
            engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
            await init_db(engine)
            session_factory = async_sessionmaker(engine, expire_on_commit=False)
            try:
                async with session_factory() as db:
                    return await scenario(db)
            finally:
                await engine.dispose()

        return asyncio.run(_run())

    return runner


@pytest.fixture
def seed_connection():
    """Create a user (and optionally a Strava connection); returns the user id."""
    async def seed(
        db,
        name: str = "Ada",
        athlete_id: int | None = ATHLETE_ID,
        access_token: str = "access-1",
        refresh_token: str = "refresh-1",
        expires_in: int = 3600,
        last_sync_at: datetime | None = None,
    ) -> str:
        user = User(name=name)
        db.add(user)
        await db.flush()

        if athlete_id is not None:
            db.add(StravaConnection(
                user_id=user.id,
                athlete_id=athlete_id,
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=int(time.time()) + expires_in,
                scope="read,activity:read_all",
                last_sync_at=last_sync_at,
            ))
        await db.commit()
        return user.id

    return seed


# =============================================================================
# Strava doubles
# =============================================================================

def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.fixture
def make_activity():
    """Strava activity JSON, started `days_ago` days before now."""
    def build(
        activity_id: int,
        activity_type: str = "Run",
        days_ago: float = 1,
        moving_time: int = 1800,
        distance: float = 5000.0,
        average_heartrate: float | None = None,
        name: str = "Morning Run",
        **extra,
    ) -> dict:
        start = datetime.utcnow() - timedelta(days=days_ago)
        data = {
            "id": activity_id,
            "name": name,
            "type": activity_type,
            "sport_type": activity_type,
            "moving_time": moving_time,
            "elapsed_time": moving_time + 60,
            "distance": distance,
            "start_date": _iso(start),
            "start_date_local": _iso(start),
        }
        if average_heartrate is not None:
            data["average_heartrate"] = average_heartrate
        data.update(extra)
        return data

    return build


class FakeStrava:
    """
    In-memory Strava API behind httpx.MockTransport.

    Tokens listed in `valid_tokens` are accepted; anything else gets 401.
    A successful refresh mints access-N / refresh-N and makes access-N valid.
    """

    def __init__(self):
        self.activities: list[dict] = []
        self.details: dict[int, dict] = {}
        self.detail_status: dict[int, int] = {}
        self.valid_tokens: set[str] = {"access-1"}
        self.refresh_status = 200
        self.exchange_status = 200
        self.list_status: int | None = None
        self.list_raw_body: bytes | None = None
        self.stats_status = 200
        self.requests: list[httpx.Request] = []
        self._issued = 1

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @property
    def detail_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if re.fullmatch(r"/api/v3/activities/\d+", r.url.path)]

    def _mint_tokens(self) -> dict:
        self._issued += 1
        access = f"access-{self._issued}"
        self.valid_tokens.add(access)
        return {
            "token_type": "Bearer",
            "access_token": access,
            "refresh_token": f"refresh-{self._issued}",
            "expires_at": int(time.time()) + 6 * 3600,
            "expires_in": 6 * 3600,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/oauth/token":
            form = dict(parse_qsl(request.content.decode()))
            if form.get("grant_type") == "refresh_token":
                if self.refresh_status != 200:
                    return httpx.Response(self.refresh_status, json={"message": "Bad Request"})
                return httpx.Response(200, json=self._mint_tokens())
            if self.exchange_status != 200:
                return httpx.Response(self.exchange_status, json={"message": "Bad Request"})
            return httpx.Response(200, json={
                **self._mint_tokens(),
                "athlete": {"id": ATHLETE_ID, "firstname": "Ada", "lastname": "L"},
            })

        if path == "/oauth/deauthorize":
            return httpx.Response(200, json={})

        if path == "/api/v3/push_subscriptions":
            if request.method == "POST":
                return httpx.Response(201, json={"id": 77})
            return httpx.Response(200, json=[{"id": 77, "callback_url": "http://testserver/api/v1/strava/webhook"}])

        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if token not in self.valid_tokens:
            return httpx.Response(401, json={"message": "Authorization Error"})

        if path == "/api/v3/athlete/activities":
            if self.list_status is not None:
                return httpx.Response(self.list_status, json={"message": "error"})
            if self.list_raw_body is not None:
                return httpx.Response(200, content=self.list_raw_body)
            return httpx.Response(200, json=self._page(request))

        match = re.fullmatch(r"/api/v3/activities/(\d+)", path)
        if match:
            activity_id = int(match.group(1))
            if activity_id in self.detail_status:
                return httpx.Response(self.detail_status[activity_id], json={"message": "error"})
            summary = next((a for a in self.activities if a["id"] == activity_id), None)
            if summary is None:
                return httpx.Response(404, json={"message": "Record Not Found"})
            return httpx.Response(200, json={**summary, **self.details.get(activity_id, {})})

        if path == "/api/v3/athlete":
            return httpx.Response(200, json={"id": ATHLETE_ID, "firstname": "Ada", "city": "Almaty"})

        if path == f"/api/v3/athletes/{ATHLETE_ID}/stats":
            if self.stats_status != 200:
                return httpx.Response(self.stats_status, json={})
            return httpx.Response(200, json={
                "all_run_totals": {"count": 10, "distance": 52000.0, "moving_time": 18000, "elevation_gain": 300.0},
                "ytd_run_totals": {"count": 4, "distance": 20000.0, "moving_time": 7200, "elevation_gain": 100.0},
            })

        return httpx.Response(404, json={"message": "Record Not Found"})

    def _page(self, request: httpx.Request) -> list[dict]:
        params = request.url.params
        page = int(params.get("page", 1))
        per_page = int(params.get("per_page", 30))
        after = params.get("after")

        items = self.activities
        if after is not None:
            items = [a for a in items if _epoch(a["start_date"]) > int(after)]

        start = (page - 1) * per_page
        return items[start:start + per_page]


def _epoch(iso: str) -> int:
    return int(datetime.fromisoformat(iso.replace("Z", "+00:00")).timestamp())


@pytest.fixture
def strava():
    return FakeStrava()
