"""
Route tests through FastAPI's TestClient.

The app runs against a temporary SQLite file; Strava is the FakeStrava
transport from conftest, injected through dependency overrides.
"""

import time
from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from app.api.dependencies import get_settings, get_strava_client, get_strava_oauth
from app.db.session import _import_models, get_async_db
from app.features.strava.client import StravaClient
from app.features.strava.models import StravaConnection
from app.features.strava.oauth import StravaOAuth
from app.main import app
from app.models.base import Base


ADMIN = {"X-Admin-Key": "admin-key"}


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "routes.db"
    _import_models()
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def client(db_path, settings, strava):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_strava_oauth] = lambda: StravaOAuth(settings, transport=strava.transport)
    app.dependency_overrides[get_strava_client] = lambda: StravaClient(transport=strava.transport)

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def connect(db_path):
    """Attach a Strava connection to a user directly in the database."""
    def attach(user_id: str, athlete_id: int = 9001, access_token: str = "access-1", expires_in: int = 3600):
        engine = create_engine(f"sqlite:///{db_path}")
        with Session(engine) as session:
            session.add(StravaConnection(
                user_id=user_id,
                athlete_id=athlete_id,
                access_token=access_token,
                refresh_token="refresh-1",
                expires_at=int(time.time()) + expires_in,
            ))
            session.commit()
        engine.dispose()

    return attach


def create_user(client, name="Ada") -> str:
    response = client.post("/api/v1/users", json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


# =============================================================================
# Users
# =============================================================================

class TestUserRoutes:
    """Tests for /users."""

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_create_get_and_list(self, client):
        ada = create_user(client, "Ada")
        create_user(client, "Bob")

        assert client.get(f"/api/v1/users/{ada}").json()["name"] == "Ada"
        assert [u["name"] for u in client.get("/api/v1/users").json()] == ["Ada", "Bob"]

    def test_missing_user(self, client):
        assert client.get("/api/v1/users/nope").status_code == 404

    def test_empty_name_rejected(self, client):
        assert client.post("/api/v1/users", json={"name": ""}).status_code == 422


# =============================================================================
# Fitness
# =============================================================================

class TestFitnessRoutes:
    """Tests for /fitness."""

    def log(self, client, user_id, **overrides):
        payload = {"user_id": user_id, "category": "run", "date": "2026-03-18", "duration_min": 30, "distance_km": 5}
        payload.update(overrides)
        return client.post("/api/v1/fitness/activities", json=payload)

    def test_log_activity(self, client):
        user_id = create_user(client)
        response = self.log(client, user_id)

        assert response.status_code == 201
        body = response.json()
        assert body["points"] == 50
        assert body["calories"] == 500
        assert body["source"] == "manual"

    def test_log_activity_for_unknown_user(self, client):
        assert self.log(client, "ghost").status_code == 404

    def test_unknown_category_rejected(self, client):
        user_id = create_user(client)
        assert self.log(client, user_id, category="pilates").status_code == 422

    def test_list_filters(self, client):
        ada = create_user(client, "Ada")
        bob = create_user(client, "Bob")
        self.log(client, ada)
        self.log(client, ada, category="yoga", distance_km=None)
        self.log(client, bob)

        assert len(client.get("/api/v1/fitness/activities").json()) == 3
        assert len(client.get("/api/v1/fitness/activities", params={"user_id": ada}).json()) == 2
        yoga = client.get("/api/v1/fitness/activities", params={"user_id": ada, "category": "yoga"}).json()
        assert [a["category"] for a in yoga] == ["yoga"]

    def test_category_change_requires_admin(self, client):
        user_id = create_user(client)
        activity_id = self.log(client, user_id, category="other", distance_km=None, duration_min=40).json()["id"]

        url = f"/api/v1/fitness/activities/{activity_id}"
        assert client.patch(url, json={"category": "gym"}).status_code == 401
        assert client.patch(url, json={"category": "gym"}, headers={"X-Admin-Key": "wrong"}).status_code == 401

        response = client.patch(url, json={"category": "gym"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["category"] == "gym"
        assert response.json()["points"] == 20

    def test_category_change_missing_activity(self, client):
        assert client.patch("/api/v1/fitness/activities/999", json={"category": "gym"}, headers=ADMIN).status_code == 404

    def test_summary_leaderboard_and_badges(self, client):
        user_id = create_user(client)
        self.log(client, user_id, date=date.today().isoformat())

        summary = client.get(f"/api/v1/fitness/summary/{user_id}").json()
        assert summary["total_points"] == 50
        assert summary["streak"] == 1

        board = client.get("/api/v1/fitness/leaderboard").json()
        assert board[0]["user_id"] == user_id
        assert board[0]["rank"] == 1

        badges = client.get(f"/api/v1/fitness/badges/{user_id}").json()
        assert {b["badge_type"] for b in badges} == {"first_steps", "5k_runner"}

    def test_summary_for_unknown_user(self, client):
        assert client.get("/api/v1/fitness/summary/ghost").status_code == 404


# =============================================================================
# Admin
# =============================================================================

class TestAdminRoutes:
    """Tests for /admin."""

    def test_reclassify_requires_key(self, client):
        assert client.post("/api/v1/admin/reclassify", json={}).status_code == 401

    def test_reclassify_dry_run(self, client):
        response = client.post("/api/v1/admin/reclassify", json={"dry_run": True}, headers=ADMIN)

        assert response.status_code == 200
        assert response.json() == {"total": 0, "changed": 0, "by_category": {}, "dry_run": True}

    def test_admin_not_configured(self, client, settings):
        app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"admin_api_key": None})
        assert client.post("/api/v1/admin/reclassify", json={}, headers=ADMIN).status_code == 503


# =============================================================================
# Strava OAuth
# =============================================================================

class TestStravaOAuthRoutes:
    """Tests for /strava/auth and /strava/callback."""

    def test_auth_redirects_to_strava(self, client):
        user_id = create_user(client)
        response = client.get("/api/v1/strava/auth", params={"user_id": user_id}, follow_redirects=False)

        assert response.status_code in (302, 307)
        location = urlparse(response.headers["location"])
        params = parse_qs(location.query)
        assert location.netloc == "www.strava.com"
        assert params["client_id"] == ["12345"]
        assert params["state"] == [user_id]
        assert params["scope"] == ["read,activity:read_all"]
        assert params["redirect_uri"] == ["http://testserver/api/v1/strava/callback"]

    def test_auth_unknown_user(self, client):
        assert client.get("/api/v1/strava/auth", params={"user_id": "ghost"}, follow_redirects=False).status_code == 404

    def test_auth_not_configured(self, client, settings):
        app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"strava_client_id": None})
        user_id = create_user(client)
        assert client.get("/api/v1/strava/auth", params={"user_id": user_id}, follow_redirects=False).status_code == 503

    def test_callback_connects(self, client):
        user_id = create_user(client)
        response = client.get(
            "/api/v1/strava/callback",
            params={"code": "abc", "state": user_id, "scope": "read,activity:read_all"},
            follow_redirects=False,
        )

        assert response.headers["location"] == "http://testserver/fitness?strava=connected"
        status = client.get(f"/api/v1/strava/status/{user_id}").json()
        assert status["connected"] is True
        assert status["athlete_id"] == 9001

    @pytest.mark.parametrize("params,error", [
        ({"error": "access_denied", "state": "x"}, "strava_denied"),
        ({"state": "x"}, "missing_params"),
        ({"code": "abc"}, "missing_params"),
    ])
    def test_callback_errors(self, client, params, error):
        response = client.get("/api/v1/strava/callback", params=params, follow_redirects=False)
        assert response.headers["location"] == f"http://testserver/fitness?error={error}"

    def test_callback_exchange_failure(self, client, strava):
        strava.exchange_status = 400
        user_id = create_user(client)
        response = client.get(
            "/api/v1/strava/callback", params={"code": "bad", "state": user_id}, follow_redirects=False
        )
        assert response.headers["location"] == "http://testserver/fitness?error=token_exchange_failed"
        assert client.get(f"/api/v1/strava/status/{user_id}").json()["connected"] is False


# =============================================================================
# Strava connection, profile, sync
# =============================================================================

class TestStravaConnectionRoutes:
    """Tests for status, disconnect, profile and sync."""

    def test_status_not_connected(self, client):
        user_id = create_user(client)
        assert client.get(f"/api/v1/strava/status/{user_id}").json() == {
            "connected": False, "athlete_id": None, "scope": None,
            "connected_at": None, "last_sync_at": None,
        }

    def test_disconnect(self, client, connect, strava):
        user_id = create_user(client)
        connect(user_id)

        assert client.post(f"/api/v1/strava/disconnect/{user_id}").json() == {"status": "disconnected"}
        assert client.get(f"/api/v1/strava/status/{user_id}").json()["connected"] is False
        assert len(strava.calls_to("/oauth/deauthorize")) == 1

    def test_disconnect_without_connection(self, client):
        user_id = create_user(client)
        assert client.post(f"/api/v1/strava/disconnect/{user_id}").status_code == 404

    def test_profile(self, client, connect):
        user_id = create_user(client)
        connect(user_id)

        body = client.get(f"/api/v1/strava/profile/{user_id}").json()
        assert body["athlete"]["firstname"] == "Ada"
        assert body["stats"]["all_time"]["runs"]["count"] == 10

    def test_profile_without_stats(self, client, connect, strava):
        strava.stats_status = 500
        user_id = create_user(client)
        connect(user_id)

        body = client.get(f"/api/v1/strava/profile/{user_id}").json()
        assert body["athlete"]["id"] == 9001
        assert body["stats"] is None

    def test_sync(self, client, connect, strava, make_activity):
        strava.activities = [make_activity(1, "Run"), make_activity(2, "Yoga", distance=0)]
        user_id = create_user(client)
        connect(user_id)

        response = client.post(f"/api/v1/strava/sync/{user_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "done"
        assert body["synced_count"] == 2
        assert body["fetched_count"] == 2
        assert body["message"]

        again = client.post(f"/api/v1/strava/sync/{user_id}").json()
        assert again["synced_count"] == 0

        activities = client.get("/api/v1/fitness/activities", params={"user_id": user_id}).json()
        assert sorted(a["category"] for a in activities) == ["run", "yoga"]

    def test_sync_not_connected(self, client):
        user_id = create_user(client)
        assert client.post(f"/api/v1/strava/sync/{user_id}").status_code == 404

    def test_sync_disconnected(self, client, connect, strava):
        strava.refresh_status = 400
        user_id = create_user(client)
        connect(user_id, expires_in=-60)
        assert client.post(f"/api/v1/strava/sync/{user_id}").status_code == 401

    def test_sync_provider_outage(self, client, connect, strava):
        strava.list_status = 502
        user_id = create_user(client)
        connect(user_id)
        assert client.post(f"/api/v1/strava/sync/{user_id}").status_code == 502


# =============================================================================
# Webhook
# =============================================================================

class TestWebhookRoutes:
    """Tests for /strava/webhook."""

    def test_handshake(self, client):
        response = client.get("/api/v1/strava/webhook", params={
            "hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "xyz",
        })
        assert response.status_code == 200
        assert response.json() == {"hub.challenge": "xyz"}

    def test_handshake_rejected(self, client):
        response = client.get("/api/v1/strava/webhook", params={
            "hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "xyz",
        })
        assert response.status_code == 403

    def test_unknown_athlete_acknowledged(self, client, strava):
        response = client.post("/api/v1/strava/webhook", json={
            "object_type": "activity", "object_id": 1, "aspect_type": "create", "owner_id": 5555,
        })
        assert response.status_code == 200
        assert response.json()["outcome"] == "unknown_athlete"
        assert strava.requests == []

    def test_garbage_body_acknowledged(self, client):
        response = client.post(
            "/api/v1/strava/webhook", content=b"not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 200

    def test_activity_created(self, client, connect, strava, make_activity):
        strava.activities = [make_activity(31, "Hike", distance=7000)]
        user_id = create_user(client)
        connect(user_id)

        response = client.post("/api/v1/strava/webhook", json={
            "object_type": "activity", "object_id": 31, "aspect_type": "create", "owner_id": 9001,
        })

        assert response.json()["outcome"] == "synced"
        activities = client.get("/api/v1/fitness/activities", params={"user_id": user_id}).json()
        assert [(a["strava_id"], a["category"], a["points"]) for a in activities] == [("31", "hike", 70)]

    def test_failure_still_acknowledged(self, client, connect, strava):
        strava.detail_status = {31: 500}
        user_id = create_user(client)
        connect(user_id)

        response = client.post("/api/v1/strava/webhook", json={
            "object_type": "activity", "object_id": 31, "aspect_type": "create", "owner_id": 9001,
        })

        assert response.status_code == 200
        assert response.json()["outcome"] == "failed"

    def test_subscription_requires_admin(self, client):
        assert client.post("/api/v1/strava/webhook/subscription").status_code == 401

    def test_subscription(self, client, strava):
        response = client.post("/api/v1/strava/webhook/subscription", headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["callback_url"] == "http://testserver/api/v1/strava/webhook"
        body = strava.calls_to("/api/v3/push_subscriptions")[0].content.decode()
        assert "verify_token=verify-me" in body

        listed = client.get("/api/v1/strava/webhook/subscription", headers=ADMIN).json()
        assert listed["subscriptions"][0]["id"] == 77
