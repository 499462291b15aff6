"""
Strava Routes

Endpoints for Strava integration:
- /strava/auth - Initiate OAuth flow
- /strava/callback - Handle OAuth callback
- /strava/status - Check connection status
- /strava/disconnect - Disconnect Strava
- /strava/profile - Athlete profile and stats
- /strava/sync - Manual activity sync
- /strava/webhook - Push subscription handshake and events
"""

import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    get_settings,
    get_strava_client,
    get_strava_oauth,
    require_strava_configured,
    verify_admin_key,
)
from app.config import Settings
from app.db.session import get_async_db
from app.features.strava import (
    StravaAuthError,
    StravaClient,
    StravaConnectionRepository,
    StravaError,
    StravaNotFoundError,
    StravaOAuth,
    TokenStore,
    summarize_athlete,
    summarize_athlete_stats,
)
from app.features.strava.sync import StravaSyncService, SyncStatus
from app.features.strava.webhook import WebhookReceiver
from app.features.users import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Schemas
# =============================================================================

class StravaStatus(BaseModel):
    connected: bool
    athlete_id: Optional[int] = None
    scope: Optional[str] = None
    connected_at: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None


class SyncResponse(BaseModel):
    status: str
    synced_count: int
    fetched_count: int
    message: str


# =============================================================================
# OAuth Flow
# =============================================================================

@router.get("/auth")
async def strava_auth(
    user_id: str = Query(..., description="User to link the Strava account to"),
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(require_strava_configured),
    oauth: StravaOAuth = Depends(get_strava_oauth),
):
    """
    Initiate Strava OAuth flow.

    The user id travels through Strava as the OAuth state.
    """
    if not await UserRepository(db).get_by_id(user_id):
        raise HTTPException(status_code=404, detail="User not found")

    auth_url = oauth.get_authorization_url(_get_callback_url(settings), state=user_id)

    logger.info(f"Strava OAuth initiated for user {user_id}")

    return RedirectResponse(url=auth_url)


@router.get("/callback")
async def strava_callback(
    code: Optional[str] = Query(None),
    scope: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings),
    oauth: StravaOAuth = Depends(get_strava_oauth),
):
    """
    Handle Strava OAuth callback.

    Exchanges code for tokens, saves the connection and sends the browser
    back to the fitness page with the outcome in the query string.
    """
    if error:
        logger.warning(f"Strava OAuth error: {error}")
        return _fitness_redirect(settings, error="strava_denied")

    if not code or not state:
        return _fitness_redirect(settings, error="missing_params")

    user_id = state
    if not await UserRepository(db).get_by_id(user_id):
        logger.warning(f"Strava OAuth callback for unknown user {user_id}")
        return _fitness_redirect(settings, error="save_failed")

    try:
        token_data = await oauth.exchange_code(code)
    except StravaError as e:
        logger.error(f"Token exchange failed: {e}")
        return _fitness_redirect(settings, error="token_exchange_failed")

    connection = await StravaConnectionRepository(db).upsert(user_id, token_data, scope=scope)
    await db.commit()

    logger.info(f"Strava connected: user={user_id}, athlete_id={connection.athlete_id}")

    return _fitness_redirect(settings, strava="connected")


# =============================================================================
# Status & Disconnect
# =============================================================================

@router.get("/status/{user_id}", response_model=StravaStatus)
async def get_strava_status(
    user_id: str,
    db: AsyncSession = Depends(get_async_db)
):
    """Check Strava connection status for a user."""
    connection = await StravaConnectionRepository(db).get_by_user_id(user_id)

    if not connection:
        return StravaStatus(connected=False)

    return StravaStatus(
        connected=True,
        athlete_id=connection.athlete_id,
        scope=connection.scope,
        connected_at=connection.connected_at,
        last_sync_at=connection.last_sync_at,
    )


@router.post("/disconnect/{user_id}")
async def disconnect_strava(
    user_id: str,
    db: AsyncSession = Depends(get_async_db),
    oauth: StravaOAuth = Depends(get_strava_oauth),
):
    """
    Disconnect Strava account.

    - Revokes access at Strava (best effort)
    - Deletes the stored connection
    """
    connections = StravaConnectionRepository(db)
    connection = await connections.get_by_user_id(user_id)

    if not connection:
        raise HTTPException(status_code=404, detail="Strava not connected")

    try:
        await oauth.deauthorize(connection.access_token)
    except StravaError as e:
        logger.warning(f"Strava deauthorize failed: {e}")

    await connections.delete(connection)
    await db.commit()

    logger.info(f"Strava disconnected for user {user_id}")

    return {"status": "disconnected"}


# =============================================================================
# Profile
# =============================================================================

@router.get("/profile/{user_id}")
async def get_strava_profile(
    user_id: str,
    db: AsyncSession = Depends(get_async_db),
    oauth: StravaOAuth = Depends(get_strava_oauth),
    client: StravaClient = Depends(get_strava_client),
):
    """
    Athlete profile plus aggregated stats.

    Stats are optional: if Strava refuses them the profile is still returned.
    """
    connection = await StravaConnectionRepository(db).get_by_user_id(user_id)
    if not connection:
        raise HTTPException(status_code=404, detail="Strava not connected")

    try:
        access_token = await TokenStore(db, oauth).get_valid_token(user_id)
    except StravaError as e:
        raise _http_error(e)
    if not access_token:
        raise HTTPException(status_code=401, detail="Strava authorization expired, reconnect")

    try:
        athlete = await client.get_athlete(access_token)
    except StravaError as e:
        raise _http_error(e)

    stats = None
    try:
        raw_stats = await client.get_athlete_stats(access_token, connection.athlete_id)
        stats = summarize_athlete_stats(raw_stats)
    except StravaError as e:
        logger.warning(f"Failed to fetch Strava stats for user {user_id}: {e}")

    return {"athlete": summarize_athlete(athlete), "stats": stats}


# =============================================================================
# Sync
# =============================================================================

@router.post("/sync/{user_id}", response_model=SyncResponse)
async def sync_strava_activities(
    user_id: str,
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings),
    oauth: StravaOAuth = Depends(get_strava_oauth),
    client: StravaClient = Depends(get_strava_client),
):
    """
    Pull recent Strava activities for a user.

    Partial progress is kept on failure; running it again picks up the rest.
    """
    if not await StravaConnectionRepository(db).get_by_user_id(user_id):
        raise HTTPException(status_code=404, detail="Strava not connected")

    service = StravaSyncService(db, settings, oauth=oauth, client=client)
    result = await service.sync_user_activities(user_id)

    if result.status == SyncStatus.DISCONNECTED:
        raise HTTPException(status_code=401, detail="Strava authorization expired, reconnect")
    if result.status == SyncStatus.FAILED:
        raise HTTPException(status_code=502, detail=result.message)

    return SyncResponse(
        status=result.status.value,
        synced_count=result.synced_count,
        fetched_count=result.fetched_count,
        message=result.message,
    )


# =============================================================================
# Webhook
# =============================================================================

@router.get("/webhook")
async def verify_webhook(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings),
):
    """Push subscription handshake: echo the challenge if the token matches."""
    receiver = WebhookReceiver(db, settings)
    challenge = receiver.verify(hub_mode, hub_verify_token, hub_challenge)

    if challenge is None:
        raise HTTPException(status_code=403, detail="Verification failed")

    return {"hub.challenge": challenge}


@router.post("/webhook")
async def receive_webhook(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings),
    oauth: StravaOAuth = Depends(get_strava_oauth),
    client: StravaClient = Depends(get_strava_client),
):
    """
    Strava push event.

    Always acknowledged with 200; processing failures are only logged.
    """
    try:
        event = await request.json()
    except ValueError:
        logger.warning("Strava webhook with unparsable body acknowledged")
        return {"status": "ok"}

    if not isinstance(event, dict):
        logger.warning("Strava webhook with non-object body acknowledged")
        return {"status": "ok"}

    sync_service = StravaSyncService(db, settings, oauth=oauth, client=client)
    outcome = await WebhookReceiver(db, settings, sync_service=sync_service).handle_event(event)

    return {"status": "ok", "outcome": outcome.value}


@router.post("/webhook/subscription", dependencies=[Depends(verify_admin_key)])
async def create_webhook_subscription(
    settings: Settings = Depends(require_strava_configured),
    oauth: StravaOAuth = Depends(get_strava_oauth),
):
    """Register this service's webhook callback with Strava."""
    if not settings.strava_webhook_verify_token:
        raise HTTPException(status_code=503, detail="Webhook verify token not configured")

    callback_url = f"{settings.base_url}/api/v1/strava/webhook"
    try:
        subscription = await oauth.create_push_subscription(
            callback_url, settings.strava_webhook_verify_token
        )
    except StravaError as e:
        raise _http_error(e)

    logger.info(f"Strava webhook subscription registered for {callback_url}")

    return {"status": "subscribed", "callback_url": callback_url, "subscription": subscription}


@router.get("/webhook/subscription", dependencies=[Depends(verify_admin_key)])
async def list_webhook_subscriptions(
    settings: Settings = Depends(require_strava_configured),
    oauth: StravaOAuth = Depends(get_strava_oauth),
):
    """List registered webhook subscriptions."""
    try:
        return {"subscriptions": await oauth.list_push_subscriptions()}
    except StravaError as e:
        raise _http_error(e)


# =============================================================================
# Helper Functions
# =============================================================================

def _get_callback_url(settings: Settings) -> str:
    """Get OAuth callback URL."""
    return f"{settings.base_url}/api/v1/strava/callback"


def _fitness_redirect(settings: Settings, **params: str) -> RedirectResponse:
    return RedirectResponse(url=f"{settings.base_url}/fitness?{urlencode(params)}")


def _http_error(e: StravaError) -> HTTPException:
    """Translate Strava failures into API responses."""
    if isinstance(e, StravaAuthError):
        return HTTPException(status_code=401, detail="Strava authorization expired, reconnect")
    if isinstance(e, StravaNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    logger.error(f"Strava request failed: {e}")
    return HTTPException(status_code=502, detail="Failed to fetch Strava data")
