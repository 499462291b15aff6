"""
Strava integration module.

Usage:
    from app.features.strava import StravaOAuth, StravaClient, TokenStore
    from app.features.strava.sync import StravaSyncService

Components:
- StravaOAuth: OAuth flow (auth URL, token exchange, refresh, push subscriptions)
- StravaClient: API client (athlete, stats, activities)
- TokenStore: Valid access token per user, refreshing when needed
- StravaSyncService: Activity ingestion (see sync/)
- WebhookReceiver: Push subscription handshake and events

Models:
- StravaConnection: OAuth tokens and sync bookkeeping
"""

from .models import StravaConnection
from .oauth import StravaOAuth, StravaOAuthError
from .client import (
    StravaClient,
    StravaError,
    StravaAuthError,
    StravaNotFoundError,
    StravaTransientError,
    StravaRateLimitError,
    StravaMalformedResponseError,
    summarize_athlete,
    summarize_athlete_stats,
)
from .repository import StravaConnectionRepository
from .tokens import TokenStore

__all__ = [
    # Models
    "StravaConnection",
    # OAuth
    "StravaOAuth",
    "StravaOAuthError",
    # Client
    "StravaClient",
    "StravaError",
    "StravaAuthError",
    "StravaNotFoundError",
    "StravaTransientError",
    "StravaRateLimitError",
    "StravaMalformedResponseError",
    "summarize_athlete",
    "summarize_athlete_stats",
    # Repositories
    "StravaConnectionRepository",
    # Tokens
    "TokenStore",
]
