"""
Shared FastAPI dependencies.

Settings and Strava collaborators are injected so tests can override them
with app.dependency_overrides.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from app.config import Settings, settings
from app.features.strava import StravaClient, StravaOAuth


def get_settings() -> Settings:
    return settings


def get_strava_oauth(settings: Settings = Depends(get_settings)) -> StravaOAuth:
    return StravaOAuth(settings)


def get_strava_client() -> StravaClient:
    return StravaClient()


def require_strava_configured(settings: Settings = Depends(get_settings)) -> Settings:
    if not settings.strava_configured:
        raise HTTPException(status_code=503, detail="Strava integration not configured")
    return settings


# =============================================================================
# Admin Key Dependency
# =============================================================================

async def verify_admin_key(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
    settings: Settings = Depends(get_settings),
) -> str:
    """Verify administrative API key."""
    if not settings.admin_api_key:
        raise HTTPException(status_code=503, detail="Admin API not configured")
    if x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=401, detail="Invalid admin key")
    return x_admin_key
