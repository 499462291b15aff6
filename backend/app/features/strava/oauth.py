"""
Strava OAuth flow.

Handles:
- Authorization URL generation
- Code exchange for tokens
- Token refresh
- Token revocation (deauthorization)
- Webhook push subscription management
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from app.config import Settings, settings as default_settings
from .client import StravaError, StravaTransientError, StravaMalformedResponseError

logger = logging.getLogger(__name__)


class StravaOAuthError(StravaError):
    """Strava rejected an OAuth exchange (bad code, revoked refresh token...)."""
    pass


class StravaOAuth:
    """
    Strava OAuth handler.

    Usage:
        oauth = StravaOAuth(settings)
        auth_url = oauth.get_authorization_url(
            redirect_uri="https://example.com/api/v1/strava/callback",
            state=user_id
        )
        tokens = await oauth.exchange_code(code)
        tokens = await oauth.refresh_token(refresh_token)
    """

    AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
    TOKEN_URL = "https://www.strava.com/oauth/token"
    DEAUTHORIZE_URL = "https://www.strava.com/oauth/deauthorize"
    PUSH_SUBSCRIPTIONS_URL = "https://www.strava.com/api/v3/push_subscriptions"
    TIMEOUT_SECONDS = 15.0

    def __init__(
        self,
        settings: Settings = default_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client_id = settings.strava_client_id
        self.client_secret = settings.strava_client_secret
        self.scope = settings.strava_scope
        self._transport = transport

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.TIMEOUT_SECONDS)

    def get_authorization_url(
        self,
        redirect_uri: str,
        state: Optional[str] = None,
        scope: Optional[str] = None,
        approval_prompt: str = "force"
    ) -> str:
        """
        Generate Strava OAuth authorization URL.

        Args:
            redirect_uri: URL to redirect after authorization
            state: Round-tripped to the callback (we pass the user id)
            scope: OAuth scope (default from settings: read,activity:read_all)
            approval_prompt: "force" always shows consent, "auto" may skip it

        Returns:
            Authorization URL string
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": scope or self.scope,
            "approval_prompt": approval_prompt,
        }
        if state:
            params["state"] = state

        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def _token_request(self, data: dict, action: str) -> dict:
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **data,
        }
        try:
            async with self._http() as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as e:
            raise StravaTransientError(f"Token {action} request failed: {e}") from e

        if response.status_code >= 500 or response.status_code == 429:
            raise StravaTransientError(
                f"Token {action} failed: {response.status_code}", response.status_code
            )
        if response.status_code != 200:
            logger.error(f"Strava token {action} failed: {response.text}")
            raise StravaOAuthError(
                f"Token {action} failed: {response.status_code}", response.status_code
            )

        try:
            tokens = response.json()
        except ValueError as e:
            raise StravaMalformedResponseError(f"Non-JSON token {action} response") from e

        if not isinstance(tokens, dict) or any(
            key not in tokens for key in ("access_token", "refresh_token", "expires_at")
        ):
            raise StravaMalformedResponseError(f"Unexpected token {action} response")
        return tokens

    async def exchange_code(self, code: str) -> dict:
        """
        Exchange authorization code for tokens.

        Args:
            code: Authorization code from Strava callback

        Returns:
            {
                "access_token": "...",
                "refresh_token": "...",
                "expires_at": 1234567890,
                "athlete": {"id": 123, "firstname": "...", ...}
            }

        Raises:
            StravaOAuthError: If Strava rejects the code
            StravaTransientError: Network or provider failure
        """
        tokens = await self._token_request(
            {"code": code, "grant_type": "authorization_code"}, "exchange"
        )
        if not isinstance(tokens.get("athlete"), dict) or "id" not in tokens["athlete"]:
            raise StravaMalformedResponseError("Token exchange response has no athlete")
        return tokens

    async def refresh_token(self, refresh_token: str) -> dict:
        """
        Refresh an expired access token.

        Returns:
            {"access_token": "...", "refresh_token": "...", "expires_at": 1234567890}

        Raises:
            StravaOAuthError: Refresh rejected (revoked access)
            StravaTransientError: Network or provider failure
        """
        return await self._token_request(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"}, "refresh"
        )

    async def deauthorize(self, access_token: str) -> bool:
        """
        Revoke Strava access (user disconnect).

        Returns:
            True if deauthorization was successful

        Raises:
            StravaTransientError: Network failure
        """
        try:
            async with self._http() as client:
                response = await client.post(
                    self.DEAUTHORIZE_URL,
                    headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            raise StravaTransientError(f"Deauthorize request failed: {e}") from e

        return response.status_code == 200

    # -------------------------------------------------------------------------
    # Push subscriptions (webhook registration)
    # -------------------------------------------------------------------------

    async def create_push_subscription(self, callback_url: str, verify_token: str) -> dict:
        """
        Register our webhook callback with Strava.

        Strava validates the callback with a GET handshake before answering.
        An existing subscription is reported as {"already_exists": True}.

        Raises:
            StravaError: Registration refused
            StravaTransientError: Network failure
        """
        try:
            async with self._http() as client:
                response = await client.post(
                    self.PUSH_SUBSCRIPTIONS_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "callback_url": callback_url,
                        "verify_token": verify_token,
                    }
                )
        except httpx.HTTPError as e:
            raise StravaTransientError(f"Push subscription request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code in (200, 201):
            return data

        errors = data.get("errors") or []
        if any(err.get("code") == "already exists" for err in errors if isinstance(err, dict)):
            logger.info("Strava webhook subscription already exists")
            return {"already_exists": True}

        logger.error(f"Strava webhook registration failed: {response.text}")
        raise StravaError(
            data.get("message") or f"Push subscription failed: {response.status_code}",
            response.status_code
        )

    async def list_push_subscriptions(self) -> list:
        """List this application's webhook subscriptions."""
        try:
            async with self._http() as client:
                response = await client.get(
                    self.PUSH_SUBSCRIPTIONS_URL,
                    params={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    }
                )
        except httpx.HTTPError as e:
            raise StravaTransientError(f"Push subscription request failed: {e}") from e

        if response.status_code != 200:
            raise StravaError(
                f"Listing push subscriptions failed: {response.status_code}",
                response.status_code
            )
        return response.json()
