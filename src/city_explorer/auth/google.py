"""Google OAuth authentication.

Implements the OAuth 2.0 authorization code flow for Google sign-in as two
explicit steps:

1. ``begin_login()`` returns the Google consent URL to redirect to
2. ``complete_login(code, state)`` turns the callback into a ``Principal``

The protocol work (authorization URL, code exchange, bearer requests) is
delegated to authlib's httpx OAuth2 client.

## Required Setup

1. Create a project in Google Cloud Console
2. Create OAuth 2.0 credentials (Web application)
3. Add the callback URL as an authorized redirect URI
4. Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET environment variables

## OAuth Endpoints

- Authorization: https://accounts.google.com/o/oauth2/v2/auth
- Token: https://oauth2.googleapis.com/token
- User Info: https://www.googleapis.com/oauth2/v2/userinfo

## Scopes Used

- openid: Required for authentication
- email: Get user's email address
- profile: Get user's name and picture
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from city_explorer.config import Settings
from city_explorer.errors import AuthError
from city_explorer.models.principal import Principal

logger = logging.getLogger(__name__)

# Google OAuth endpoints
GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

DEFAULT_SCOPES = ["openid", "email", "profile"]

# State tokens expire after 10 minutes
STATE_MAX_AGE_SECONDS = 600


class GoogleOAuth:
    """Google OAuth 2.0 client.

    Example:
        ```python
        oauth = GoogleOAuth.from_settings(settings)

        # Step 1: redirect the browser
        auth_url = oauth.begin_login()

        # Step 2: handle the callback
        principal = await oauth.complete_login(code, state)
        ```
    """

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str,
        scopes: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Google OAuth client.

        Args:
            client_id: Google OAuth client ID
            client_secret: Google OAuth client secret
            redirect_uri: OAuth callback URL
            scopes: OAuth scopes to request
            transport: HTTP transport override for the token/userinfo calls
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or list(DEFAULT_SCOPES)
        self._transport = transport
        self._states: dict[str, datetime] = {}

        if not self.is_configured:
            logger.warning(
                "Google OAuth not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET environment variables."
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> GoogleOAuth:
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
        )

    @property
    def is_configured(self) -> bool:
        """Check if Google OAuth is properly configured."""
        return bool(self.client_id and self.client_secret)

    def _client(self) -> AsyncOAuth2Client:
        kwargs = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.scopes),
            redirect_uri=self.redirect_uri,
            **kwargs,
        )

    def _generate_state(self) -> str:
        state = secrets.token_urlsafe(32)
        self._states[state] = datetime.now(timezone.utc)
        return state

    def _verify_state(self, state: str) -> bool:
        """Verify and consume a state token."""
        created = self._states.pop(state, None)
        if created is None:
            return False
        age = (datetime.now(timezone.utc) - created).total_seconds()
        return age < STATE_MAX_AGE_SECONDS

    def _prune_states(self) -> None:
        now = datetime.now(timezone.utc)
        expired = [
            s for s, created in self._states.items()
            if (now - created).total_seconds() >= STATE_MAX_AGE_SECONDS
        ]
        for s in expired:
            del self._states[s]

    def begin_login(self) -> str:
        """Start a login and return the Google consent URL.

        Raises:
            RuntimeError: If OAuth is not configured
        """
        if not self.is_configured:
            raise RuntimeError("Google OAuth not configured")

        self._prune_states()
        state = self._generate_state()
        url, _ = self._client().create_authorization_url(
            GOOGLE_AUTHORIZE_URL,
            state=state,
            prompt="select_account",
        )
        return url

    async def complete_login(self, code: str, state: str) -> Principal:
        """Finish a login from the provider's callback parameters.

        Args:
            code: Authorization code from the callback
            state: State token from the callback

        Returns:
            The signed-in principal

        Raises:
            AuthError: If the state is invalid or Google rejects the exchange
        """
        if not self.is_configured:
            raise AuthError("Google OAuth not configured")

        if not self._verify_state(state):
            raise AuthError("Invalid or expired state token")

        async with self._client() as client:
            try:
                await client.fetch_token(GOOGLE_TOKEN_URL, code=code)
            except (AuthlibBaseError, httpx.HTTPError) as e:
                logger.error(f"Token exchange failed: {e}")
                raise AuthError("Failed to exchange authorization code") from e

            try:
                response = await client.get(GOOGLE_USERINFO_URL)
            except httpx.HTTPError as e:
                logger.error(f"User info request failed: {e}")
                raise AuthError("Failed to get user information") from e

        if response.status_code != 200:
            logger.error(f"User info request failed: {response.status_code}")
            raise AuthError("Failed to get user information")

        data = response.json()
        if not data.get("id") or not data.get("email"):
            raise AuthError("Google profile is missing id or email")

        return Principal(
            id=str(data["id"]),
            display_name=data.get("name") or data["email"],
            email=data["email"],
            photo=data.get("picture"),
            provider="google",
        )
