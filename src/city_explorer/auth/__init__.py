"""Authentication module for City Explorer.

Provides Google OAuth sign-in, signed session cookies, and the auth gate
that protects the record routes.

## OAuth Flow

1. User clicks "Login with Google" (GET /auth/google)
2. Redirect to Google OAuth consent screen
3. Google redirects back with an authorization code
4. Exchange code for tokens and fetch the Google profile
5. Create session and set cookie

## Security

- Sessions use signed JWT cookies; nothing about the user is stored
- Protected routes also require the shared x-api-key header
- HTTPS required in production
"""

from city_explorer.auth.dependencies import (
    authenticate_request,
    get_session_principal,
    require_api_key,
    require_principal,
)
from city_explorer.auth.google import GoogleOAuth
from city_explorer.auth.session import create_session_token, verify_session_token

__all__ = [
    "GoogleOAuth",
    "create_session_token",
    "verify_session_token",
    "authenticate_request",
    "get_session_principal",
    "require_api_key",
    "require_principal",
]
