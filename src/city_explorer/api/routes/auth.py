"""Authentication routes.

Handles Google OAuth login flow and session management.

## OAuth Flow

1. GET /auth/google - Redirect to Google consent screen
2. GET /auth/google/callback - Handle OAuth callback, set session cookie
3. GET /auth/status - Current authentication status
4. GET /auth/logout - Clear session and return home

## Session Management

Sessions are stored in HTTP-only cookies. The session token is a signed JWT
carrying the user's id, name, email and photo.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from city_explorer.api.dependencies import get_google_oauth
from city_explorer.auth.dependencies import get_app_settings, get_session_principal
from city_explorer.auth.google import GoogleOAuth
from city_explorer.auth.session import create_session_token
from city_explorer.config import Settings
from city_explorer.errors import AuthError
from city_explorer.models.base import ApiModel
from city_explorer.models.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter()


class UserResponse(ApiModel):
    """User information response."""

    id: str
    name: str
    email: str
    photo: str | None = None


class AuthStatusResponse(ApiModel):
    """Authentication status response."""

    success: bool = True
    is_authenticated: bool
    user: UserResponse | None = None


@router.get("/google")
async def login(
    oauth: GoogleOAuth = Depends(get_google_oauth),
) -> RedirectResponse:
    """Initiate Google OAuth login.

    Redirects the user to Google's consent screen. After consent,
    Google redirects back to /auth/google/callback.
    """
    if not oauth.is_configured:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Google OAuth not configured",
        )

    return RedirectResponse(url=oauth.begin_login(), status_code=status.HTTP_302_FOUND)


@router.get("/google/callback")
async def google_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    oauth: GoogleOAuth = Depends(get_google_oauth),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """Handle Google OAuth callback.

    On success sets the session cookie and redirects home; on any failure
    redirects to the login-failed page.
    """
    failed = RedirectResponse(
        url=settings.login_failed_path, status_code=status.HTTP_302_FOUND
    )

    if error or not code or not state:
        logger.warning(f"OAuth callback without code: {error or 'missing parameters'}")
        return failed

    try:
        principal = await oauth.complete_login(code, state)
    except AuthError as e:
        logger.error(f"Login failed: {e.message}")
        return failed

    session_token = create_session_token(
        principal,
        settings.secret_key,
        max_age_seconds=settings.session_max_age_seconds,
    )

    redirect = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    redirect.set_cookie(
        key=settings.session_cookie_name,
        value=session_token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    logger.info(f"User {principal.email} logged in")

    return redirect


@router.get("/status", response_model=AuthStatusResponse)
async def get_auth_status(
    principal: Principal | None = Depends(get_session_principal),
) -> AuthStatusResponse:
    """Get the current authentication status and user info."""
    if principal:
        return AuthStatusResponse(
            is_authenticated=True,
            user=UserResponse(
                id=principal.id,
                name=principal.display_name,
                email=principal.email,
                photo=principal.photo,
            ),
        )

    return AuthStatusResponse(is_authenticated=False)


@router.get("/logout")
async def logout(
    principal: Principal | None = Depends(get_session_principal),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """Log out the current user.

    Clears the session cookie and redirects home.
    """
    if principal:
        logger.info(f"User {principal.email} logged out")

    redirect = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    redirect.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return redirect
