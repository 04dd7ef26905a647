"""Session management using signed JWT tokens.

Sessions are stored as signed JWT tokens in HTTP-only cookies. The token
carries the whole principal, since principals are never stored server-side.

## Security

- Tokens are signed with the application secret key
- Tokens expire after a configurable period (default: 24 hours)
- Cookies are HTTP-only to prevent XSS access
- Cookies are Secure in production (HTTPS only)
- SameSite=Lax to prevent CSRF

## Token Structure

```json
{
  "sub": "google-user-id",
  "name": "Ada Lovelace",
  "email": "ada@example.com",
  "picture": "https://...",
  "provider": "google",
  "iat": 1234567890,
  "exp": 1234654290,
  "type": "session"
}
```
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from city_explorer.models.principal import Principal

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "session"


def create_session_token(
    principal: Principal,
    secret_key: str,
    max_age_seconds: int = 60 * 60 * 24,
) -> str:
    """Create a signed session token for a principal.

    Args:
        principal: The signed-in user
        secret_key: Signing secret
        max_age_seconds: Token lifetime

    Returns:
        Signed JWT token string
    """
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(seconds=max_age_seconds)

    payload = {
        "sub": principal.id,
        "name": principal.display_name,
        "email": principal.email,
        "picture": principal.photo,
        "provider": principal.provider,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "type": TOKEN_TYPE,
    }

    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def verify_session_token(token: str, secret_key: str) -> Principal | None:
    """Verify and decode a session token.

    Args:
        token: The JWT token string
        secret_key: Signing secret

    Returns:
        The principal if the token is valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.debug("Invalid token type")
        return None

    try:
        return Principal(
            id=str(payload["sub"]),
            display_name=payload.get("name") or "",
            email=payload["email"],
            photo=payload.get("picture"),
            provider=payload.get("provider", "google"),
        )
    except KeyError as e:
        logger.debug(f"Invalid token payload: missing {e}")
        return None
