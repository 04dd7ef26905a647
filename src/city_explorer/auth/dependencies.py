"""FastAPI dependencies for authentication.

Protected routes pass two checks, in this order:

1. Shared secret: the ``x-api-key`` header must match ``APP_API_KEY``
   (403 Forbidden otherwise)
2. Session: the session cookie must hold a valid token (401 Unauthorized
   otherwise)

The key check runs first because it needs no session lookup.

## Usage

```python
from fastapi import Depends
from city_explorer.auth import authenticate_request
from city_explorer.models import Principal

@router.get("/records")
async def list_records(principal: Principal = Depends(authenticate_request)):
    ...
```
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Depends, Header, Request

from city_explorer.auth.session import verify_session_token
from city_explorer.config import Settings
from city_explorer.errors import Forbidden, Unauthorized
from city_explorer.models.principal import Principal

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


async def require_api_key(
    x_api_key: str | None = Header(default=None, alias="x-api-key"),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Check the shared-secret header.

    Raises 403 if the key is missing or wrong.
    """
    if not x_api_key:
        raise Forbidden("Forbidden: API Key is required")

    if not hmac.compare_digest(x_api_key.encode(), settings.app_api_key.encode()):
        logger.warning("Request rejected: invalid API key")
        raise Forbidden("Forbidden: Invalid API Key")


async def get_session_principal(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> Principal | None:
    """Extract and verify the principal from the session cookie.

    Returns None if no session or invalid session.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None

    return verify_session_token(token, settings.secret_key)


async def require_principal(
    principal: Principal | None = Depends(get_session_principal),
) -> Principal:
    """Get the current authenticated principal.

    Raises 401 if not authenticated.
    """
    if principal is None:
        raise Unauthorized()

    return principal


async def authenticate_request(
    _: None = Depends(require_api_key),
    principal: Principal | None = Depends(get_session_principal),
) -> Principal:
    """Require both the API key and a session.

    The key dependency is declared first, so a bad key fails with 403 even
    when the session is valid.
    """
    if principal is None:
        raise Unauthorized()

    return principal
