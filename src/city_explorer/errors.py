"""Error taxonomy shared by the adapters, the auth gate and the record store.

Each error carries the HTTP status it maps to. The API layer renders any
``CityExplorerError`` as ``{"success": false, "error": message}`` with that
status, so lower layers never import FastAPI to signal a failure.
"""

from __future__ import annotations


class CityExplorerError(Exception):
    """Base exception for all City Explorer errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamError(CityExplorerError):
    """A third-party API failed or returned an unusable payload."""

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.upstream_status = status_code
        self.response_body = response_body


class RateLimited(UpstreamError):
    """Raised when an upstream signals throttling (HTTP 429)."""

    status_code = 429

    def __init__(self, provider: str, retry_after: int | None = None):
        super().__init__(
            f"Rate limit exceeded for {provider}",
            provider=provider,
            status_code=429,
        )
        self.retry_after = retry_after


class ValidationError(CityExplorerError):
    """Required fields are missing from a save request."""

    status_code = 400


class AuthError(CityExplorerError):
    """The OAuth handshake could not be completed."""

    status_code = 400


class Unauthorized(CityExplorerError):
    """No valid authenticated session."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized: Please login with Google OAuth"):
        super().__init__(message)


class Forbidden(CityExplorerError):
    """Bad or missing API key, or an ownership violation."""

    status_code = 403


class NotFound(CityExplorerError):
    """The requested record or city does not exist."""

    status_code = 404


class StorageUnavailable(CityExplorerError):
    """The durable store has no active connection."""

    status_code = 503

    def __init__(self, message: str = "Database not connected"):
        super().__init__(message)
