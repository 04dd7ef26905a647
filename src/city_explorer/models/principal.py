"""Authenticated user identity."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """The signed-in user for the current request.

    Created by the OAuth handshake and carried in the session token. A
    principal is never stored on its own; its id, name and email are copied
    into each record the user saves.
    """

    id: str
    display_name: str
    email: str
    photo: str | None = None
    provider: str = "google"
