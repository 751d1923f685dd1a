"""Authentication dependencies over the session populated by the login flow."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from pydantic import ValidationError

from bidflow.errors import AuthenticationError
from bidflow.models.user import Actor


def get_user(request: Request) -> dict[str, Any] | None:
    """Extract the authenticated user from the session, if present."""
    return request.session.get("user") if "session" in request.scope else None


def require_actor(request: Request) -> Actor:
    """Return the authenticated caller or raise ``AuthenticationError`` (HTTP 401).

    The session user must carry an ``id`` and a known ``role``; role and
    ownership checks happen later in the services.
    """
    user = get_user(request)
    if not user:
        raise AuthenticationError("Authentication required")
    try:
        return Actor.model_validate(user)
    except ValidationError as exc:
        raise AuthenticationError("Session user is incomplete") from exc
