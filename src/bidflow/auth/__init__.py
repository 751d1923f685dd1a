"""Session authentication glue."""

from bidflow.auth.middleware import get_user, require_actor

__all__ = ["get_user", "require_actor"]
