"""Owner identity for quote endpoints.

Identity is issued by the external auth service; this module only
resolves it for a request. ``require_owner`` is the single FastAPI
dependency used by every quote route.

When ``settings.auth_enabled`` is False the owner id is taken from the
``X-Owner-Id`` header (default ``anonymous``) so local development and
tests can act as several owners without tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .token_factory import decode_token
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ANONYMOUS_OWNER = "anonymous"

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity of the caller. Quotes are scoped by ``owner_id``."""

    owner_id: str
    authenticated: bool = False


def require_owner(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    x_owner_id: Optional[str] = Header(default=None),
) -> AuthContext:
    """Return the caller's AuthContext or raise 401."""
    if not settings.auth_enabled:
        owner_id = (x_owner_id or "").strip() or ANONYMOUS_OWNER
        return AuthContext(owner_id=owner_id)

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        logger.info("Rejected invalid or expired token")
        raise AuthenticationError("Invalid or expired token")

    return AuthContext(owner_id=payload.owner_id, authenticated=True)
