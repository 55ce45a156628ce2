"""
FastAPI dependency injection providers.

Provides backends, the caller's AuthContext and their RecordSynchronizer.
"""

import logging
from typing import Optional

from fastapi import Depends, Header

from src.integrations.base import AuthContext
from src.services.backends import Backends, get_backends
from src.services.exceptions import NotAuthenticated
from src.services.synchronizer import RecordSynchronizer, call_remote

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Token"


def get_app_backends() -> Backends:
    """Dependency injection for the configured backends."""
    return get_backends()


async def get_auth_context(
    x_session_token: Optional[str] = Header(None, description="Session token from login/signup"),
    backends: Backends = Depends(get_app_backends),
) -> AuthContext:
    """
    Resolve the session token header to an AuthContext.

    Raises:
        NotAuthenticated: Header missing, or session unknown/expired
    """
    if not x_session_token:
        raise NotAuthenticated(f"Missing {SESSION_HEADER} header")

    user = await call_remote("Resolving session", backends.auth.current_user(x_session_token))
    if user is None:
        logger.info("Rejected request with invalid session token")
        raise NotAuthenticated("Session is invalid or expired")

    return AuthContext(user_id=user.id, session_token=x_session_token)


def get_synchronizer(
    auth: AuthContext = Depends(get_auth_context),
    backends: Backends = Depends(get_app_backends),
) -> RecordSynchronizer:
    """The caller's synchronizer (one per user)."""
    return backends.synchronizer_for(auth.user_id)
