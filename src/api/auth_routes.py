"""
Authentication API routes.

1. /auth/signup - Create an account and start a session
2. /auth/login - Start a session
3. /auth/logout - End the current session
4. /auth/me - Current user
5. /auth/account - Delete the account and all of its family members
"""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_backends, get_auth_context
from src.api.models import (
    DeleteAccountResponse,
    LoginRequest,
    SessionResponse,
    SignupRequest,
    UserResponse,
)
from src.integrations.base import AuthContext
from src.services.account import delete_account
from src.services.backends import Backends
from src.services.exceptions import NotAuthenticated
from src.services.synchronizer import call_remote

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def signup(
    request: SignupRequest,
    backends: Backends = Depends(get_app_backends),
) -> SessionResponse:
    """Create an account. The response carries the session token."""
    session = await call_remote(
        "Sign up",
        backends.auth.signup(
            username=request.username,
            email=request.email,
            password=request.password,
            full_name=request.full_name,
        ),
    )
    logger.info(f"User {session.user.id} signed up")
    return SessionResponse.from_domain(session)


@router.post("/login", response_model=SessionResponse)
async def login(
    request: LoginRequest,
    backends: Backends = Depends(get_app_backends),
) -> SessionResponse:
    """Log in with username and password."""
    session = await call_remote("Login", backends.auth.login(request.username, request.password))
    logger.info(f"User {session.user.id} logged in")
    return SessionResponse.from_domain(session)


@router.post("/logout", status_code=204)
async def logout(
    auth: AuthContext = Depends(get_auth_context),
    backends: Backends = Depends(get_app_backends),
) -> None:
    """End the current session and drop its cached family members."""
    await call_remote("Logout", backends.auth.logout(auth))
    backends.forget(auth.user_id)
    logger.info(f"User {auth.user_id} logged out")


@router.get("/me", response_model=UserResponse)
async def me(
    auth: AuthContext = Depends(get_auth_context),
    backends: Backends = Depends(get_app_backends),
) -> UserResponse:
    """Return the signed-in user."""
    user = await call_remote("Loading current user", backends.auth.current_user(auth.session_token))
    if user is None:
        raise NotAuthenticated("Session is invalid or expired")
    return UserResponse.from_domain(user)


@router.delete("/account", response_model=DeleteAccountResponse)
async def delete_my_account(
    auth: AuthContext = Depends(get_auth_context),
    backends: Backends = Depends(get_app_backends),
) -> DeleteAccountResponse:
    """
    Delete every family member of the user, then the account.

    If any family member cannot be deleted, the account is kept and the
    request fails with 502.
    """
    deleted = await delete_account(
        auth,
        backends.auth,
        backends.records,
        synchronizer=backends.synchronizer_for(auth.user_id),
    )
    backends.forget(auth.user_id)
    return DeleteAccountResponse(
        success=True,
        deleted_members=deleted,
        message=f"Account deleted along with {deleted} family members",
    )
