"""
Local database auth provider.

Accounts live in app_users with PBKDF2-SHA256 password hashes; each login
or signup issues an opaque session token stored in user_sessions.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.integrations.base import AuthContext, AuthProvider, AuthSession, UserProfile
from src.integrations.local.exceptions import LocalDuplicateError, LocalNotFoundError
from src.integrations.local.repository import _default_session_factory, _parse_uuid
from src.models.records import AppUser, UserSession
from src.services.exceptions import NotAuthenticated

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: str) -> str:
    """PBKDF2-SHA256 digest of a password, hex encoded."""
    return hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt),
        PBKDF2_ITERATIONS,
    ).hex()


def verify_password(password: str, salt: str, expected_hash: str) -> bool:
    return hmac.compare_digest(hash_password(password, salt), expected_hash)


def _profile(user: AppUser) -> UserProfile:
    return UserProfile(
        id=user.object_id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
    )


class LocalAuthProvider(AuthProvider):
    """AuthProvider implementation backed by the local database."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory or _default_session_factory()

    async def _issue_session(self, session: AsyncSession, user: AppUser) -> str:
        token = secrets.token_urlsafe(32)
        session.add(UserSession(user_id=user.id, session_token=token))
        return token

    async def signup(
        self,
        username: str,
        email: Optional[str],
        password: str,
        full_name: Optional[str] = None,
    ) -> AuthSession:
        async with self._session_factory() as session:
            existing = await session.scalar(
                select(AppUser).where(
                    AppUser.username == username,
                    AppUser.deleted_at.is_(None),
                )
            )
            if existing is not None:
                raise LocalDuplicateError(f"Account already exists for username {username}")

            salt = secrets.token_hex(16)
            user = AppUser(
                username=username,
                email=email,
                full_name=full_name,
                password_salt=salt,
                password_hash=hash_password(password, salt),
            )
            session.add(user)
            await session.flush()
            token = await self._issue_session(session, user)
            await session.commit()

            logger.info(f"Signed up local user {user.object_id}")
            return AuthSession(user=_profile(user), session_token=token)

    async def login(self, username: str, password: str) -> AuthSession:
        async with self._session_factory() as session:
            user = await session.scalar(
                select(AppUser).where(
                    AppUser.username == username,
                    AppUser.deleted_at.is_(None),
                )
            )
            if user is None or not verify_password(password, user.password_salt, user.password_hash):
                raise NotAuthenticated("Invalid username or password")

            token = await self._issue_session(session, user)
            await session.commit()
            return AuthSession(user=_profile(user), session_token=token)

    async def logout(self, auth: AuthContext) -> None:
        async with self._session_factory() as session:
            await session.execute(
                delete(UserSession).where(UserSession.session_token == auth.session_token)
            )
            await session.commit()

    async def current_user(self, session_token: str) -> Optional[UserProfile]:
        if not session_token:
            return None
        async with self._session_factory() as session:
            user = await session.scalar(
                select(AppUser)
                .join(UserSession, UserSession.user_id == AppUser.id)
                .where(
                    UserSession.session_token == session_token,
                    AppUser.deleted_at.is_(None),
                )
            )
            return _profile(user) if user is not None else None

    async def delete_user(self, auth: AuthContext) -> None:
        user_id = _parse_uuid(auth.user_id)
        async with self._session_factory() as session:
            user = await session.get(AppUser, user_id) if user_id else None
            if user is None or user.is_deleted:
                raise LocalNotFoundError(f"User {auth.user_id} not found")
            user.soft_delete()
            await session.execute(delete(UserSession).where(UserSession.user_id == user.id))
            await session.commit()
        logger.info(f"Deleted local user {auth.user_id}")
