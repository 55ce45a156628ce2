"""
Parse Server auth provider.

Users live in the Parse _User class; sessions are Parse session tokens.
"""

import logging
from typing import Optional

from src.integrations.base import AuthContext, AuthProvider, AuthSession, UserProfile
from src.integrations.parse.client import ParseClient
from src.integrations.parse.exceptions import ParseAuthError, ParseNotFoundError
from src.services.exceptions import NotAuthenticated

logger = logging.getLogger(__name__)


def _profile(data: dict, **fallback) -> UserProfile:
    return UserProfile(
        id=data["objectId"],
        username=data.get("username", fallback.get("username", "")),
        email=data.get("email", fallback.get("email")),
        full_name=data.get("fullName", fallback.get("full_name")),
    )


class ParseAuthProvider(AuthProvider):
    """AuthProvider implementation using Parse users and sessions."""

    def __init__(self, client: ParseClient):
        self._client = client

    async def signup(
        self,
        username: str,
        email: Optional[str],
        password: str,
        full_name: Optional[str] = None,
    ) -> AuthSession:
        body = {"username": username, "password": password}
        if email:
            body["email"] = email
        if full_name:
            body["fullName"] = full_name

        response = await self._client.signup(body)
        logger.info(f"Signed up Parse user {response.get('objectId')}")
        return AuthSession(
            user=_profile(response, username=username, email=email, full_name=full_name),
            session_token=response["sessionToken"],
        )

    async def login(self, username: str, password: str) -> AuthSession:
        try:
            response = await self._client.login(username, password)
        except (ParseNotFoundError, ParseAuthError) as e:
            raise NotAuthenticated("Invalid username or password", original_error=e) from e
        return AuthSession(user=_profile(response), session_token=response["sessionToken"])

    async def logout(self, auth: AuthContext) -> None:
        await self._client.logout(auth.session_token)

    async def current_user(self, session_token: str) -> Optional[UserProfile]:
        if not session_token:
            return None
        try:
            response = await self._client.me(session_token)
        except (ParseAuthError, ParseNotFoundError):
            return None
        return _profile(response)

    async def delete_user(self, auth: AuthContext) -> None:
        await self._client.delete_user(auth.user_id, auth.session_token)
        logger.info(f"Deleted Parse user {auth.user_id}")
