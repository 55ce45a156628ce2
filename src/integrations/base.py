"""
Backend protocols and shared types.

Defines the interface for the three remote collaborators of the record
synchronizer (record store, blob store, auth provider), implemented by the
Parse Server backend and the local database backend.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from src.models.family import FamilyMember


@dataclass(frozen=True)
class AuthContext:
    """
    The signed-in user, passed explicitly into every store call.

    There is no process-wide "current user": whoever holds an AuthContext
    acts as that user.
    """

    user_id: str
    session_token: str = ""

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


@dataclass
class UserProfile:
    """Account details returned by the auth provider."""

    id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None


@dataclass
class AuthSession:
    """Result of a successful login or signup."""

    user: UserProfile
    session_token: str

    def to_context(self) -> AuthContext:
        return AuthContext(user_id=self.user.id, session_token=self.session_token)


@dataclass
class StoredBlob:
    """Reference to an uploaded binary asset."""

    name: str
    url: str


class RecordStore(Protocol):
    """
    Protocol for family member record storage.

    Implementations:
    - ParseRecordStore: Parse Server REST API
    - LocalRecordStore: SQLAlchemy (async) database

    Records not readable by `auth` behave as absent.
    """

    @abstractmethod
    async def find(
        self,
        auth: AuthContext,
        owner_id: Optional[str] = None,
        record_id: Optional[str] = None,
    ) -> Sequence[FamilyMember]:
        """
        Find records matching every given equality filter.

        Args:
            auth: Caller
            owner_id: Match records owned by this user
            record_id: Match the record with this id

        Returns:
            Matching records (unordered)
        """
        ...

    @abstractmethod
    async def get(self, auth: AuthContext, record_id: str) -> Optional[FamilyMember]:
        """
        Get a single record by id.

        Returns:
            The record, or None if it does not exist
        """
        ...

    @abstractmethod
    async def save(self, auth: AuthContext, record: FamilyMember) -> FamilyMember:
        """
        Persist a full record.

        Creates the record when it has no id (the store assigns one),
        otherwise overwrites the stored record.

        Returns:
            The stored record as the server sees it
        """
        ...

    @abstractmethod
    async def delete(self, auth: AuthContext, record: FamilyMember) -> None:
        """
        Delete a record.

        Raises:
            Backend error if the record does not exist or cannot be deleted
        """
        ...


class BlobStore(Protocol):
    """Protocol for binary asset storage."""

    @abstractmethod
    async def upload(
        self,
        auth: AuthContext,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> StoredBlob:
        """
        Upload a binary asset.

        Args:
            auth: Caller
            name: Requested name (the store may make it unique)
            data: Payload
            content_type: MIME type

        Returns:
            Reference with the retrievable URL
        """
        ...


class AuthProvider(Protocol):
    """Protocol for user accounts and sessions."""

    @abstractmethod
    async def signup(
        self,
        username: str,
        email: Optional[str],
        password: str,
        full_name: Optional[str] = None,
    ) -> AuthSession:
        ...

    @abstractmethod
    async def login(self, username: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def logout(self, auth: AuthContext) -> None:
        ...

    @abstractmethod
    async def current_user(self, session_token: str) -> Optional[UserProfile]:
        """
        Resolve a session token.

        Returns:
            The user, or None if the session is unknown or expired
        """
        ...

    @abstractmethod
    async def delete_user(self, auth: AuthContext) -> None:
        ...
