"""
Pytest configuration and fixtures for Family Feed tests.

Provides an in-memory async database, in-memory backend doubles and
sample family members.
"""

from dataclasses import replace
from datetime import date
from typing import AsyncGenerator, Optional, Sequence

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.integrations.base import (
    AuthContext,
    AuthProvider,
    AuthSession,
    BlobStore,
    RecordStore,
    StoredBlob,
    UserProfile,
)
from src.models.base import Base
from src.models.family import DateCategory, FamilyMember, ImportantDate
from src.models.records import AppUser, FamilyMemberRecord, StoredAsset, UserSession  # noqa: F401


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Async session factory on a clean in-memory SQLite database.

    Tables are created per test and the engine disposed afterwards.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    try:
        yield factory
    finally:
        await engine.dispose()


# =============================================================================
# In-memory backends
# =============================================================================


class InMemoryRecordStore(RecordStore):
    """Dict-backed RecordStore with server-assigned ids."""

    def __init__(self):
        self.rows: dict[str, FamilyMember] = {}
        self.saves: list[FamilyMember] = []
        self._counter = 0

    async def find(
        self,
        auth: AuthContext,
        owner_id: Optional[str] = None,
        record_id: Optional[str] = None,
    ) -> Sequence[FamilyMember]:
        return [
            m
            for m in self.rows.values()
            if (owner_id is None or m.owner_id == owner_id)
            and (record_id is None or m.id == record_id)
        ]

    async def get(self, auth: AuthContext, record_id: str) -> Optional[FamilyMember]:
        return self.rows.get(record_id)

    async def save(self, auth: AuthContext, record: FamilyMember) -> FamilyMember:
        self.saves.append(record)
        if record.id:
            if record.id not in self.rows:
                raise LookupError(f"Object {record.id} not found")
            saved = record
        else:
            self._counter += 1
            saved = replace(record, id=f"rec{self._counter}")
        self.rows[saved.id] = saved
        return saved

    async def delete(self, auth: AuthContext, record: FamilyMember) -> None:
        if record.id not in self.rows:
            raise LookupError(f"Object {record.id} not found")
        del self.rows[record.id]


class InMemoryBlobStore(BlobStore):
    """Dict-backed BlobStore returning predictable URLs."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}

    async def upload(
        self,
        auth: AuthContext,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> StoredBlob:
        stored_name = f"{len(self.blobs)}_{name}"
        self.blobs[stored_name] = data
        return StoredBlob(name=stored_name, url=f"https://files.test/{stored_name}")


class InMemoryAuthProvider(AuthProvider):
    """Accounts and session tokens held in dicts."""

    def __init__(self):
        self.users: dict[str, tuple[str, UserProfile]] = {}
        self.sessions: dict[str, UserProfile] = {}
        self.deleted: list[str] = []

    def _issue(self, user: UserProfile) -> AuthSession:
        token = f"token-{user.id}-{len(self.sessions)}"
        self.sessions[token] = user
        return AuthSession(user=user, session_token=token)

    async def signup(self, username, email, password, full_name=None) -> AuthSession:
        if username in self.users:
            raise LookupError(f"Account already exists for username {username}")
        user = UserProfile(
            id=f"user{len(self.users) + 1}",
            username=username,
            email=email,
            full_name=full_name,
        )
        self.users[username] = (password, user)
        return self._issue(user)

    async def login(self, username, password) -> AuthSession:
        from src.services.exceptions import NotAuthenticated

        entry = self.users.get(username)
        if entry is None or entry[0] != password:
            raise NotAuthenticated("Invalid username or password")
        return self._issue(entry[1])

    async def logout(self, auth: AuthContext) -> None:
        self.sessions.pop(auth.session_token, None)

    async def current_user(self, session_token: str) -> Optional[UserProfile]:
        return self.sessions.get(session_token)

    async def delete_user(self, auth: AuthContext) -> None:
        self.deleted.append(auth.user_id)
        self.users = {k: v for k, v in self.users.items() if v[1].id != auth.user_id}


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def auth_provider() -> InMemoryAuthProvider:
    return InMemoryAuthProvider()


@pytest.fixture
def auth() -> AuthContext:
    return AuthContext(user_id="user1", session_token="token-user1")


# =============================================================================
# Sample data
# =============================================================================


@pytest.fixture
def sample_family_member() -> FamilyMember:
    """
    An unsaved family member with two important dates.

    Returns:
        FamilyMember: Draft with id=None
    """
    return FamilyMember(
        name="Ana Lopez",
        relationship="Sister",
        date_of_birth=date(1990, 4, 2),
        birth_place="Sevilla",
        important_dates=(
            ImportantDate(
                date=date(2024, 4, 2),
                description="Ana's birthday",
                category=DateCategory.BIRTHDAY,
                reminder=True,
            ),
            ImportantDate(
                date=date(2024, 9, 14),
                description="Wedding anniversary",
                category=DateCategory.ANNIVERSARY,
            ),
        ),
    )


@pytest.fixture
def multiple_family_members() -> list[FamilyMember]:
    """
    Persisted family members with mixed-case names.

    Returns:
        list[FamilyMember]: In insertion order
    """
    return [
        FamilyMember(
            id="m1",
            name="Bob",
            relationship="Father",
            date_of_birth=date(1960, 1, 1),
            owner_id="user1",
        ),
        FamilyMember(
            id="m2",
            name="alice",
            relationship="cousin",
            date_of_birth=date(1995, 6, 30),
            owner_id="user1",
        ),
        FamilyMember(
            id="m3",
            name="Carmen",
            relationship="Aunt",
            date_of_birth=date(1972, 11, 5),
            owner_id="user1",
        ),
    ]
