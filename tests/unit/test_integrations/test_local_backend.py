"""Tests for the local database record store, blob store and auth provider."""

from dataclasses import replace
from datetime import date

import pytest

from src.integrations.base import AuthContext
from src.integrations.local.auth import LocalAuthProvider, hash_password, verify_password
from src.integrations.local.exceptions import (
    LocalDuplicateError,
    LocalNotFoundError,
    LocalPermissionError,
)
from src.integrations.local.repository import LocalBlobStore, LocalRecordStore
from src.models.family import AccessControl, FamilyMember
from src.services.exceptions import NotAuthenticated

OWNER = AuthContext(user_id="owner", session_token="t-owner")
STRANGER = AuthContext(user_id="stranger", session_token="t-stranger")


def _owned(member: FamilyMember, auth: AuthContext = OWNER) -> FamilyMember:
    return replace(member, owner_id=auth.user_id, acl=AccessControl.owner_only(auth.user_id))


class TestLocalRecordStore:
    """Tests for LocalRecordStore."""

    @pytest.mark.asyncio
    async def test_save_assigns_id(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)

        saved = await store.save(OWNER, _owned(sample_family_member))

        assert saved.id
        assert len(saved.id) == 32
        assert saved.owner_id == "owner"
        assert saved.created_at is not None
        assert saved.important_dates == sample_family_member.important_dates
        assert saved.acl == AccessControl.owner_only("owner")

    @pytest.mark.asyncio
    async def test_get_round_trip(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)
        saved = await store.save(OWNER, _owned(sample_family_member))

        loaded = await store.get(OWNER, saved.id)

        assert loaded.name == "Ana Lopez"
        assert loaded.date_of_birth == date(1990, 4, 2)
        assert loaded.birth_place == "Sevilla"
        assert loaded.important_dates == sample_family_member.important_dates

    @pytest.mark.asyncio
    async def test_get_unknown_or_malformed_id(self, session_factory):
        store = LocalRecordStore(session_factory)

        assert await store.get(OWNER, "0" * 32) is None
        assert await store.get(OWNER, "not-a-uuid") is None

    @pytest.mark.asyncio
    async def test_acl_hides_records(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)
        saved = await store.save(OWNER, _owned(sample_family_member))

        assert await store.get(STRANGER, saved.id) is None
        assert await store.find(STRANGER, owner_id="owner") == []

    @pytest.mark.asyncio
    async def test_public_read_is_not_writable(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)
        shared = replace(
            sample_family_member,
            owner_id="owner",
            acl=AccessControl(owner_id="owner", public_read=True),
        )
        saved = await store.save(OWNER, shared)

        assert (await store.get(STRANGER, saved.id)).name == "Ana Lopez"
        with pytest.raises(LocalPermissionError):
            await store.save(STRANGER, replace(saved, name="Hijacked"))

    @pytest.mark.asyncio
    async def test_find_filters(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)
        first = await store.save(OWNER, _owned(sample_family_member))
        await store.save(OWNER, _owned(replace(sample_family_member, name="Bob")))
        other_owner = AuthContext(user_id="other")
        await store.save(other_owner, _owned(sample_family_member, other_owner))

        by_owner = await store.find(OWNER, owner_id="owner")
        by_id = await store.find(OWNER, record_id=first.id)

        assert sorted(m.name for m in by_owner) == ["Ana Lopez", "Bob"]
        assert [m.id for m in by_id] == [first.id]
        assert await store.find(OWNER, record_id="bad id") == []

    @pytest.mark.asyncio
    async def test_update_existing(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)
        saved = await store.save(OWNER, _owned(sample_family_member))

        updated = await store.save(
            OWNER,
            replace(saved, relationship="Twin", birth_chart="http://localhost/assets/c.jpg"),
        )

        assert updated.id == saved.id
        loaded = await store.get(OWNER, saved.id)
        assert loaded.relationship == "Twin"
        assert loaded.birth_chart == "http://localhost/assets/c.jpg"

    @pytest.mark.asyncio
    async def test_update_missing(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)

        with pytest.raises(LocalNotFoundError):
            await store.save(OWNER, replace(_owned(sample_family_member), id="0" * 32))

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)
        saved = await store.save(OWNER, _owned(sample_family_member))

        await store.delete(OWNER, saved)

        assert await store.get(OWNER, saved.id) is None
        assert await store.find(OWNER, owner_id="owner") == []
        with pytest.raises(LocalNotFoundError):
            await store.delete(OWNER, saved)

    @pytest.mark.asyncio
    async def test_delete_without_id(self, session_factory, sample_family_member):
        store = LocalRecordStore(session_factory)

        with pytest.raises(LocalNotFoundError):
            await store.delete(OWNER, sample_family_member)


class TestLocalBlobStore:
    """Tests for LocalBlobStore."""

    @pytest.mark.asyncio
    async def test_upload_and_read(self, session_factory):
        store = LocalBlobStore("http://localhost:8000/assets/", session_factory)

        blob = await store.upload(OWNER, "abc_birthchart.jpg", b"\xff\xd8", content_type="image/jpeg")

        assert blob.name.endswith("_abc_birthchart.jpg")
        assert blob.url == f"http://localhost:8000/assets/{blob.name}"
        assert await store.read(blob.name) == (b"\xff\xd8", "image/jpeg")

    @pytest.mark.asyncio
    async def test_reupload_gets_new_name(self, session_factory):
        store = LocalBlobStore("http://localhost:8000/assets", session_factory)

        first = await store.upload(OWNER, "abc_birthchart.jpg", b"one")
        second = await store.upload(OWNER, "abc_birthchart.jpg", b"two")

        assert first.name != second.name
        assert (await store.read(first.name))[0] == b"one"

    @pytest.mark.asyncio
    async def test_read_missing(self, session_factory):
        store = LocalBlobStore("http://localhost:8000/assets", session_factory)
        assert await store.read("nothing.jpg") is None


class TestPasswords:
    def test_verify(self):
        digest = hash_password("secret123", "00ff")

        assert verify_password("secret123", "00ff", digest)
        assert not verify_password("secret124", "00ff", digest)
        assert not verify_password("secret123", "00fe", digest)


class TestLocalAuthProvider:
    """Tests for LocalAuthProvider."""

    @pytest.mark.asyncio
    async def test_signup_issues_session(self, session_factory):
        provider = LocalAuthProvider(session_factory)

        session = await provider.signup("ana", "ana@example.com", "secret123", full_name="Ana Lopez")

        assert session.session_token
        assert session.user.username == "ana"
        user = await provider.current_user(session.session_token)
        assert user.id == session.user.id
        assert user.email == "ana@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, session_factory):
        provider = LocalAuthProvider(session_factory)
        await provider.signup("ana", None, "secret123")

        with pytest.raises(LocalDuplicateError):
            await provider.signup("ana", None, "other-password")

    @pytest.mark.asyncio
    async def test_login(self, session_factory):
        provider = LocalAuthProvider(session_factory)
        created = await provider.signup("ana", None, "secret123")

        session = await provider.login("ana", "secret123")

        assert session.user.id == created.user.id
        assert session.session_token != created.session_token

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, session_factory):
        provider = LocalAuthProvider(session_factory)
        await provider.signup("ana", None, "secret123")

        with pytest.raises(NotAuthenticated):
            await provider.login("ana", "wrong-password")
        with pytest.raises(NotAuthenticated):
            await provider.login("nobody", "secret123")

    @pytest.mark.asyncio
    async def test_logout(self, session_factory):
        provider = LocalAuthProvider(session_factory)
        session = await provider.signup("ana", None, "secret123")

        await provider.logout(session.to_context())

        assert await provider.current_user(session.session_token) is None

    @pytest.mark.asyncio
    async def test_unknown_token(self, session_factory):
        provider = LocalAuthProvider(session_factory)

        assert await provider.current_user("nope") is None
        assert await provider.current_user("") is None

    @pytest.mark.asyncio
    async def test_delete_user(self, session_factory):
        provider = LocalAuthProvider(session_factory)
        session = await provider.signup("ana", None, "secret123")

        await provider.delete_user(session.to_context())

        assert await provider.current_user(session.session_token) is None
        with pytest.raises(NotAuthenticated):
            await provider.login("ana", "secret123")
        with pytest.raises(LocalNotFoundError):
            await provider.delete_user(session.to_context())
