"""
Unit tests for base model utilities and local backend tables.
"""

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from src.models.base import GUID
from src.models.records import AppUser, FamilyMemberRecord, StoredAsset


class TestGUID:
    """Tests for the GUID column type."""

    class _Dialect:
        def __init__(self, name):
            self.name = name

    def test_bind_uuid_sqlite_as_hex(self):
        value = uuid.uuid4()
        assert GUID().process_bind_param(value, self._Dialect("sqlite")) == value.hex

    def test_bind_string(self):
        value = uuid.uuid4()
        assert GUID().process_bind_param(str(value), self._Dialect("sqlite")) == value.hex

    def test_bind_postgresql_as_string(self):
        value = uuid.uuid4()
        assert GUID().process_bind_param(value, self._Dialect("postgresql")) == str(value)

    def test_none_passthrough(self):
        assert GUID().process_bind_param(None, self._Dialect("sqlite")) is None
        assert GUID().process_result_value(None, self._Dialect("sqlite")) is None

    def test_result_to_uuid(self):
        value = uuid.uuid4()
        assert GUID().process_result_value(value.hex, self._Dialect("sqlite")) == value


class TestTables:
    """Tests for tables on an in-memory database."""

    @pytest.mark.asyncio
    async def test_family_member_record_defaults(self, session_factory):
        async with session_factory() as session:
            row = FamilyMemberRecord(
                owner_id="user1",
                name="Ana",
                relationship="Sister",
                date_of_birth=date(1990, 4, 2),
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)

        assert isinstance(row.id, uuid.UUID)
        assert row.object_id == row.id.hex
        assert row.created_at is not None
        assert row.birth_place == ""
        assert row.important_dates == []
        assert row.acl == {}
        assert row.is_deleted is False

    @pytest.mark.asyncio
    async def test_soft_delete(self, session_factory):
        async with session_factory() as session:
            asset = StoredAsset(name="chart.jpg", content_type="image/jpeg", data=b"\xff\xd8")
            session.add(asset)
            await session.commit()

            asset.soft_delete()
            await session.commit()

            stored = await session.scalar(select(StoredAsset).where(StoredAsset.name == "chart.jpg"))

        assert stored.is_deleted is True
        assert stored.deleted_at is not None

    @pytest.mark.asyncio
    async def test_username_is_unique(self, session_factory):
        from sqlalchemy.exc import IntegrityError

        async with session_factory() as session:
            session.add(AppUser(username="ana", password_hash="x", password_salt="00"))
            await session.commit()

            session.add(AppUser(username="ana", password_hash="y", password_salt="01"))
            with pytest.raises(IntegrityError):
                await session.commit()
