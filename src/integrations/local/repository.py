"""
Local database record and blob stores.

Implements the RecordStore and BlobStore protocols with async SQLAlchemy.
ACLs are stored in the Parse shape ({"<userId>": {"read": true, "write": true}})
and enforced the same way: rows the caller cannot read behave as absent.
"""

import logging
import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.integrations.base import AuthContext, BlobStore, RecordStore, StoredBlob
from src.integrations.local.exceptions import LocalNotFoundError, LocalPermissionError
from src.integrations.parse.adapter import decode_acl, encode_acl
from src.models.family import AccessControl, DateCategory, FamilyMember, ImportantDate
from src.models.records import FamilyMemberRecord, StoredAsset

logger = logging.getLogger(__name__)


def _default_session_factory() -> async_sessionmaker[AsyncSession]:
    from src.database import AsyncSessionLocal

    return AsyncSessionLocal


def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return None


def _acl_allows(acl: dict, user_id: str, permission: str) -> bool:
    return bool(
        acl.get("*", {}).get(permission) or acl.get(user_id, {}).get(permission)
    )


def important_date_to_json(important_date: ImportantDate) -> dict:
    return {
        "date": important_date.date.isoformat(),
        "description": important_date.description,
        "category": important_date.category.value,
        "reminder": important_date.reminder,
    }


def important_date_from_json(data: dict) -> ImportantDate:
    try:
        category = DateCategory(data.get("category", DateCategory.OTHER.value))
    except ValueError:
        category = DateCategory.OTHER
    return ImportantDate(
        date=date.fromisoformat(data["date"]),
        description=data.get("description", ""),
        category=category,
        reminder=bool(data.get("reminder", False)),
    )


def row_to_member(row: FamilyMemberRecord) -> FamilyMember:
    """Convert a stored row to a record."""
    return FamilyMember(
        id=row.object_id,
        name=row.name,
        relationship=row.relationship,
        date_of_birth=row.date_of_birth,
        birth_place=row.birth_place or "",
        birth_chart=row.birth_chart,
        owner_id=row.owner_id,
        important_dates=tuple(important_date_from_json(d) for d in row.important_dates or []),
        acl=decode_acl(row.acl, row.owner_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def apply_member(row: FamilyMemberRecord, member: FamilyMember) -> None:
    """Copy a record's fields onto a row (id and timestamps excluded)."""
    row.name = member.name
    row.relationship = member.relationship
    row.date_of_birth = member.date_of_birth
    row.birth_place = member.birth_place
    row.birth_chart = member.birth_chart
    row.important_dates = [important_date_to_json(d) for d in member.important_dates]
    if member.owner_id:
        row.owner_id = member.owner_id
    if member.acl is not None:
        row.acl = encode_acl(member.acl)


class LocalRecordStore(RecordStore):
    """RecordStore implementation backed by the family_member_records table."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        """
        Args:
            session_factory: Async session factory (defaults to src.database.AsyncSessionLocal)
        """
        self._session_factory = session_factory or _default_session_factory()

    async def _load_row(
        self, session: AsyncSession, auth: AuthContext, record_id: str
    ) -> Optional[FamilyMemberRecord]:
        row_id = _parse_uuid(record_id)
        if row_id is None:
            return None
        row = await session.get(FamilyMemberRecord, row_id)
        if row is None or row.is_deleted or not _acl_allows(row.acl, auth.user_id, "read"):
            return None
        return row

    async def find(
        self,
        auth: AuthContext,
        owner_id: Optional[str] = None,
        record_id: Optional[str] = None,
    ) -> Sequence[FamilyMember]:
        stmt = select(FamilyMemberRecord).where(FamilyMemberRecord.deleted_at.is_(None))
        if owner_id is not None:
            stmt = stmt.where(FamilyMemberRecord.owner_id == owner_id)
        if record_id is not None:
            row_id = _parse_uuid(record_id)
            if row_id is None:
                return []
            stmt = stmt.where(FamilyMemberRecord.id == row_id)
        stmt = stmt.order_by(FamilyMemberRecord.created_at)

        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
            return [
                row_to_member(row)
                for row in rows
                if _acl_allows(row.acl, auth.user_id, "read")
            ]

    async def get(self, auth: AuthContext, record_id: str) -> Optional[FamilyMember]:
        async with self._session_factory() as session:
            row = await self._load_row(session, auth, record_id)
            return row_to_member(row) if row is not None else None

    async def save(self, auth: AuthContext, record: FamilyMember) -> FamilyMember:
        async with self._session_factory() as session:
            if record.id:
                row = await self._load_row(session, auth, record.id)
                if row is None:
                    raise LocalNotFoundError(f"Object {record.id} not found")
                if not _acl_allows(row.acl, auth.user_id, "write"):
                    raise LocalPermissionError(f"Object {record.id} is not writable")
            else:
                owner_id = record.owner_id or auth.user_id
                row = FamilyMemberRecord(
                    owner_id=owner_id,
                    acl=encode_acl(record.acl or AccessControl.owner_only(owner_id)),
                )
                session.add(row)

            apply_member(row, record)
            await session.commit()
            await session.refresh(row)
            return row_to_member(row)

    async def delete(self, auth: AuthContext, record: FamilyMember) -> None:
        if not record.id:
            raise LocalNotFoundError("Cannot delete an object without id")
        async with self._session_factory() as session:
            row = await self._load_row(session, auth, record.id)
            if row is None:
                raise LocalNotFoundError(f"Object {record.id} not found")
            if not _acl_allows(row.acl, auth.user_id, "write"):
                raise LocalPermissionError(f"Object {record.id} is not writable")
            row.soft_delete()
            await session.commit()


class LocalBlobStore(BlobStore):
    """BlobStore implementation backed by the stored_assets table."""

    def __init__(
        self,
        base_url: str,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        """
        Args:
            base_url: URL prefix under which the API serves stored assets
            session_factory: Async session factory (defaults to src.database.AsyncSessionLocal)
        """
        self._base_url = base_url.rstrip("/")
        self._session_factory = session_factory or _default_session_factory()

    def url_for(self, name: str) -> str:
        return f"{self._base_url}/{name}"

    async def upload(
        self,
        auth: AuthContext,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> StoredBlob:
        # Unique prefix so re-uploads never overwrite an earlier asset
        stored_name = f"{uuid.uuid4().hex}_{name}"
        async with self._session_factory() as session:
            session.add(
                StoredAsset(
                    name=stored_name,
                    content_type=content_type,
                    data=data,
                    uploaded_by=auth.user_id,
                )
            )
            await session.commit()

        logger.info(f"Stored asset {stored_name} ({len(data)} bytes)")
        return StoredBlob(name=stored_name, url=self.url_for(stored_name))

    async def read(self, name: str) -> Optional[tuple[bytes, str]]:
        """
        Load an asset by stored name.

        Returns:
            (data, content_type), or None if missing
        """
        async with self._session_factory() as session:
            asset = await session.scalar(
                select(StoredAsset).where(
                    StoredAsset.name == name,
                    StoredAsset.deleted_at.is_(None),
                )
            )
            if asset is None:
                return None
            return asset.data, asset.content_type
