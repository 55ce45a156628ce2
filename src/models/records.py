"""
Tables backing the local record store.

Tables:
- family_member_records: FamilyMember documents (important dates and ACL as JSON)
- stored_assets: Uploaded binary assets (birth charts)
- app_users: Accounts for the local auth provider
- user_sessions: Opaque session tokens issued at login/signup

Only used when RECORD_STORE_PROVIDER=local. With the Parse backend these
live on the Parse Server instead.
"""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel, get_json_type


class FamilyMemberRecord(BaseModel):
    """Stored form of a FamilyMember."""

    __tablename__ = "family_member_records"

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc="Owning user id"
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    relationship: Mapped[str] = mapped_column(String(100), nullable=False)

    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)

    birth_place: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=""
    )

    birth_chart: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="URL of the uploaded birth chart"
    )

    important_dates: Mapped[list] = mapped_column(
        get_json_type(),
        nullable=False,
        default=list,
        doc="Embedded important dates, same shape as the Parse wire format"
    )

    acl: Mapped[dict] = mapped_column(
        get_json_type(),
        nullable=False,
        default=dict,
        doc="Access control list keyed by user id ('*' for public)"
    )

    __table_args__ = (
        Index("idx_family_member_record_owner", "owner_id"),
        Index("idx_family_member_record_deleted", "deleted_at"),
    )

    def __repr__(self) -> str:
        return f"<FamilyMemberRecord(name='{self.name}', owner='{self.owner_id}')>"


class StoredAsset(BaseModel):
    """Binary asset uploaded through the local blob store."""

    __tablename__ = "stored_assets"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        doc="Unique stored name (random prefix + requested name)"
    )

    content_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="application/octet-stream"
    )

    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    uploaded_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<StoredAsset(name='{self.name}', size={len(self.data or b'')})>"


class AppUser(BaseModel):
    """Account managed by the local auth provider."""

    __tablename__ = "app_users"

    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    full_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        doc="PBKDF2-SHA256 digest (hex)"
    )

    password_salt: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        Index("idx_app_user_deleted", "deleted_at"),
    )

    def __repr__(self) -> str:
        return f"<AppUser(username='{self.username}')>"


class UserSession(BaseModel):
    """Session token issued to an AppUser."""

    __tablename__ = "user_sessions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("app_users.id"),
        nullable=False
    )

    session_token: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True
    )

    __table_args__ = (
        Index("idx_user_session_user", "user_id"),
    )
