"""
Models for Family Feed.

Domain value types used across the application, plus the SQLAlchemy tables
of the local backend (imported here so Alembic can discover them).
"""

from src.models.family import AccessControl, DateCategory, FamilyMember, ImportantDate

from src.models.base import Base, BaseModel, GUID, get_json_type
from src.models.records import AppUser, FamilyMemberRecord, StoredAsset, UserSession

__all__ = [
    # Domain types
    "AccessControl",
    "DateCategory",
    "FamilyMember",
    "ImportantDate",
    # Base classes
    "Base",
    "BaseModel",
    "GUID",
    "get_json_type",
    # Local backend tables
    "AppUser",
    "FamilyMemberRecord",
    "StoredAsset",
    "UserSession",
]
