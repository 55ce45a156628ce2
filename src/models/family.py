"""
Family member domain types.

Entities:
- FamilyMember: A person tracked by the signed-in user
- ImportantDate: A dated note embedded in a family member record
- DateCategory: Fixed set of important date kinds
- AccessControl: Per-record read/write policy

These are immutable value types. The record store owns the durable copy;
every change produces a new instance that is only placed into the local
collection after the store confirms it.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional


class DateCategory(str, Enum):
    """Kind of important date. Values are the stored wire strings."""

    BIRTHDAY = "Birthday"
    ANNIVERSARY = "Anniversary"
    GRADUATION = "Graduation"
    WEDDING = "Wedding"
    MEMORIAL = "Memorial"
    HOLIDAY = "Holiday"
    OTHER = "Other"


@dataclass(frozen=True)
class ImportantDate:
    """
    A dated entry on a family member (birthday, anniversary, ...).

    ImportantDate has no identifier of its own. Its identity is derived from
    the date and description; two entries sharing both are indistinguishable
    and may coexist in the same record.
    """

    date: date
    description: str
    category: DateCategory = DateCategory.OTHER
    reminder: bool = False

    @property
    def key(self) -> tuple[date, str]:
        """Derived identity: (date, description)."""
        return (self.date, self.description)

    def same_as(self, other: "ImportantDate") -> bool:
        """Check whether two entries share a derived identity."""
        return self.key == other.key


@dataclass(frozen=True)
class AccessControl:
    """
    Record-level access policy.

    The default policy grants read and write to the owner only.
    """

    owner_id: str
    public_read: bool = False
    public_write: bool = False

    @classmethod
    def owner_only(cls, owner_id: str) -> "AccessControl":
        return cls(owner_id=owner_id)

    def can_read(self, user_id: Optional[str]) -> bool:
        return self.public_read or (user_id is not None and user_id == self.owner_id)

    def can_write(self, user_id: Optional[str]) -> bool:
        return self.public_write or (user_id is not None and user_id == self.owner_id)


@dataclass(frozen=True)
class FamilyMember:
    """
    A family member record.

    Lifecycle:
    - Drafted locally with id=None (never persisted)
    - Persisted: the record store assigns the id
    - Updated by full-record writes
    - Deleted: remote record and local entry removed together

    Attributes:
        name: Display name
        relationship: Free-text relationship label ("Mother", "Cousin", ...)
        date_of_birth: Calendar date of birth
        birth_place: Optional free-text place of birth
        birth_chart: Asset URL, set after a successful upload
        owner_id: The single user who owns the record
        important_dates: Ordered embedded important dates
    """

    name: str
    relationship: str
    date_of_birth: date
    birth_place: str = ""
    birth_chart: Optional[str] = None
    owner_id: Optional[str] = None
    important_dates: tuple[ImportantDate, ...] = ()
    id: Optional[str] = None
    acl: Optional[AccessControl] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_persisted(self) -> bool:
        """A record without an id has never been saved remotely."""
        return bool(self.id)

    def has_important_dates(self) -> bool:
        return len(self.important_dates) > 0

    def with_important_date(self, important_date: ImportantDate) -> "FamilyMember":
        """Return a copy with the date appended. Duplicates are not rejected."""
        return replace(self, important_dates=self.important_dates + (important_date,))

    def without_important_date(self, important_date: ImportantDate) -> "FamilyMember":
        """Return a copy with every entry sharing the date's derived identity removed."""
        return replace(
            self,
            important_dates=tuple(
                d for d in self.important_dates if not d.same_as(important_date)
            ),
        )

    def with_birth_chart(self, birth_chart: Optional[str]) -> "FamilyMember":
        return replace(self, birth_chart=birth_chart)

    def merged_onto(self, remote: "FamilyMember") -> "FamilyMember":
        """
        Copy the user-editable fields of this record onto a remote copy.

        Server-owned fields (id, owner, ACL, timestamps) come from `remote`.
        """
        return replace(
            remote,
            name=self.name,
            relationship=self.relationship,
            date_of_birth=self.date_of_birth,
            birth_place=self.birth_place,
            birth_chart=self.birth_chart,
            important_dates=self.important_dates,
        )

    def __repr__(self) -> str:
        return f"<FamilyMember(id={self.id!r}, name={self.name!r}, relationship={self.relationship!r})>"
