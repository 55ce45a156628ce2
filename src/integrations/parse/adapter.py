"""
Bidirectional mapping between FamilyMember and Parse object JSON.

Handles:
- Parse Date values ({"__type": "Date", "iso": ...}) for calendar dates
- Embedded important dates
- ACL encoding (owner entry, "*" for public access)
- Merging create/update responses into the saved record
"""

from dataclasses import replace
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from dateutil.parser import parse as parse_datetime

from src.models.family import AccessControl, DateCategory, FamilyMember, ImportantDate

PUBLIC_ACL_KEY = "*"


def encode_date(value: date) -> dict:
    """Encode a calendar date as a Parse Date at midnight UTC."""
    moment = datetime.combine(value, time(0, 0), tzinfo=timezone.utc)
    return {"__type": "Date", "iso": moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")}


def decode_date(value: Any) -> date:
    """Decode a Parse Date (or bare ISO string) to its UTC calendar date."""
    if isinstance(value, dict):
        value = value.get("iso")
    if not value:
        raise ValueError("Missing date value")
    moment = parse_datetime(value)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def _decode_timestamp(value: Optional[str]) -> Optional[datetime]:
    return parse_datetime(value) if value else None


def encode_acl(acl: AccessControl) -> dict:
    """Encode an access policy as a Parse ACL."""
    encoded: dict = {acl.owner_id: {"read": True, "write": True}}
    public: dict = {}
    if acl.public_read:
        public["read"] = True
    if acl.public_write:
        public["write"] = True
    if public:
        encoded[PUBLIC_ACL_KEY] = public
    return encoded


def decode_acl(value: Optional[dict], owner_id: Optional[str]) -> Optional[AccessControl]:
    """Decode a Parse ACL, attributing it to the record's owner."""
    if not value:
        return None
    owner = owner_id
    if owner is None:
        owner = next((key for key in value if key != PUBLIC_ACL_KEY), None)
    if owner is None:
        return None
    public = value.get(PUBLIC_ACL_KEY, {})
    return AccessControl(
        owner_id=owner,
        public_read=bool(public.get("read")),
        public_write=bool(public.get("write")),
    )


class ParseAdapter:
    """Maps between FamilyMember and the Parse "FamilyMember" class."""

    @staticmethod
    def important_date_to_parse(important_date: ImportantDate) -> dict:
        return {
            "date": encode_date(important_date.date),
            "description": important_date.description,
            "category": important_date.category.value,
            "reminder": important_date.reminder,
        }

    @staticmethod
    def important_date_from_parse(data: dict) -> ImportantDate:
        try:
            category = DateCategory(data.get("category", DateCategory.OTHER.value))
        except ValueError:
            category = DateCategory.OTHER
        return ImportantDate(
            date=decode_date(data.get("date")),
            description=data.get("description", ""),
            category=category,
            reminder=bool(data.get("reminder", False)),
        )

    @classmethod
    def to_parse_object(cls, member: FamilyMember) -> dict:
        """
        Convert a record to a Parse object body for create/update.

        Server-managed fields (objectId, createdAt, updatedAt) are omitted.
        A cleared birth chart is sent as an explicit Delete operation.
        """
        body: dict = {
            "name": member.name,
            "relationship": member.relationship,
            "dateOfBirth": encode_date(member.date_of_birth),
            "birthPlace": member.birth_place,
            "importantDates": [
                cls.important_date_to_parse(d) for d in member.important_dates
            ],
        }
        if member.birth_chart:
            body["birthChart"] = member.birth_chart
        elif member.id:
            body["birthChart"] = {"__op": "Delete"}
        if member.owner_id:
            body["userId"] = member.owner_id
        if member.acl is not None:
            body["ACL"] = encode_acl(member.acl)
        return body

    @classmethod
    def from_parse_object(cls, data: dict) -> FamilyMember:
        """Convert a Parse object to a record."""
        owner_id = data.get("userId")
        return FamilyMember(
            id=data.get("objectId"),
            name=data.get("name", ""),
            relationship=data.get("relationship", ""),
            date_of_birth=decode_date(data.get("dateOfBirth")),
            birth_place=data.get("birthPlace") or "",
            birth_chart=data.get("birthChart") or None,
            owner_id=owner_id,
            important_dates=tuple(
                cls.important_date_from_parse(d)
                for d in (data.get("importantDates") or [])
            ),
            acl=decode_acl(data.get("ACL"), owner_id),
            created_at=_decode_timestamp(data.get("createdAt")),
            updated_at=_decode_timestamp(data.get("updatedAt")),
        )

    @staticmethod
    def apply_save_response(member: FamilyMember, response: dict) -> FamilyMember:
        """
        Merge a create/update response into the record that was sent.

        Create answers {"objectId", "createdAt"}; update answers {"updatedAt"}.
        """
        created_at = _decode_timestamp(response.get("createdAt"))
        return replace(
            member,
            id=response.get("objectId", member.id),
            created_at=created_at or member.created_at,
            updated_at=_decode_timestamp(response.get("updatedAt")) or created_at or member.updated_at,
        )
