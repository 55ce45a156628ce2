"""Tests for Parse Adapter."""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from src.integrations.parse.adapter import (
    ParseAdapter,
    decode_acl,
    decode_date,
    encode_acl,
    encode_date,
)
from src.models.family import AccessControl, DateCategory, FamilyMember, ImportantDate


class TestDates:
    """Tests for Parse Date encoding."""

    def test_encode_date(self):
        assert encode_date(date(2024, 1, 15)) == {
            "__type": "Date",
            "iso": "2024-01-15T00:00:00.000Z",
        }

    def test_decode_parse_date(self):
        assert decode_date({"__type": "Date", "iso": "2024-01-15T00:00:00.000Z"}) == date(2024, 1, 15)

    def test_decode_converts_to_utc(self):
        """Should take the calendar date in UTC."""
        assert decode_date("2024-01-15T23:30:00-05:00") == date(2024, 1, 16)

    def test_decode_bare_string(self):
        assert decode_date("1990-04-02") == date(1990, 4, 2)

    def test_decode_missing(self):
        with pytest.raises(ValueError):
            decode_date(None)


class TestAcl:
    """Tests for ACL encoding."""

    def test_owner_only(self):
        assert encode_acl(AccessControl.owner_only("u1")) == {"u1": {"read": True, "write": True}}

    def test_public_read(self):
        encoded = encode_acl(AccessControl(owner_id="u1", public_read=True))
        assert encoded["*"] == {"read": True}

    def test_decode_round_trip(self):
        acl = AccessControl(owner_id="u1", public_read=True)
        assert decode_acl(encode_acl(acl), "u1") == acl

    def test_decode_infers_owner(self):
        decoded = decode_acl({"u9": {"read": True, "write": True}}, None)
        assert decoded.owner_id == "u9"

    def test_decode_empty(self):
        assert decode_acl(None, "u1") is None
        assert decode_acl({}, "u1") is None
        assert decode_acl({"*": {"read": True}}, None) is None


@pytest.fixture
def parse_object():
    return {
        "objectId": "xWMyZ4YEGZ",
        "name": "Ana Lopez",
        "relationship": "Sister",
        "dateOfBirth": {"__type": "Date", "iso": "1990-04-02T00:00:00.000Z"},
        "birthPlace": "Sevilla",
        "birthChart": "https://parse.example.com/files/app/abc_birthchart.jpg",
        "userId": "u1",
        "importantDates": [
            {
                "date": {"__type": "Date", "iso": "2024-04-02T00:00:00.000Z"},
                "description": "Birthday",
                "category": "Birthday",
                "reminder": True,
            },
            {
                "date": {"__type": "Date", "iso": "2024-05-01T00:00:00.000Z"},
                "description": "Unknown kind",
                "category": "Picnic",
            },
        ],
        "ACL": {"u1": {"read": True, "write": True}},
        "createdAt": "2024-01-01T10:00:00.000Z",
        "updatedAt": "2024-01-02T10:00:00.000Z",
    }


class TestFromParseObject:
    """Tests for Parse object to FamilyMember conversion."""

    def test_converts_all_fields(self, parse_object):
        member = ParseAdapter.from_parse_object(parse_object)

        assert member.id == "xWMyZ4YEGZ"
        assert member.name == "Ana Lopez"
        assert member.relationship == "Sister"
        assert member.date_of_birth == date(1990, 4, 2)
        assert member.birth_place == "Sevilla"
        assert member.birth_chart.endswith("abc_birthchart.jpg")
        assert member.owner_id == "u1"
        assert member.acl == AccessControl.owner_only("u1")
        assert member.created_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert member.updated_at == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)

    def test_important_dates(self, parse_object):
        member = ParseAdapter.from_parse_object(parse_object)

        first, second = member.important_dates
        assert first == ImportantDate(date(2024, 4, 2), "Birthday", DateCategory.BIRTHDAY, True)
        assert second.category == DateCategory.OTHER
        assert second.reminder is False

    def test_missing_optional_fields(self):
        member = ParseAdapter.from_parse_object(
            {
                "objectId": "abc",
                "name": "Bob",
                "relationship": "Father",
                "dateOfBirth": {"__type": "Date", "iso": "1960-01-01T00:00:00.000Z"},
            }
        )

        assert member.birth_place == ""
        assert member.birth_chart is None
        assert member.important_dates == ()
        assert member.acl is None


class TestToParseObject:
    """Tests for FamilyMember to Parse object conversion."""

    def test_new_record(self, sample_family_member):
        owned = replace(sample_family_member, owner_id="u1", acl=AccessControl.owner_only("u1"))

        body = ParseAdapter.to_parse_object(owned)

        assert body["name"] == "Ana Lopez"
        assert body["dateOfBirth"] == {"__type": "Date", "iso": "1990-04-02T00:00:00.000Z"}
        assert body["userId"] == "u1"
        assert body["ACL"] == {"u1": {"read": True, "write": True}}
        assert body["importantDates"][0] == {
            "date": {"__type": "Date", "iso": "2024-04-02T00:00:00.000Z"},
            "description": "Ana's birthday",
            "category": "Birthday",
            "reminder": True,
        }
        assert "birthChart" not in body
        assert "objectId" not in body

    def test_cleared_chart_on_saved_record_is_deleted(self):
        member = FamilyMember(
            id="abc",
            name="Bob",
            relationship="Father",
            date_of_birth=date(1960, 1, 1),
        )

        body = ParseAdapter.to_parse_object(member)

        assert body["birthChart"] == {"__op": "Delete"}

    def test_chart_url_sent(self):
        member = FamilyMember(
            id="abc",
            name="Bob",
            relationship="Father",
            date_of_birth=date(1960, 1, 1),
            birth_chart="https://files.test/chart.jpg",
        )

        assert ParseAdapter.to_parse_object(member)["birthChart"] == "https://files.test/chart.jpg"


class TestApplySaveResponse:
    def test_create_response(self, sample_family_member):
        saved = ParseAdapter.apply_save_response(
            sample_family_member,
            {"objectId": "new1", "createdAt": "2024-01-01T10:00:00.000Z"},
        )

        assert saved.id == "new1"
        assert saved.created_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert saved.updated_at == saved.created_at

    def test_update_response(self, sample_family_member):
        existing = ParseAdapter.apply_save_response(
            sample_family_member,
            {"objectId": "new1", "createdAt": "2024-01-01T10:00:00.000Z"},
        )

        saved = ParseAdapter.apply_save_response(existing, {"updatedAt": "2024-02-01T10:00:00.000Z"})

        assert saved.id == "new1"
        assert saved.created_at == existing.created_at
        assert saved.updated_at == datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)
