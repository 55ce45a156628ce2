"""
Unit tests for derived views over family members.
"""

from dataclasses import replace
from datetime import date

import pytest

from src.models.family import DateCategory, FamilyMember, ImportantDate
from src.services.queries import (
    SortOption,
    dates_for_category,
    dates_on,
    derived_view,
    matches_search,
    upcoming_by_member,
    upcoming_dates,
)


def _member(name, relationship="Cousin", dob=date(1990, 1, 1), dates=()):
    return FamilyMember(
        name=name,
        relationship=relationship,
        date_of_birth=dob,
        important_dates=tuple(dates),
    )


class TestMatchesSearch:
    def test_matches_name_case_insensitive(self):
        assert matches_search(_member("Alice"), "ALI")

    def test_matches_relationship(self):
        assert matches_search(_member("Bob", relationship="Grandfather"), "father")

    def test_no_match(self):
        assert not matches_search(_member("Bob", relationship="Uncle"), "zz")


class TestDerivedView:
    """Tests for derived_view()."""

    def test_sort_by_name_case_insensitive(self):
        members = [_member("Bob"), _member("alice")]

        result = derived_view(members, "", SortOption.NAME)

        assert [m.name for m in result] == ["alice", "Bob"]

    def test_search_then_sort(self, multiple_family_members):
        result = derived_view(multiple_family_members, "a", SortOption.NAME)

        # "a" matches alice, Carmen and Bob's relationship "Father"
        assert [m.name for m in result] == ["alice", "Bob", "Carmen"]

    def test_search_filters(self, multiple_family_members):
        result = derived_view(multiple_family_members, "COUS", SortOption.NAME)
        assert [m.name for m in result] == ["alice"]

    def test_sort_by_relationship(self, multiple_family_members):
        result = derived_view(multiple_family_members, sort_option=SortOption.RELATIONSHIP)
        assert [m.relationship for m in result] == ["Aunt", "cousin", "Father"]

    def test_sort_by_age_youngest_first(self, multiple_family_members):
        result = derived_view(multiple_family_members, sort_option=SortOption.AGE)
        assert [m.name for m in result] == ["alice", "Carmen", "Bob"]

    def test_sort_accepts_string_value(self, multiple_family_members):
        result = derived_view(multiple_family_members, sort_option="age")
        assert result[0].name == "alice"

    def test_stable_for_equal_keys(self):
        first = _member("Sam", relationship="Brother")
        second = _member("sam", relationship="Sister")
        third = _member("SAM", relationship="Uncle")

        result = derived_view([first, second, third], "", SortOption.NAME)

        assert [m.relationship for m in result] == ["Brother", "Sister", "Uncle"]

    def test_empty_collection(self):
        assert derived_view([], "anything", SortOption.AGE) == []

    def test_input_not_modified(self, multiple_family_members):
        before = list(multiple_family_members)
        derived_view(multiple_family_members, "a", SortOption.AGE)
        assert multiple_family_members == before


class TestUpcomingDates:
    """Tests for upcoming_dates()."""

    def test_window_selects_dates(self):
        member = _member(
            "Ana",
            dates=[
                ImportantDate(date(2024, 1, 15), "Party"),
                ImportantDate(date(2024, 3, 1), "Trip"),
            ],
        )

        result = upcoming_dates(member, within_days=30, today=date(2024, 1, 1))

        assert [d.date for d in result] == [date(2024, 1, 15)]

    def test_window_is_inclusive_on_both_ends(self):
        member = _member(
            "Ana",
            dates=[
                ImportantDate(date(2024, 1, 31), "Last day"),
                ImportantDate(date(2024, 1, 1), "Today"),
                ImportantDate(date(2023, 12, 31), "Yesterday"),
                ImportantDate(date(2024, 2, 1), "Too late"),
            ],
        )

        result = upcoming_dates(member, within_days=30, today=date(2024, 1, 1))

        assert [d.description for d in result] == ["Today", "Last day"]

    def test_sorted_ascending(self):
        member = _member(
            "Ana",
            dates=[
                ImportantDate(date(2024, 1, 20), "Later"),
                ImportantDate(date(2024, 1, 5), "Sooner"),
            ],
        )

        result = upcoming_dates(member, within_days=30, today=date(2024, 1, 1))

        assert [d.description for d in result] == ["Sooner", "Later"]

    def test_zero_window_is_today_only(self):
        member = _member(
            "Ana",
            dates=[
                ImportantDate(date(2024, 1, 1), "Today"),
                ImportantDate(date(2024, 1, 2), "Tomorrow"),
            ],
        )

        result = upcoming_dates(member, within_days=0, today=date(2024, 1, 1))

        assert [d.description for d in result] == ["Today"]

    def test_no_dates(self):
        assert upcoming_dates(_member("Ana"), today=date(2024, 1, 1)) == []

    def test_defaults_to_current_date(self):
        today = date.today()
        member = _member("Ana", dates=[ImportantDate(today, "Now")])

        assert len(upcoming_dates(member)) == 1


class TestUpcomingByMember:
    def test_skips_members_without_upcoming_dates(self):
        busy = _member("Ana", dates=[ImportantDate(date(2024, 1, 10), "Party")])
        idle = _member("Bob", dates=[ImportantDate(date(2024, 6, 10), "Trip")])

        result = upcoming_by_member([busy, idle], within_days=30, today=date(2024, 1, 1))

        assert len(result) == 1
        member, dates = result[0]
        assert member is busy
        assert [d.description for d in dates] == ["Party"]


class TestDatesForCategory:
    def test_filters_in_record_order(self, sample_family_member):
        extra = ImportantDate(date(2025, 4, 2), "Next birthday", DateCategory.BIRTHDAY)
        member = replace(
            sample_family_member,
            important_dates=sample_family_member.important_dates + (extra,),
        )

        result = dates_for_category(member, DateCategory.BIRTHDAY)

        assert [d.description for d in result] == ["Ana's birthday", "Next birthday"]

    @pytest.mark.parametrize("category", [DateCategory.GRADUATION, DateCategory.MEMORIAL])
    def test_no_matches(self, sample_family_member, category):
        assert dates_for_category(sample_family_member, category) == []


class TestDatesOn:
    def test_same_day_only(self, sample_family_member):
        same_day = ImportantDate(date(2024, 4, 2), "Dinner", DateCategory.HOLIDAY)
        next_year = ImportantDate(date(2025, 4, 2), "Next birthday", DateCategory.BIRTHDAY)
        member = replace(
            sample_family_member,
            important_dates=sample_family_member.important_dates + (same_day, next_year),
        )

        result = dates_on(member, date(2024, 4, 2))

        assert [d.description for d in result] == ["Ana's birthday", "Dinner"]

    def test_no_dates(self, sample_family_member):
        assert dates_on(sample_family_member, date(2024, 4, 3)) == []
