"""
Derived views over family member collections.

Pure functions with no side effects:
- Search and sort for list screens
- Upcoming important dates within a day window
- Important dates by category
"""

from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Optional, Sequence

from src.models.family import DateCategory, FamilyMember, ImportantDate

DEFAULT_WINDOW_DAYS = 30


class SortOption(str, Enum):
    """
    Sort orders for family member lists.

    - NAME: name ascending, case-insensitive
    - RELATIONSHIP: relationship ascending, case-insensitive
    - AGE: date of birth descending (youngest first)
    """

    NAME = "name"
    RELATIONSHIP = "relationship"
    AGE = "age"


def matches_search(member: FamilyMember, search_text: str) -> bool:
    """Case-insensitive substring match on name or relationship."""
    needle = search_text.casefold()
    return needle in member.name.casefold() or needle in member.relationship.casefold()


def derived_view(
    members: Iterable[FamilyMember],
    search_text: str = "",
    sort_option: SortOption = SortOption.NAME,
) -> list[FamilyMember]:
    """
    Filter and sort a collection for display.

    Sorting is stable: members with equal keys keep their input order.

    Args:
        members: Collection to view
        search_text: Filter text; empty means no filtering
        sort_option: Sort order

    Returns:
        New list; the input is not modified
    """
    if search_text:
        selected = [m for m in members if matches_search(m, search_text)]
    else:
        selected = list(members)

    sort_option = SortOption(sort_option)
    if sort_option == SortOption.NAME:
        return sorted(selected, key=lambda m: m.name.casefold())
    if sort_option == SortOption.RELATIONSHIP:
        return sorted(selected, key=lambda m: m.relationship.casefold())
    return sorted(selected, key=lambda m: m.date_of_birth, reverse=True)


def upcoming_dates(
    member: FamilyMember,
    within_days: int = DEFAULT_WINDOW_DAYS,
    today: Optional[date] = None,
) -> list[ImportantDate]:
    """
    Important dates falling in [today, today + within_days], soonest first.

    Args:
        member: Record to inspect
        within_days: Window length in days (inclusive)
        today: Reference day; the current date when omitted

    Returns:
        Matching dates sorted ascending
    """
    start = today if today is not None else date.today()
    end = start + timedelta(days=within_days)
    return sorted(
        (d for d in member.important_dates if start <= d.date <= end),
        key=lambda d: d.date,
    )


def upcoming_by_member(
    members: Iterable[FamilyMember],
    within_days: int = DEFAULT_WINDOW_DAYS,
    today: Optional[date] = None,
) -> list[tuple[FamilyMember, list[ImportantDate]]]:
    """
    Upcoming dates grouped by member, skipping members with none.

    Returns:
        (member, dates) pairs in collection order
    """
    today = today if today is not None else date.today()
    grouped = []
    for member in members:
        dates = upcoming_dates(member, within_days=within_days, today=today)
        if dates:
            grouped.append((member, dates))
    return grouped


def dates_for_category(
    member: FamilyMember,
    category: DateCategory,
) -> Sequence[ImportantDate]:
    """Important dates of one category, in record order."""
    return [d for d in member.important_dates if d.category == category]


def dates_on(member: FamilyMember, day: date) -> Sequence[ImportantDate]:
    """Important dates falling on exactly `day`, in record order."""
    return [d for d in member.important_dates if d.date == day]
