"""
Pydantic request and response models for the Family Feed API.
"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from src.integrations.base import AuthSession, UserProfile
from src.models.family import DateCategory, FamilyMember, ImportantDate


# =============================================================================
# Shared Models
# =============================================================================


class ImportantDateModel(BaseModel):
    """Important date as sent by a client."""

    date: dt.date = Field(..., description="Calendar date (YYYY-MM-DD)")
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        examples=["Mom's birthday"],
    )
    category: DateCategory = Field(default=DateCategory.OTHER)
    reminder: bool = Field(default=False, description="Whether a reminder is wanted")

    @field_validator("description")
    @classmethod
    def validate_description_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description cannot be empty")
        return v.strip()

    def to_domain(self) -> ImportantDate:
        return ImportantDate(
            date=self.date,
            description=self.description,
            category=self.category,
            reminder=self.reminder,
        )


class ImportantDateResponse(BaseModel):
    """
    Important date as stored.

    No normalization: the description is returned exactly as stored so a
    client can send it back to identify the entry.
    """

    date: dt.date
    description: str
    category: DateCategory = DateCategory.OTHER
    reminder: bool = False

    @classmethod
    def from_domain(cls, important_date: ImportantDate) -> "ImportantDateResponse":
        return cls(
            date=important_date.date,
            description=important_date.description,
            category=important_date.category,
            reminder=important_date.reminder,
        )


# =============================================================================
# Request Models
# =============================================================================


class FamilyMemberRequest(BaseModel):
    """Editable fields of a family member (create and full update)."""

    name: str = Field(..., min_length=1, max_length=200, examples=["Ana Lopez"])
    relationship: str = Field(..., min_length=1, max_length=100, examples=["Sister"])
    date_of_birth: dt.date = Field(..., description="Date of birth (YYYY-MM-DD)")
    birth_place: str = Field(default="", max_length=255)
    important_dates: list[ImportantDateModel] = Field(default_factory=list)

    @field_validator("name", "relationship")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    def to_draft(self) -> FamilyMember:
        return FamilyMember(
            name=self.name,
            relationship=self.relationship,
            date_of_birth=self.date_of_birth,
            birth_place=self.birth_place,
            important_dates=tuple(d.to_domain() for d in self.important_dates),
        )


class RemoveImportantDateRequest(BaseModel):
    """Identifies important dates to remove (by date and description)."""

    date: dt.date
    description: str = Field(..., max_length=500)


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=150)
    password: str = Field(..., min_length=8, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    full_name: Optional[str] = Field(None, max_length=200)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1, max_length=200)


# =============================================================================
# Response Models
# =============================================================================


class FamilyMemberResponse(BaseModel):
    """Family member as returned by the API."""

    id: str
    name: str
    relationship: str
    date_of_birth: dt.date
    birth_place: str = ""
    birth_chart: Optional[str] = Field(None, description="Birth chart image URL")
    owner_id: Optional[str] = None
    important_dates: list[ImportantDateResponse] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @classmethod
    def from_domain(cls, member: FamilyMember) -> "FamilyMemberResponse":
        return cls(
            id=member.id or "",
            name=member.name,
            relationship=member.relationship,
            date_of_birth=member.date_of_birth,
            birth_place=member.birth_place,
            birth_chart=member.birth_chart,
            owner_id=member.owner_id,
            important_dates=[ImportantDateResponse.from_domain(d) for d in member.important_dates],
            created_at=member.created_at,
            updated_at=member.updated_at,
        )


class FamilyMemberListResponse(BaseModel):
    members: list[FamilyMemberResponse]
    total: int


class UpcomingDatesResponse(BaseModel):
    """Upcoming important dates of one family member."""

    member_id: str
    name: str
    dates: list[ImportantDateResponse]


class UpcomingDatesListResponse(BaseModel):
    within_days: int
    members: list[UpcomingDatesResponse]


class UserResponse(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None

    @classmethod
    def from_domain(cls, user: UserProfile) -> "UserResponse":
        return cls(id=user.id, username=user.username, email=user.email, full_name=user.full_name)


class SessionResponse(BaseModel):
    """Response after login or signup."""

    user: UserResponse
    session_token: str

    @classmethod
    def from_domain(cls, session: AuthSession) -> "SessionResponse":
        return cls(user=UserResponse.from_domain(session.user), session_token=session.session_token)


class DeleteMemberResponse(BaseModel):
    success: bool
    member_id: str
    message: str


class DeleteAccountResponse(BaseModel):
    success: bool
    deleted_members: int
    message: str


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    version: str
    provider: str


class ErrorResponse(BaseModel):
    """Error envelope returned for every failure."""

    error_type: str = Field(..., description="Machine-readable error kind")
    message: str = Field(..., description="Human-readable message")
    retryable: bool = Field(default=False, description="Whether retrying may succeed")
