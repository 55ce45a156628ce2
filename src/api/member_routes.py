"""
Family member API routes.

Every route acts on the caller's RecordSynchronizer. Records addressed by
id are taken from the caller's local collection, refreshed from the
record store when the id is not cached yet.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import get_auth_context, get_synchronizer
from src.api.models import (
    DeleteMemberResponse,
    FamilyMemberListResponse,
    FamilyMemberRequest,
    FamilyMemberResponse,
    ImportantDateModel,
    ImportantDateResponse,
    RemoveImportantDateRequest,
    UpcomingDatesListResponse,
    UpcomingDatesResponse,
)
from src.config import get_settings
from src.integrations.base import AuthContext
from src.models.family import FamilyMember, ImportantDate
from src.services.exceptions import PayloadTooLarge, RecordNotFound
from src.services.queries import SortOption, derived_view, upcoming_by_member, upcoming_dates
from src.services.synchronizer import RecordSynchronizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Family Members"])


async def resolve_member(
    sync: RecordSynchronizer,
    auth: AuthContext,
    member_id: str,
) -> FamilyMember:
    """
    Find a member in the caller's collection, fetching once on a miss.

    Raises:
        RecordNotFound: Not owned by / visible to the caller
    """
    member = sync.get_local(member_id)
    if member is None:
        await sync.fetch_all(auth)
        member = sync.get_local(member_id)
    if member is None:
        raise RecordNotFound(f"Family member {member_id} not found")
    return member


def _window(within_days: Optional[int]) -> int:
    return within_days if within_days is not None else get_settings().upcoming_window_days


async def read_limited_body(request: Request, max_bytes: int) -> bytes:
    """
    Read the request body, refusing more than `max_bytes`.

    A declared Content-Length over the limit is rejected before anything is
    read; otherwise reading stops at the first chunk past the limit.

    Raises:
        PayloadTooLarge: Body exceeds the limit
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLarge(int(declared), max_bytes)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise PayloadTooLarge(len(body), max_bytes)
    return bytes(body)


@router.get("/members", response_model=FamilyMemberListResponse)
async def list_members(
    search: str = Query(default="", max_length=200, description="Filter on name or relationship"),
    sort: SortOption = Query(default=SortOption.NAME, description="name, relationship or age"),
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> FamilyMemberListResponse:
    """Fetch the caller's family members, filtered and sorted."""
    members = await sync.fetch_all(auth)
    view = derived_view(members, search, sort)
    return FamilyMemberListResponse(
        members=[FamilyMemberResponse.from_domain(m) for m in view],
        total=len(view),
    )


@router.post("/members", response_model=FamilyMemberResponse, status_code=201)
async def create_member(
    request: FamilyMemberRequest,
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> FamilyMemberResponse:
    """Add a family member owned by the caller."""
    member = await sync.create(auth, request.to_draft())
    return FamilyMemberResponse.from_domain(member)


@router.get("/members/{member_id}", response_model=FamilyMemberResponse)
async def get_member(
    member_id: str,
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> FamilyMemberResponse:
    member = await resolve_member(sync, auth, member_id)
    return FamilyMemberResponse.from_domain(member)


@router.put("/members/{member_id}", response_model=FamilyMemberResponse)
async def update_member(
    member_id: str,
    request: FamilyMemberRequest,
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> FamilyMemberResponse:
    """
    Replace the editable fields of a family member.

    The birth chart is kept; use the birth-chart endpoint to change it.
    """
    current = await resolve_member(sync, auth, member_id)
    edited = request.to_draft().with_birth_chart(current.birth_chart)
    member = await sync.update(auth, edited.merged_onto(current))
    return FamilyMemberResponse.from_domain(member)


@router.delete("/members/{member_id}", response_model=DeleteMemberResponse)
async def delete_member(
    member_id: str,
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> DeleteMemberResponse:
    member = await resolve_member(sync, auth, member_id)
    await sync.delete(auth, member)
    return DeleteMemberResponse(
        success=True,
        member_id=member_id,
        message=f"Deleted '{member.name}'",
    )


@router.put("/members/{member_id}/birth-chart", response_model=FamilyMemberResponse)
async def put_birth_chart(
    member_id: str,
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> FamilyMemberResponse:
    """
    Upload a birth chart image (raw JPEG request body).

    An existing chart is cleared first, then the new one uploaded.
    Timeouts answer 504 and may be retried.
    """
    data = await read_limited_body(request, sync.max_asset_bytes)
    member = await resolve_member(sync, auth, member_id)
    updated = await sync.replace_asset(auth, member, data)
    return FamilyMemberResponse.from_domain(updated)


@router.post(
    "/members/{member_id}/important-dates",
    response_model=FamilyMemberResponse,
    status_code=201,
)
async def add_important_date(
    member_id: str,
    request: ImportantDateModel,
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> FamilyMemberResponse:
    member = await resolve_member(sync, auth, member_id)
    updated = await sync.add_important_date(auth, member, request.to_domain())
    return FamilyMemberResponse.from_domain(updated)


@router.delete("/members/{member_id}/important-dates", response_model=FamilyMemberResponse)
async def remove_important_date(
    member_id: str,
    request: RemoveImportantDateRequest,
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> FamilyMemberResponse:
    """Remove every important date with this date and description."""
    member = await resolve_member(sync, auth, member_id)
    target = ImportantDate(date=request.date, description=request.description)
    updated = await sync.remove_important_date(auth, member, target)
    return FamilyMemberResponse.from_domain(updated)


@router.get("/members/{member_id}/upcoming-dates", response_model=UpcomingDatesResponse)
async def member_upcoming_dates(
    member_id: str,
    within_days: Optional[int] = Query(default=None, ge=0, le=366),
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> UpcomingDatesResponse:
    member = await resolve_member(sync, auth, member_id)
    dates = upcoming_dates(member, within_days=_window(within_days))
    return UpcomingDatesResponse(
        member_id=member_id,
        name=member.name,
        dates=[ImportantDateResponse.from_domain(d) for d in dates],
    )


@router.get("/upcoming-dates", response_model=UpcomingDatesListResponse)
async def all_upcoming_dates(
    within_days: Optional[int] = Query(default=None, ge=0, le=366),
    auth: AuthContext = Depends(get_auth_context),
    sync: RecordSynchronizer = Depends(get_synchronizer),
) -> UpcomingDatesListResponse:
    """Upcoming important dates across all of the caller's family members."""
    window = _window(within_days)
    members = await sync.fetch_all(auth)
    return UpcomingDatesListResponse(
        within_days=window,
        members=[
            UpcomingDatesResponse(
                member_id=member.id or "",
                name=member.name,
                dates=[ImportantDateResponse.from_domain(d) for d in dates],
            )
            for member, dates in upcoming_by_member(members, within_days=window)
        ],
    )
