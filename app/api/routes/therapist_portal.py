from datetime import date
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_therapist, get_session, get_timezone
from app.api.routes.bookings import failure_to_http, to_public
from app.models.availability import AvailabilityCreate, AvailabilityPublic, AvailabilityUpdate
from app.models.blocked_date import BlockedDateCreate, BlockedDatePublic
from app.models.booking import THERAPIST_SETTABLE_STATUSES, BookingPublic, BookingStatus, BookingStatusUpdate
from app.models.session_type import SessionTypeCreate, SessionTypePublic, SessionTypeUpdate
from app.models.therapist import Therapist, TherapistSettings, TherapistSettingsUpdate
from app.services.availability_service import (
    create_blocked_date,
    create_rule,
    delete_blocked_date,
    delete_rule,
    find_weekly_rules,
    list_blocked_dates,
    update_rule,
)
from app.services.booking_service import list_bookings_for_therapist, update_booking_status
from app.services.therapist_service import (
    create_session_type,
    deactivate_session_type,
    list_session_types,
    therapist_settings,
    update_session_type,
    update_therapist_settings,
)

router = APIRouter(prefix="/therapist", tags=["therapist"])


# Weekly availability


@router.get("/availability", response_model=list[AvailabilityPublic])
async def list_my_availability(
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> list[AvailabilityPublic]:
    rules = await find_weekly_rules(session, therapist.id, active_only=False)
    return [AvailabilityPublic.model_validate(r, from_attributes=True) for r in rules]


@router.post("/availability", response_model=AvailabilityPublic, status_code=status.HTTP_201_CREATED)
async def add_availability(
    body: AvailabilityCreate,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> AvailabilityPublic:
    rule = await create_rule(session, therapist.id, body)
    return AvailabilityPublic.model_validate(rule, from_attributes=True)


@router.patch("/availability/{rule_id}", response_model=AvailabilityPublic)
async def edit_availability(
    rule_id: int,
    body: AvailabilityUpdate,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> AvailabilityPublic:
    try:
        rule = await update_rule(session, rule_id, therapist.id, body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Availability not found")
    return AvailabilityPublic.model_validate(rule, from_attributes=True)


@router.delete("/availability/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_availability(
    rule_id: int,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> None:
    if not await delete_rule(session, rule_id, therapist.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Availability not found")


# Blocked dates


@router.get("/blocked-dates", response_model=list[BlockedDatePublic])
async def list_my_blocked_dates(
    include_past: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> list[BlockedDatePublic]:
    blocked = await list_blocked_dates(session, therapist.id, upcoming_only=not include_past)
    return [BlockedDatePublic.model_validate(b, from_attributes=True) for b in blocked]


@router.post("/blocked-dates", response_model=BlockedDatePublic, status_code=status.HTTP_201_CREATED)
async def add_blocked_date(
    body: BlockedDateCreate,
    tz: ZoneInfo = Depends(get_timezone),
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> BlockedDatePublic:
    """Block time off. For all-day blocks only the local date of ``start_datetime`` (in ``timezone``) matters."""
    blocked = await create_blocked_date(session, therapist.id, body, tz)
    return BlockedDatePublic.model_validate(blocked, from_attributes=True)


@router.delete("/blocked-dates/{blocked_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_blocked_date(
    blocked_id: int,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> None:
    if not await delete_blocked_date(session, blocked_id, therapist.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blocked date not found")


# Bookings


@router.get("/bookings", response_model=list[BookingPublic])
async def list_my_bookings(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    from_date: date | None = Query(None, alias="from_date"),
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> list[BookingPublic]:
    bookings = await list_bookings_for_therapist(session, therapist.id, status=status_filter, from_date=from_date)
    return [to_public(b) for b in bookings]


@router.patch("/bookings/{booking_id}/status", response_model=BookingPublic)
async def change_booking_status(
    booking_id: int,
    body: BookingStatusUpdate,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> BookingPublic:
    if body.status not in THERAPIST_SETTABLE_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    result = await update_booking_status(session, booking_id, therapist.id, body, actor_id=therapist.user_id)
    if result.failure is not None:
        raise failure_to_http(result.failure)
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return to_public(result.booking)


# Scheduling settings


@router.get("/settings", response_model=TherapistSettings)
async def get_my_settings(therapist: Therapist = Depends(get_current_therapist)) -> TherapistSettings:
    return therapist_settings(therapist)


@router.patch("/settings", response_model=TherapistSettings)
async def update_my_settings(
    body: TherapistSettingsUpdate,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> TherapistSettings:
    therapist = await update_therapist_settings(session, therapist, body)
    return therapist_settings(therapist)


# Session types


@router.get("/session-types", response_model=list[SessionTypePublic])
async def list_my_session_types(
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> list[SessionTypePublic]:
    session_types = await list_session_types(session, therapist.id, active_only=False)
    return [SessionTypePublic.model_validate(st, from_attributes=True) for st in session_types]


@router.post("/session-types", response_model=SessionTypePublic, status_code=status.HTTP_201_CREATED)
async def add_session_type(
    body: SessionTypeCreate,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> SessionTypePublic:
    session_type = await create_session_type(session, therapist.id, body)
    return SessionTypePublic.model_validate(session_type, from_attributes=True)


@router.patch("/session-types/{session_type_id}", response_model=SessionTypePublic)
async def edit_session_type(
    session_type_id: int,
    body: SessionTypeUpdate,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> SessionTypePublic:
    session_type = await update_session_type(session, session_type_id, therapist.id, body)
    if not session_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session type not found")
    return SessionTypePublic.model_validate(session_type, from_attributes=True)


@router.delete("/session-types/{session_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_session_type(
    session_type_id: int,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist = Depends(get_current_therapist),
) -> None:
    if not await deactivate_session_type(session, session_type_id, therapist.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session type not found")
