from datetime import date
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, get_timezone
from app.api.schemas.slots import AvailableDatesResponse, AvailableSlotsResponse, SlotInfo
from app.core.config import settings
from app.models.session_type import SessionTypePublic
from app.models.therapist import TherapistPublic
from app.services.slot_service import get_available_dates, get_available_slots
from app.services.therapist_service import (
    find_therapist_by_slug,
    list_active_therapists,
    list_session_types,
    therapist_to_public,
)

router = APIRouter(prefix="/therapists", tags=["therapists"])

_NOT_FOUND = "Therapist not found"


def _duration_query():
    return Query(
        settings.default_session_duration,
        gt=0,
        le=settings.max_session_duration_minutes,
        description="Session length in minutes",
    )


@router.get("", response_model=list[TherapistPublic])
async def list_therapists(session: AsyncSession = Depends(get_session)) -> list[TherapistPublic]:
    therapists = await list_active_therapists(session)
    return [therapist_to_public(t) for t in therapists]


@router.get("/{slug}", response_model=TherapistPublic)
async def get_therapist(slug: str, session: AsyncSession = Depends(get_session)) -> TherapistPublic:
    therapist = await find_therapist_by_slug(session, slug)
    if not therapist:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return therapist_to_public(therapist)


@router.get("/{slug}/session-types", response_model=list[SessionTypePublic])
async def therapist_session_types(
    slug: str, session: AsyncSession = Depends(get_session)
) -> list[SessionTypePublic]:
    therapist = await find_therapist_by_slug(session, slug)
    if not therapist:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    session_types = await list_session_types(session, therapist.id)
    return [SessionTypePublic.model_validate(st, from_attributes=True) for st in session_types]


@router.get("/{slug}/availability", response_model=AvailableDatesResponse)
async def available_dates(
    slug: str,
    duration: int = _duration_query(),
    tz: ZoneInfo = Depends(get_timezone),
    session: AsyncSession = Depends(get_session),
) -> AvailableDatesResponse:
    """Dates (in ``timezone``) that have at least one open slot of ``duration`` minutes."""
    result = await get_available_dates(session, slug, duration, timezone=tz.key)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return AvailableDatesResponse(dates=result.dates, therapist=result.therapist)


@router.get("/{slug}/slots", response_model=AvailableSlotsResponse)
async def available_slots(
    slug: str,
    date_param: date = Query(..., alias="date"),
    duration: int = _duration_query(),
    tz: ZoneInfo = Depends(get_timezone),
    session: AsyncSession = Depends(get_session),
) -> AvailableSlotsResponse:
    """Return every slot for the given local date, free and taken, so the UI can draw the whole day."""
    result = await get_available_slots(session, slug, date_param, duration, timezone=tz.key)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    slot_infos = [
        SlotInfo(
            start=s.start,
            end=s.end,
            start_formatted=s.start_formatted,
            end_formatted=s.end_formatted,
            available=s.available,
        )
        for s in result.slots
    ]
    return AvailableSlotsResponse(date=result.date, slots=slot_infos, therapist=result.therapist)
