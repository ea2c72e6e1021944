from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_therapist, get_session
from app.core.timezones import InvalidTimezone
from app.models.booking import Booking, BookingCancel, BookingCreate, BookingPublic, BookingReschedule
from app.models.therapist import Therapist
from app.services.booking_service import (
    BookingFailure,
    cancel_booking,
    create_booking,
    get_booking_by_reference,
    reschedule_booking,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])

_FAILURE_RESPONSES: dict[BookingFailure, tuple[int, str]] = {
    BookingFailure.THERAPIST_NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Therapist not found"),
    BookingFailure.SESSION_TYPE_NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Session type not found"),
    BookingFailure.INVALID_TIME_RANGE: (
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "end_datetime does not match the session type's duration",
    ),
    BookingFailure.SLOT_UNAVAILABLE: (status.HTTP_409_CONFLICT, "This time slot is no longer available"),
    BookingFailure.CONFLICT: (status.HTTP_409_CONFLICT, "This time slot was just booked by someone else"),
    BookingFailure.ALREADY_CANCELLED: (status.HTTP_400_BAD_REQUEST, "Booking is already cancelled"),
}


def failure_to_http(failure: BookingFailure) -> HTTPException:
    code, detail = _FAILURE_RESPONSES[failure]
    return HTTPException(status_code=code, detail=detail)


def to_public(b: Booking) -> BookingPublic:
    return BookingPublic.model_validate(b, from_attributes=True)


async def _owned_booking(
    session: AsyncSession, reference: str, email: str | None, therapist: Therapist | None
) -> Booking:
    """Booking visible to its own therapist, or to a client who knows the booking email."""
    if therapist is None and not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required or provide the booking email",
        )
    booking = await get_booking_by_reference(session, reference)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if therapist is not None and therapist.id == booking.therapist_id:
        return booking
    if not email or str(email).strip().lower() != booking.client_email.lower():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Email does not match booking")
    return booking


@router.post("", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def book_session(
    body: BookingCreate,
    session: AsyncSession = Depends(get_session),
) -> BookingPublic:
    try:
        result = await create_booking(session, body)
    except InvalidTimezone as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    if not result.ok:
        raise failure_to_http(result.failure)
    return to_public(result.booking)


@router.get("/{reference}", response_model=BookingPublic)
async def get_booking(
    reference: str,
    email: str | None = Query(None, description="Client email the booking was made with"),
    session: AsyncSession = Depends(get_session),
    therapist: Therapist | None = Depends(get_optional_therapist),
) -> BookingPublic:
    booking = await _owned_booking(session, reference, email, therapist)
    return to_public(booking)


@router.patch("/{reference}", response_model=BookingPublic)
async def reschedule(
    reference: str,
    body: BookingReschedule,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist | None = Depends(get_optional_therapist),
) -> BookingPublic:
    booking = await _owned_booking(session, reference, body.booking_email, therapist)
    try:
        result = await reschedule_booking(session, booking, body)
    except InvalidTimezone as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    if result.failure == BookingFailure.ALREADY_CANCELLED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot reschedule a cancelled booking")
    if not result.ok:
        raise failure_to_http(result.failure)
    return to_public(result.booking)


@router.delete("/{reference}", response_model=BookingPublic)
async def cancel(
    reference: str,
    body: BookingCancel | None = None,
    session: AsyncSession = Depends(get_session),
    therapist: Therapist | None = Depends(get_optional_therapist),
) -> BookingPublic:
    body = body or BookingCancel()
    booking = await _owned_booking(session, reference, body.booking_email, therapist)
    result = await cancel_booking(
        session, booking, body.reason, actor_id=therapist.user_id if therapist else None
    )
    if not result.ok:
        raise failure_to_http(result.failure)
    return to_public(result.booking)
