import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.timezones import as_utc, local_date_of, resolve_timezone, to_naive_utc, utc_naive_now, utc_now
from app.models.booking import Booking, BookingCreate, BookingReschedule, BookingStatus, BookingStatusUpdate
from app.models.session_type import MeetingType
from app.models.therapist import Therapist
from app.services.slot_service import booking_window, compute_day_slots, load_snapshot
from app.services.therapist_service import find_session_type, find_therapist_by_id

logger = logging.getLogger(__name__)


class BookingFailure(str, Enum):
    THERAPIST_NOT_FOUND = "therapist_not_found"
    SESSION_TYPE_NOT_FOUND = "session_type_not_found"
    INVALID_TIME_RANGE = "invalid_time_range"
    SLOT_UNAVAILABLE = "slot_unavailable"
    CONFLICT = "conflict"
    ALREADY_CANCELLED = "already_cancelled"


@dataclass
class BookingResult:
    booking: Booking | None = None
    failure: BookingFailure | None = None

    @property
    def ok(self) -> bool:
        return self.booking is not None


def generate_booking_reference() -> str:
    return f"{settings.booking_reference_prefix}-{secrets.token_hex(4).upper()}"


async def _is_open_slot(
    session: AsyncSession,
    therapist: Therapist,
    start: datetime,
    end: datetime,
    tz: ZoneInfo,
    now: datetime,
    exclude_booking_id: int | None = None,
) -> bool:
    """True if [start, end) is a free grid slot within the horizon.

    ``exclude_booking_id`` leaves one booking out of the obstructions so a booking
    can be moved or re-confirmed without colliding with itself.
    """
    day = local_date_of(start, tz)
    _, window_end = booking_window(therapist, now)
    if day > local_date_of(window_end, tz):
        logger.warning("Slot rejected: %s on %s is beyond the booking horizon", therapist.slug, day)
        return False

    snapshot = await load_snapshot(session, therapist, day=day)
    if exclude_booking_id is not None:
        snapshot.bookings = [b for b in snapshot.bookings if b.id != exclude_booking_id]
    duration = int((end - start).total_seconds() // 60)
    slots = compute_day_slots(snapshot, day, duration, tz, now)
    if not any(s.available and s.start == start and s.end == end for s in slots):
        logger.warning("Slot rejected: %s at %s is not an open slot", therapist.slug, start.isoformat())
        return False
    return True


async def _save(session: AsyncSession, booking: Booking) -> BookingResult:
    """Flush inside a savepoint; the confirmed-start unique index turns a race into CONFLICT."""
    start = booking.start_datetime.isoformat()
    try:
        async with session.begin_nested():
            session.add(booking)
    except IntegrityError:
        logger.warning("Booking conflict: start %s was taken concurrently", start)
        return BookingResult(failure=BookingFailure.CONFLICT)
    await session.refresh(booking)
    return BookingResult(booking=booking)


async def create_booking(
    session: AsyncSession,
    data: BookingCreate,
    client_id: int | None = None,
    now: datetime | None = None,
) -> BookingResult:
    """Reserve a slot after re-checking it against the engine.

    The therapist row is locked for the rest of the transaction (FOR UPDATE on
    PostgreSQL) so concurrent reservations for one therapist are checked one after
    another; the partial unique index on confirmed (therapist_id, start_datetime)
    backs this up. Raises InvalidTimezone for an unknown ``data.timezone``.
    """
    therapist = await find_therapist_by_id(session, data.therapist_id, lock=True)
    if not therapist:
        return BookingResult(failure=BookingFailure.THERAPIST_NOT_FOUND)
    session_type = await find_session_type(session, data.session_type_id, therapist.id)
    if not session_type:
        return BookingResult(failure=BookingFailure.SESSION_TYPE_NOT_FOUND)

    tz = resolve_timezone(data.timezone)
    start = as_utc(data.start_datetime)
    end = start + timedelta(minutes=session_type.duration)
    if data.end_datetime is not None and as_utc(data.end_datetime) != end:
        return BookingResult(failure=BookingFailure.INVALID_TIME_RANGE)

    if not await _is_open_slot(session, therapist, start, end, tz, now or utc_now()):
        return BookingResult(failure=BookingFailure.SLOT_UNAVAILABLE)

    booking = Booking(
        booking_reference=generate_booking_reference(),
        therapist_id=therapist.id,
        session_type_id=session_type.id,
        client_id=client_id,
        client_name=data.client_name.strip(),
        client_email=str(data.client_email).lower(),
        client_phone=data.client_phone,
        client_notes=data.client_notes,
        start_datetime=to_naive_utc(start),
        end_datetime=to_naive_utc(end),
        timezone=tz.key,
        status=BookingStatus.CONFIRMED.value,
        meeting_type=session_type.meeting_type,
        meeting_location=(
            settings.contact_address or None
            if session_type.meeting_type == MeetingType.IN_PERSON.value
            else None
        ),
    )
    result = await _save(session, booking)
    if result.ok:
        logger.info(
            "Booking %s created for %s at %s (%s)",
            booking.booking_reference,
            therapist.slug,
            start.isoformat(),
            session_type.name,
        )
    return result


async def get_booking_by_reference(session: AsyncSession, reference: str) -> Booking | None:
    result = await session.execute(select(Booking).where(Booking.booking_reference == reference))
    return result.scalar_one_or_none()


async def list_bookings_for_therapist(
    session: AsyncSession,
    therapist_id: int,
    status: BookingStatus | None = None,
    from_date: date | None = None,
) -> list[Booking]:
    q = select(Booking).where(Booking.therapist_id == therapist_id).order_by(Booking.start_datetime)
    if status is not None:
        q = q.where(Booking.status == status.value)
    if from_date:
        start = datetime(from_date.year, from_date.month, from_date.day, 0, 0, 0)
        q = q.where(Booking.start_datetime >= start)
    result = await session.execute(q)
    return list(result.scalars().all())


def _mark_cancelled(booking: Booking, reason: str | None, actor_id: int | None) -> None:
    booking.status = BookingStatus.CANCELLED.value
    booking.cancellation_reason = reason
    booking.cancelled_by = actor_id
    booking.cancelled_at = utc_naive_now()


async def update_booking_status(
    session: AsyncSession,
    booking_id: int,
    therapist_id: int,
    data: BookingStatusUpdate,
    actor_id: int | None = None,
    now: datetime | None = None,
) -> BookingResult:
    """Therapist status change. Re-confirming a booking checks its slot is still free."""
    result = await session.execute(
        select(Booking).where(Booking.id == booking_id, Booking.therapist_id == therapist_id)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        return BookingResult()

    if data.status == BookingStatus.CONFIRMED and booking.status != BookingStatus.CONFIRMED.value:
        therapist = await find_therapist_by_id(session, therapist_id, lock=True)
        if not therapist:
            return BookingResult(failure=BookingFailure.THERAPIST_NOT_FOUND)
        tz = resolve_timezone(booking.timezone)
        start, end = as_utc(booking.start_datetime), as_utc(booking.end_datetime)
        if not await _is_open_slot(session, therapist, start, end, tz, now or utc_now(), booking.id):
            return BookingResult(failure=BookingFailure.SLOT_UNAVAILABLE)

    if data.status == BookingStatus.CANCELLED:
        _mark_cancelled(booking, data.cancellation_reason, actor_id)
    else:
        booking.status = data.status.value
    booking.updated_at = utc_naive_now()
    saved = await _save(session, booking)
    if saved.ok:
        logger.info("Booking %s status -> %s", booking.booking_reference, booking.status)
    return saved


async def reschedule_booking(
    session: AsyncSession,
    booking: Booking,
    data: BookingReschedule,
    now: datetime | None = None,
) -> BookingResult:
    """Move a booking to a new start, keeping its length. Raises InvalidTimezone for an unknown zone."""
    if booking.status == BookingStatus.CANCELLED.value:
        return BookingResult(failure=BookingFailure.ALREADY_CANCELLED)
    therapist = await find_therapist_by_id(session, booking.therapist_id, lock=True)
    if not therapist:
        return BookingResult(failure=BookingFailure.THERAPIST_NOT_FOUND)

    tz = resolve_timezone(data.timezone or booking.timezone)
    start = as_utc(data.start_datetime)
    end = start + (booking.end_datetime - booking.start_datetime)
    if data.end_datetime is not None and as_utc(data.end_datetime) != end:
        return BookingResult(failure=BookingFailure.INVALID_TIME_RANGE)

    if not await _is_open_slot(session, therapist, start, end, tz, now or utc_now(), booking.id):
        return BookingResult(failure=BookingFailure.SLOT_UNAVAILABLE)

    previous = booking.start_datetime
    booking.start_datetime = to_naive_utc(start)
    booking.end_datetime = to_naive_utc(end)
    booking.timezone = tz.key
    booking.updated_at = utc_naive_now()
    result = await _save(session, booking)
    if result.ok:
        logger.info(
            "Booking %s moved from %s to %s", booking.booking_reference, previous.isoformat(), start.isoformat()
        )
    return result


async def cancel_booking(
    session: AsyncSession,
    booking: Booking,
    reason: str | None = None,
    actor_id: int | None = None,
) -> BookingResult:
    if booking.status == BookingStatus.CANCELLED.value:
        return BookingResult(failure=BookingFailure.ALREADY_CANCELLED)
    _mark_cancelled(booking, reason or "No reason provided", actor_id)
    booking.updated_at = utc_naive_now()
    result = await _save(session, booking)
    if result.ok:
        logger.info("Booking %s cancelled", booking.booking_reference)
    return result
