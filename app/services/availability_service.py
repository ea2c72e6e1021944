from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timezones import as_utc, local_date_of, local_to_utc, to_naive_utc, utc_naive_now
from app.models.availability import AvailabilityCreate, AvailabilityUpdate, TherapistAvailability
from app.models.blocked_date import BlockedDate, BlockedDateCreate
from app.models.booking import Booking, BookingStatus


async def find_weekly_rules(
    session: AsyncSession,
    therapist_id: int,
    day_of_week: int | None = None,
    active_only: bool = True,
) -> list[TherapistAvailability]:
    q = select(TherapistAvailability).where(TherapistAvailability.therapist_id == therapist_id)
    if day_of_week is not None:
        q = q.where(TherapistAvailability.day_of_week == day_of_week)
    if active_only:
        q = q.where(TherapistAvailability.is_active == True)  # noqa: E712
    q = q.order_by(TherapistAvailability.day_of_week, TherapistAvailability.start_time)
    result = await session.execute(q)
    return list(result.scalars().all())


async def find_blocked_intervals(session: AsyncSession, therapist_id: int) -> list[BlockedDate]:
    result = await session.execute(
        select(BlockedDate)
        .where(BlockedDate.therapist_id == therapist_id)
        .order_by(BlockedDate.start_datetime)
    )
    return list(result.scalars().all())


async def find_confirmed_bookings(session: AsyncSession, therapist_id: int) -> list[Booking]:
    result = await session.execute(
        select(Booking)
        .where(
            Booking.therapist_id == therapist_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        .order_by(Booking.start_datetime)
    )
    return list(result.scalars().all())


async def create_rule(
    session: AsyncSession, therapist_id: int, data: AvailabilityCreate
) -> TherapistAvailability:
    rule = TherapistAvailability(
        therapist_id=therapist_id,
        day_of_week=data.day_of_week,
        start_time=data.start_time,
        end_time=data.end_time,
        is_active=data.is_active,
    )
    session.add(rule)
    await session.flush()
    await session.refresh(rule)
    return rule


async def _get_rule(session: AsyncSession, rule_id: int, therapist_id: int) -> TherapistAvailability | None:
    result = await session.execute(
        select(TherapistAvailability).where(
            TherapistAvailability.id == rule_id,
            TherapistAvailability.therapist_id == therapist_id,
        )
    )
    return result.scalar_one_or_none()


async def update_rule(
    session: AsyncSession, rule_id: int, therapist_id: int, data: AvailabilityUpdate
) -> TherapistAvailability | None:
    """Apply a partial update. Raises ValueError if the resulting window is empty."""
    rule = await _get_rule(session, rule_id, therapist_id)
    if not rule:
        return None
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    start_time = changes.get("start_time", rule.start_time)
    end_time = changes.get("end_time", rule.end_time)
    if start_time >= end_time:
        raise ValueError("start_time must be before end_time")
    for key, value in changes.items():
        setattr(rule, key, value)
    rule.updated_at = utc_naive_now()
    session.add(rule)
    await session.flush()
    await session.refresh(rule)
    return rule


async def delete_rule(session: AsyncSession, rule_id: int, therapist_id: int) -> bool:
    rule = await _get_rule(session, rule_id, therapist_id)
    if not rule:
        return False
    await session.delete(rule)
    await session.flush()
    return True


def all_day_bounds(start: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants of local midnight..midnight for the local date ``start`` falls on."""
    day = local_date_of(as_utc(start), tz)
    midnight = datetime.combine(day, datetime.min.time())
    return local_to_utc(midnight, tz), local_to_utc(midnight + timedelta(days=1), tz)


async def list_blocked_dates(
    session: AsyncSession, therapist_id: int, upcoming_only: bool = True
) -> list[BlockedDate]:
    q = select(BlockedDate).where(BlockedDate.therapist_id == therapist_id)
    if upcoming_only:
        q = q.where(BlockedDate.end_datetime >= utc_naive_now())
    result = await session.execute(q.order_by(BlockedDate.start_datetime))
    return list(result.scalars().all())


async def create_blocked_date(
    session: AsyncSession, therapist_id: int, data: BlockedDateCreate, tz: ZoneInfo
) -> BlockedDate:
    """Naive datetimes in the request are taken as UTC. All-day blocks cover the whole local day."""
    if data.is_all_day:
        start, end = all_day_bounds(data.start_datetime, tz)
    else:
        start, end = as_utc(data.start_datetime), as_utc(data.end_datetime)
    blocked = BlockedDate(
        therapist_id=therapist_id,
        start_datetime=to_naive_utc(start),
        end_datetime=to_naive_utc(end),
        reason=data.reason,
        is_all_day=data.is_all_day,
    )
    session.add(blocked)
    await session.flush()
    await session.refresh(blocked)
    return blocked


async def delete_blocked_date(session: AsyncSession, blocked_id: int, therapist_id: int) -> bool:
    result = await session.execute(
        select(BlockedDate).where(
            BlockedDate.id == blocked_id,
            BlockedDate.therapist_id == therapist_id,
        )
    )
    blocked = result.scalar_one_or_none()
    if not blocked:
        return False
    await session.delete(blocked)
    await session.flush()
    return True
