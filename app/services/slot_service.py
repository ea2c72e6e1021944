import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.timezones import (
    as_utc,
    format_clock,
    local_date_of,
    local_to_utc,
    resolve_timezone,
    utc_now,
)
from app.models.availability import TherapistAvailability
from app.models.blocked_date import BlockedDate
from app.models.booking import Booking
from app.models.therapist import Therapist, TherapistSummary
from app.services.availability_service import (
    find_blocked_intervals,
    find_confirmed_bookings,
    find_weekly_rules,
)
from app.services.therapist_service import find_therapist_by_slug, therapist_summary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeSlot:
    start: datetime  # UTC instant
    end: datetime
    start_formatted: str  # local wall clock, e.g. "9:00 AM"
    end_formatted: str
    available: bool


@dataclass(frozen=True)
class Obstruction:
    """A UTC range no slot may collide with."""

    start: datetime
    end: datetime


@dataclass
class ScheduleSnapshot:
    """Everything the engine reads for one therapist, loaded once per query."""

    therapist: Therapist
    rules: Sequence[TherapistAvailability] = field(default_factory=list)
    blocked: Sequence[BlockedDate] = field(default_factory=list)
    bookings: Sequence[Booking] = field(default_factory=list)


@dataclass
class AvailableDatesResult:
    dates: list[str]
    therapist: TherapistSummary


@dataclass
class AvailableSlotsResult:
    date: str
    slots: list[TimeSlot]
    therapist: TherapistSummary


def slot_step() -> timedelta:
    return timedelta(minutes=settings.slot_interval_minutes)


def booking_window(therapist: Therapist, now: datetime) -> tuple[datetime, datetime]:
    """(earliest slot start, furthest bookable instant) for ``now``."""
    window_start = now + timedelta(hours=therapist.min_booking_notice)
    window_end = now + timedelta(days=therapist.advance_booking_days)
    return window_start, window_end


def overlaps(slot_start: datetime, slot_end: datetime, obs_start: datetime, obs_end: datetime) -> bool:
    """Collision test shared by blocked intervals and bookings.

    A slot conflicts when its start lies in [obs_start, obs_end) or its end lies in
    (obs_start, obs_end]. Back-to-back on either side is free. A slot that strictly
    contains the obstruction matches neither clause and is not a conflict.
    """
    if obs_start <= slot_start < obs_end:
        return True
    return obs_start < slot_end <= obs_end


def rules_for_day(rules: Sequence[TherapistAvailability], day: date) -> list[TherapistAvailability]:
    weekday = day_of_week(day)
    return [r for r in rules if r.is_active and r.day_of_week == weekday]


def day_of_week(day: date) -> int:
    # date.weekday() has Monday=0; stored rules use Sunday=0
    return (day.weekday() + 1) % 7


def is_all_day_blocked(blocked: Sequence[BlockedDate], day: date, tz: ZoneInfo) -> bool:
    return any(b.is_all_day and local_date_of(as_utc(b.start_datetime), tz) == day for b in blocked)


def partial_block_ranges(blocked: Sequence[BlockedDate]) -> list[Obstruction]:
    return [
        Obstruction(as_utc(b.start_datetime), as_utc(b.end_datetime))
        for b in blocked
        if not b.is_all_day
    ]


def booking_ranges(bookings: Sequence[Booking], buffer_minutes: int) -> list[Obstruction]:
    """Confirmed bookings dilated by the therapist's buffer on both sides."""
    pad = timedelta(minutes=buffer_minutes)
    return [
        Obstruction(as_utc(b.start_datetime) - pad, as_utc(b.end_datetime) + pad)
        for b in bookings
    ]


def iter_rule_positions(
    rule: TherapistAvailability, day: date, duration_minutes: int
) -> Iterator[tuple[datetime, datetime]]:
    """Local (start, end) pairs on the slot grid that fit inside the rule's window."""
    duration = timedelta(minutes=duration_minutes)
    step = slot_step()
    window_end = datetime.combine(day, rule.end_time)
    current = datetime.combine(day, rule.start_time)
    while current + duration <= window_end:
        yield current, current + duration
        current += step


def _is_free(
    start_utc: datetime,
    end_utc: datetime,
    window_start: datetime,
    obstructions: Sequence[Obstruction],
) -> bool:
    if not start_utc > window_start:
        return False
    return not any(overlaps(start_utc, end_utc, o.start, o.end) for o in obstructions)


def has_available_slot(
    day: date,
    day_rules: Sequence[TherapistAvailability],
    obstructions: Sequence[Obstruction],
    duration_minutes: int,
    window_start: datetime,
    tz: ZoneInfo,
) -> bool:
    """True on the first free position; rules are probed one by one, never merged."""
    for rule in day_rules:
        for local_start, local_end in iter_rule_positions(rule, day, duration_minutes):
            if _is_free(local_to_utc(local_start, tz), local_to_utc(local_end, tz), window_start, obstructions):
                return True
    return False


def compute_available_dates(
    snapshot: ScheduleSnapshot, duration_minutes: int, tz: ZoneInfo, now: datetime
) -> list[str]:
    therapist = snapshot.therapist
    window_start, window_end = booking_window(therapist, now)
    if window_start >= window_end:
        return []

    obstructions = partial_block_ranges(snapshot.blocked) + booking_ranges(
        snapshot.bookings, therapist.buffer_time
    )
    current = local_date_of(window_start, tz)
    last = local_date_of(window_end, tz)
    dates: list[str] = []
    while current <= last:
        day_rules = rules_for_day(snapshot.rules, current)
        if (
            day_rules
            and not is_all_day_blocked(snapshot.blocked, current, tz)
            and has_available_slot(current, day_rules, obstructions, duration_minutes, window_start, tz)
        ):
            dates.append(current.isoformat())
        current += timedelta(days=1)
    return dates


def compute_day_slots(
    snapshot: ScheduleSnapshot, day: date, duration_minutes: int, tz: ZoneInfo, now: datetime
) -> list[TimeSlot]:
    """Every grid position of the day with its availability, sorted by UTC start."""
    therapist = snapshot.therapist
    day_rules = rules_for_day(snapshot.rules, day)
    if not day_rules:
        return []

    window_start, _ = booking_window(therapist, now)
    day_blocked = is_all_day_blocked(snapshot.blocked, day, tz)
    day_bookings = [b for b in snapshot.bookings if local_date_of(as_utc(b.start_datetime), tz) == day]
    obstructions = partial_block_ranges(snapshot.blocked) + booking_ranges(day_bookings, therapist.buffer_time)

    slots: list[TimeSlot] = []
    for rule in day_rules:
        for local_start, local_end in iter_rule_positions(rule, day, duration_minutes):
            start_utc = local_to_utc(local_start, tz)
            end_utc = local_to_utc(local_end, tz)
            available = not day_blocked and _is_free(start_utc, end_utc, window_start, obstructions)
            slots.append(
                TimeSlot(
                    start=start_utc,
                    end=end_utc,
                    start_formatted=format_clock(local_start),
                    end_formatted=format_clock(local_end),
                    available=available,
                )
            )
    slots.sort(key=lambda s: s.start)
    return slots


async def load_snapshot(
    session: AsyncSession, therapist: Therapist, day: date | None = None
) -> ScheduleSnapshot:
    """Read the three schedule collections. With ``day`` only that weekday's rules are fetched."""
    rules = await find_weekly_rules(
        session, therapist.id, day_of_week=day_of_week(day) if day is not None else None
    )
    blocked = await find_blocked_intervals(session, therapist.id)
    bookings = await find_confirmed_bookings(session, therapist.id)
    return ScheduleSnapshot(therapist=therapist, rules=rules, blocked=blocked, bookings=bookings)


async def get_available_dates(
    session: AsyncSession,
    therapist_slug: str,
    duration_minutes: int,
    timezone: str | None = None,
    now: datetime | None = None,
) -> AvailableDatesResult | None:
    """Dates within the booking horizon with at least one free slot. None if the therapist is not bookable."""
    therapist = await find_therapist_by_slug(session, therapist_slug)
    if therapist is None:
        return None
    tz = resolve_timezone(timezone)
    snapshot = await load_snapshot(session, therapist)
    dates = compute_available_dates(snapshot, duration_minutes, tz, now or utc_now())
    logger.debug(
        "Available dates for %s (%d min, %s): %d date(s)", therapist.slug, duration_minutes, tz.key, len(dates)
    )
    return AvailableDatesResult(dates=dates, therapist=therapist_summary(therapist))


async def get_available_slots(
    session: AsyncSession,
    therapist_slug: str,
    day: date,
    duration_minutes: int,
    timezone: str | None = None,
    now: datetime | None = None,
) -> AvailableSlotsResult | None:
    """Full slot grid for one local date, free and taken. None if the therapist is not bookable."""
    therapist = await find_therapist_by_slug(session, therapist_slug)
    if therapist is None:
        return None
    tz = resolve_timezone(timezone)
    snapshot = await load_snapshot(session, therapist, day=day)
    slots = compute_day_slots(snapshot, day, duration_minutes, tz, now or utc_now())
    logger.debug(
        "Slots for %s on %s (%d min, %s): %d total, %d available",
        therapist.slug,
        day.isoformat(),
        duration_minutes,
        tz.key,
        len(slots),
        sum(1 for s in slots if s.available),
    )
    return AvailableSlotsResult(date=day.isoformat(), slots=slots, therapist=therapist_summary(therapist))
