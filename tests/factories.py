from datetime import UTC, datetime, time

from app.models.availability import TherapistAvailability
from app.models.blocked_date import BlockedDate
from app.models.booking import Booking, BookingStatus
from app.models.therapist import Therapist

# 2026-10-18 is a Sunday, 2026-10-19 a Monday
SUNDAY_NOON = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
MONDAY = datetime(2026, 10, 19).date()


def make_therapist(**overrides) -> Therapist:
    values = dict(
        id=1,
        user_id=42,
        slug="dr-ada",
        name="Dr. Ada Lovelace",
        email="ada@example.com",
        default_session_duration=60,
        buffer_time=0,
        advance_booking_days=7,
        min_booking_notice=0,
        is_active=True,
    )
    values.update(overrides)
    return Therapist(**values)


def make_rule(
    day_of_week: int, start: time, end: time, therapist_id: int = 1, is_active: bool = True
) -> TherapistAvailability:
    return TherapistAvailability(
        therapist_id=therapist_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        is_active=is_active,
    )


def make_booking(
    start: datetime,
    end: datetime,
    status: BookingStatus = BookingStatus.CONFIRMED,
    therapist_id: int = 1,
    reference: str = "MW-TEST0001",
) -> Booking:
    """``start``/``end`` are naive UTC, as stored."""
    return Booking(
        booking_reference=reference,
        therapist_id=therapist_id,
        client_name="Client",
        client_email="client@example.com",
        start_datetime=start,
        end_datetime=end,
        timezone="UTC",
        status=status.value,
        meeting_type="video",
    )


def make_block(start: datetime, end: datetime, is_all_day: bool = False, therapist_id: int = 1) -> BlockedDate:
    return BlockedDate(
        therapist_id=therapist_id,
        start_datetime=start,
        end_datetime=end,
        is_all_day=is_all_day,
    )
