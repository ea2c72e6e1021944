from datetime import datetime, time

from app.core.timezones import utc_naive_now
from app.models.booking import BookingStatus
from app.services.slot_service import get_available_dates, get_available_slots
from tests.factories import MONDAY, SUNDAY_NOON, make_block, make_booking, make_rule, make_therapist


async def test_unknown_therapist_returns_none(session) -> None:
    assert await get_available_dates(session, "nobody", 60, "UTC", now=SUNDAY_NOON) is None
    assert await get_available_slots(session, "nobody", MONDAY, 60, "UTC", now=SUNDAY_NOON) is None


async def test_inactive_or_deleted_therapist_returns_none(session) -> None:
    session.add(make_therapist(id=None, slug="inactive", is_active=False))
    session.add(make_therapist(id=None, slug="deleted", user_id=43, deleted_at=utc_naive_now()))
    await session.commit()

    assert await get_available_dates(session, "inactive", 60, "UTC", now=SUNDAY_NOON) is None
    assert await get_available_slots(session, "deleted", MONDAY, 60, "UTC", now=SUNDAY_NOON) is None


async def test_available_dates_reads_from_the_stores(session, seeded_therapist) -> None:
    result = await get_available_dates(session, "dr-ada", 60, "UTC", now=SUNDAY_NOON)

    assert result is not None
    assert result.dates == ["2026-10-19"]
    assert result.therapist.slug == "dr-ada"
    assert result.therapist.id == seeded_therapist.id


async def test_slots_ignore_bookings_that_are_not_confirmed(session, seeded_therapist) -> None:
    session.add(
        make_booking(
            datetime(2026, 10, 19, 10, 0),
            datetime(2026, 10, 19, 11, 0),
            status=BookingStatus.CANCELLED,
            therapist_id=seeded_therapist.id,
            reference="MW-CANCEL01",
        )
    )
    session.add(
        make_booking(
            datetime(2026, 10, 19, 9, 0),
            datetime(2026, 10, 19, 10, 0),
            therapist_id=seeded_therapist.id,
            reference="MW-CONFIRM1",
        )
    )
    await session.commit()

    result = await get_available_slots(session, "dr-ada", MONDAY, 60, "UTC", now=SUNDAY_NOON)

    assert result is not None
    assert result.date == "2026-10-19"
    assert [(s.start.strftime("%H:%M"), s.available) for s in result.slots] == [
        ("09:00", False),
        ("09:30", False),
        ("10:00", True),
        ("10:30", True),
        ("11:00", True),
    ]


async def test_slots_only_use_rules_for_the_requested_weekday(session, seeded_therapist) -> None:
    session.add(make_rule(2, time(9, 0), time(17, 0), therapist_id=seeded_therapist.id))
    session.add(make_rule(1, time(14, 0), time(15, 0), therapist_id=seeded_therapist.id, is_active=False))
    await session.commit()

    result = await get_available_slots(session, "dr-ada", MONDAY, 60, "UTC", now=SUNDAY_NOON)

    assert len(result.slots) == 5


async def test_no_rule_for_the_day_gives_empty_slots_not_none(session, seeded_therapist) -> None:
    tuesday = datetime(2026, 10, 20).date()

    result = await get_available_slots(session, "dr-ada", tuesday, 60, "UTC", now=SUNDAY_NOON)

    assert result is not None
    assert result.slots == []


async def test_all_day_block_in_store_removes_the_date(session, seeded_therapist) -> None:
    session.add(
        make_block(
            datetime(2026, 10, 19, 0, 0),
            datetime(2026, 10, 20, 0, 0),
            is_all_day=True,
            therapist_id=seeded_therapist.id,
        )
    )
    await session.commit()

    result = await get_available_dates(session, "dr-ada", 60, "UTC", now=SUNDAY_NOON)

    assert result.dates == []
