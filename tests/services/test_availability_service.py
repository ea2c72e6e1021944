from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from app.models.availability import AvailabilityCreate, AvailabilityUpdate
from app.models.blocked_date import BlockedDateCreate
from app.services.availability_service import (
    all_day_bounds,
    create_blocked_date,
    create_rule,
    delete_blocked_date,
    delete_rule,
    find_weekly_rules,
    list_blocked_dates,
    update_rule,
)

KOLKATA = ZoneInfo("Asia/Kolkata")


async def test_weekly_rules_are_filtered_by_day_and_active_flag(session, seeded_therapist) -> None:
    await create_rule(
        session,
        seeded_therapist.id,
        AvailabilityCreate(day_of_week=1, start_time=time(14, 0), end_time=time(17, 0), is_active=False),
    )
    await create_rule(
        session, seeded_therapist.id, AvailabilityCreate(day_of_week=3, start_time=time(9, 0), end_time=time(10, 0))
    )

    monday_active = await find_weekly_rules(session, seeded_therapist.id, day_of_week=1)
    everything = await find_weekly_rules(session, seeded_therapist.id, active_only=False)

    assert [(r.start_time, r.end_time) for r in monday_active] == [(time(9, 0), time(12, 0))]
    assert [(r.day_of_week, r.start_time) for r in everything] == [
        (1, time(9, 0)),
        (1, time(14, 0)),
        (3, time(9, 0)),
    ]


def test_rule_with_empty_window_is_rejected() -> None:
    with pytest.raises(ValueError):
        AvailabilityCreate(day_of_week=1, start_time=time(12, 0), end_time=time(9, 0))


@pytest.mark.parametrize("day", [-1, 7])
def test_rule_day_of_week_must_be_in_range(day: int) -> None:
    with pytest.raises(ValueError):
        AvailabilityCreate(day_of_week=day, start_time=time(9, 0), end_time=time(10, 0))


async def test_update_rule_checks_the_merged_window(session, seeded_therapist) -> None:
    rule = (await find_weekly_rules(session, seeded_therapist.id))[0]

    with pytest.raises(ValueError):
        await update_rule(session, rule.id, seeded_therapist.id, AvailabilityUpdate(start_time=time(13, 0)))

    updated = await update_rule(session, rule.id, seeded_therapist.id, AvailabilityUpdate(end_time=time(13, 0)))
    assert (updated.start_time, updated.end_time) == (time(9, 0), time(13, 0))


async def test_rules_of_another_therapist_cannot_be_touched(session, seeded_therapist) -> None:
    rule = (await find_weekly_rules(session, seeded_therapist.id))[0]
    other = seeded_therapist.id + 1

    assert await update_rule(session, rule.id, other, AvailabilityUpdate(is_active=False)) is None
    assert await delete_rule(session, rule.id, other) is False
    assert await delete_rule(session, rule.id, seeded_therapist.id) is True
    assert await find_weekly_rules(session, seeded_therapist.id) == []


def test_all_day_bounds_cover_the_local_calendar_day() -> None:
    # 20:00 UTC on 2026-10-18 is 01:30 on 2026-10-19 in Kolkata
    start, end = all_day_bounds(datetime(2026, 10, 18, 20, 0, tzinfo=UTC), KOLKATA)

    assert start == datetime(2026, 10, 18, 18, 30, tzinfo=UTC)
    assert end - start == timedelta(days=1)


async def test_all_day_block_is_normalized_to_local_midnights(session, seeded_therapist) -> None:
    data = BlockedDateCreate(start_datetime=datetime(2099, 1, 5, 15, 0), is_all_day=True, reason="Holiday")

    blocked = await create_blocked_date(session, seeded_therapist.id, data, KOLKATA)

    assert blocked.start_datetime == datetime(2099, 1, 4, 18, 30)
    assert blocked.end_datetime == datetime(2099, 1, 5, 18, 30)
    assert blocked.is_all_day is True


async def test_partial_block_keeps_its_instants(session, seeded_therapist) -> None:
    data = BlockedDateCreate(
        start_datetime=datetime(2099, 1, 5, 10, 0, tzinfo=KOLKATA),
        end_datetime=datetime(2099, 1, 5, 11, 0, tzinfo=KOLKATA),
    )

    blocked = await create_blocked_date(session, seeded_therapist.id, data, KOLKATA)

    assert blocked.start_datetime == datetime(2099, 1, 5, 4, 30)
    assert blocked.end_datetime == datetime(2099, 1, 5, 5, 30)


def test_partial_block_needs_an_end() -> None:
    with pytest.raises(ValueError):
        BlockedDateCreate(start_datetime=datetime(2099, 1, 5, 10, 0))


async def test_upcoming_only_hides_past_blocks(session, seeded_therapist) -> None:
    past = BlockedDateCreate(
        start_datetime=datetime(2000, 1, 1, 10, 0), end_datetime=datetime(2000, 1, 1, 11, 0)
    )
    future = BlockedDateCreate(
        start_datetime=datetime(2099, 1, 1, 10, 0), end_datetime=datetime(2099, 1, 1, 11, 0)
    )
    await create_blocked_date(session, seeded_therapist.id, past, KOLKATA)
    created = await create_blocked_date(session, seeded_therapist.id, future, KOLKATA)

    upcoming = await list_blocked_dates(session, seeded_therapist.id)
    everything = await list_blocked_dates(session, seeded_therapist.id, upcoming_only=False)

    assert [b.id for b in upcoming] == [created.id]
    assert len(everything) == 2
    assert await delete_blocked_date(session, created.id, seeded_therapist.id) is True
    assert await delete_blocked_date(session, created.id, seeded_therapist.id) is False
