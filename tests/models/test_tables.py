from datetime import UTC, datetime

import pytest
from sqlalchemy import DateTime
from sqlmodel import SQLModel

from app.models.blocked_date import BlockedDateCreate


def _datetime_columns():
    for table in SQLModel.metadata.sorted_tables:
        for column in table.columns:
            if isinstance(column.type, DateTime) or "datetime" in column.name or column.name.endswith("_at"):
                yield f"{table.name}.{column.name}", column


@pytest.mark.parametrize(("name", "column"), list(_datetime_columns()))
def test_instants_are_stored_as_plain_naive_timestamps(name: str, column) -> None:
    # Writes go through to_naive_utc, so the column must accept naive values
    assert type(column.type) is DateTime, name
    assert column.type.timezone is False, name


def test_blocked_range_compares_aware_and_naive_values_as_utc() -> None:
    blocked = BlockedDateCreate.model_validate(
        {"start_datetime": "2026-10-19T10:00:00Z", "end_datetime": "2026-10-19T11:00:00"}
    )

    assert blocked.start_datetime == datetime(2026, 10, 19, 10, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("start", "end"),
    [
        ("2026-10-19T11:00:00Z", "2026-10-19T10:00:00"),
        ("2026-10-19T10:00:00", "2026-10-19T15:30:00+05:30"),
    ],
)
def test_blocked_range_rejects_empty_mixed_ranges(start: str, end: str) -> None:
    with pytest.raises(ValueError):
        BlockedDateCreate.model_validate({"start_datetime": start, "end_datetime": end})
