"""Conversions between local wall-clock values and UTC instants.

Weekly rules and calendar dates are local wall-clock values: naive ``datetime``,
``date`` and ``time`` objects with no zone attached. Bookings and blocked
intervals are instants: timezone-aware ``datetime`` objects in UTC. The database
stores instants as naive UTC (TIMESTAMP WITHOUT TIME ZONE), so values read from
a row go through ``as_utc`` before they meet anything else.

The helpers below refuse the wrong kind of value instead of guessing, so a local
time can never be silently treated as UTC or converted twice.
"""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings


class InvalidTimezone(ValueError):
    """Raised for a name that is not a known IANA timezone."""


def resolve_timezone(name: str | None = None) -> ZoneInfo:
    """IANA name -> ZoneInfo. ``None`` or blank falls back to the practice timezone."""
    key = (name or "").strip() or settings.default_timezone
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezone(f"Unknown timezone: {key}") from e


def _require_naive(value: datetime) -> None:
    if value.tzinfo is not None:
        raise ValueError("Expected a local wall-clock datetime (naive), got an aware datetime")


def _require_aware(value: datetime) -> None:
    if value.tzinfo is None:
        raise ValueError("Expected an instant (timezone-aware datetime), got a naive datetime")


def local_to_utc(local: datetime, tz: ZoneInfo) -> datetime:
    """Interpret a wall-clock time as occurring in ``tz`` and return the UTC instant."""
    _require_naive(local)
    return local.replace(tzinfo=tz).astimezone(UTC)


def utc_to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    """Render an instant on ``tz``'s wall clock. The result is naive (local)."""
    _require_aware(instant)
    return instant.astimezone(tz).replace(tzinfo=None)


def local_date_of(instant: datetime, tz: ZoneInfo) -> date:
    """Calendar date of an instant as seen in ``tz``."""
    return utc_to_local(instant, tz).date()


def as_utc(value: datetime) -> datetime:
    """Column value -> aware UTC instant. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_naive_utc(value: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_naive_now() -> datetime:
    """Naive UTC for comparison with TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


def format_clock(local: datetime) -> str:
    """Display form used by the booking UI, e.g. ``9:00 AM``."""
    _require_naive(local)
    return local.strftime("%I:%M %p").lstrip("0")
