from datetime import datetime
from enum import Enum

from pydantic import EmailStr
from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel

from app.core.timezones import utc_naive_now


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Statuses a therapist may move a booking to from the portal
THERAPIST_SETTABLE_STATUSES = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW, BookingStatus.CANCELLED}
)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    # Two confirmed bookings can never share a therapist and start instant
    __table_args__ = (
        Index(
            "uq_bookings_therapist_start_confirmed",
            "therapist_id",
            "start_datetime",
            unique=True,
            postgresql_where=text("status = 'confirmed'"),
            sqlite_where=text("status = 'confirmed'"),
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    booking_reference: str = Field(unique=True, index=True, max_length=50)
    therapist_id: int = Field(foreign_key="therapists.id", index=True)
    session_type_id: int | None = Field(default=None, foreign_key="session_types.id")
    client_id: int | None = None
    client_name: str
    client_email: str
    client_phone: str | None = None
    start_datetime: datetime = Field(index=True, sa_type=DateTime())  # naive UTC
    end_datetime: datetime = Field(sa_type=DateTime())
    timezone: str
    status: str = Field(default=BookingStatus.CONFIRMED.value, index=True, max_length=20)
    meeting_type: str
    meeting_location: str | None = None
    client_notes: str | None = None
    cancellation_reason: str | None = None
    cancelled_by: int | None = None
    cancelled_at: datetime | None = Field(default=None, sa_type=DateTime())
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())


class BookingCreate(SQLModel):
    therapist_id: int
    session_type_id: int
    start_datetime: datetime
    end_datetime: datetime | None = None
    timezone: str | None = None
    client_name: str = Field(min_length=2, max_length=255)
    client_email: EmailStr
    client_phone: str | None = Field(default=None, max_length=50)
    client_notes: str | None = None


class BookingStatusUpdate(SQLModel):
    status: BookingStatus
    cancellation_reason: str | None = None


class BookingReschedule(SQLModel):
    """Client move to a new start. ``booking_email`` proves ownership without a login."""

    start_datetime: datetime
    end_datetime: datetime | None = None
    timezone: str | None = None
    booking_email: EmailStr | None = None


class BookingCancel(SQLModel):
    reason: str | None = Field(default=None, max_length=500)
    booking_email: EmailStr | None = None


class BookingPublic(SQLModel):
    id: int
    booking_reference: str
    therapist_id: int
    session_type_id: int | None = None
    client_name: str
    client_email: str
    start_datetime: datetime
    end_datetime: datetime
    timezone: str
    status: str
    meeting_type: str
    meeting_location: str | None = None
    created_at: datetime
