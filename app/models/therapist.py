from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.config import settings
from app.core.timezones import utc_naive_now


class TherapistBase(SQLModel):
    slug: str = Field(unique=True, index=True)
    name: str
    title: str = ""
    email: str
    phone: str | None = None
    bio: str = ""


class Therapist(TherapistBase, table=True):
    __tablename__ = "therapists"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int | None = Field(default=None, index=True)  # subject in auth-service tokens
    default_session_duration: int = settings.default_session_duration  # minutes
    buffer_time: int = settings.default_buffer_time  # minutes, padded on both sides of a booking
    advance_booking_days: int = settings.default_advance_booking_days
    min_booking_notice: int = settings.default_min_booking_notice  # hours
    is_active: bool = True
    deleted_at: datetime | None = Field(default=None, sa_type=DateTime())
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())


class TherapistSummary(SQLModel):
    id: int
    name: str
    slug: str


class TherapistPublic(TherapistBase):
    id: int
    default_session_duration: int


class TherapistSettings(SQLModel):
    default_session_duration: int
    buffer_time: int
    advance_booking_days: int
    min_booking_notice: int


class TherapistSettingsUpdate(SQLModel):
    default_session_duration: int | None = Field(default=None, gt=0)
    buffer_time: int | None = Field(default=None, ge=0)
    advance_booking_days: int | None = Field(default=None, gt=0)
    min_booking_notice: int | None = Field(default=None, ge=0)
