from datetime import datetime, time

from pydantic import model_validator
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.timezones import utc_naive_now


class TherapistAvailability(SQLModel, table=True):
    """One recurring weekly window. Several may exist for the same day and may overlap."""

    __tablename__ = "therapist_availability"
    id: int | None = Field(default=None, primary_key=True)
    therapist_id: int = Field(foreign_key="therapists.id", index=True)
    day_of_week: int = Field(index=True)  # 0=Sunday .. 6=Saturday
    start_time: time  # local wall clock
    end_time: time
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())


class AvailabilityCreate(SQLModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    is_active: bool = True

    @model_validator(mode="after")
    def check_window(self) -> "AvailabilityCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityUpdate(SQLModel):
    start_time: time | None = None
    end_time: time | None = None
    is_active: bool | None = None


class AvailabilityPublic(SQLModel):
    id: int
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool
