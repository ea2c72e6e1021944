from datetime import datetime

from pydantic import model_validator
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.timezones import as_utc, utc_naive_now


class BlockedDate(SQLModel, table=True):
    __tablename__ = "blocked_dates"
    id: int | None = Field(default=None, primary_key=True)
    therapist_id: int = Field(foreign_key="therapists.id", index=True)
    start_datetime: datetime = Field(index=True, sa_type=DateTime())  # naive UTC
    end_datetime: datetime = Field(sa_type=DateTime())
    reason: str | None = None
    is_all_day: bool = False
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())


class BlockedDateCreate(SQLModel):
    start_datetime: datetime
    end_datetime: datetime | None = None  # optional for all-day blocks
    reason: str | None = Field(default=None, max_length=255)
    is_all_day: bool = False

    @model_validator(mode="after")
    def check_range(self) -> "BlockedDateCreate":
        if self.end_datetime is None:
            if not self.is_all_day:
                raise ValueError("end_datetime is required for partial blocks")
        elif as_utc(self.start_datetime) >= as_utc(self.end_datetime):
            raise ValueError("start_datetime must be before end_datetime")
        return self


class BlockedDatePublic(SQLModel):
    id: int
    start_datetime: datetime
    end_datetime: datetime
    reason: str | None = None
    is_all_day: bool
