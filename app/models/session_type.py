from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.core.timezones import utc_naive_now


class MeetingType(str, Enum):
    IN_PERSON = "in_person"
    VIDEO = "video"
    PHONE = "phone"


class SessionType(SQLModel, table=True):
    __tablename__ = "session_types"
    id: int | None = Field(default=None, primary_key=True)
    therapist_id: int = Field(foreign_key="therapists.id", index=True)
    name: str
    duration: int  # minutes
    meeting_type: str = MeetingType.VIDEO.value
    price: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    description: str | None = None
    color: str = "#00A99D"
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime())


class SessionTypeCreate(SQLModel):
    name: str = Field(min_length=2, max_length=100)
    duration: int = Field(ge=15, le=480)
    meeting_type: MeetingType
    price: Decimal | None = Field(default=None, ge=0)
    description: str | None = None
    color: str = "#00A99D"
    is_active: bool = True


class SessionTypeUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    duration: int | None = Field(default=None, ge=15, le=480)
    meeting_type: MeetingType | None = None
    price: Decimal | None = Field(default=None, ge=0)
    description: str | None = None
    color: str | None = None
    is_active: bool | None = None


class SessionTypePublic(SQLModel):
    id: int
    name: str
    duration: int
    meeting_type: str
    price: Decimal | None = None
    description: str | None = None
    color: str
