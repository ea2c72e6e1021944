from datetime import datetime

from pydantic import BaseModel

from app.models.therapist import TherapistSummary


class SlotInfo(BaseModel):
    start: datetime  # UTC
    end: datetime
    start_formatted: str  # local, e.g. "9:00 AM"
    end_formatted: str
    available: bool


class AvailableDatesResponse(BaseModel):
    dates: list[str]  # YYYY-MM-DD, ascending
    therapist: TherapistSummary


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    slots: list[SlotInfo]
    therapist: TherapistSummary
