from app.models.availability import (
    AvailabilityCreate,
    AvailabilityPublic,
    AvailabilityUpdate,
    TherapistAvailability,
)
from app.models.blocked_date import BlockedDate, BlockedDateCreate, BlockedDatePublic
from app.models.booking import (
    Booking,
    BookingCancel,
    BookingCreate,
    BookingPublic,
    BookingReschedule,
    BookingStatus,
    BookingStatusUpdate,
)
from app.models.session_type import (
    MeetingType,
    SessionType,
    SessionTypeCreate,
    SessionTypePublic,
    SessionTypeUpdate,
)
from app.models.therapist import (
    Therapist,
    TherapistPublic,
    TherapistSettings,
    TherapistSettingsUpdate,
    TherapistSummary,
)

__all__ = [
    "AvailabilityCreate",
    "AvailabilityPublic",
    "AvailabilityUpdate",
    "TherapistAvailability",
    "BlockedDate",
    "BlockedDateCreate",
    "BlockedDatePublic",
    "Booking",
    "BookingCancel",
    "BookingCreate",
    "BookingPublic",
    "BookingReschedule",
    "BookingStatus",
    "BookingStatusUpdate",
    "MeetingType",
    "SessionType",
    "SessionTypeCreate",
    "SessionTypePublic",
    "SessionTypeUpdate",
    "Therapist",
    "TherapistPublic",
    "TherapistSettings",
    "TherapistSettingsUpdate",
    "TherapistSummary",
]
