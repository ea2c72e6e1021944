from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timezones import utc_naive_now
from app.models.session_type import SessionType, SessionTypeCreate, SessionTypeUpdate
from app.models.therapist import (
    Therapist,
    TherapistPublic,
    TherapistSettings,
    TherapistSettingsUpdate,
    TherapistSummary,
)

_NULLABLE_SESSION_TYPE_FIELDS = frozenset({"price", "description"})


def _bookable():
    return (Therapist.is_active == True, Therapist.deleted_at.is_(None))  # noqa: E712


async def find_therapist_by_slug(session: AsyncSession, slug: str) -> Therapist | None:
    """Active, non-deleted therapist for a public slug."""
    result = await session.execute(select(Therapist).where(Therapist.slug == slug, *_bookable()))
    return result.scalar_one_or_none()


async def find_therapist_by_id(
    session: AsyncSession, therapist_id: int, lock: bool = False
) -> Therapist | None:
    q = select(Therapist).where(Therapist.id == therapist_id, *_bookable())
    if lock:
        q = q.with_for_update()
    result = await session.execute(q)
    return result.scalar_one_or_none()


async def find_therapist_by_user_id(session: AsyncSession, user_id: int) -> Therapist | None:
    result = await session.execute(select(Therapist).where(Therapist.user_id == user_id, *_bookable()))
    return result.scalar_one_or_none()


async def list_active_therapists(session: AsyncSession) -> list[Therapist]:
    result = await session.execute(select(Therapist).where(*_bookable()).order_by(Therapist.name))
    return list(result.scalars().all())


def therapist_summary(therapist: Therapist) -> TherapistSummary:
    return TherapistSummary(id=therapist.id, name=therapist.name, slug=therapist.slug)


def therapist_to_public(therapist: Therapist) -> TherapistPublic:
    return TherapistPublic(
        id=therapist.id,
        slug=therapist.slug,
        name=therapist.name,
        title=therapist.title,
        email=therapist.email,
        phone=therapist.phone,
        bio=therapist.bio,
        default_session_duration=therapist.default_session_duration,
    )


def therapist_settings(therapist: Therapist) -> TherapistSettings:
    return TherapistSettings(
        default_session_duration=therapist.default_session_duration,
        buffer_time=therapist.buffer_time,
        advance_booking_days=therapist.advance_booking_days,
        min_booking_notice=therapist.min_booking_notice,
    )


async def update_therapist_settings(
    session: AsyncSession, therapist: Therapist, data: TherapistSettingsUpdate
) -> Therapist:
    for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(therapist, key, value)
    therapist.updated_at = utc_naive_now()
    session.add(therapist)
    await session.flush()
    await session.refresh(therapist)
    return therapist


async def list_session_types(
    session: AsyncSession, therapist_id: int, active_only: bool = True
) -> list[SessionType]:
    q = select(SessionType).where(SessionType.therapist_id == therapist_id).order_by(SessionType.name)
    if active_only:
        q = q.where(SessionType.is_active == True)  # noqa: E712
    result = await session.execute(q)
    return list(result.scalars().all())


async def find_session_type(
    session: AsyncSession, session_type_id: int, therapist_id: int, active_only: bool = True
) -> SessionType | None:
    q = select(SessionType).where(
        SessionType.id == session_type_id,
        SessionType.therapist_id == therapist_id,
    )
    if active_only:
        q = q.where(SessionType.is_active == True)  # noqa: E712
    result = await session.execute(q)
    return result.scalar_one_or_none()


async def create_session_type(
    session: AsyncSession, therapist_id: int, data: SessionTypeCreate
) -> SessionType:
    session_type = SessionType(
        therapist_id=therapist_id,
        name=data.name,
        duration=data.duration,
        meeting_type=data.meeting_type.value,
        price=data.price,
        description=data.description,
        color=data.color,
        is_active=data.is_active,
    )
    session.add(session_type)
    await session.flush()
    await session.refresh(session_type)
    return session_type


async def update_session_type(
    session: AsyncSession, session_type_id: int, therapist_id: int, data: SessionTypeUpdate
) -> SessionType | None:
    session_type = await find_session_type(session, session_type_id, therapist_id, active_only=False)
    if not session_type:
        return None
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key not in _NULLABLE_SESSION_TYPE_FIELDS:
            continue
        if key == "meeting_type":
            value = value.value
        setattr(session_type, key, value)
    session_type.updated_at = utc_naive_now()
    session.add(session_type)
    await session.flush()
    await session.refresh(session_type)
    return session_type


async def deactivate_session_type(session: AsyncSession, session_type_id: int, therapist_id: int) -> bool:
    """Session types are referenced by past bookings, so they are switched off rather than deleted."""
    session_type = await find_session_type(session, session_type_id, therapist_id, active_only=False)
    if not session_type:
        return False
    session_type.is_active = False
    session_type.updated_at = utc_naive_now()
    session.add(session_type)
    await session.flush()
    return True
