from zoneinfo import ZoneInfo

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_session
from app.core.security import decode_access_token
from app.core.timezones import InvalidTimezone, resolve_timezone
from app.models.therapist import Therapist
from app.services.therapist_service import find_therapist_by_user_id

__all__ = ["get_session", "get_current_therapist", "get_optional_therapist", "get_timezone"]

security = HTTPBearer(auto_error=False)


def get_timezone(timezone: str | None = Query(None, description="IANA timezone name")) -> ZoneInfo:
    try:
        return resolve_timezone(timezone)
    except InvalidTimezone as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _therapist_from_token(session: AsyncSession, token: str) -> Therapist:
    user_id = decode_access_token(token)
    if not user_id:
        raise _unauthorized("Invalid or expired token")
    try:
        uid = int(user_id)
    except ValueError:
        raise _unauthorized("Invalid token")
    therapist = await find_therapist_by_user_id(session, uid)
    if not therapist:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active therapist profile for this account",
        )
    return therapist


async def get_current_therapist(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Therapist:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Missing or invalid authorization header")
    return await _therapist_from_token(session, credentials.credentials)


async def get_optional_therapist(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Therapist | None:
    """Therapist behind the bearer token, or None for anonymous client requests."""
    if not credentials:
        return None
    return await _therapist_from_token(session, credentials.credentials)
