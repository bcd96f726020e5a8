"""Shared route dependencies."""

from fastapi import Depends, HTTPException

from ..models import User
from ..session import EduPulseSession, get_session


def get_active_session() -> EduPulseSession:
    """Session for view endpoints; unavailable while the store is in maintenance."""
    session = get_session()
    if session.snapshot.maintenance:
        raise HTTPException(status_code=503, detail="Hệ thống đang bảo trì")
    return session


def get_current_user(session: EduPulseSession = Depends(get_active_session)) -> User:
    if session.user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return session.user


def parse_filter(value):
    """Query/filter value -> None for "ALL" or blank."""
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.upper() == "ALL":
        return None
    return value
