from __future__ import annotations

from fastapi import HTTPException

from campus_events.db.models.user import User, Role
from campus_events.db.models.event import Event


def require(condition: bool, msg: str = "Akses ditolak", status_code: int = 403) -> None:
    """Small helper used across routers.

    Defaults to 403 (permission denied). For validation errors or not-found cases,
    pass `status_code=400/404/409`.
    """
    if not condition:
        raise HTTPException(status_code=status_code, detail=msg)


def is_admin(user: User) -> bool:
    return user.role == Role.ADMIN


def is_organizer(user: User) -> bool:
    return user.role in (Role.ADMIN, Role.ORGANIZER)


def can_create_event(user: User) -> bool:
    return is_organizer(user)


def can_manage_event(user: User, event: Event) -> bool:
    # Admin manages everything; organizers only their own events.
    if is_admin(user):
        return True
    return user.role == Role.ORGANIZER and event.created_by_id == user.id


def can_view_participants(user: User, event: Event) -> bool:
    return can_manage_event(user, event)


def can_register(user: User) -> bool:
    # Any active account may register, admins and organizers included.
    return bool(user.is_active)
