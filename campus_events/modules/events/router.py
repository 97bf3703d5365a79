from __future__ import annotations

import re
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import or_
from sqlalchemy.orm import Session

from campus_events.db.session import get_db
from campus_events.auth.deps import get_current_user
from campus_events.core.rbac import can_create_event, can_manage_event, is_admin, is_organizer, require
from campus_events.db.models.event import Event, EventStatus
from campus_events.db.models.registration import Registration
from campus_events.db.models.user import User
from campus_events.utils.schema_cache import get_form_schema
from campus_events.utils.timeutil import naive_utc

router = APIRouter(prefix="/api/events", tags=["events"])


class EventIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    location: str = ""
    start_date: datetime | None = None
    end_date: datetime | None = None
    registration_deadline: datetime | None = None
    quota: int = Field(default=0, ge=0)
    price: int = Field(default=0, ge=0)


class StatusIn(BaseModel):
    status: EventStatus


def _slugify(title: str) -> str:
    s = re.sub(r"[^a-z0-9]+", "-", (title or "").lower()).strip("-")
    return s or "event"


def _unique_slug(db: Session, title: str) -> str:
    base = _slugify(title)
    slug = base
    n = 2
    while db.query(Event.id).filter(Event.slug == slug).first() is not None:
        slug = f"{base}-{n}"
        n += 1
    return slug


def event_dict(db: Session, e: Event, with_schema: bool = False) -> dict:
    registered = db.query(Registration).filter(Registration.event_id == e.id).count()
    d = {
        "id": e.id,
        "title": e.title,
        "slug": e.slug,
        "description": e.description,
        "location": e.location,
        "start_date": e.start_date.isoformat() if e.start_date else None,
        "end_date": e.end_date.isoformat() if e.end_date else None,
        "registration_deadline": e.registration_deadline.isoformat() if e.registration_deadline else None,
        "status": e.status.value,
        "quota": e.quota,
        "price": e.price,
        "is_free": e.is_free,
        "registered_count": registered,
        "created_by_id": e.created_by_id,
    }
    if with_schema:
        d["form_schema"] = get_form_schema(db, e.id)
    return d


@router.get("")
def list_events(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    q = db.query(Event).order_by(Event.id.desc())
    if is_admin(user):
        pass
    elif is_organizer(user):
        q = q.filter(or_(Event.status != EventStatus.DRAFT, Event.created_by_id == user.id))
    else:
        q = q.filter(Event.status == EventStatus.PUBLISHED)
    return {"success": True, "data": [event_dict(db, e) for e in q.limit(200).all()]}


@router.post("", status_code=201)
def create_event(body: EventIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    require(can_create_event(user))
    start, end = naive_utc(body.start_date), naive_utc(body.end_date)
    if start and end:
        require(end >= start, "Tanggal selesai harus setelah tanggal mulai", 400)

    e = Event(
        title=body.title.strip(),
        slug=_unique_slug(db, body.title),
        description=body.description,
        location=body.location,
        start_date=start,
        end_date=end,
        registration_deadline=naive_utc(body.registration_deadline),
        quota=body.quota,
        price=body.price,
        status=EventStatus.DRAFT,
        created_by_id=user.id,
    )
    db.add(e)
    db.commit()
    db.refresh(e)
    return {"success": True, "message": "Event dibuat", "data": event_dict(db, e)}


@router.get("/{slug}")
def detail(slug: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    e = db.query(Event).filter(Event.slug == slug).first()
    require(e is not None, "Event tidak ditemukan", 404)
    if e.status == EventStatus.DRAFT:
        require(can_manage_event(user, e), "Event tidak ditemukan", 404)
    return {"success": True, "data": event_dict(db, e, with_schema=True)}


@router.patch("/{event_id}/status")
def update_status(event_id: int, body: StatusIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    e = db.get(Event, event_id)
    require(e is not None, "Event tidak ditemukan", 404)
    require(can_manage_event(user, e))

    e.status = body.status
    db.commit()
    return {"success": True, "message": "Status event diperbarui", "data": event_dict(db, e)}
