from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_events.db.session import get_db
from campus_events.auth.deps import get_current_user
from campus_events.core.rbac import can_manage_event, can_register, can_view_participants, require
from campus_events.core.registration_form import answers_from_payload, build_payload, validate_answers
from campus_events.db.models.event import Event, EventStatus
from campus_events.db.models.registration import DECISION_STATUSES, FormAnswer, Registration, RegistrationStatus
from campus_events.db.models.user import User
from campus_events.utils.schema import fields_from_rows
from campus_events.utils.schema_cache import load_schema_rows
from campus_events.utils.timeutil import utcnow

logger = logging.getLogger("campus_events.registrations")

router = APIRouter(tags=["registrations"])


class AnswerIn(BaseModel):
    form_field_id: int
    value: str = ""


class RegistrationIn(BaseModel):
    answers: list[AnswerIn] = []


class RegistrationStatusIn(BaseModel):
    status: RegistrationStatus


class BulkStatusIn(BaseModel):
    registration_ids: list[int] = Field(min_length=1)
    status: RegistrationStatus


class CheckInIn(BaseModel):
    qr_code: str = Field(min_length=1)


class AttendanceIn(BaseModel):
    attendance: bool


def _ticket_code(event_id: int, user_id: int) -> str:
    return f"EVT-{event_id}-USR-{user_id}-{uuid.uuid4().hex[:6]}"


def event_for_update(db: Session, event_id: int):
    """Event row, locked until the end of the transaction."""
    return db.query(Event).filter(Event.id == event_id).with_for_update()


def registrations_for_update(db: Session, event_id: int):
    # Locking read: sees rows committed after this transaction's snapshot.
    return db.query(Registration.id).filter(Registration.event_id == event_id).with_for_update()


def _registration_dict(r: Registration, with_answers: bool = False) -> dict:
    d = {
        "id": r.id,
        "event_id": r.event_id,
        "user_id": r.user_id,
        "status": r.status.value,
        "status_label": r.status_label,
        "attendance": r.attendance,
        "checked_in_at": r.checked_in_at.isoformat() if r.checked_in_at else None,
        "qr_code": r.qr_code,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }
    if with_answers:
        d["answers"] = [
            {
                "form_field_id": a.form_field_id,
                "label": a.form_field.label if a.form_field is not None else "",
                "value": a.value,
            }
            for a in r.answers
        ]
    return d


@router.post("/api/events/{event_id}/register", status_code=201)
def register(
    event_id: int,
    body: RegistrationIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(can_register(user))

    # Held through the insert below so concurrent registrations cannot overfill the quota.
    event = event_for_update(db, event_id).one_or_none()
    require(event is not None, "Event tidak ditemukan", 404)
    require(
        event.status == EventStatus.PUBLISHED,
        f"Event belum dibuka untuk pendaftaran. Status: {event.status.value}",
        400,
    )

    if event.registration_deadline is not None and utcnow() > event.registration_deadline:
        require(
            False,
            "Pendaftaran sudah ditutup. Batas waktu pendaftaran: "
            + event.registration_deadline.strftime("%d %B %Y pukul %H:%M"),
            400,
        )

    existing = (
        db.query(Registration.id)
        .filter(Registration.event_id == event_id, Registration.user_id == user.id)
        .first()
    )
    require(existing is None, "Anda sudah terdaftar di event ini!", 409)

    registered = len(registrations_for_update(db, event_id).all())
    require(
        not (event.quota > 0 and registered >= event.quota),
        "Kuota event sudah penuh. Tidak dapat mendaftar lagi.",
        400,
    )

    fields = fields_from_rows(load_schema_rows(db, event_id))
    known_ids = {f.id for f in fields}
    for item in body.answers:
        require(item.form_field_id in known_ids, f"Pertanyaan {item.form_field_id} bukan bagian dari form event ini", 400)

    answers = answers_from_payload(a.model_dump() for a in body.answers)
    errors = validate_answers(fields, answers)
    if errors:
        logger.info("Registration rejected event=%s user=%s errors=%s", event_id, user.id, list(errors))
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": next(iter(errors.values())), "errors": errors},
        )

    reg = Registration(
        event_id=event_id,
        user_id=user.id,
        status=RegistrationStatus.PENDING,
        qr_code=_ticket_code(event_id, user.id),
        attendance=False,
    )
    db.add(reg)
    try:
        db.flush()
        for item in build_payload(answers):
            db.add(FormAnswer(registration_id=reg.id, form_field_id=item["form_field_id"], value=item["value"]))
        db.commit()
    except IntegrityError:
        db.rollback()
        require(False, "Anda sudah terdaftar di event ini!", 409)
    db.refresh(reg)

    logger.info("Registration %s accepted event=%s user=%s", reg.id, event_id, user.id)

    if event.is_free:
        message = "Pendaftaran berhasil! Silakan tunggu konfirmasi dari panitia."
    else:
        message = "Pendaftaran berhasil! Silakan selesaikan pembayaran."
    return {
        "success": True,
        "message": message,
        "data": _registration_dict(reg, with_answers=True),
        "is_free": event.is_free,
    }


@router.get("/api/events/{event_id}/registration-status")
def registration_status(event_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    reg = (
        db.query(Registration)
        .filter(Registration.event_id == event_id, Registration.user_id == user.id)
        .first()
    )
    if reg is None:
        return {"success": True, "registered": False, "message": "Anda belum terdaftar di event ini"}
    return {
        "success": True,
        "registered": True,
        "data": _registration_dict(reg),
        "message": "Anda sudah terdaftar di event ini",
    }


@router.get("/api/events/{event_id}/participants")
def participants(event_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    event = db.get(Event, event_id)
    require(event is not None, "Event tidak ditemukan", 404)
    require(can_view_participants(user, event))

    regs = db.query(Registration).filter(Registration.event_id == event_id).order_by(Registration.id.asc()).all()
    data = []
    for r in regs:
        d = _registration_dict(r, with_answers=True)
        d["user"] = {"id": r.user.id, "name": r.user.name, "email": r.user.email}
        data.append(d)
    return {"success": True, "data": data}


@router.get("/api/registrations/me")
def my_registrations(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    regs = (
        db.query(Registration)
        .join(Event, Event.id == Registration.event_id)
        .filter(Registration.user_id == user.id, Event.status != EventStatus.DONE)
        .order_by(Registration.id.desc())
        .all()
    )
    data = []
    for r in regs:
        d = _registration_dict(r)
        d["event"] = {"id": r.event.id, "title": r.event.title, "slug": r.event.slug}
        data.append(d)
    return {"success": True, "data": data}


@router.patch("/api/registrations/{registration_id}/status")
def update_status(
    registration_id: int,
    body: RegistrationStatusIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reg = db.get(Registration, registration_id)
    require(reg is not None, "Pendaftaran tidak ditemukan", 404)
    require(can_manage_event(user, reg.event))
    require(body.status in DECISION_STATUSES, "Status hanya boleh confirmed atau rejected", 400)

    reg.status = body.status
    db.commit()
    logger.info("Registration %s set to %s by user %s", reg.id, reg.status.value, user.id)
    return {"success": True, "message": "Status pendaftaran diperbarui", "data": _registration_dict(reg)}


@router.post("/api/registrations/bulk-status")
def bulk_update_status(
    body: BulkStatusIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(body.status in DECISION_STATUSES, "Status hanya boleh confirmed atau rejected", 400)

    ids = sorted(set(body.registration_ids))
    regs = db.query(Registration).filter(Registration.id.in_(ids)).all()
    missing = sorted(set(ids) - {r.id for r in regs})
    require(not missing, f"Pendaftaran tidak ditemukan: {', '.join(map(str, missing))}", 404)
    # All or nothing: one foreign registration rejects the whole batch.
    for r in regs:
        require(can_manage_event(user, r.event))

    for r in regs:
        r.status = body.status
    db.commit()
    logger.info("Bulk status %s for %s registrations by user %s", body.status.value, len(regs), user.id)
    return {
        "success": True,
        "message": f"Berhasil mengupdate status {len(regs)} pendaftaran menjadi '{body.status.value}'",
        "updated_count": len(regs),
    }


@router.post("/api/check-in")
def check_in(
    body: CheckInIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reg = db.query(Registration).filter(Registration.qr_code == body.qr_code.strip()).first()
    require(reg is not None, "QR Code tidak valid / Data tidak ditemukan", 404)
    require(can_manage_event(user, reg.event))

    require(reg.status != RegistrationStatus.PENDING, "Peserta belum dikonfirmasi (Status: Pending)", 400)
    require(reg.status != RegistrationStatus.REJECTED, "Pendaftaran peserta ditolak", 400)
    if reg.status == RegistrationStatus.CHECKED_IN:
        return JSONResponse(
            status_code=409,
            content={
                "success": False,
                "message": "Peserta SUDAH Check-in sebelumnya!",
                "data": {
                    "user_name": reg.user.name,
                    "check_in_time": reg.checked_in_at.isoformat() if reg.checked_in_at else None,
                },
            },
        )

    reg.status = RegistrationStatus.CHECKED_IN
    reg.attendance = True
    reg.checked_in_at = utcnow()
    db.commit()
    logger.info("Registration %s checked in event=%s by user %s", reg.id, reg.event_id, user.id)
    return {
        "success": True,
        "message": "Check-in Berhasil!",
        "data": {"user_name": reg.user.name, "event": reg.event.title, "status": reg.status_label},
    }


@router.put("/api/registrations/{registration_id}/attendance")
def update_attendance(
    registration_id: int,
    body: AttendanceIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reg = db.get(Registration, registration_id)
    require(reg is not None, "Pendaftaran tidak ditemukan", 404)
    require(can_manage_event(user, reg.event))

    reg.attendance = body.attendance
    if body.attendance:
        reg.status = RegistrationStatus.CHECKED_IN
        reg.checked_in_at = reg.checked_in_at or utcnow()
    elif reg.status == RegistrationStatus.CHECKED_IN:
        # Undoing a check-in; confirmed and rejected stay as they are.
        reg.status = RegistrationStatus.CONFIRMED
        reg.checked_in_at = None
    db.commit()
    logger.info("Registration %s attendance=%s by user %s", reg.id, reg.attendance, user.id)
    return {"success": True, "message": "Kehadiran diperbarui", "data": _registration_dict(reg)}


@router.get("/registrations/{registration_id}/ticket", response_class=HTMLResponse)
def ticket(
    request: Request,
    registration_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reg = db.get(Registration, registration_id)
    require(reg is not None, "Tiket tidak ditemukan", 404)
    require(reg.user_id == user.id or can_manage_event(user, reg.event))

    return request.app.state.templates.TemplateResponse(
        request,
        "ticket.html",
        {
            "registration": reg,
            "event": reg.event,
            "participant": reg.user,
            "answers": _registration_dict(reg, with_answers=True)["answers"],
        },
    )
