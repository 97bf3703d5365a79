from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from campus_events.db.session import get_db
from campus_events.auth.deps import get_current_user
from campus_events.core.rbac import can_manage_event, require
from campus_events.core.registration_form import FIELD_TYPES
from campus_events.db.models.event import Event
from campus_events.db.models.form_field import FormField
from campus_events.db.models.user import User
from campus_events.utils.form_audit import field_snapshot, log_field_created, log_field_deleted
from campus_events.utils.schema import dump_options, normalize_options
from campus_events.utils.schema_cache import get_form_schema, invalidate_form_schema

logger = logging.getLogger("campus_events.forms")

router = APIRouter(tags=["forms"])


class FormFieldIn(BaseModel):
    label: str = Field(min_length=1, max_length=255)
    field_type: str = "text"
    # list of strings or "a, b, c" as typed in the form builder
    options: list[str] | str | None = None
    is_required: bool = False
    parent_field_id: int | None = None
    conditional_value: str | None = None


@router.get("/api/forms/event/{event_id}")
def get_schema(event_id: int, db: Session = Depends(get_db)):
    e = db.get(Event, event_id)
    require(e is not None, "Event tidak ditemukan", 404)
    return {"success": True, "data": get_form_schema(db, event_id)}


@router.post("/api/forms/event/{event_id}", status_code=201)
def create_field(
    event_id: int,
    body: FormFieldIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    e = db.get(Event, event_id)
    require(e is not None, "Event tidak ditemukan", 404)
    require(can_manage_event(user, e))

    label = body.label.strip()
    require(bool(label), "Label pertanyaan wajib diisi", 400)

    ftype = (body.field_type or "text").strip().lower()
    require(ftype in FIELD_TYPES, f"Tipe field tidak dikenal: {ftype}", 400)

    options = normalize_options(body.options) if ftype == "select" else ()
    if ftype == "select":
        require(len(options) > 0, "Field pilihan harus memiliki minimal satu opsi", 400)

    parent_id = body.parent_field_id
    conditional_value = ""
    if parent_id is not None:
        parent = db.get(FormField, parent_id)
        require(parent is not None and parent.event_id == event_id, "Field parent tidak ditemukan", 400)
        # One level only: the parent must be a plain select question.
        require(parent.field_type == "select", "Field parent harus bertipe pilihan (select)", 400)
        require(parent.parent_field_id is None, "Field parent tidak boleh berupa field bersyarat", 400)

        conditional_value = (body.conditional_value or "").strip()
        require(bool(conditional_value), "Nilai kondisi wajib diisi untuk field bersyarat", 400)
        require(
            conditional_value in normalize_options(parent.options_json),
            "Nilai kondisi harus salah satu opsi field parent",
            400,
        )

    last_order = db.query(func.max(FormField.order)).filter(FormField.event_id == event_id).scalar()

    f = FormField(
        event_id=event_id,
        label=label,
        field_type=ftype,
        options_json=dump_options(options),
        is_required=body.is_required,
        order=(last_order if last_order is not None else -1) + 1,
        parent_field_id=parent_id,
        conditional_value=conditional_value,
    )
    db.add(f)
    db.flush()

    log_field_created(db, user.id, f)

    db.commit()
    db.refresh(f)
    invalidate_form_schema(event_id)
    logger.info("Form field %s added to event %s by user %s", f.id, event_id, user.id)

    return {"success": True, "message": "Pertanyaan ditambahkan", "data": field_snapshot(f)}


@router.delete("/api/form-fields/{field_id}")
def delete_field(field_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    f = db.get(FormField, field_id)
    require(f is not None, "Pertanyaan tidak ditemukan", 404)
    e = db.get(Event, f.event_id)
    require(e is not None and can_manage_event(user, e))

    # Conditional children would be orphans (never visible); remove them together.
    children = db.query(FormField).filter(FormField.parent_field_id == f.id).all()
    for c in children:
        log_field_deleted(db, user.id, c, comment=f"parent {f.id} deleted")
        db.delete(c)
    db.flush()

    log_field_deleted(db, user.id, f)

    event_id = f.event_id
    deleted_ids = [c.id for c in children] + [f.id]
    db.delete(f)
    db.commit()
    invalidate_form_schema(event_id)

    return {"success": True, "message": "Berhasil dihapus", "deleted_ids": deleted_ids}
