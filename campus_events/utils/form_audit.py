from __future__ import annotations

import json

from sqlalchemy.orm import Session

from campus_events.db.models.form_audit_log import FormAuditLog
from campus_events.db.models.form_field import FormField
from campus_events.utils.schema import field_from_row, field_to_dict

ENTITY_FORM_FIELD = "form_field"


def field_snapshot(f: FormField) -> dict:
    """Normalized field as the schema endpoint shows it, plus its position."""
    return field_to_dict(field_from_row(f), order=f.order)


def _record(db: Session, actor_id: int, action: str, f: FormField, before: dict | None, after: dict | None, comment: str):
    # Row id must be assigned (flush) before logging a created field.
    db.add(
        FormAuditLog(
            actor_id=actor_id,
            event_id=f.event_id,
            action=action,
            entity=ENTITY_FORM_FIELD,
            entity_id=f.id,
            before_json=json.dumps(before, ensure_ascii=False) if before is not None else "",
            after_json=json.dumps(after, ensure_ascii=False) if after is not None else "",
            comment=comment.strip(),
        )
    )


def log_field_created(db: Session, actor_id: int, f: FormField) -> None:
    _record(db, actor_id, "create", f, None, field_snapshot(f), "")


def log_field_deleted(db: Session, actor_id: int, f: FormField, comment: str = "") -> None:
    """Snapshot the field before it is deleted; call before db.delete()."""
    _record(db, actor_id, "delete", f, field_snapshot(f), None, comment)
