from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_events.db.session import get_db
from campus_events.auth.deps import get_current_user
from campus_events.core.rbac import require, can_manage_event, is_admin, is_organizer
from campus_events.db.models.event import Event
from campus_events.db.models.form_audit_log import FormAuditLog
from campus_events.db.models.user import User

router = APIRouter(prefix="/api/audit", tags=["audit"])


def _load(s: str):
    if not s:
        return None
    try:
        return json.loads(s)
    except ValueError:
        return s


@router.get("/forms")
def form_audit(
    event_id: int | None = Query(None),
    action: str | None = Query(None),
    limit: int = Query(200, ge=10, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(is_organizer(user))

    q = db.query(FormAuditLog, User).join(User, User.id == FormAuditLog.actor_id)

    # Scope: organizers only see logs of their own events.
    if event_id is not None:
        e = db.get(Event, event_id)
        require(e is not None, "Event tidak ditemukan", 404)
        require(can_manage_event(user, e))
        q = q.filter(FormAuditLog.event_id == event_id)
    elif not is_admin(user):
        own = select(Event.id).where(Event.created_by_id == user.id)
        q = q.filter(FormAuditLog.event_id.in_(own))

    if action:
        q = q.filter(FormAuditLog.action == action.strip().lower())

    rows = (
        q.order_by(FormAuditLog.created_at.desc(), FormAuditLog.id.desc())
        .limit(int(limit))
        .all()
    )
    return {
        "success": True,
        "data": [
            {
                "id": log.id,
                "event_id": log.event_id,
                "action": log.action,
                "entity": log.entity,
                "entity_id": log.entity_id,
                "actor": {"id": actor.id, "name": actor.name},
                "before": _load(log.before_json),
                "after": _load(log.after_json),
                "comment": log.comment,
                "created_at": log.created_at.isoformat() if log.created_at else None,
            }
            for log, actor in rows
        ],
    }
