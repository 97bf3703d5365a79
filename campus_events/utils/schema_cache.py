from __future__ import annotations

import json
import logging

from redis import RedisError
from sqlalchemy.orm import Session

from campus_events.core.config import settings
from campus_events.core.redis import get_redis
from campus_events.db.models.form_field import FormField as FormFieldRow
from campus_events.utils.schema import field_from_row, field_to_dict

logger = logging.getLogger("campus_events.schema_cache")


def _key(event_id: int) -> str:
    return f"form_schema:{event_id}"


def load_schema_rows(db: Session, event_id: int) -> list[FormFieldRow]:
    return (
        db.query(FormFieldRow)
        .filter(FormFieldRow.event_id == event_id)
        .order_by(FormFieldRow.order.asc(), FormFieldRow.id.asc())
        .all()
    )


def get_form_schema(db: Session, event_id: int) -> list[dict]:
    """Normalized form schema of an event (cached with Redis TTL if available)."""
    r = get_redis()
    if r is not None:
        try:
            v = r.get(_key(event_id))
            if v is not None:
                return json.loads(v)
        except (RedisError, ValueError) as exc:
            logger.debug("schema cache read failed: %s", exc)

    schema = [field_to_dict(field_from_row(row), order=row.order) for row in load_schema_rows(db, event_id)]

    if r is not None:
        try:
            r.setex(_key(event_id), settings.FORM_SCHEMA_CACHE_SECONDS, json.dumps(schema, ensure_ascii=False))
        except RedisError as exc:
            logger.debug("schema cache write failed: %s", exc)
    return schema


def invalidate_form_schema(event_id: int) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        r.delete(_key(event_id))
    except RedisError as exc:
        logger.debug("schema cache invalidate failed: %s", exc)
