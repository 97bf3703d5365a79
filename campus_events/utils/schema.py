from __future__ import annotations

import json
from typing import Any

from campus_events.core.registration_form import FIELD_TYPES, FormField


def normalize_options(raw: Any) -> tuple[str, ...]:
    """Parse select options once, whatever shape they were stored in.

    Accepted: list/tuple, JSON-encoded list, comma separated string, None.
    Values are stripped and blanks dropped; anything else yields ().
    """
    if raw is None:
        return ()
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        s = raw.strip()
        if not s or s == "null":
            return ()
        if s.startswith("["):
            try:
                raw = json.loads(s)
            except ValueError:
                return ()
        else:
            raw = s.split(",")
    if not isinstance(raw, (list, tuple)):
        return ()
    out: list[str] = []
    for v in raw:
        if v is None or isinstance(v, (dict, list)):
            continue
        v = str(v).strip()
        if v:
            out.append(v)
    return tuple(out)


def dump_options(options) -> str:
    return json.dumps(list(normalize_options(options)), ensure_ascii=False)


def _get(row: Any, name: str, default=None):
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def field_from_row(row: Any) -> FormField:
    """Build a normalized FormField from an ORM row or an API dict."""
    ftype = str(_get(row, "field_type") or "text").strip().lower()
    if ftype not in FIELD_TYPES:
        ftype = "text"

    raw_options = _get(row, "options_json")
    if raw_options is None:
        raw_options = _get(row, "options")

    parent_id = _get(row, "parent_field_id")
    cond = _get(row, "conditional_value")
    if parent_id is None:
        cond = None
    elif cond is not None:
        cond = str(cond)

    return FormField(
        id=int(_get(row, "id")),
        label=str(_get(row, "label") or ""),
        field_type=ftype,
        options=normalize_options(raw_options) if ftype == "select" else (),
        is_required=bool(_get(row, "is_required")),
        parent_field_id=int(parent_id) if parent_id is not None else None,
        conditional_value=cond,
    )


def fields_from_rows(rows) -> list[FormField]:
    return [field_from_row(r) for r in rows]


def field_to_dict(f: FormField, order: int | None = None) -> dict:
    d = {
        "id": f.id,
        "label": f.label,
        "field_type": f.field_type,
        "options": list(f.options),
        "is_required": f.is_required,
        "parent_field_id": f.parent_field_id,
        "conditional_value": f.conditional_value or "",
    }
    if order is not None:
        d["order"] = order
    return d
