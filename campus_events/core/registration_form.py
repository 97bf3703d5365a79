"""Conditional registration form.

This module holds the rules behind the event registration form in one place:

1) which questions are visible for the answers given so far
2) which visible required questions are still empty
3) how changing a parent answer clears the answers of its hidden children
4) how the answer set is turned into the payload stored as form answers

Everything here is pure and framework independent. Nothing raises for user
input: a broken schema (orphan child, parent that is not a select, ...) only
makes the affected field invisible.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence


FIELD_TYPES = ("text", "number", "select", "file", "date")

REQUIRED_MESSAGE = "{label} wajib diisi"


@dataclass(frozen=True, slots=True)
class FormField:
    """One question of an event registration form."""

    id: int
    label: str
    field_type: str = "text"
    options: tuple[str, ...] = ()
    is_required: bool = False
    # Conditional fields only show up when the parent's answer equals conditional_value.
    parent_field_id: int | None = None
    conditional_value: str | None = None

    @property
    def key(self) -> str:
        return str(self.id)

    @property
    def is_conditional(self) -> bool:
        return self.parent_field_id is not None


@dataclass(slots=True)
class FormState:
    """Answers + inline errors of one registration session."""

    answers: dict[str, str] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class SubmitResult:
    ok: bool
    errors: dict[str, str]
    payload: list[dict] | None = None

    @property
    def first_error(self) -> str | None:
        return next(iter(self.errors.values()), None)


def _is_blank(val: str | None) -> bool:
    return val is None or str(val).strip() == ""


def _index(fields: Iterable[FormField]) -> dict[int, FormField]:
    return {f.id: f for f in fields}


def _condition_met(f: FormField, by_id: Mapping[int, FormField], answers: Mapping[str, str]) -> bool:
    parent = by_id.get(f.parent_field_id)  # type: ignore[arg-type]
    if parent is None:
        # orphan conditional field
        return False
    # Only one level of nesting, with a select parent.
    if parent.is_conditional or parent.field_type != "select":
        return False
    if f.conditional_value is None or f.conditional_value not in parent.options:
        return False
    return answers.get(parent.key) == f.conditional_value


def visible_fields(fields: Sequence[FormField], answers: Mapping[str, str]) -> list[FormField]:
    """Return the fields that should currently render, in input order."""
    by_id = _index(fields)
    return [f for f in fields if not f.is_conditional or _condition_met(f, by_id, answers)]


def validate_answers(fields: Sequence[FormField], answers: Mapping[str, str]) -> dict[str, str]:
    """Map field id (as string) -> error message for every visible required field left blank.

    Hidden required fields never produce an error.
    """
    errors: dict[str, str] = {}
    for f in visible_fields(fields, answers):
        if f.is_required and _is_blank(answers.get(f.key)):
            errors[f.key] = REQUIRED_MESSAGE.format(label=f.label)
    return errors


def children_of(fields: Iterable[FormField], parent_id: int) -> list[FormField]:
    return [f for f in fields if f.parent_field_id == parent_id]


def set_answer(state: FormState, fields: Sequence[FormField], field_id: int, value: str) -> FormState:
    """Store an answer and clear the answers of children whose condition no longer holds.

    Returns a new state; the given one is left untouched.
    """
    answers = dict(state.answers)
    errors = dict(state.errors)

    key = str(field_id)
    answers[key] = value
    errors.pop(key, None)

    # Direct children only; a deeper chain would repeat this for each cleared child.
    for child in children_of(fields, field_id):
        if child.conditional_value != value:
            answers.pop(child.key, None)
            errors.pop(child.key, None)

    return FormState(answers=answers, errors=errors)


def validate(state: FormState, fields: Sequence[FormField]) -> FormState:
    return FormState(answers=dict(state.answers), errors=validate_answers(fields, state.answers))


def build_payload(answers: Mapping[str, str]) -> list[dict]:
    """Wire format for the registration endpoint, one record per answered key.

    Visibility is not re-checked: answers cleared by set_answer are simply absent.
    """
    payload: list[dict] = []
    for key, value in answers.items():
        try:
            field_id = int(key)
        except (TypeError, ValueError):
            continue
        payload.append({"form_field_id": field_id, "value": value})
    return payload


def submit(state: FormState, fields: Sequence[FormField]) -> SubmitResult:
    """Validate and, only when valid, assemble the payload."""
    errors = validate_answers(fields, state.answers)
    if errors:
        return SubmitResult(ok=False, errors=errors, payload=None)
    return SubmitResult(ok=True, errors={}, payload=build_payload(state.answers))


def answers_from_payload(items: Iterable[Mapping]) -> dict[str, str]:
    """Inverse of build_payload, used server-side to re-run validation."""
    answers: dict[str, str] = {}
    for item in items:
        fid = item.get("form_field_id")
        if fid is None:
            continue
        v = item.get("value")
        answers[str(int(fid))] = "" if v is None else str(v)
    return answers
