from __future__ import annotations

from datetime import timedelta

from sqlalchemy.orm import Session

from campus_events.core.config import settings
from campus_events.core.security import hash_password
from campus_events.db.models.event import Event, EventStatus
from campus_events.db.models.form_field import FormField
from campus_events.db.models.user import User, Role
from campus_events.utils.schema import dump_options
from campus_events.utils.timeutil import utcnow


def _get_or_create_user(db: Session, email: str, name: str, role: Role) -> User:
    u = db.query(User).filter(User.email == email).first()
    if not u:
        u = User(name=name, email=email, password_hash=hash_password(settings.SAMPLE_SEED_PASSWORD), role=role)
        db.add(u)
        db.flush()  # populate u.id
    return u


def _get_or_create_event(db: Session, *, slug: str, title: str, created_by: User, **kw) -> Event:
    e = db.query(Event).filter(Event.slug == slug).first()
    if not e:
        e = Event(slug=slug, title=title, created_by_id=created_by.id, **kw)
        db.add(e)
        db.flush()
    return e


def _add_field(db: Session, event: Event, order: int, label: str, field_type: str, **kw) -> FormField:
    f = (
        db.query(FormField)
        .filter(FormField.event_id == event.id, FormField.label == label)
        .first()
    )
    if not f:
        options = kw.pop("options", None)
        f = FormField(
            event_id=event.id,
            order=order,
            label=label,
            field_type=field_type,
            options_json=dump_options(options),
            **kw,
        )
        db.add(f)
        db.flush()
    return f


def seed_sample(db: Session) -> None:
    """Sample organizer, participant and a published event with a conditional form.

    Caller commits.
    """
    organizer = _get_or_create_user(db, "panitia@campus.local", "Panitia Contoh", Role.ORGANIZER)
    _get_or_create_user(db, "peserta@campus.local", "Peserta Contoh", Role.PARTICIPANT)

    start = utcnow().replace(microsecond=0) + timedelta(days=14)
    event = _get_or_create_event(
        db,
        slug="seminar-teknologi-kampus",
        title="Seminar Teknologi Kampus",
        created_by=organizer,
        description="Seminar tahunan himpunan mahasiswa.",
        location="Aula Utama",
        start_date=start,
        end_date=start + timedelta(hours=4),
        registration_deadline=start - timedelta(days=1),
        status=EventStatus.PUBLISHED,
        quota=200,
        price=0,
    )

    _add_field(db, event, 0, "Asal kota", "text", is_required=True)
    datang = _add_field(db, event, 1, "Datang?", "select", options=["Ya", "Tidak"], is_required=True)
    _add_field(
        db,
        event,
        2,
        "Jumlah tamu",
        "number",
        is_required=True,
        parent_field_id=datang.id,
        conditional_value="Ya",
    )
    _add_field(
        db,
        event,
        3,
        "Alasan tidak datang",
        "text",
        parent_field_id=datang.id,
        conditional_value="Tidak",
    )
