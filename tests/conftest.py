"""
Campus Events - Test Configuration and Fixtures
"""
import os
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"

from campus_events.main import app
from campus_events.db.base import Base
from campus_events.db.session import get_db
from campus_events.db.models.user import User, Role
from campus_events.db.models.event import Event, EventStatus
from campus_events.db.models.form_field import FormField
from campus_events.core.security import hash_password, sign_session
from campus_events.auth.deps import SESSION_COOKIE
from campus_events.utils.schema import dump_options

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh schema and session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client_for(db_session: Session) -> Generator[Callable[[User | None], TestClient], None, None]:
    """Factory: TestClient logged in as the given user (anonymous for None)"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    clients: list[TestClient] = []

    def make(user: User | None = None) -> TestClient:
        cookies = {SESSION_COOKIE: sign_session(user.id)} if user is not None else None
        c = TestClient(app, cookies=cookies)
        clients.append(c)
        return c

    yield make

    for c in clients:
        c.close()
    app.dependency_overrides.clear()


def _make_user(db: Session, email: str, role: Role, password: str = "secret123") -> User:
    user = User(
        name=email.split("@")[0].title(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, "admin@campus.test", Role.ADMIN)


@pytest.fixture
def organizer(db_session: Session) -> User:
    return _make_user(db_session, "panitia@campus.test", Role.ORGANIZER)


@pytest.fixture
def other_organizer(db_session: Session) -> User:
    return _make_user(db_session, "panitia2@campus.test", Role.ORGANIZER)


@pytest.fixture
def participant(db_session: Session) -> User:
    return _make_user(db_session, "peserta@campus.test", Role.PARTICIPANT)


@pytest.fixture
def make_participant(db_session: Session) -> Callable[[str], User]:
    def make(email: str) -> User:
        return _make_user(db_session, email, Role.PARTICIPANT)
    return make


@pytest.fixture
def event(db_session: Session, organizer: User) -> Event:
    """Published free event owned by `organizer`"""
    e = Event(
        title="Seminar Teknologi",
        slug="seminar-teknologi",
        description="",
        location="Aula",
        status=EventStatus.PUBLISHED,
        quota=0,
        price=0,
        created_by_id=organizer.id,
    )
    db_session.add(e)
    db_session.commit()
    db_session.refresh(e)
    return e


@pytest.fixture
def conditional_form(db_session: Session, event: Event) -> dict:
    """Datang? (select Ya/Tidak, required) -> Jumlah tamu (number, required, only when Ya)"""
    datang = FormField(
        event_id=event.id,
        label="Datang?",
        field_type="select",
        options_json=dump_options(["Ya", "Tidak"]),
        is_required=True,
        order=0,
    )
    db_session.add(datang)
    db_session.flush()
    jumlah = FormField(
        event_id=event.id,
        label="Jumlah tamu",
        field_type="number",
        options_json="[]",
        is_required=True,
        order=1,
        parent_field_id=datang.id,
        conditional_value="Ya",
    )
    db_session.add(jumlah)
    db_session.commit()
    return {"datang": datang.id, "jumlah": jumlah.id}
