from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from clinic_api import config
from clinic_api.auth import create_access_token
from clinic_api.db import get_session
from clinic_api.main import app
from clinic_api.models import Appointment, Client, InsurancePlan, Procedure, Professional, User
from clinic_api.repository import AppointmentRepository
from clinic_api.services.appointments import AppointmentService

# Fixed "now" for service-level tests
NOW = datetime(2030, 1, 10, 12, 0, tzinfo=timezone.utc)


def utc(hour: int, minute: int = 0, day: int = 15) -> datetime:
    return datetime(2030, 1, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def scheduling_config(monkeypatch):
    monkeypatch.setattr(config, "CLINIC_TIMEZONE", "UTC")
    monkeypatch.setattr(config, "REQUIRE_TZ_OFFSET", False)
    monkeypatch.setattr(config, "ENFORCE_NO_DOUBLE_BOOKING", True)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def api(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add(session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


@pytest.fixture
def admin(session):
    return _add(session, User(name="Admin", email="admin@clinic.test", password_hash="-", role="ADMIN"))


@pytest.fixture
def owner(session):
    return _add(session, User(name="Ana", email="ana@clinic.test", password_hash="-", role="USER"))


@pytest.fixture
def stranger(session):
    return _add(session, User(name="Bruno", email="bruno@clinic.test", password_hash="-", role="USER"))


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture
def refs(session, owner):
    """One of each reference entity; the client belongs to ``owner``."""
    return {
        "client": _add(session, Client(name="Ana Souza", user_id=owner.id)),
        "professional": _add(session, Professional(name="Dra. Lima", specialty="Dermatologia")),
        "other_professional": _add(session, Professional(name="Dr. Reis")),
        "procedure": _add(session, Procedure(name="Limpeza de pele", duration_minutes=30, price=200.0)),
        "plan": _add(session, InsurancePlan(name="Unimed", discount_percent=25.0)),
    }


@pytest.fixture
def make_appointment(session, refs):
    def make(start: datetime, end: datetime, professional="professional", status="SCHEDULED", **extra):
        professional_id = refs[professional].id if professional else None
        appointment = Appointment(
            client_id=refs["client"].id,
            professional_id=professional_id,
            procedure_id=refs["procedure"].id,
            charged_amount=200.0,
            start_time=start.astimezone(timezone.utc),
            end_time=end.astimezone(timezone.utc),
            status=status,
            **extra,
        )
        return _add(session, appointment)

    return make


@pytest.fixture
def service(session):
    return AppointmentService(AppointmentRepository(session), clock=lambda: NOW)


@pytest.fixture
def future_day():
    """A date safely in the future for HTTP tests, which use the real clock."""
    return (datetime.now(timezone.utc) + timedelta(days=30)).date()
