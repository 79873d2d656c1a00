# tests/conftest.py

from datetime import datetime, timezone
from functools import lru_cache
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from barbershop.auth import hash_password
from barbershop.config import Settings
from barbershop.data import seed_defaults
from barbershop.db import create_db_and_tables, create_db_engine
from barbershop.main import create_app
from barbershop.models import Barber, BarberService, Profile, Service, WorkingHours
from barbershop.services.booking import BookingService
from barbershop.services.notifications import RecordingNotifier
from barbershop.services.schedule import ScheduleService

# Tuesday 2025-12-16, 08:00 in Sao Paulo (UTC-3)
TUESDAY_8AM = datetime(2025, 12, 16, 11, 0, tzinfo=timezone.utc)
WEDNESDAY = "2025-12-17"
SUNDAY = "2025-12-21"
PASSWORD = "secret-pass-123"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set_local(self, day: str, hhmm: str):
        """Move to a Sao Paulo wall-clock time."""
        hours, minutes = (int(x) for x in hhmm.split(":"))
        y, m, d = (int(x) for x in day.split("-"))
        self.now = datetime(y, m, d, hours + 3, minutes, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET_KEY="test-secret",
        SLOT_GRANULARITY_MINUTES=30,
        BUSINESS_TIMEZONE="America/Sao_Paulo",
    )


@pytest.fixture
def clock():
    return FrozenClock(TUESDAY_8AM)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@lru_cache()
def password_hash():
    return hash_password(PASSWORD)


def add_profile(session, email, role="client", full_name="Cliente Teste"):
    profile = Profile(
        email=email,
        password_hash=password_hash(),
        full_name=full_name,
        role=role,
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture
def shop(session):
    """Default shop hours and services, one barber working Mon-Sat 09-18."""
    seed_defaults(session)

    barber_profile = add_profile(session, "barbeiro@example.com", role="barber", full_name="João Barbeiro")
    barber = Barber(profile_id=barber_profile.id, name="João")
    session.add(barber)
    session.commit()
    session.refresh(barber)

    for day in range(1, 7):
        session.add(
            WorkingHours(
                barber_id=barber.id,
                day_of_week=day,
                start_time="09:00",
                end_time="18:00",
                break_start="12:00",
                break_end="13:00",
            )
        )

    services = {s.slug: s for s in session.exec(select(Service)).all()}
    for slug in ("corte-tradicional", "corte-barba"):
        session.add(BarberService(barber_id=barber.id, service_id=services[slug].id))
    session.commit()

    client = add_profile(session, "cliente@example.com")
    other_client = add_profile(session, "outro@example.com", full_name="Outro Cliente")

    return SimpleNamespace(
        barber_id=barber.id,
        barber_profile_id=barber_profile.id,
        haircut_id=services["corte-tradicional"].id,  # 30 min
        combo_id=services["corte-barba"].id,  # 60 min
        beard_id=services["barba-completa"].id,  # not offered by the barber
        client_id=client.id,
        other_client_id=other_client.id,
    )


@pytest.fixture
def booking(session, settings, clock, notifier):
    return BookingService(session, settings, clock=clock, notifier=notifier)


@pytest.fixture
def schedule(session, clock):
    return ScheduleService(session, clock=clock)


@pytest.fixture
def app(settings, engine, clock, notifier):
    app = create_app(settings, clock=clock, notifier=notifier)
    app.state.engine.dispose()
    app.state.engine = engine
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def login(client, email, password=PASSWORD):
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    def _login(email, password=PASSWORD):
        return login(client, email, password)

    return _login


@pytest.fixture
def barber_headers(shop, auth_headers):
    return auth_headers("barbeiro@example.com")


@pytest.fixture
def admin_headers(session, auth_headers):
    add_profile(session, "admin@example.com", role="admin", full_name="Admin")
    return auth_headers("admin@example.com")
