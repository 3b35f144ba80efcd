"""Shared test fixtures and helpers."""

import os

# Keep the module-level engine off disk before anything imports barbershop.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date, datetime  # noqa: E402
from decimal import Decimal  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session  # noqa: E402

from barbershop import catalog  # noqa: E402
from barbershop.auth import create_access_token  # noqa: E402
from barbershop.availability import AvailabilityIndex  # noqa: E402
from barbershop.booking import BookingEngine  # noqa: E402
from barbershop.config import Settings  # noqa: E402
from barbershop.db import get_session, init_db, make_engine  # noqa: E402
from barbershop.deps import get_availability_index  # noqa: E402
from barbershop.locks import KeyedLock  # noqa: E402
from barbershop.main import app  # noqa: E402
from barbershop.models import User  # noqa: E402
from barbershop.roles import RoleGuard  # noqa: E402
from barbershop.schemas import BarberRole  # noqa: E402

TODAY = date(2025, 8, 15)
DAY = date(2025, 8, 31)


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    """Helper to build a timestamp on the test day."""
    return datetime(day.year, day.month, day.day, hour, minute)


def make_settings(**overrides) -> Settings:
    values = dict(
        lock_timeout_seconds=1.0,
        min_barber_age=21,
        enforce_availability_windows=False,
        open_time=None,
        close_time=None,
    )
    values.update(overrides)
    return Settings(**values)


def seed_shop(session: Session, guard: RoleGuard) -> SimpleNamespace:
    """The demo barbershop: three barbers, three clients, four services."""
    john = guard.create_barber(
        "John Smith", date(1985, 3, 5), date(2015, 2, 1), BarberRole.chief,
        phone="+380501112233", email="john@example.com",
    )
    alex = guard.create_barber(
        "Alex Johnson", date(1990, 7, 12), date(2018, 6, 1), BarberRole.senior,
        phone="+380671234567", email="alex@example.com",
    )
    mark = guard.create_barber(
        "Mark Davis", date(1998, 9, 21), date(2021, 1, 15), BarberRole.junior,
        phone="+380931112244", email="mark@example.com",
    )

    nick = catalog.create_client(session, "Nick Brown", "+380661112233", "nick@example.com")
    steve = catalog.create_client(session, "Steve Wilson", "+380671114455", "steve@example.com")
    andrew = catalog.create_client(session, "Andrew Hall", "+380501118899", "andrew@example.com")

    shave = catalog.create_service(
        session, "traditional-beard-shave", "Traditional Beard Shave",
        "Classic hot towel and straight razor shave",
    )
    classic = catalog.create_service(session, "haircut-classic", "Classic Haircut", "Standard men haircut")
    fade = catalog.create_service(session, "haircut-fade", "Fade Haircut", "Modern fade haircut")
    trim = catalog.create_service(session, "mustache-trim", "Mustache Trim", "Trimming and styling mustache")

    prices = {shave.id: ("600", 40), classic.id: ("400", 30), fade.id: ("500", 35), trim.id: ("200", 15)}
    for barber in (john, alex, mark):
        for service_id, (price, minutes) in prices.items():
            # Mark does not do traditional shaves
            if barber is mark and service_id == shave.id:
                continue
            catalog.offer_service(session, barber.id, service_id, Decimal(price), minutes)

    return SimpleNamespace(
        john=john, alex=alex, mark=mark,
        nick=nick, steve=steve, andrew=andrew,
        shave=shave, classic=classic, fade=fade, trim=trim,
    )


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def db_engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def index():
    return AvailabilityIndex()


@pytest.fixture
def booking(session, index, settings):
    return BookingEngine(session, index, KeyedLock("test barber"), settings)


@pytest.fixture
def guard(session, settings):
    return RoleGuard(session, KeyedLock("test role"), settings, today=lambda: TODAY)


@pytest.fixture
def shop(session, guard):
    return seed_shop(session, guard)


@pytest.fixture
def client(db_engine, index):
    def override_session():
        with Session(db_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_availability_index] = lambda: index
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(session: Session, email: str, role: str) -> dict:
    """Create an account directly in the store and return bearer headers for it."""
    session.add(User(email=email, password_hash="unused", role=role))
    session.commit()
    return {"Authorization": f"Bearer {create_access_token({'sub': email})}"}


@pytest.fixture
def manager_headers(session):
    return auth_headers(session, "manager@example.com", "manager")


@pytest.fixture
def client_headers(session):
    return auth_headers(session, "nick@example.com", "client")


@pytest.fixture
def barber_headers(session):
    return auth_headers(session, "frontdesk@example.com", "barber")
