# barbershop/catalog.py
"""Clients, services, per-barber offers, availability windows and reviews."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlmodel import Session, select

from .core import naive_utc, normalize_phone
from .db import store_errors
from .errors import InvalidIntervalError, InvalidValueError, NotFoundError
from .models import (
    Appointment,
    Barber,
    BarberAvailability,
    BarberService,
    Client,
    Review,
    Service,
)

logger = logging.getLogger(__name__)

MIN_SERVICE_MINUTES = 5
MAX_SERVICE_MINUTES = 480


def _commit(session: Session, record, **error_kinds):
    try:
        with store_errors(**error_kinds):
            session.add(record)
            session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(record)
    return record


def _require_barber(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise NotFoundError(f"Barber {barber_id} not found")
    return barber


# Clients

def create_client(session: Session, full_name: str, phone: str, email: str = "") -> Client:
    cleaned = normalize_phone(phone)
    if not cleaned.lstrip("+"):
        raise InvalidValueError(f"Phone number {phone!r} has no digits")
    client = _commit(
        session,
        Client(full_name=full_name, phone=cleaned, email=email),
        message=f"A client with phone {cleaned} already exists",
    )
    logger.info("New client created: %s (%s)", full_name, cleaned)
    return client


def get_client(session: Session, client_id: int) -> Client:
    client = session.get(Client, client_id)
    if client is None:
        raise NotFoundError(f"Client {client_id} not found")
    return client


def find_client_by_phone(session: Session, phone: str) -> Optional[Client]:
    return session.exec(select(Client).where(Client.phone == normalize_phone(phone))).first()


# Services and offers

def create_service(
    session: Session, code: str, name: str, description: Optional[str] = None
) -> Service:
    service = _commit(
        session,
        Service(code=code, name=name, description=description),
        message=f"Service code {code!r} already exists",
    )
    logger.info("Service created: %s", code)
    return service


def list_services(session: Session) -> List[Service]:
    return list(session.exec(select(Service).order_by(Service.name)).all())


def offer_service(
    session: Session,
    barber_id: int,
    service_id: int,
    price: Decimal,
    duration_minutes: int,
    active: bool = True,
) -> BarberService:
    """Create or update the price and duration a barber charges for a service."""
    price = Decimal(str(price))
    if price < 0:
        raise InvalidValueError("Price cannot be negative")
    if not MIN_SERVICE_MINUTES <= duration_minutes <= MAX_SERVICE_MINUTES:
        raise InvalidValueError(
            f"Duration must be between {MIN_SERVICE_MINUTES} and {MAX_SERVICE_MINUTES} minutes"
        )
    _require_barber(session, barber_id)
    if session.get(Service, service_id) is None:
        raise NotFoundError(f"Service {service_id} not found")

    offer = session.exec(
        select(BarberService)
        .where(BarberService.barber_id == barber_id)
        .where(BarberService.service_id == service_id)
    ).first()
    if offer is None:
        offer = BarberService(barber_id=barber_id, service_id=service_id)
    offer.price = price
    offer.duration_minutes = duration_minutes
    offer.active = active

    return _commit(session, offer)


def barber_offers(session: Session, barber_id: int, active_only: bool = False) -> List[BarberService]:
    _require_barber(session, barber_id)
    stmt = select(BarberService).where(BarberService.barber_id == barber_id)
    if active_only:
        stmt = stmt.where(BarberService.active == True)  # noqa: E712
    return list(session.exec(stmt.order_by(BarberService.service_id)).all())


# Availability windows

def add_availability_window(
    session: Session, barber_id: int, starts_at: datetime, ends_at: datetime
) -> BarberAvailability:
    starts_at, ends_at = naive_utc(starts_at), naive_utc(ends_at)
    # Windows may overlap each other; only appointments are checked for clashes.
    if ends_at <= starts_at:
        raise InvalidIntervalError("Availability window must end after it starts")
    _require_barber(session, barber_id)
    return _commit(
        session, BarberAvailability(barber_id=barber_id, starts_at=starts_at, ends_at=ends_at)
    )


def availability_windows(session: Session, barber_id: int) -> List[BarberAvailability]:
    _require_barber(session, barber_id)
    return list(
        session.exec(
            select(BarberAvailability)
            .where(BarberAvailability.barber_id == barber_id)
            .order_by(BarberAvailability.starts_at)
        ).all()
    )


# Reviews

def add_review(
    session: Session,
    barber_id: int,
    client_id: int,
    rating: int,
    feedback: Optional[str] = None,
    appointment_id: Optional[int] = None,
) -> Review:
    if not 1 <= rating <= 5:
        raise InvalidValueError("Rating must be between 1 and 5")
    _require_barber(session, barber_id)
    get_client(session, client_id)
    if appointment_id is not None:
        appointment = session.get(Appointment, appointment_id)
        if (
            appointment is None
            or appointment.barber_id != barber_id
            or appointment.client_id != client_id
        ):
            raise NotFoundError(
                f"Appointment {appointment_id} not found for barber {barber_id} "
                f"and client {client_id}"
            )

    review = _commit(
        session,
        Review(
            barber_id=barber_id,
            client_id=client_id,
            appointment_id=appointment_id,
            rating=rating,
            feedback=feedback,
        ),
    )
    logger.info("Review %s: barber %s rated %s", review.id, barber_id, rating)
    return review


def barber_reviews(session: Session, barber_id: int) -> List[Review]:
    _require_barber(session, barber_id)
    return list(
        session.exec(
            select(Review).where(Review.barber_id == barber_id).order_by(Review.created_at)
        ).all()
    )
