# barbershop/booking.py
"""
Booking rules for appointments.

``BookingEngine`` validates a booking request, checks the barber's schedule
in the availability index and writes the appointment with its service lines.
The conflict check, the write and the index update run under the barber's
lock, so two requests for the same barber cannot both pass the check. A
request that fails leaves no rows and no index entry behind.

Status moves only forward: scheduled -> completed | cancelled | no-show, and
those three are final.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from .availability import AvailabilityIndex
from .config import Settings, settings as default_settings
from .core import naive_utc
from .db import store_errors
from .errors import (
    ConflictError,
    InvalidIntervalError,
    InvalidStateError,
    NotFoundError,
    OutsideAvailabilityError,
    UnsupportedServiceError,
)
from .locks import KeyedLock, barber_locks
from .models import (
    Appointment,
    AppointmentService,
    Barber,
    BarberAvailability,
    BarberService,
    Client,
    Service,
)
from .schemas import AppointmentStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.scheduled.value: {
        AppointmentStatus.completed.value,
        AppointmentStatus.cancelled.value,
        AppointmentStatus.no_show.value,
    },
}


class BookingEngine:
    def __init__(
        self,
        session: Session,
        index: AvailabilityIndex,
        locks: KeyedLock = barber_locks,
        settings: Settings = default_settings,
    ) -> None:
        self.session = session
        self.index = index
        self.locks = locks
        self.settings = settings

    # -- lookups -----------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.session.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def appointment_lines(self, appointment_id: int) -> List[AppointmentService]:
        return list(
            self.session.exec(
                select(AppointmentService)
                .where(AppointmentService.appointment_id == appointment_id)
                .order_by(AppointmentService.id)
            ).all()
        )

    def barber_appointments(
        self,
        barber_id: int,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> List[Appointment]:
        if self.session.get(Barber, barber_id) is None:
            raise NotFoundError(f"Barber {barber_id} not found")

        stmt = select(Appointment).where(Appointment.barber_id == barber_id)
        if on_date is not None:
            day_start_dt = datetime.combine(on_date, datetime.min.time())
            day_end_dt = day_start_dt + timedelta(days=1)
            stmt = stmt.where(Appointment.starts_at >= day_start_dt).where(
                Appointment.starts_at < day_end_dt
            )
        if status is not None:
            stmt = stmt.where(Appointment.status == status)

        return list(self.session.exec(stmt.order_by(Appointment.starts_at)).all())

    def has_conflict(self, barber_id: int, starts_at: datetime, ends_at: datetime) -> bool:
        return self.index.has_conflict(barber_id, naive_utc(starts_at), naive_utc(ends_at))

    # -- booking -----------------------------------------------------------

    def book_appointment(
        self,
        barber_id: int,
        client_id: int,
        service_ids: Iterable[int],
        starts_at: datetime,
        ends_at: Optional[datetime] = None,
    ) -> Appointment:
        """
        Book ``service_ids`` with a barber for a client.

        When ``ends_at`` is omitted the appointment runs for the sum of the
        barber's durations for the requested services. The total is the sum
        of the barber's current prices, and each line keeps a copy of the
        price and duration it was booked at.
        """
        starts_at, ends_at = naive_utc(starts_at), naive_utc(ends_at)

        # 1) Validate the interval
        if ends_at is not None and ends_at <= starts_at:
            raise InvalidIntervalError("Appointment must end after it starts")

        # 2) Validate barber, client and services
        self._require_active_barber(barber_id)
        if self.session.get(Client, client_id) is None:
            raise NotFoundError(f"Client {client_id} not found")

        service_ids = list(dict.fromkeys(service_ids))
        if not service_ids:
            raise UnsupportedServiceError("At least one service is required")
        for service_id in service_ids:
            if self.session.get(Service, service_id) is None:
                raise NotFoundError(f"Service {service_id} not found")

        offers = self._offers(barber_id, service_ids)
        missing = [service_id for service_id in service_ids if service_id not in offers]

        if ends_at is None:
            if missing:
                raise self._unsupported(barber_id, missing)
            minutes = sum(offers[service_id].duration_minutes for service_id in service_ids)
            ends_at = starts_at + timedelta(minutes=minutes)

        self._check_bookable_time(barber_id, starts_at, ends_at)

        with self.locks.hold(barber_id, self.settings.lock_timeout_seconds):
            # 3) Reject double booking
            if self.index.has_conflict(barber_id, starts_at, ends_at):
                logger.info(
                    "Rejected booking for barber %s %s-%s: overlaps an existing appointment",
                    barber_id,
                    starts_at,
                    ends_at,
                )
                raise ConflictError("Appointment overlaps an existing appointment")

            # 4) Price the visit
            if missing:
                raise self._unsupported(barber_id, missing)
            total = sum((offers[service_id].price for service_id in service_ids), Decimal("0"))

            # 5) Persist appointment, lines and index entry together
            appointment = Appointment(
                barber_id=barber_id,
                client_id=client_id,
                starts_at=starts_at,
                ends_at=ends_at,
                status=AppointmentStatus.scheduled.value,
                total_amount=total,
            )
            appointment_id = None
            try:
                with store_errors():
                    self.session.add(appointment)
                    self.session.flush()
                    appointment_id = appointment.id
                    for service_id in service_ids:
                        offer = offers[service_id]
                        self.session.add(
                            AppointmentService(
                                appointment_id=appointment_id,
                                service_id=service_id,
                                price=offer.price,
                                duration_minutes=offer.duration_minutes,
                            )
                        )
                    self.session.flush()
                self.index.insert(appointment)
                with store_errors():
                    self.session.commit()
            except Exception:
                self.session.rollback()
                if appointment_id is not None:
                    self.index.remove(appointment_id)
                raise

        self.session.refresh(appointment)
        logger.info(
            "Booked appointment %s: barber %s, client %s, %s-%s, total %s",
            appointment.id,
            barber_id,
            client_id,
            starts_at,
            ends_at,
            total,
        )
        return appointment

    def reschedule_appointment(
        self,
        appointment_id: int,
        starts_at: datetime,
        ends_at: Optional[datetime] = None,
    ) -> Appointment:
        """Move a scheduled appointment; without ``ends_at`` the length is kept."""
        starts_at, ends_at = naive_utc(starts_at), naive_utc(ends_at)
        if ends_at is not None and ends_at <= starts_at:
            raise InvalidIntervalError("Appointment must end after it starts")

        appointment = self.get_appointment(appointment_id)
        barber_id = appointment.barber_id
        if ends_at is None:
            ends_at = starts_at + (appointment.ends_at - appointment.starts_at)
        self._check_bookable_time(barber_id, starts_at, ends_at)

        with self.locks.hold(barber_id, self.settings.lock_timeout_seconds):
            self.session.refresh(appointment)
            if appointment.status != AppointmentStatus.scheduled.value:
                raise InvalidStateError(
                    f"Appointment {appointment_id} is {appointment.status}; "
                    "only scheduled appointments can be rescheduled"
                )
            if self.index.has_conflict(barber_id, starts_at, ends_at, exclude=appointment_id):
                raise ConflictError("Appointment overlaps an existing appointment")

            previous = Appointment(
                id=appointment_id,
                barber_id=barber_id,
                client_id=appointment.client_id,
                starts_at=appointment.starts_at,
                ends_at=appointment.ends_at,
            )
            appointment.starts_at = starts_at
            appointment.ends_at = ends_at
            try:
                with store_errors():
                    self.session.add(appointment)
                    self.session.flush()
                self.index.insert(appointment, replacing=appointment_id)
                try:
                    with store_errors():
                        self.session.commit()
                except Exception:
                    self.index.insert(previous, replacing=appointment_id)
                    raise
            except Exception:
                self.session.rollback()
                raise

        self.session.refresh(appointment)
        logger.info(
            "Rescheduled appointment %s to %s-%s", appointment_id, starts_at, ends_at
        )
        return appointment

    # -- status changes ----------------------------------------------------

    def cancel_appointment(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.cancelled)

    def complete_appointment(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.completed)

    def mark_no_show(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.no_show)

    def _transition(self, appointment_id: int, target: AppointmentStatus) -> Appointment:
        appointment = self.get_appointment(appointment_id)

        with self.locks.hold(appointment.barber_id, self.settings.lock_timeout_seconds):
            # Re-read under the lock; another request may have moved it.
            self.session.refresh(appointment)
            current = appointment.status
            if target.value not in ALLOWED_TRANSITIONS.get(current, ()):
                raise InvalidStateError(
                    f"Appointment {appointment_id} is {current}; cannot mark it {target.value}"
                )

            appointment.status = target.value
            try:
                with store_errors():
                    self.session.add(appointment)
                    self.session.commit()
            except Exception:
                self.session.rollback()
                raise

            if target is AppointmentStatus.cancelled:
                self.index.remove(appointment_id)

        self.session.refresh(appointment)
        logger.info("Appointment %s: %s -> %s", appointment_id, current, target.value)
        return appointment

    # -- helpers -----------------------------------------------------------

    def _require_active_barber(self, barber_id: int) -> Barber:
        barber = self.session.get(Barber, barber_id)
        if barber is None:
            raise NotFoundError(f"Barber {barber_id} not found")
        if not barber.active:
            raise NotFoundError(f"Barber {barber_id} is not active")
        return barber

    def _offers(self, barber_id: int, service_ids: List[int]) -> Dict[int, BarberService]:
        rows = self.session.exec(
            select(BarberService)
            .where(BarberService.barber_id == barber_id)
            .where(BarberService.service_id.in_(service_ids))
            .where(BarberService.active == True)  # noqa: E712
        ).all()
        return {row.service_id: row for row in rows}

    @staticmethod
    def _unsupported(barber_id: int, missing: List[int]) -> UnsupportedServiceError:
        listed = ", ".join(str(service_id) for service_id in missing)
        return UnsupportedServiceError(f"Barber {barber_id} does not offer service(s) {listed}")

    def _check_bookable_time(self, barber_id: int, starts_at: datetime, ends_at: datetime) -> None:
        open_time, close_time = self.settings.open_time, self.settings.close_time
        if open_time is not None:
            if (
                starts_at.date() != ends_at.date()
                or starts_at.time() < open_time
                or ends_at.time() > close_time
            ):
                raise OutsideAvailabilityError(
                    f"Appointment must be within business hours "
                    f"({open_time:%H:%M}-{close_time:%H:%M})"
                )

        if self.settings.enforce_availability_windows:
            window = self.session.exec(
                select(BarberAvailability)
                .where(BarberAvailability.barber_id == barber_id)
                .where(BarberAvailability.starts_at <= starts_at)
                .where(BarberAvailability.ends_at >= ends_at)
            ).first()
            if window is None:
                raise OutsideAvailabilityError(
                    f"Barber {barber_id} has no availability window covering "
                    f"{starts_at:%Y-%m-%d %H:%M}-{ends_at:%H:%M}"
                )


def load_availability_index(session: Session, index: AvailabilityIndex) -> int:
    """Fill ``index`` with every appointment that still blocks time."""
    appointments = session.exec(
        select(Appointment)
        .where(Appointment.status != AppointmentStatus.cancelled.value)
        .order_by(Appointment.barber_id, Appointment.starts_at)
    ).all()
    return index.rebuild(appointments)
