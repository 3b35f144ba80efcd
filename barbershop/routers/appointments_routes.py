# barbershop/routers/appointments_routes.py

from fastapi import APIRouter, Depends

from barbershop import catalog
from barbershop.auth import get_current_user
from barbershop.booking import BookingEngine
from barbershop.deps import get_booking_engine, require_role, require_staff_or_client
from barbershop.models import Appointment
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentReschedule,
)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def appointment_public(engine: BookingEngine, appt: Appointment) -> dict:
    return {
        "id": appt.id,
        "barber_id": appt.barber_id,
        "client_id": appt.client_id,
        "starts_at": appt.starts_at,
        "ends_at": appt.ends_at,
        "status": appt.status,
        "total_amount": appt.total_amount,
        "services": [
            {
                "service_id": line.service_id,
                "price": line.price,
                "duration_minutes": line.duration_minutes,
            }
            for line in engine.appointment_lines(appt.id)
        ],
    }


def _own_appointment(engine: BookingEngine, appt_id: int, current_user: dict) -> Appointment:
    appt = engine.get_appointment(appt_id)
    require_staff_or_client(current_user, catalog.get_client(engine.session, appt.client_id))
    return appt


@router.post("", response_model=AppointmentPublic, status_code=201)
def book_appointment(
    appt: AppointmentCreate,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: dict = Depends(get_current_user),
):
    # Clients may only book for themselves
    require_staff_or_client(current_user, catalog.get_client(engine.session, appt.client_id))
    booked = engine.book_appointment(
        barber_id=appt.barber_id,
        client_id=appt.client_id,
        service_ids=appt.service_ids,
        starts_at=appt.starts_at,
        ends_at=appt.ends_at,
    )
    return appointment_public(engine, booked)

@router.get("/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: dict = Depends(get_current_user),
):
    return appointment_public(engine, _own_appointment(engine, appt_id, current_user))

@router.patch("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: dict = Depends(get_current_user),
):
    # Staff, or the client who booked
    _own_appointment(engine, appt_id, current_user)
    return appointment_public(engine, engine.cancel_appointment(appt_id))

@router.patch("/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager", "barber")
    return appointment_public(engine, engine.complete_appointment(appt_id))

@router.patch("/{appt_id}/no-show", response_model=AppointmentPublic)
def mark_no_show(
    appt_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager", "barber")
    return appointment_public(engine, engine.mark_no_show(appt_id))

@router.patch("/{appt_id}/reschedule", response_model=AppointmentPublic)
def reschedule_appointment(
    appt_id: int,
    change: AppointmentReschedule,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager", "barber")
    moved = engine.reschedule_appointment(appt_id, change.starts_at, change.ends_at)
    return appointment_public(engine, moved)
