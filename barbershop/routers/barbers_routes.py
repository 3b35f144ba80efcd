# barbershop/routers/barbers_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from barbershop import catalog
from barbershop.auth import get_current_user
from barbershop.booking import BookingEngine
from barbershop.db import get_session
from barbershop.deps import get_booking_engine, get_role_guard, require_role
from barbershop.roles import RoleGuard
from barbershop.routers.appointments_routes import appointment_public
from barbershop.schemas import (
    AppointmentPublic,
    AppointmentStatus,
    AvailabilityWindowCreate,
    AvailabilityWindowPublic,
    BarberCreate,
    BarberPublic,
    BarberUpdate,
    ReviewPublic,
    RoleAssignment,
    ServiceOffer,
    ServiceOfferPublic,
)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)

@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberCreate,
    guard: RoleGuard = Depends(get_role_guard),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager")
    return guard.create_barber(**barber.model_dump())

@router.get("", response_model=List[BarberPublic])
def list_barbers(
    include_inactive: bool = True,
    guard: RoleGuard = Depends(get_role_guard),
    current_user: dict = Depends(get_current_user),
):
    return guard.list_barbers(include_inactive=include_inactive)

@router.get("/{barber_id}", response_model=BarberPublic)
def get_barber(
    barber_id: int,
    guard: RoleGuard = Depends(get_role_guard),
    current_user: dict = Depends(get_current_user),
):
    return guard.get_barber(barber_id)

@router.patch("/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: int,
    changes: BarberUpdate,
    guard: RoleGuard = Depends(get_role_guard),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager")
    return guard.update_barber(barber_id, **changes.model_dump(exclude_unset=True))

@router.put("/{barber_id}/role", response_model=BarberPublic)
def assign_role(
    barber_id: int,
    assignment: RoleAssignment,
    guard: RoleGuard = Depends(get_role_guard),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager")
    return guard.assign_role(barber_id, assignment.role)

@router.delete("/{barber_id}", status_code=204)
def delete_barber(
    barber_id: int,
    guard: RoleGuard = Depends(get_role_guard),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager")
    guard.delete_barber(barber_id)
    return Response(status_code=204)

@router.put("/{barber_id}/services/{service_id}", response_model=ServiceOfferPublic)
def offer_service(
    barber_id: int,
    service_id: int,
    offer: ServiceOffer,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager")
    return catalog.offer_service(
        session,
        barber_id,
        service_id,
        price=offer.price,
        duration_minutes=offer.duration_minutes,
        active=offer.active,
    )

@router.get("/{barber_id}/services", response_model=List[ServiceOfferPublic])
def list_offers(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return catalog.barber_offers(session, barber_id)

@router.post("/{barber_id}/availability", response_model=AvailabilityWindowPublic, status_code=201)
def add_availability(
    barber_id: int,
    window: AvailabilityWindowCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager", "barber")
    return catalog.add_availability_window(session, barber_id, window.starts_at, window.ends_at)

@router.get("/{barber_id}/availability", response_model=List[AvailabilityWindowPublic])
def list_availability(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return catalog.availability_windows(session, barber_id)

@router.get("/{barber_id}/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    barber_id: int,
    status: Optional[AppointmentStatus] = None,
    on_date: Optional[date] = None,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager", "barber")
    appts = engine.barber_appointments(
        barber_id, status=status.value if status else None, on_date=on_date
    )
    return [appointment_public(engine, a) for a in appts]

@router.get("/{barber_id}/reviews", response_model=List[ReviewPublic])
def list_reviews(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return catalog.barber_reviews(session, barber_id)
