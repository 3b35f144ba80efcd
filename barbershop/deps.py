# barbershop/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from .availability import AvailabilityIndex
from .booking import BookingEngine
from .db import get_session
from .models import Client
from .roles import RoleGuard

# Shared by every request; rebuilt from the store at startup.
availability_index = AvailabilityIndex()


def get_availability_index() -> AvailabilityIndex:
    return availability_index

def get_booking_engine(
    session: Session = Depends(get_session),
    index: AvailabilityIndex = Depends(get_availability_index),
) -> BookingEngine:
    return BookingEngine(session, index)

def get_role_guard(session: Session = Depends(get_session)) -> RoleGuard:
    return RoleGuard(session)

def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")

def require_staff_or_client(user: dict, client: Client):
    """Staff act on any booking; a client account only on its own (matched by email)."""
    if user["role"] in ("manager", "barber"):
        return
    if user["role"] == "client" and client.email and client.email.lower() == user["email"].lower():
        return
    raise HTTPException(status_code=403, detail="Forbidden")
