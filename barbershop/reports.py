# barbershop/reports.py

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from .core import full_years
from .models import Appointment, Barber, BarberService, Client, Service
from .schemas import AppointmentStatus, BarberRole


def barber_names(session: Session) -> List[Dict]:
    rows = session.exec(select(Barber.id, Barber.full_name).order_by(Barber.full_name)).all()
    return [{"id": barber_id, "full_name": full_name} for barber_id, full_name in rows]


def barbers_by_role(session: Session, role: BarberRole) -> List[Barber]:
    return list(
        session.exec(
            select(Barber).where(Barber.role == BarberRole(role).value).order_by(Barber.full_name)
        ).all()
    )


def barbers_offering_service(
    session: Session, code: Optional[str] = None, name: Optional[str] = None
) -> List[Barber]:
    """Barbers with an active offer for the service matching ``code`` and/or ``name``."""
    if code is None and name is None:
        raise ValueError("Pass a service code or a service name")

    stmt = (
        select(Barber)
        .join(BarberService, BarberService.barber_id == Barber.id)
        .join(Service, Service.id == BarberService.service_id)
        .where(BarberService.active == True)  # noqa: E712
    )
    if code is not None:
        stmt = stmt.where(Service.code == code)
    if name is not None:
        stmt = stmt.where(Service.name == name)

    return list(session.exec(stmt.distinct().order_by(Barber.full_name)).all())


def barbers_with_experience(session: Session, years: int, as_of: Optional[date] = None) -> List[Barber]:
    """Barbers with strictly more than ``years`` full years since their hire date."""
    as_of = as_of or date.today()
    barbers = session.exec(select(Barber).order_by(Barber.full_name)).all()
    return [b for b in barbers if full_years(b.hire_date, as_of) > years]


def count_by_role(session: Session) -> Dict[str, int]:
    counts = {role.value: 0 for role in BarberRole}
    rows = session.exec(select(Barber.role, func.count(Barber.id)).group_by(Barber.role)).all()
    for role, count in rows:
        counts[role] = count
    return counts


def regular_clients(session: Session, min_visits: int) -> List[Dict]:
    """Clients with at least ``min_visits`` completed appointments, most frequent first."""
    visits = func.count(Appointment.id).label("visits")
    rows = session.exec(
        select(Client, visits)
        .join(Appointment, Appointment.client_id == Client.id)
        .where(Appointment.status == AppointmentStatus.completed.value)
        .group_by(Client.id)
        .having(func.count(Appointment.id) >= min_visits)
        .order_by(visits.desc(), Client.full_name)
    ).all()
    return [
        {
            "id": client.id,
            "full_name": client.full_name,
            "phone": client.phone,
            "email": client.email,
            "visits": count,
        }
        for client, count in rows
    ]
