# barbershop/routers/reports_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from barbershop import reports
from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.schemas import BarberName, BarberPublic, BarberRole, RegularClient, RoleCounts

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


def _manager(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "manager")
    return current_user


@router.get("/barbers/names", response_model=List[BarberName])
def barber_names(session: Session = Depends(get_session), _: dict = Depends(_manager)):
    return reports.barber_names(session)

@router.get("/barbers/by-role/{role}", response_model=List[BarberPublic])
def barbers_by_role(
    role: BarberRole,
    session: Session = Depends(get_session),
    _: dict = Depends(_manager),
):
    return reports.barbers_by_role(session, role)

@router.get("/barbers/by-service", response_model=List[BarberPublic])
def barbers_by_service(
    code: Optional[str] = None,
    name: Optional[str] = None,
    session: Session = Depends(get_session),
    _: dict = Depends(_manager),
):
    if code is None and name is None:
        raise HTTPException(status_code=422, detail="Pass a service code or name")
    return reports.barbers_offering_service(session, code=code, name=name)

@router.get("/barbers/experienced", response_model=List[BarberPublic])
def experienced_barbers(
    years: int = Query(ge=0),
    as_of: Optional[date] = None,
    session: Session = Depends(get_session),
    _: dict = Depends(_manager),
):
    return reports.barbers_with_experience(session, years, as_of)

@router.get("/barbers/role-counts", response_model=RoleCounts)
def role_counts(session: Session = Depends(get_session), _: dict = Depends(_manager)):
    return reports.count_by_role(session)

@router.get("/clients/regular", response_model=List[RegularClient])
def regular_clients(
    min_visits: int = Query(default=1, ge=1),
    session: Session = Depends(get_session),
    _: dict = Depends(_manager),
):
    return reports.regular_clients(session, min_visits)
