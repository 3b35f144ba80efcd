# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop import catalog
from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.schemas import ServiceCreate, ServicePublic

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "manager")
    return catalog.create_service(session, service.code, service.name, service.description)

@router.get("", response_model=List[ServicePublic])
def list_services(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return catalog.list_services(session)
