# barbershop/routers/clients_routes.py

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from barbershop import catalog
from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.errors import NotFoundError
from barbershop.schemas import ClientCreate, ClientPublic

router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)


@router.post("", response_model=ClientPublic, status_code=201)
def create_client(
    client: ClientCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return catalog.create_client(session, client.full_name, client.phone, client.email)

@router.get("", response_model=ClientPublic)
def find_client(
    phone: str = Query(..., min_length=1),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = catalog.find_client_by_phone(session, phone)
    if client is None:
        raise NotFoundError(f"No client with phone {phone}")
    return client

@router.get("/{client_id}", response_model=ClientPublic)
def get_client(
    client_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return catalog.get_client(session, client_id)
