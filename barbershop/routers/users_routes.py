# barbershop/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.auth import get_current_user, hash_password
from barbershop.db import get_session, store_errors
from barbershop.models import User
from barbershop.schemas import UserCreate, UserPublic, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def register(
    account: UserCreate,
    session: Session = Depends(get_session),
):
    """Self-service sign-up for barber and client accounts."""
    # Manager accounts come from MANAGER_EMAIL / MANAGER_PASSWORD only
    if account.role == UserRole.manager:
        raise HTTPException(status_code=403, detail="Manager accounts cannot be self-registered")

    user = User(
        email=account.email.strip().lower(),
        password_hash=hash_password(account.password),
        role=account.role.value,
    )
    try:
        with store_errors(message="Email already registered"):
            session.add(user)
            session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(user)

    logger.info("Registered %s account %s", user.role, user.email)
    return {"id": user.id, "email": user.email, "role": user.role}
