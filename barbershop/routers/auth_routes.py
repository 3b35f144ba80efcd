# barbershop/routers/auth_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from barbershop.auth import create_access_token, verify_password
from barbershop.db import get_session
from barbershop.models import User
from barbershop.schemas import Token

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    # The OAuth2 password form calls the email "username"
    email = form_data.username.strip().lower()

    account = session.exec(select(User).where(User.email == email)).first()
    if account is None or not verify_password(form_data.password, account.password_hash):
        logger.info("Failed login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return Token(access_token=create_access_token({"sub": account.email}))
