# barbershop/auth.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlmodel import Session, select

from .config import settings
from .db import get_session
from .models import User
from .schemas import UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    minutes = expires_minutes or settings.access_token_expire_minutes
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)

def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> dict:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise _credentials_error("Invalid token")
    email = payload.get("sub")
    if email is None:
        raise _credentials_error("Invalid token")

    user = session.exec(
        select(User).where(User.email == email)
    ).first()

    if user is None:
        raise _credentials_error("User not found")

    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
    }

def bootstrap_manager(session: Session, email: str, password: str) -> User:
    """Create the manager account on first start; later starts leave it alone."""
    user = session.exec(select(User).where(User.email == email)).first()
    if user is not None:
        return user

    user = User(email=email, password_hash=hash_password(password), role=UserRole.manager.value)
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Manager account %s created", email)
    return user
