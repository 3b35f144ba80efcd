# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .auth import bootstrap_manager
from .booking import load_availability_index
from .config import settings
from .db import engine, init_db
from .deps import availability_index
from .errors import (
    AgeRestrictionError,
    BookingError,
    BookingTimeoutError,
    ConflictError,
    InvalidIntervalError,
    InvalidStateError,
    InvalidValueError,
    NotFoundError,
    OutsideAvailabilityError,
    ProtectedEntityError,
    RoleConflictError,
    StoreError,
    UnsupportedServiceError,
)
from .routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    clients_routes,
    reports_routes,
    reviews_routes,
    services_routes,
    users_routes,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: 404,
    ConflictError: 409,
    RoleConflictError: 409,
    InvalidStateError: 409,
    ProtectedEntityError: 409,
    InvalidIntervalError: 422,
    UnsupportedServiceError: 422,
    AgeRestrictionError: 422,
    InvalidValueError: 422,
    OutsideAvailabilityError: 422,
    BookingTimeoutError: 503,
    StoreError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    with Session(engine) as session:
        if settings.manager_email:
            bootstrap_manager(session, settings.manager_email, settings.manager_password)
        load_availability_index(session, availability_index)
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(barbers_routes.router)
app.include_router(clients_routes.router)
app.include_router(services_routes.router)
app.include_router(appointments_routes.router)
app.include_router(reviews_routes.router)
app.include_router(reports_routes.router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    headers = {"Retry-After": "1"} if isinstance(exc, BookingTimeoutError) else None
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
        headers=headers,
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}
