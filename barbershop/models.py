# barbershop/models.py

from typing import Optional
from datetime import datetime, date as Date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field


class Barber(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("role IN ('chief', 'senior', 'junior')", name="ck_barber_role"),
        # at most one active chief
        Index(
            "ux_barber_single_chief",
            "role",
            unique=True,
            sqlite_where=text("role = 'chief' AND active = 1"),
            postgresql_where=text("role = 'chief' AND active"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    full_name: str
    phone: str = ""
    email: str = ""
    role: str = Field(default="junior", index=True)  # chief, senior or junior
    active: bool = True
    birth_date: Date
    hire_date: Date
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    phone: str = Field(index=True, unique=True)
    email: str = ""
    created_at: datetime = Field(default_factory=datetime.now)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True)
    name: str
    description: Optional[str] = None


class BarberService(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "service_id", name="uq_barber_service"),
        CheckConstraint("price >= 0", name="ck_barber_service_price"),
        CheckConstraint(
            "duration_minutes BETWEEN 5 AND 480", name="ck_barber_service_duration"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: int = Field(foreign_key="service.id", index=True)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    duration_minutes: int
    active: bool = True


class BarberAvailability(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_availability_interval"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    starts_at: datetime
    ends_at: datetime


class Appointment(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_appointment_interval"),
        CheckConstraint("total_amount >= 0", name="ck_appointment_total"),
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled', 'no-show')",
            name="ck_appointment_status",
        ),
        Index("ix_appointment_barber_time", "barber_id", "starts_at", "ends_at"),
        Index("ix_appointment_client_time", "client_id", "starts_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id")
    client_id: int = Field(foreign_key="client.id")
    starts_at: datetime
    ends_at: datetime
    status: str = "scheduled"
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    created_at: datetime = Field(default_factory=datetime.now)


class AppointmentService(SQLModel, table=True):
    """Service line on an appointment, priced at booking time."""

    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointment.id", index=True)
    service_id: int = Field(foreign_key="service.id")
    price: Decimal = Field(max_digits=10, decimal_places=2)
    duration_minutes: int


class Review(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    appointment_id: Optional[int] = Field(default=None, foreign_key="appointment.id")
    rating: int  # 1 = very bad ... 5 = great
    feedback: Optional[str] = Field(default=None, max_length=2000)
    created_at: datetime = Field(default_factory=datetime.now)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # manager, barber or client
