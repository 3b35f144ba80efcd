# barbershop/schemas.py

from pydantic import AfterValidator, BaseModel, Field
from enum import Enum
from datetime import datetime, date
from decimal import Decimal
from typing import Annotated, List, Optional

from .core import naive_utc

# Offset-aware input is stored as naive UTC, like every other time in the store.
UtcDatetime = Annotated[datetime, AfterValidator(naive_utc)]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserRole(str, Enum):
    manager = "manager"
    barber = "barber"
    client = "client"

class BarberRole(str, Enum):
    chief = "chief"
    senior = "senior"
    junior = "junior"

class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no-show"

class UserPublic(BaseModel):
    id: int
    email: str
    role: UserRole

class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.client


# Barbers

class BarberCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    birth_date: date
    hire_date: date
    role: BarberRole = BarberRole.junior
    phone: str = ""
    email: str = ""
    active: bool = True

class BarberUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    birth_date: Optional[date] = None
    hire_date: Optional[date] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: Optional[bool] = None

class RoleAssignment(BaseModel):
    role: BarberRole

class BarberPublic(BaseModel):
    id: int
    full_name: str
    phone: str
    email: str
    role: BarberRole
    active: bool
    birth_date: date
    hire_date: date


# Clients, services and offers

class ClientCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    phone: str = Field(min_length=3, max_length=30)
    email: str = ""

class ClientPublic(BaseModel):
    id: int
    full_name: str
    phone: str
    email: str

class ServiceCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)

class ServicePublic(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None

class ServiceOffer(BaseModel):
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    duration_minutes: int = Field(ge=5, le=480)
    active: bool = True

class ServiceOfferPublic(BaseModel):
    barber_id: int
    service_id: int
    price: Decimal
    duration_minutes: int
    active: bool


# Availability windows

class AvailabilityWindowCreate(BaseModel):
    starts_at: UtcDatetime
    ends_at: UtcDatetime

class AvailabilityWindowPublic(BaseModel):
    id: int
    barber_id: int
    starts_at: datetime
    ends_at: datetime


# Appointments

class AppointmentCreate(BaseModel):
    barber_id: int
    client_id: int
    service_ids: List[int] = Field(min_length=1)
    starts_at: UtcDatetime
    ends_at: Optional[UtcDatetime] = None  # derived from service durations when omitted

class AppointmentReschedule(BaseModel):
    starts_at: UtcDatetime
    ends_at: Optional[UtcDatetime] = None

class AppointmentLine(BaseModel):
    service_id: int
    price: Decimal
    duration_minutes: int

class AppointmentPublic(BaseModel):
    id: int
    barber_id: int
    client_id: int
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    total_amount: Decimal
    services: List[AppointmentLine] = []


# Reviews

class ReviewCreate(BaseModel):
    barber_id: int
    client_id: int
    appointment_id: Optional[int] = None
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=2000)

class ReviewPublic(BaseModel):
    id: int
    barber_id: int
    client_id: int
    appointment_id: Optional[int] = None
    rating: int
    feedback: Optional[str] = None
    created_at: datetime


# Reports

class BarberName(BaseModel):
    id: int
    full_name: str

class RoleCounts(BaseModel):
    chief: int
    senior: int
    junior: int

class RegularClient(BaseModel):
    id: int
    full_name: str
    phone: str
    email: str
    visits: int
