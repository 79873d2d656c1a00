# barbershop/schemas.py

from datetime import date as Date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from barbershop.core.phone import normalize_phone
from barbershop.core.status import AppointmentStatus

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    client = "client"
    barber = "barber"
    admin = "admin"


class UserPublic(CamelModel):
    id: str
    email: str
    full_name: str
    role: UserRole
    barber_id: Optional[str] = None


class UserCreate(CamelModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    full_name: str = Field(min_length=2, max_length=120)
    phone: Optional[str] = None


# Slots

class TimeSlotPublic(BaseModel):
    time: str
    available: bool


class SlotsResponse(BaseModel):
    slots: List[TimeSlotPublic]


# Appointments

class AppointmentData(CamelModel):
    """Wire form of an appointment; every field is a string or null."""

    id: str
    client_id: Optional[str] = None
    guest_client_id: Optional[str] = None
    barber_id: str
    service_id: str
    date: str
    start_time: str
    end_time: str
    status: AppointmentStatus
    cancel_reason: Optional[str] = None
    created_at: str
    updated_at: str


class AppointmentEnvelope(BaseModel):
    appointment: AppointmentData


class AppointmentList(BaseModel):
    appointments: List[AppointmentData]


class GuestBookingResponse(CamelModel):
    appointment: AppointmentData
    access_token: str


class AppointmentCreate(CamelModel):
    barber_id: str
    service_id: str
    date: Date
    start_time: str = Field(pattern=TIME_PATTERN)


class GuestContactSchema(CamelModel):
    client_name: str = Field(min_length=2, max_length=120)
    client_phone: str

    @field_validator("client_phone")
    @classmethod
    def phone_has_10_or_11_digits(cls, value: str) -> str:
        digits = normalize_phone(value)
        if len(digits) not in (10, 11):
            raise ValueError("Telefone deve ter 10 ou 11 dígitos")
        return digits


class GuestAppointmentCreate(AppointmentCreate, GuestContactSchema):
    pass


class BarberAppointmentCreate(GuestContactSchema):
    """A barber booking on behalf of a walk-in or phone client."""

    service_id: str
    date: Date
    start_time: str = Field(pattern=TIME_PATTERN)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


# Schedules

class DayHoursSchema(CamelModel):
    day_of_week: int = Field(ge=0, le=6)
    is_working: bool
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    break_start: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    break_end: Optional[str] = Field(default=None, pattern=TIME_PATTERN)


class WeekHours(BaseModel):
    days: List[DayHoursSchema]


class ShopHoursPublic(CamelModel):
    day_of_week: int
    is_open: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None


class TimeWindowCreate(CamelModel):
    date: Date
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    reason: Optional[str] = Field(default=None, max_length=200)


class AbsencePublic(CamelModel):
    id: str
    barber_id: str
    date: Date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None


class ClosurePublic(CamelModel):
    id: str
    date: Date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None


# Catalog

class ServicePublic(CamelModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    duration: int
    price: Decimal
    active: bool


class ServiceCreate(CamelModel):
    slug: str = Field(pattern=r"^[a-z0-9-]+$", max_length=60)
    name: str = Field(min_length=2, max_length=80)
    description: Optional[str] = None
    duration: int = Field(gt=0, le=480)
    price: Decimal = Field(ge=0)
    barber_ids: List[str] = Field(default_factory=list)


class BarberPublic(CamelModel):
    id: str
    name: str
    avatar_url: Optional[str] = None
    active: bool


class BarberCreate(CamelModel):
    """Turns an existing account, found by email, into a barber."""

    email: str
    name: str = Field(min_length=2, max_length=100)
    avatar_url: Optional[str] = None
    service_ids: List[str] = Field(default_factory=list)


class BarberServicesUpdate(CamelModel):
    service_ids: List[str]
