# barbershop/models.py

import uuid
from datetime import date as Date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel

from barbershop.core.status import AppointmentStatus
from barbershop.core.timeutils import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class Profile(SQLModel, table=True):
    """A registered account: client, barber or admin."""

    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    full_name: str
    phone: Optional[str] = None
    role: str = "client"  # client, barber or admin
    created_at: datetime = Field(default_factory=utcnow)


class Barber(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    profile_id: Optional[str] = Field(default=None, foreign_key="profile.id", unique=True)
    name: str
    avatar_url: Optional[str] = None
    active: bool = True


class Service(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    slug: str = Field(index=True, unique=True)
    name: str
    description: Optional[str] = None
    duration: int = Field(gt=0)  # minutes
    price: Decimal = Field(default=Decimal("0"), max_digits=8, decimal_places=2)
    active: bool = True


class BarberService(SQLModel, table=True):
    barber_id: str = Field(foreign_key="barber.id", primary_key=True)
    service_id: str = Field(foreign_key="service.id", primary_key=True)


class WorkingHours(SQLModel, table=True):
    __tablename__ = "working_hours"
    __table_args__ = (
        UniqueConstraint("barber_id", "day_of_week", name="uq_working_hours_barber_day"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    barber_id: str = Field(foreign_key="barber.id", index=True)
    day_of_week: int  # 0 = Sunday
    start_time: str  # "HH:mm"
    end_time: str
    break_start: Optional[str] = None
    break_end: Optional[str] = None


class ShopHours(SQLModel, table=True):
    __tablename__ = "shop_hours"

    day_of_week: int = Field(primary_key=True)
    is_open: bool = True
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None


class ShopClosure(SQLModel, table=True):
    __tablename__ = "shop_closure"

    id: str = Field(default_factory=new_id, primary_key=True)
    date: Date = Field(index=True)
    start_time: Optional[str] = None  # both null = whole day
    end_time: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class BarberAbsence(SQLModel, table=True):
    __tablename__ = "barber_absence"

    id: str = Field(default_factory=new_id, primary_key=True)
    barber_id: str = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    start_time: Optional[str] = None  # both null = whole day
    end_time: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class GuestClient(SQLModel, table=True):
    __tablename__ = "guest_client"

    id: str = Field(default_factory=new_id, primary_key=True)
    full_name: str
    phone: str = Field(index=True, unique=True)  # digits only
    access_token: Optional[str] = Field(default=None, index=True, unique=True)
    created_at: datetime = Field(default_factory=utcnow)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # live-slot guard: one CONFIRMED appointment per barber/date/start
        Index(
            "uq_appointment_live_slot",
            "barber_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'CONFIRMED'"),
            postgresql_where=text("status = 'CONFIRMED'"),
        ),
        Index("ix_appointment_barber_date", "barber_id", "date"),
        CheckConstraint(
            "(client_id IS NULL) <> (guest_client_id IS NULL)",
            name="ck_appointment_single_client",
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    client_id: Optional[str] = Field(default=None, foreign_key="profile.id", index=True)
    guest_client_id: Optional[str] = Field(default=None, foreign_key="guest_client.id", index=True)
    barber_id: str = Field(foreign_key="barber.id")
    service_id: str = Field(foreign_key="service.id")

    # calendar day, read as UTC midnight of that day
    date: Date
    start_time: str  # "HH:mm"
    end_time: str

    status: AppointmentStatus = Field(default=AppointmentStatus.CONFIRMED)
    cancel_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
