# barbershop/routers/barbers_routes.py

from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from barbershop.core.status import AppointmentStatus
from barbershop.db import get_session
from barbershop.deps import get_booking_service, get_current_barber, get_schedule_service
from barbershop.models import Barber
from barbershop.schemas import (
    AbsencePublic,
    AppointmentEnvelope,
    AppointmentList,
    BarberAppointmentCreate,
    BarberPublic,
    DayHoursSchema,
    TimeWindowCreate,
    WeekHours,
)
from barbershop.serialization import to_appointment_data
from barbershop.services.booking import BookingService, GuestContact
from barbershop.services.schedule import DayHours, ScheduleService

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def week_response(days: List[DayHours]) -> dict:
    return {"days": [DayHoursSchema(**vars(day)) for day in days]}


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    barbers = session.exec(
        select(Barber).where(Barber.active == True).order_by(Barber.name)  # noqa: E712
    ).all()
    return [BarberPublic.model_validate(b, from_attributes=True) for b in barbers]


@router.get("/me/working-hours", response_model=WeekHours)
def get_my_working_hours(
    barber: Barber = Depends(get_current_barber),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    return week_response(schedule.get_working_hours(barber.id))


@router.put("/me/working-hours", response_model=WeekHours)
def set_my_working_hours(
    week: WeekHours,
    barber: Barber = Depends(get_current_barber),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    days = [DayHours(**day.model_dump()) for day in week.days]
    return week_response(schedule.set_working_hours(barber.id, days))


@router.get("/me/absences", response_model=List[AbsencePublic])
def list_my_absences(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    barber: Barber = Depends(get_current_barber),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    absences = schedule.list_absences(barber.id, start_date, end_date)
    return [AbsencePublic.model_validate(a, from_attributes=True) for a in absences]


@router.post("/me/absences", response_model=AbsencePublic, status_code=201)
def create_my_absence(
    window: TimeWindowCreate,
    barber: Barber = Depends(get_current_barber),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    absence = schedule.create_absence(
        barber.id, window.date, window.start_time, window.end_time, window.reason
    )
    return AbsencePublic.model_validate(absence, from_attributes=True)


@router.delete("/me/absences/{absence_id}", status_code=204)
def delete_my_absence(
    absence_id: str,
    barber: Barber = Depends(get_current_barber),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    schedule.delete_absence(barber.id, absence_id)


@router.get("/me/appointments", response_model=AppointmentList)
def list_barber_appointments(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    status: Optional[AppointmentStatus] = None,
    barber: Barber = Depends(get_current_barber),
    booking: BookingService = Depends(get_booking_service),
):
    start = start_date or date.fromisoformat(booking.now().date_str)
    end = end_date or start + timedelta(days=6)
    appointments = booking.list_barber_appointments(barber.id, start, end, status)
    return {"appointments": [to_appointment_data(a) for a in appointments]}


@router.post("/me/appointments", response_model=AppointmentEnvelope, status_code=201)
def book_for_client(
    appt: BarberAppointmentCreate,
    barber: Barber = Depends(get_current_barber),
    booking: BookingService = Depends(get_booking_service),
):
    result = booking.create_appointment(
        barber_id=barber.id,
        service_id=appt.service_id,
        day=appt.date,
        start_time=appt.start_time,
        guest=GuestContact(full_name=appt.client_name, phone=appt.client_phone),
        issue_token=False,
    )
    return AppointmentEnvelope(appointment=to_appointment_data(result.appointment))
