# barbershop/routers/appointments_routes.py

from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlmodel import Session

from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.deps import barber_for_user, get_booking_service, require_role
from barbershop.errors import Unauthorized
from barbershop.models import Profile
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentList,
    CancelRequest,
    GuestAppointmentCreate,
    GuestBookingResponse,
)
from barbershop.serialization import to_appointment_data
from barbershop.services.booking import BookingService, GuestContact

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.post("", response_model=AppointmentEnvelope, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    current_user: Profile = Depends(get_current_user),
    booking: BookingService = Depends(get_booking_service),
):
    require_role(current_user, "client")
    result = booking.create_appointment(
        barber_id=appt.barber_id,
        service_id=appt.service_id,
        day=appt.date,
        start_time=appt.start_time,
        client_id=current_user.id,
    )
    return {"appointment": to_appointment_data(result.appointment)}


@router.post("/guest", response_model=GuestBookingResponse, status_code=201)
def create_guest_appointment(
    appt: GuestAppointmentCreate,
    booking: BookingService = Depends(get_booking_service),
):
    result = booking.create_appointment(
        barber_id=appt.barber_id,
        service_id=appt.service_id,
        day=appt.date,
        start_time=appt.start_time,
        guest=GuestContact(full_name=appt.client_name, phone=appt.client_phone),
    )
    return GuestBookingResponse(
        appointment=to_appointment_data(result.appointment),
        access_token=result.access_token,
    )


@router.get("/me", response_model=AppointmentList)
def list_my_appointments(
    current_user: Profile = Depends(get_current_user),
    booking: BookingService = Depends(get_booking_service),
):
    require_role(current_user, "client")
    appointments = booking.list_client_appointments(current_user.id)
    return {"appointments": [to_appointment_data(a) for a in appointments]}


@router.get("/guest/lookup", response_model=AppointmentList)
def lookup_guest_appointments(
    x_guest_token: Optional[str] = Header(default=None),
    booking: BookingService = Depends(get_booking_service),
):
    appointments = booking.list_guest_appointments(x_guest_token)
    return {"appointments": [to_appointment_data(a) for a in appointments]}


@router.patch("/guest/{appointment_id}/cancel", response_model=AppointmentEnvelope)
def cancel_guest_appointment(
    appointment_id: str,
    x_guest_token: Optional[str] = Header(default=None),
    booking: BookingService = Depends(get_booking_service),
):
    appointment = booking.cancel_by_guest(appointment_id, x_guest_token)
    return {"appointment": to_appointment_data(appointment)}


@router.patch("/{appointment_id}/cancel", response_model=AppointmentEnvelope)
def cancel_appointment(
    appointment_id: str,
    body: Optional[CancelRequest] = None,
    current_user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
    booking: BookingService = Depends(get_booking_service),
):
    # barbers cancel with a reason, clients cancel their own bookings
    if current_user.role == "barber":
        barber = barber_for_user(session, current_user)
        if barber is None:
            raise Unauthorized()
        reason = body.reason if body else None
        appointment = booking.cancel_by_barber(appointment_id, barber.id, reason)
    else:
        appointment = booking.cancel_by_client(appointment_id, current_user.id)
    return {"appointment": to_appointment_data(appointment)}


@router.patch("/{appointment_id}/no-show", response_model=AppointmentEnvelope)
def mark_no_show(
    appointment_id: str,
    current_user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
    booking: BookingService = Depends(get_booking_service),
):
    require_role(current_user, "barber")
    barber = barber_for_user(session, current_user)
    if barber is None:
        raise Unauthorized()
    appointment = booking.mark_no_show(appointment_id, barber.id)
    return {"appointment": to_appointment_data(appointment)}
