# barbershop/routers/slots_routes.py

from datetime import date

from fastapi import APIRouter, Depends, Query

from barbershop.deps import get_booking_service
from barbershop.schemas import SlotsResponse, TimeSlotPublic
from barbershop.services.booking import BookingService

router = APIRouter(
    tags=["slots"],
)


@router.get("/slots", response_model=SlotsResponse)
def available_slots(
    on_date: date = Query(alias="date"),
    barber_id: str = Query(alias="barberId"),
    service_id: str = Query(alias="serviceId"),
    include_occupied: bool = Query(default=False, alias="includeOccupied"),
    booking: BookingService = Depends(get_booking_service),
):
    slots = booking.get_available_slots(on_date, barber_id, service_id, include_occupied)
    return {"slots": [TimeSlotPublic(time=s.time, available=s.available) for s in slots]}
