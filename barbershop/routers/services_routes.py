# barbershop/routers/services_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from barbershop.deps import get_booking_service
from barbershop.schemas import ServicePublic
from barbershop.services.booking import BookingService

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(
    barber_id: Optional[str] = Query(default=None, alias="barberId"),
    booking: BookingService = Depends(get_booking_service),
):
    services = booking.list_services(barber_id)
    return [ServicePublic.model_validate(s, from_attributes=True) for s in services]
