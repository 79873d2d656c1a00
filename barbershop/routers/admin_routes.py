# barbershop/routers/admin_routes.py

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.deps import get_admin, get_schedule_service
from barbershop.errors import BarberNotFound, ServiceNotFound
from barbershop.models import Barber, BarberService, Profile, Service
from barbershop.schemas import (
    BarberCreate,
    BarberPublic,
    BarberServicesUpdate,
    ClosurePublic,
    ServiceCreate,
    ServicePublic,
    ShopHoursPublic,
    TimeWindowCreate,
    WeekHours,
)
from barbershop.services.schedule import DayHours, ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


def shop_hours_response(rows) -> List[ShopHoursPublic]:
    return [ShopHoursPublic.model_validate(row, from_attributes=True) for row in rows]


@router.get("/shop-hours", response_model=List[ShopHoursPublic])
def get_shop_hours(
    admin: Profile = Depends(get_admin),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    return shop_hours_response(schedule.get_shop_hours())


@router.put("/shop-hours", response_model=List[ShopHoursPublic])
def set_shop_hours(
    week: WeekHours,
    admin: Profile = Depends(get_admin),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    days = [DayHours(**day.model_dump()) for day in week.days]
    return shop_hours_response(schedule.set_shop_hours(days))


@router.get("/shop-closures", response_model=List[ClosurePublic])
def list_shop_closures(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    admin: Profile = Depends(get_admin),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    closures = schedule.list_shop_closures(start_date, end_date)
    return [ClosurePublic.model_validate(c, from_attributes=True) for c in closures]


@router.post("/shop-closures", response_model=ClosurePublic, status_code=201)
def create_shop_closure(
    window: TimeWindowCreate,
    admin: Profile = Depends(get_admin),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    closure = schedule.create_shop_closure(
        window.date, window.start_time, window.end_time, window.reason
    )
    return ClosurePublic.model_validate(closure, from_attributes=True)


@router.delete("/shop-closures/{closure_id}", status_code=204)
def delete_shop_closure(
    closure_id: str,
    admin: Profile = Depends(get_admin),
    schedule: ScheduleService = Depends(get_schedule_service),
):
    schedule.delete_shop_closure(closure_id)


@router.get("/services", response_model=List[ServicePublic])
def list_services(
    admin: Profile = Depends(get_admin),
    session: Session = Depends(get_session),
):
    services = session.exec(select(Service).order_by(Service.name)).all()
    return [ServicePublic.model_validate(s, from_attributes=True) for s in services]


@router.post("/services", response_model=ServicePublic, status_code=201)
def create_service(
    data: ServiceCreate,
    admin: Profile = Depends(get_admin),
    session: Session = Depends(get_session),
):
    existing = session.exec(select(Service).where(Service.slug == data.slug)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Service slug already registered")

    for barber_id in data.barber_ids:
        if session.get(Barber, barber_id) is None:
            raise BarberNotFound()

    service = Service(
        slug=data.slug,
        name=data.name,
        description=data.description,
        duration=data.duration,
        price=data.price,
    )
    session.add(service)
    session.flush()
    for barber_id in data.barber_ids:
        session.add(BarberService(barber_id=barber_id, service_id=service.id))
    session.commit()
    session.refresh(service)
    return ServicePublic.model_validate(service, from_attributes=True)


def load_services(session: Session, service_ids: List[str]) -> List[Service]:
    services = []
    for service_id in dict.fromkeys(service_ids):
        service = session.get(Service, service_id)
        if service is None:
            raise ServiceNotFound()
        services.append(service)
    return services


def barber_services(session: Session, barber_id: str) -> List[ServicePublic]:
    services = session.exec(
        select(Service)
        .join(BarberService, BarberService.service_id == Service.id)
        .where(BarberService.barber_id == barber_id)
        .order_by(Service.name)
    ).all()
    return [ServicePublic.model_validate(s, from_attributes=True) for s in services]


@router.get("/barbers", response_model=List[BarberPublic])
def list_barbers(
    admin: Profile = Depends(get_admin),
    session: Session = Depends(get_session),
):
    barbers = session.exec(select(Barber).order_by(Barber.name)).all()
    return [BarberPublic.model_validate(b, from_attributes=True) for b in barbers]


@router.post("/barbers", response_model=BarberPublic, status_code=201)
def create_barber(
    data: BarberCreate,
    admin: Profile = Depends(get_admin),
    session: Session = Depends(get_session),
):
    email = data.email.strip().lower()
    profile = session.exec(select(Profile).where(Profile.email == email)).first()
    if profile is None:
        raise HTTPException(status_code=404, detail="No account registered with this email")
    linked = session.exec(select(Barber).where(Barber.profile_id == profile.id)).first()
    if linked is not None:
        raise HTTPException(status_code=409, detail="Account is already a barber")
    services = load_services(session, data.service_ids)

    if profile.role == "client":
        profile.role = "barber"
        session.add(profile)
    barber = Barber(profile_id=profile.id, name=data.name, avatar_url=data.avatar_url)
    session.add(barber)
    session.flush()
    for service in services:
        session.add(BarberService(barber_id=barber.id, service_id=service.id))
    session.commit()
    session.refresh(barber)
    logger.info("Barber %s created for profile %s", barber.id, profile.id)
    return BarberPublic.model_validate(barber, from_attributes=True)


@router.get("/barbers/{barber_id}/services", response_model=List[ServicePublic])
def get_barber_services(
    barber_id: str,
    admin: Profile = Depends(get_admin),
    session: Session = Depends(get_session),
):
    if session.get(Barber, barber_id) is None:
        raise BarberNotFound()
    return barber_services(session, barber_id)


@router.put("/barbers/{barber_id}/services", response_model=List[ServicePublic])
def set_barber_services(
    barber_id: str,
    data: BarberServicesUpdate,
    admin: Profile = Depends(get_admin),
    session: Session = Depends(get_session),
):
    """Replace the set of services the barber offers."""
    if session.get(Barber, barber_id) is None:
        raise BarberNotFound()
    services = load_services(session, data.service_ids)

    current = session.exec(select(BarberService).where(BarberService.barber_id == barber_id)).all()
    for link in current:
        session.delete(link)
    session.flush()
    for service in services:
        session.add(BarberService(barber_id=barber_id, service_id=service.id))
    session.commit()
    return barber_services(session, barber_id)
