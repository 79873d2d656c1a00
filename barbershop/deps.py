# barbershop/deps.py

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.models import Barber, Profile
from barbershop.services.booking import BookingService
from barbershop.services.schedule import ScheduleService


def require_role(user: Profile, *roles: str):
    if user.role not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_booking_service(
    request: Request,
    session: Session = Depends(get_session),
) -> BookingService:
    return BookingService(
        session,
        request.app.state.settings,
        clock=request.app.state.clock,
        notifier=request.app.state.notifier,
    )


def get_schedule_service(
    request: Request,
    session: Session = Depends(get_session),
) -> ScheduleService:
    return ScheduleService(session, clock=request.app.state.clock)


def barber_for_user(session: Session, user: Profile):
    return session.exec(select(Barber).where(Barber.profile_id == user.id)).first()


def get_current_barber(
    current_user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> Barber:
    require_role(current_user, "barber")
    barber = barber_for_user(session, current_user)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber profile not found")
    return barber


def get_admin(current_user: Profile = Depends(get_current_user)) -> Profile:
    require_role(current_user, "admin")
    return current_user
