# barbershop/routers/users_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.auth import get_current_user, hash_password
from barbershop.core.phone import normalize_phone
from barbershop.db import get_session
from barbershop.deps import barber_for_user
from barbershop.models import Profile
from barbershop.schemas import UserCreate, UserPublic
from barbershop.services.guest_linking import link_guest_appointments

router = APIRouter(
    tags=["users"],
)


def to_user_public(session: Session, user: Profile) -> UserPublic:
    barber = barber_for_user(session, user) if user.role == "barber" else None
    return UserPublic(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        barber_id=barber.id if barber else None,
    )


@router.get("/me", response_model=UserPublic)
def me(
    current_user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return to_user_public(session, current_user)


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    """Self sign-up; always creates a client account.

    Bookings made earlier as a guest with the same phone move to the new account.
    """
    email = user.email.strip().lower()
    existing = session.exec(
        select(Profile).where(Profile.email == email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    db_user = Profile(
        email=email,
        password_hash=hash_password(user.password),
        full_name=user.full_name,
        phone=normalize_phone(user.phone) if user.phone else None,
        role="client",
    )
    session.add(db_user)
    session.flush()
    link_guest_appointments(session, db_user)
    session.commit()
    session.refresh(db_user)
    return to_user_public(session, db_user)
