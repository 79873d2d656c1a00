# barbershop/services/guest_linking.py
"""Hand a guest's bookings over to the account registered with the same phone."""
import logging

from sqlmodel import Session, select

from barbershop.core.phone import normalize_phone
from barbershop.models import Appointment, GuestClient, Profile

logger = logging.getLogger(__name__)


def link_guest_appointments(session: Session, profile: Profile) -> int:
    """
    Move every appointment of the guest whose phone matches ``profile.phone``
    to the profile and delete the guest record.

    Runs inside the caller's transaction and does not commit. Returns the
    number of appointments moved; 0 when the profile has no phone or no guest
    matches it.
    """
    phone = normalize_phone(profile.phone)
    if not phone:
        return 0

    guest = session.exec(select(GuestClient).where(GuestClient.phone == phone)).first()
    if guest is None:
        return 0

    appointments = session.exec(
        select(Appointment).where(Appointment.guest_client_id == guest.id)
    ).all()
    for appointment in appointments:
        appointment.client_id = profile.id
        appointment.guest_client_id = None
        session.add(appointment)
    session.flush()

    session.delete(guest)
    session.flush()

    logger.info(
        "Linked %d guest appointment(s) from guest %s to profile %s",
        len(appointments), guest.id, profile.id,
    )
    return len(appointments)
