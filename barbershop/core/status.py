# barbershop/core/status.py

from enum import Enum
from typing import Dict, FrozenSet, Type

from barbershop.errors import ConflictError


class AppointmentStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED_BY_CLIENT = "CANCELLED_BY_CLIENT"
    CANCELLED_BY_BARBER = "CANCELLED_BY_BARBER"
    NO_SHOW = "NO_SHOW"


# the only status that occupies a slot
LIVE_STATUS = AppointmentStatus.CONFIRMED

TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED_BY_CLIENT,
            AppointmentStatus.CANCELLED_BY_BARBER,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED_BY_CLIENT: frozenset(),
    AppointmentStatus.CANCELLED_BY_BARBER: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return not TRANSITIONS[AppointmentStatus(status)]


def can_transition(source: AppointmentStatus, target: AppointmentStatus) -> bool:
    return AppointmentStatus(target) in TRANSITIONS[AppointmentStatus(source)]


def ensure_transition(
    source: AppointmentStatus,
    target: AppointmentStatus,
    error: Type[ConflictError],
) -> AppointmentStatus:
    """Return the target status, or raise `error` when the move is illegal."""
    if not can_transition(source, target):
        raise error()
    return AppointmentStatus(target)
