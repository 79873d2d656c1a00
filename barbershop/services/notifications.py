# barbershop/services/notifications.py
"""
Domain events for the notification subsystem.

The booking engine only decides that a notification is due and who gets it;
delivery belongs to whatever Notifier the application is wired with.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from barbershop.models import Appointment

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "appointment.created"
APPOINTMENT_CANCELLED_BY_CLIENT = "appointment.cancelled_by_client"
APPOINTMENT_CANCELLED_BY_BARBER = "appointment.cancelled_by_barber"
APPOINTMENT_NO_SHOW = "appointment.no_show"


@dataclass(frozen=True)
class Recipient:
    kind: str  # barber, client or guest
    id: str


@dataclass(frozen=True)
class DomainEvent:
    name: str
    appointment_id: str
    recipient: Recipient
    payload: Dict[str, Optional[str]] = field(default_factory=dict)


def client_recipient(appointment: Appointment) -> Recipient:
    if appointment.client_id:
        return Recipient("client", appointment.client_id)
    return Recipient("guest", appointment.guest_client_id)


def build_event(name: str, appointment: Appointment) -> DomainEvent:
    if name in (APPOINTMENT_CREATED, APPOINTMENT_CANCELLED_BY_CLIENT):
        recipient = Recipient("barber", appointment.barber_id)
    else:
        recipient = client_recipient(appointment)
    return DomainEvent(
        name=name,
        appointment_id=appointment.id,
        recipient=recipient,
        payload={
            "date": appointment.date.isoformat(),
            "startTime": appointment.start_time,
            "cancelReason": appointment.cancel_reason,
        },
    )


class Notifier:
    def notify(self, event: DomainEvent) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default notifier; logs the event and leaves delivery to others."""

    def notify(self, event: DomainEvent) -> None:
        logger.info(
            "Notification %s for %s %s (appointment %s)",
            event.name,
            event.recipient.kind,
            event.recipient.id,
            event.appointment_id,
        )


class RecordingNotifier(LoggingNotifier):
    """Keeps every event in memory; handy for tests and local runs."""

    def __init__(self):
        self.events: List[DomainEvent] = []

    def notify(self, event: DomainEvent) -> None:
        super().notify(event)
        self.events.append(event)

    def names(self) -> List[str]:
        return [e.name for e in self.events]
