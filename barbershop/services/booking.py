# barbershop/services/booking.py
"""Slot availability, booking and appointment lifecycle."""
import logging
import uuid
from dataclasses import dataclass
from datetime import date as Date
from typing import List, Optional, Union

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.config import Settings
from barbershop.core.intervals import Interval, overlaps
from barbershop.core.phone import normalize_phone
from barbershop.core.policy import booking_policy_error
from barbershop.core.slots import TimeSlot, drop_past, filter_conflicts, generate_candidates
from barbershop.core.status import LIVE_STATUS, AppointmentStatus, ensure_transition
from barbershop.core.timeutils import (
    Clock,
    add_minutes,
    business_now,
    day_of_week,
    minutes_until,
    parse_date_string,
    utcnow,
)
from barbershop.core.working_hours import resolve_open_intervals
from barbershop.errors import (
    AppointmentInPast,
    AppointmentNotCancellable,
    AppointmentNotFound,
    AppointmentNotMarkable,
    AppointmentNotStarted,
    BarberNotFound,
    CancellationReasonRequired,
    ClientRequired,
    GuestNotFound,
    ServiceNotFound,
    SlotOccupied,
    Unauthorized,
)
from barbershop.models import (
    Appointment,
    Barber,
    BarberAbsence,
    BarberService,
    GuestClient,
    Service,
    ShopClosure,
    ShopHours,
    WorkingHours,
)
from barbershop.services import notifications
from barbershop.services.notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

LIVE_SLOT_INDEX = "uq_appointment_live_slot"
GUEST_PHONE_INDEX = "ix_guest_client_phone"


@dataclass(frozen=True)
class GuestContact:
    full_name: str
    phone: str


@dataclass
class BookingResult:
    appointment: Appointment
    access_token: Optional[str] = None


@dataclass
class DaySchedule:
    shop_hours: Optional[ShopHours]
    closures: List[ShopClosure]
    working_hours: Optional[WorkingHours]
    absences: List[BarberAbsence]


def as_date(value: Union[Date, str]) -> Date:
    if isinstance(value, str):
        return parse_date_string(value)
    return value


def is_live_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return LIVE_SLOT_INDEX in message or "appointment.barber_id" in message


def is_guest_phone_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return GUEST_PHONE_INDEX in message or "guest_client.phone" in message


class BookingService:
    """
    Booking transaction engine.

    Availability is computed twice: once for the slot list shown to the client,
    and again right before insert. The partial unique index on
    (barber_id, date, start_time) for CONFIRMED rows decides races between
    requests that both passed the second check.
    """

    def __init__(
        self,
        session: Session,
        settings: Settings,
        clock: Clock = utcnow,
        notifier: Optional[Notifier] = None,
    ):
        self.session = session
        self.settings = settings
        self.clock = clock
        self.notifier = notifier or LoggingNotifier()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def now(self):
        return business_now(self.clock, self.settings.BUSINESS_TIMEZONE)

    def load_day(self, barber_id: str, day: Date) -> DaySchedule:
        weekday = day_of_week(day)
        working_hours = self.session.exec(
            select(WorkingHours)
            .where(WorkingHours.barber_id == barber_id)
            .where(WorkingHours.day_of_week == weekday)
        ).first()
        closures = self.session.exec(
            select(ShopClosure).where(ShopClosure.date == day)
        ).all()
        absences = self.session.exec(
            select(BarberAbsence)
            .where(BarberAbsence.barber_id == barber_id)
            .where(BarberAbsence.date == day)
        ).all()
        return DaySchedule(
            shop_hours=self.session.get(ShopHours, weekday),
            closures=list(closures),
            working_hours=working_hours,
            absences=list(absences),
        )

    def confirmed_ranges(self, barber_id: str, day: Date) -> List[Interval]:
        appointments = self.session.exec(
            select(Appointment)
            .where(Appointment.barber_id == barber_id)
            .where(Appointment.date == day)
            .where(Appointment.status == LIVE_STATUS)
        ).all()
        return [Interval.from_times(a.start_time, a.end_time) for a in appointments]

    def has_overlap(self, barber_id: str, day: Date, start_time: str, end_time: str) -> bool:
        wanted = Interval.from_times(start_time, end_time)
        return any(
            overlaps(wanted.start, wanted.end, booked.start, booked.end)
            for booked in self.confirmed_ranges(barber_id, day)
        )

    def offers_service(self, barber_id: str, service_id: str) -> bool:
        return self.session.get(BarberService, (barber_id, service_id)) is not None

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.session.get(Appointment, appointment_id)
        if appointment is None:
            raise AppointmentNotFound()
        return appointment

    def get_guest_by_token(self, access_token: Optional[str]) -> GuestClient:
        if not access_token:
            raise GuestNotFound()
        guest = self.session.exec(
            select(GuestClient).where(GuestClient.access_token == access_token)
        ).first()
        if guest is None:
            raise GuestNotFound()
        return guest

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def list_services(self, barber_id: Optional[str] = None) -> List[Service]:
        """Active services by name, optionally only those the barber offers."""
        stmt = select(Service).where(Service.active == True)  # noqa: E712
        if barber_id is not None:
            stmt = stmt.join(BarberService, BarberService.service_id == Service.id).where(
                BarberService.barber_id == barber_id
            )
        return list(self.session.exec(stmt.order_by(Service.name)).all())

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def get_available_slots(
        self,
        day: Union[Date, str],
        barber_id: str,
        service_id: str,
        include_occupied: bool = False,
    ) -> List[TimeSlot]:
        day = as_date(day)
        service = self.session.get(Service, service_id)
        barber = self.session.get(Barber, barber_id)
        if service is None or not service.active:
            return []
        if barber is None or not barber.active:
            return []
        if not self.offers_service(barber_id, service_id):
            return []

        schedule = self.load_day(barber_id, day)
        intervals = resolve_open_intervals(
            schedule.shop_hours,
            schedule.closures,
            schedule.working_hours,
            schedule.absences,
        )
        candidates = generate_candidates(
            intervals, service.duration, self.settings.SLOT_GRANULARITY_MINUTES
        )
        candidates = drop_past(candidates, day.isoformat(), self.now())
        slots = filter_conflicts(
            candidates, service.duration, self.confirmed_ranges(barber_id, day)
        )
        if include_occupied:
            return slots
        return [slot for slot in slots if slot.available]

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def create_appointment(
        self,
        barber_id: str,
        service_id: str,
        day: Union[Date, str],
        start_time: str,
        client_id: Optional[str] = None,
        guest: Optional[GuestContact] = None,
        issue_token: bool = True,
    ) -> BookingResult:
        """
        Book one appointment for a registered client or a guest.

        A guest booking made by the guest (``issue_token=True``) hands back a
        fresh access token. A booking made on the guest's behalf, e.g. a
        barber's walk-in, leaves the guest's current token in place and
        returns none.
        """
        if (client_id is None) == (guest is None):
            raise ClientRequired()

        day = as_date(day)
        service = self.session.get(Service, service_id)
        if service is None or not service.active:
            raise ServiceNotFound()
        barber = self.session.get(Barber, barber_id)
        if barber is None or not barber.active:
            raise BarberNotFound()

        # never trust a client-supplied end time
        end_time = add_minutes(start_time, service.duration)

        schedule = self.load_day(barber_id, day)
        error = booking_policy_error(
            date_str=day.isoformat(),
            start_time=start_time,
            duration=service.duration,
            granularity=self.settings.SLOT_GRANULARITY_MINUTES,
            now=self.now(),
            shop_hours=schedule.shop_hours,
            closures=schedule.closures,
            working_hours=schedule.working_hours,
            absences=schedule.absences,
            offers_service=self.offers_service(barber_id, service_id),
        )
        if error is not None:
            logger.info(
                "Booking rejected for barber %s on %s %s: %s",
                barber_id, day, start_time, error.code,
            )
            raise error

        if self.has_overlap(barber_id, day, start_time, end_time):
            raise SlotOccupied()

        for attempt in range(2):
            try:
                appointment, access_token = self._insert_appointment(
                    barber_id, service_id, day, start_time, end_time,
                    client_id, guest, issue_token,
                )
                break
            except SlotOccupied:
                self.session.rollback()
                raise
            except IntegrityError as exc:
                self.session.rollback()
                if attempt == 0 and is_guest_phone_violation(exc):
                    # another request created the same guest; it exists now
                    logger.info("Guest phone inserted concurrently, retrying booking")
                    continue
                if not is_live_slot_violation(exc):
                    raise
                logger.warning(
                    "Lost booking race for barber %s on %s %s", barber_id, day, start_time
                )
                raise SlotOccupied()

        self.session.refresh(appointment)
        logger.info(
            "Appointment %s booked: barber %s on %s %s-%s",
            appointment.id, barber_id, day, start_time, end_time,
        )
        self.emit(notifications.APPOINTMENT_CREATED, appointment)
        return BookingResult(appointment=appointment, access_token=access_token)

    def _insert_appointment(
        self,
        barber_id: str,
        service_id: str,
        day: Date,
        start_time: str,
        end_time: str,
        client_id: Optional[str],
        guest: Optional[GuestContact],
        issue_token: bool,
    ):
        self.lock_barber_date(barber_id, day)
        if self.has_overlap(barber_id, day, start_time, end_time):
            raise SlotOccupied()

        access_token = None
        guest_client_id = None
        if guest is not None:
            guest_client = self.upsert_guest(guest, rotate_token=issue_token)
            guest_client_id = guest_client.id
            if issue_token:
                access_token = guest_client.access_token

        now = self.clock()
        appointment = Appointment(
            client_id=client_id,
            guest_client_id=guest_client_id,
            barber_id=barber_id,
            service_id=service_id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.CONFIRMED,
            created_at=now,
            updated_at=now,
        )
        self.session.add(appointment)
        self.session.commit()
        return appointment, access_token

    def lock_barber_date(self, barber_id: str, day: Date) -> None:
        """Serialize overlap check + insert per barber/date where supported."""
        if self.session.get_bind().dialect.name != "postgresql":
            return
        self.session.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:barber_id), hashtext(:day))"),
            {"barber_id": barber_id, "day": day.isoformat()},
        )

    def find_guest_by_phone(self, phone: str) -> Optional[GuestClient]:
        return self.session.exec(
            select(GuestClient).where(GuestClient.phone == phone)
        ).first()

    def upsert_guest(self, guest: GuestContact, rotate_token: bool = True) -> GuestClient:
        phone = normalize_phone(guest.phone)
        guest_client = self.find_guest_by_phone(phone)
        if guest_client is None:
            guest_client = GuestClient(full_name=guest.full_name, phone=phone, created_at=self.clock())
        else:
            guest_client.full_name = guest.full_name
        if rotate_token or guest_client.access_token is None:
            guest_client.access_token = str(uuid.uuid4())
        self.session.add(guest_client)
        self.session.flush()
        return guest_client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def cancel_by_client(self, appointment_id: str, client_id: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.client_id is None or appointment.client_id != client_id:
            raise Unauthorized()
        return self._cancel(
            appointment,
            AppointmentStatus.CANCELLED_BY_CLIENT,
            notifications.APPOINTMENT_CANCELLED_BY_CLIENT,
        )

    def cancel_by_barber(self, appointment_id: str, barber_id: str, reason: Optional[str]) -> Appointment:
        if not reason or not reason.strip():
            raise CancellationReasonRequired()
        appointment = self.get_appointment(appointment_id)
        if appointment.barber_id != barber_id:
            raise Unauthorized()
        return self._cancel(
            appointment,
            AppointmentStatus.CANCELLED_BY_BARBER,
            notifications.APPOINTMENT_CANCELLED_BY_BARBER,
            reason=reason.strip(),
        )

    def cancel_by_guest(self, appointment_id: str, access_token: Optional[str]) -> Appointment:
        # the bearer token is the only proof of ownership, never the phone
        guest = self.get_guest_by_token(access_token)
        appointment = self.get_appointment(appointment_id)
        if appointment.guest_client_id != guest.id:
            raise Unauthorized()
        return self._cancel(
            appointment,
            AppointmentStatus.CANCELLED_BY_CLIENT,
            notifications.APPOINTMENT_CANCELLED_BY_CLIENT,
        )

    def mark_no_show(self, appointment_id: str, barber_id: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.barber_id != barber_id:
            raise Unauthorized()
        status = ensure_transition(
            appointment.status, AppointmentStatus.NO_SHOW, AppointmentNotMarkable
        )
        if self.minutes_until_start(appointment) > 0:
            raise AppointmentNotStarted()
        return self._apply(appointment, status, notifications.APPOINTMENT_NO_SHOW)

    def minutes_until_start(self, appointment: Appointment) -> float:
        return minutes_until(
            appointment.date.isoformat(),
            appointment.start_time,
            self.clock,
            self.settings.BUSINESS_TIMEZONE,
        )

    def _cancel(self, appointment: Appointment, target: AppointmentStatus, event: str, reason=None):
        status = ensure_transition(appointment.status, target, AppointmentNotCancellable)
        if self.minutes_until_start(appointment) <= 0:
            raise AppointmentInPast()
        return self._apply(appointment, status, event, reason)

    def _apply(self, appointment: Appointment, status: AppointmentStatus, event: str, reason=None):
        appointment.status = status
        if reason is not None:
            appointment.cancel_reason = reason
        appointment.updated_at = self.clock()
        self.session.add(appointment)
        self.session.commit()
        self.session.refresh(appointment)
        logger.info("Appointment %s moved to %s", appointment.id, status.value)
        self.emit(event, appointment)
        return appointment

    def emit(self, name: str, appointment: Appointment) -> None:
        event = notifications.build_event(name, appointment)
        try:
            self.notifier.notify(event)
        except Exception:
            # the appointment row is already committed at this point
            logger.exception("Failed to dispatch %s for appointment %s", name, appointment.id)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_client_appointments(self, client_id: str) -> List[Appointment]:
        today = parse_date_string(self.now().date_str)
        return list(
            self.session.exec(
                select(Appointment)
                .where(Appointment.client_id == client_id)
                .where(Appointment.date >= today)
                .order_by(Appointment.date, Appointment.start_time)
            ).all()
        )

    def list_guest_appointments(self, access_token: Optional[str]) -> List[Appointment]:
        guest = self.get_guest_by_token(access_token)
        today = parse_date_string(self.now().date_str)
        return list(
            self.session.exec(
                select(Appointment)
                .where(Appointment.guest_client_id == guest.id)
                .where(Appointment.date >= today)
                .order_by(Appointment.date, Appointment.start_time)
            ).all()
        )

    def list_barber_appointments(
        self,
        barber_id: str,
        start: Union[Date, str],
        end: Union[Date, str],
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.barber_id == barber_id)
            .where(Appointment.date >= as_date(start))
            .where(Appointment.date <= as_date(end))
        )
        if status is not None:
            stmt = stmt.where(Appointment.status == status)
        stmt = stmt.order_by(Appointment.date, Appointment.start_time)
        return list(self.session.exec(stmt).all())
