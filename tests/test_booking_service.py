# tests/test_booking_service.py

import pytest
from sqlmodel import select

from barbershop.core.status import AppointmentStatus
from barbershop.errors import (
    AppointmentInPast,
    AppointmentNotCancellable,
    AppointmentNotFound,
    AppointmentNotMarkable,
    AppointmentNotStarted,
    BarberNotFound,
    BarberUnavailable,
    CancellationReasonRequired,
    ClientRequired,
    GuestNotFound,
    ServiceNotFound,
    ShopClosed,
    SlotInPast,
    SlotOccupied,
    SlotUnavailable,
    Unauthorized,
)
from barbershop.models import Appointment, GuestClient
from barbershop.services import notifications
from barbershop.services.booking import GuestContact

WEDNESDAY = "2025-12-17"
SUNDAY = "2025-12-21"


def book(booking, shop, start_time="10:00", day=WEDNESDAY, service_id=None, **kwargs):
    if "guest" not in kwargs and "client_id" not in kwargs:
        kwargs["client_id"] = shop.client_id
    return booking.create_appointment(
        barber_id=shop.barber_id,
        service_id=service_id or shop.haircut_id,
        day=day,
        start_time=start_time,
        **kwargs,
    )


class TestAvailableSlots:
    def test_open_day(self, booking, shop):
        times = [s.time for s in booking.get_available_slots(WEDNESDAY, shop.barber_id, shop.haircut_id)]
        assert times[:6] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
        assert "12:00" not in times
        assert times[-1] == "17:30"
        assert len(times) == 16

    def test_closed_day_and_unknown_ids(self, booking, shop):
        assert booking.get_available_slots(SUNDAY, shop.barber_id, shop.haircut_id) == []
        assert booking.get_available_slots(WEDNESDAY, "missing", shop.haircut_id) == []
        assert booking.get_available_slots(WEDNESDAY, shop.barber_id, "missing") == []
        assert booking.get_available_slots(WEDNESDAY, shop.barber_id, shop.beard_id) == []

    def test_today_hides_past_starts(self, booking, shop, clock):
        clock.set_local("2025-12-16", "10:10")
        times = [s.time for s in booking.get_available_slots("2025-12-16", shop.barber_id, shop.haircut_id)]
        assert times[0] == "10:30"

    def test_booked_range_is_removed_or_flagged(self, booking, shop):
        book(booking, shop, "10:00", service_id=shop.combo_id)  # 10:00-11:00

        free = [s.time for s in booking.get_available_slots(WEDNESDAY, shop.barber_id, shop.haircut_id)]
        assert "10:00" not in free
        assert "10:30" not in free
        assert "09:30" in free
        assert "11:00" in free

        flagged = {
            s.time: s.available
            for s in booking.get_available_slots(
                WEDNESDAY, shop.barber_id, shop.haircut_id, include_occupied=True
            )
        }
        assert flagged["10:00"] is False
        assert flagged["10:30"] is False
        assert flagged["11:00"] is True

    def test_cancelled_appointment_frees_the_slot(self, booking, shop):
        result = book(booking, shop, "10:00")
        booking.cancel_by_client(result.appointment.id, shop.client_id)
        free = [s.time for s in booking.get_available_slots(WEDNESDAY, shop.barber_id, shop.haircut_id)]
        assert "10:00" in free

    def test_repeated_queries_without_writes_agree(self, booking, shop):
        book(booking, shop, "10:00", service_id=shop.combo_id)

        for include_occupied in (False, True):
            first = booking.get_available_slots(
                WEDNESDAY, shop.barber_id, shop.haircut_id, include_occupied=include_occupied
            )
            second = booking.get_available_slots(
                WEDNESDAY, shop.barber_id, shop.haircut_id, include_occupied=include_occupied
            )
            assert first == second
            assert first


class TestCreateAppointment:
    def test_books_client_appointment(self, booking, shop, notifier):
        result = book(booking, shop, "10:00", service_id=shop.combo_id)
        appointment = result.appointment

        assert appointment.status == AppointmentStatus.CONFIRMED
        assert appointment.start_time == "10:00"
        assert appointment.end_time == "11:00"
        assert appointment.client_id == shop.client_id
        assert appointment.guest_client_id is None
        assert result.access_token is None

        assert notifier.names() == [notifications.APPOINTMENT_CREATED]
        assert notifier.events[0].recipient.kind == "barber"
        assert notifier.events[0].recipient.id == shop.barber_id

    def test_requires_exactly_one_client(self, booking, shop):
        with pytest.raises(ClientRequired):
            booking.create_appointment(shop.barber_id, shop.haircut_id, WEDNESDAY, "10:00")
        with pytest.raises(ClientRequired):
            booking.create_appointment(
                shop.barber_id, shop.haircut_id, WEDNESDAY, "10:00",
                client_id=shop.client_id, guest=GuestContact("Ana", "11987654321"),
            )

    def test_unknown_service_and_barber(self, booking, shop):
        with pytest.raises(ServiceNotFound):
            book(booking, shop, service_id="missing")
        with pytest.raises(BarberNotFound):
            booking.create_appointment("missing", shop.haircut_id, WEDNESDAY, "10:00", client_id=shop.client_id)

    def test_slot_in_past(self, booking, shop, clock):
        clock.set_local("2025-12-16", "10:00")
        with pytest.raises(SlotInPast):
            book(booking, shop, "09:00", day="2025-12-16")
        with pytest.raises(SlotInPast):
            book(booking, shop, "10:00", day="2025-12-16")

    @pytest.mark.parametrize(
        "day, start_time, error",
        [
            (SUNDAY, "10:00", ShopClosed),
            (WEDNESDAY, "12:00", ShopClosed),
            (WEDNESDAY, "17:45", ShopClosed),
            (WEDNESDAY, "10:15", SlotUnavailable),
        ],
    )
    def test_policy_rejections(self, booking, shop, day, start_time, error):
        with pytest.raises(error):
            book(booking, shop, start_time, day=day)

    def test_service_not_offered_by_barber(self, booking, shop):
        with pytest.raises(BarberUnavailable):
            book(booking, shop, "10:00", service_id=shop.beard_id)

    def test_double_booking(self, booking, shop, session):
        book(booking, shop, "10:00")
        with pytest.raises(SlotOccupied):
            book(booking, shop, "10:00", client_id=shop.other_client_id)

        # a longer service starting earlier overlaps the same booking
        with pytest.raises(SlotOccupied):
            book(booking, shop, "09:30", service_id=shop.combo_id, client_id=shop.other_client_id)

        assert len(session.exec(select(Appointment)).all()) == 1

    def test_lost_race_maps_unique_index_to_slot_occupied(self, booking, shop, monkeypatch, notifier):
        book(booking, shop, "10:00")
        # both checks pass, as when two requests interleave
        monkeypatch.setattr(booking, "has_overlap", lambda *args: False)

        with pytest.raises(SlotOccupied):
            book(booking, shop, "10:00", client_id=shop.other_client_id)
        assert notifier.names() == [notifications.APPOINTMENT_CREATED]

    def test_guest_booking_creates_guest_with_token(self, booking, shop, session):
        result = book(booking, shop, "10:00", guest=GuestContact("Ana Souza", "(11) 98765-4321"))

        guest = session.get(GuestClient, result.appointment.guest_client_id)
        assert guest.phone == "11987654321"
        assert result.access_token == guest.access_token
        assert result.appointment.client_id is None

    def test_returning_guest_is_reused_and_token_rotated(self, booking, shop):
        first = book(booking, shop, "10:00", guest=GuestContact("Ana", "11987654321"))
        second = book(booking, shop, "11:00", guest=GuestContact("Ana Souza", "11 98765 4321"))

        assert first.appointment.guest_client_id == second.appointment.guest_client_id
        assert first.access_token != second.access_token

        with pytest.raises(GuestNotFound):
            booking.list_guest_appointments(first.access_token)
        assert len(booking.list_guest_appointments(second.access_token)) == 2

    def test_walk_in_for_known_guest_keeps_their_token(self, booking, shop):
        own = book(booking, shop, "10:00", guest=GuestContact("Ana", "11987654321"))
        walk_in = book(
            booking, shop, "14:00",
            guest=GuestContact("Ana Souza", "11987654321"), issue_token=False,
        )

        assert walk_in.access_token is None
        assert walk_in.appointment.guest_client_id == own.appointment.guest_client_id
        assert len(booking.list_guest_appointments(own.access_token)) == 2

        cancelled = booking.cancel_by_guest(own.appointment.id, own.access_token)
        assert cancelled.status == AppointmentStatus.CANCELLED_BY_CLIENT

    def test_walk_in_for_new_guest_returns_no_token(self, booking, shop, session):
        result = book(
            booking, shop, "10:00", guest=GuestContact("Ana", "11987654321"), issue_token=False
        )
        assert result.access_token is None
        guest = session.get(GuestClient, result.appointment.guest_client_id)
        assert guest.access_token is not None

    def test_guest_created_concurrently_is_reused(self, booking, shop, session, monkeypatch):
        first = book(booking, shop, "10:00", guest=GuestContact("Ana", "11987654321"))

        # the first lookup misses the row, as when another request inserts it meanwhile
        lookup = booking.find_guest_by_phone
        calls = []

        def racing_lookup(phone):
            calls.append(phone)
            if len(calls) == 1:
                return None
            return lookup(phone)

        monkeypatch.setattr(booking, "find_guest_by_phone", racing_lookup)
        second = book(booking, shop, "11:00", guest=GuestContact("Ana Souza", "11987654321"))

        assert len(calls) == 2
        assert second.appointment.guest_client_id == first.appointment.guest_client_id
        assert len(session.exec(select(GuestClient)).all()) == 1
        assert len(session.exec(select(Appointment)).all()) == 2

    def test_notifier_failure_does_not_undo_booking(self, booking, shop, session):
        class Broken:
            def notify(self, event):
                raise RuntimeError("smtp down")

        booking.notifier = Broken()
        result = book(booking, shop, "10:00")
        assert session.get(Appointment, result.appointment.id) is not None


class TestLifecycle:
    def test_client_cancels(self, booking, shop, notifier):
        appointment = book(booking, shop, "10:00").appointment
        cancelled = booking.cancel_by_client(appointment.id, shop.client_id)

        assert cancelled.status == AppointmentStatus.CANCELLED_BY_CLIENT
        assert notifier.names()[-1] == notifications.APPOINTMENT_CANCELLED_BY_CLIENT
        assert notifier.events[-1].recipient.kind == "barber"

        with pytest.raises(AppointmentNotCancellable):
            booking.cancel_by_client(appointment.id, shop.client_id)

    def test_client_can_not_cancel_someone_else(self, booking, shop):
        appointment = book(booking, shop, "10:00").appointment
        with pytest.raises(Unauthorized):
            booking.cancel_by_client(appointment.id, shop.other_client_id)
        with pytest.raises(AppointmentNotFound):
            booking.cancel_by_client("missing", shop.client_id)

    def test_cancel_after_start_is_rejected(self, booking, shop, clock):
        appointment = book(booking, shop, "10:00").appointment
        clock.set_local(WEDNESDAY, "10:05")
        with pytest.raises(AppointmentInPast):
            booking.cancel_by_client(appointment.id, shop.client_id)

    def test_barber_cancel_needs_reason(self, booking, shop, notifier):
        appointment = book(booking, shop, "10:00").appointment

        with pytest.raises(CancellationReasonRequired):
            booking.cancel_by_barber(appointment.id, shop.barber_id, "   ")
        with pytest.raises(CancellationReasonRequired):
            booking.cancel_by_barber(appointment.id, shop.barber_id, None)

        cancelled = booking.cancel_by_barber(appointment.id, shop.barber_id, "  Imprevisto  ")
        assert cancelled.status == AppointmentStatus.CANCELLED_BY_BARBER
        assert cancelled.cancel_reason == "Imprevisto"
        assert notifier.events[-1].name == notifications.APPOINTMENT_CANCELLED_BY_BARBER
        assert notifier.events[-1].recipient.kind == "client"

    def test_other_barber_can_not_cancel(self, booking, shop):
        appointment = book(booking, shop, "10:00").appointment
        with pytest.raises(Unauthorized):
            booking.cancel_by_barber(appointment.id, "another-barber", "Imprevisto")

    def test_guest_cancels_with_token_only(self, booking, shop):
        ana = book(booking, shop, "10:00", guest=GuestContact("Ana", "11987654321"))
        bia = book(booking, shop, "11:00", guest=GuestContact("Bia", "11912345678"))

        with pytest.raises(GuestNotFound):
            booking.cancel_by_guest(ana.appointment.id, "wrong-token")
        with pytest.raises(GuestNotFound):
            booking.cancel_by_guest(ana.appointment.id, None)
        with pytest.raises(Unauthorized):
            booking.cancel_by_guest(ana.appointment.id, bia.access_token)

        cancelled = booking.cancel_by_guest(ana.appointment.id, ana.access_token)
        assert cancelled.status == AppointmentStatus.CANCELLED_BY_CLIENT

    def test_no_show_rules(self, booking, shop, clock, notifier):
        appointment = book(booking, shop, "10:00").appointment

        with pytest.raises(AppointmentNotStarted):
            booking.mark_no_show(appointment.id, shop.barber_id)
        with pytest.raises(Unauthorized):
            booking.mark_no_show(appointment.id, "another-barber")

        clock.set_local(WEDNESDAY, "10:20")
        marked = booking.mark_no_show(appointment.id, shop.barber_id)
        assert marked.status == AppointmentStatus.NO_SHOW
        assert notifier.events[-1].name == notifications.APPOINTMENT_NO_SHOW
        assert notifier.events[-1].recipient.id == shop.client_id

        with pytest.raises(AppointmentNotMarkable):
            booking.mark_no_show(appointment.id, shop.barber_id)


class TestListings:
    def test_client_sees_upcoming_only(self, booking, shop, clock):
        book(booking, shop, "10:00")
        book(booking, shop, "11:00", day="2025-12-18")
        assert [a.start_time for a in booking.list_client_appointments(shop.client_id)] == ["10:00", "11:00"]

        clock.set_local("2025-12-18", "08:00")
        assert len(booking.list_client_appointments(shop.client_id)) == 1

    def test_barber_range_and_status_filter(self, booking, shop):
        first = book(booking, shop, "10:00").appointment
        book(booking, shop, "11:00")
        book(booking, shop, "10:00", day="2025-12-19")
        booking.cancel_by_client(first.id, shop.client_id)

        week = booking.list_barber_appointments(shop.barber_id, WEDNESDAY, "2025-12-19")
        assert len(week) == 3
        confirmed = booking.list_barber_appointments(
            shop.barber_id, WEDNESDAY, WEDNESDAY, AppointmentStatus.CONFIRMED
        )
        assert [a.start_time for a in confirmed] == ["11:00"]
