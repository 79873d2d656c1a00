# barbershop/core/policy.py
"""
Names the reason a requested start time can not be booked.

Runs on the same inputs as the resolver so the booking path re-derives
availability instead of trusting the slot list the client saw.
"""
from typing import Optional, Sequence

from barbershop.core.intervals import Interval, overlaps
from barbershop.core.slots import generate_candidates
from barbershop.core.timeutils import BusinessNow, is_slot_in_past
from barbershop.core.working_hours import (
    break_interval,
    is_full_day,
    resolve_open_intervals,
    shop_is_open,
    window_interval,
)
from barbershop.errors import (
    BarberUnavailable,
    BookingError,
    ShopClosed,
    SlotInPast,
    SlotUnavailable,
)


def _hits_any(slot: Interval, windows: Sequence) -> bool:
    return any(
        overlaps(slot.start, slot.end, w.start, w.end)
        for w in (window_interval(x) for x in windows)
    )


def shop_slot_error(slot: Interval, shop_hours, closures: Sequence) -> Optional[BookingError]:
    if not shop_is_open(shop_hours):
        return ShopClosed()
    if not Interval.from_times(shop_hours.start_time, shop_hours.end_time).contains(slot):
        return ShopClosed()
    pause = break_interval(shop_hours)
    if pause is not None and overlaps(slot.start, slot.end, pause.start, pause.end):
        return ShopClosed()
    if any(is_full_day(c) for c in closures):
        return ShopClosed()
    if _hits_any(slot, closures):
        return ShopClosed()
    return None


def barber_slot_error(
    slot: Interval,
    working_hours,
    absences: Sequence,
    offers_service: bool = True,
) -> Optional[BookingError]:
    if working_hours is None or not offers_service:
        return BarberUnavailable()
    if not Interval.from_times(working_hours.start_time, working_hours.end_time).contains(slot):
        return BarberUnavailable()
    if any(is_full_day(a) for a in absences):
        return BarberUnavailable()
    if _hits_any(slot, absences):
        return BarberUnavailable()
    return None


def booking_policy_error(
    *,
    date_str: str,
    start_time: str,
    duration: int,
    granularity: int,
    now: BusinessNow,
    shop_hours,
    closures: Sequence,
    working_hours,
    absences: Sequence,
    offers_service: bool = True,
) -> Optional[BookingError]:
    """First failing rule, in order: past, shop, barber, grid."""
    if is_slot_in_past(date_str, start_time, now):
        return SlotInPast()

    slot = Interval.for_slot(start_time, duration)

    error = shop_slot_error(slot, shop_hours, closures)
    if error is not None:
        return error

    error = barber_slot_error(slot, working_hours, absences, offers_service)
    if error is not None:
        return error

    intervals = resolve_open_intervals(shop_hours, closures, working_hours, absences)
    if start_time not in generate_candidates(intervals, duration, granularity):
        return SlotUnavailable()
    return None
