# barbershop/core/working_hours.py
"""
Working-hours resolver.

Merges shop hours, shop closures, a barber's weekly hours and the barber's
absences into the open intervals for one barber on one date. Inputs are any
objects exposing the model attributes (SQLModel rows in the app, plain
namespaces in tests).
"""
from typing import Iterable, List, Optional, Sequence

from barbershop.core.intervals import Interval, intersect, subtract


def is_full_day(window) -> bool:
    """Closures and absences without both times block the whole day."""
    return not window.start_time or not window.end_time


def window_interval(window) -> Interval:
    return Interval.from_times(window.start_time, window.end_time)


def break_interval(hours) -> Optional[Interval]:
    if hours.break_start and hours.break_end:
        return Interval.from_times(hours.break_start, hours.break_end)
    return None


def shop_is_open(shop_hours) -> bool:
    return bool(
        shop_hours is not None
        and shop_hours.is_open
        and shop_hours.start_time
        and shop_hours.end_time
    )


def resolve_open_intervals(
    shop_hours,
    closures: Sequence,
    working_hours,
    absences: Sequence,
) -> List[Interval]:
    """Return the chronological, disjoint open intervals for the day."""
    if not shop_is_open(shop_hours):
        return []

    if any(is_full_day(c) for c in closures):
        return []

    if working_hours is None:
        return []

    if any(is_full_day(a) for a in absences):
        return []

    window = intersect(
        Interval.from_times(working_hours.start_time, working_hours.end_time),
        Interval.from_times(shop_hours.start_time, shop_hours.end_time),
    )
    if window is None:
        return []

    intervals = [window]
    for hours in (working_hours, shop_hours):
        pause = break_interval(hours)
        if pause is not None:
            intervals = subtract(intervals, pause)

    cuts: Iterable = list(absences) + list(closures)
    for cut in cuts:
        intervals = subtract(intervals, window_interval(cut))

    return sorted(intervals)
