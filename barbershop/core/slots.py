# barbershop/core/slots.py

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from barbershop.core.intervals import Interval, overlaps
from barbershop.core.timeutils import BusinessNow, minutes_to_time, time_to_minutes


@dataclass(frozen=True)
class TimeSlot:
    time: str
    available: bool = True


def generate_candidates(
    intervals: Sequence[Interval],
    duration: int,
    granularity: int,
) -> List[str]:
    """
    Every start time on the granularity grid of each interval that still
    fits the whole service. Intervals are never merged, so a slot can not
    straddle a break.
    """
    if duration <= 0 or granularity <= 0:
        raise ValueError("duration and granularity must be positive")

    candidates = []
    for interval in intervals:
        current = interval.start
        while current + duration <= interval.end:
            candidates.append(minutes_to_time(current))
            current += granularity
    return candidates


def drop_past(candidates: Iterable[str], date_str: str, now: BusinessNow) -> List[str]:
    """Only today's candidates are filtered, and only by time of day."""
    if date_str != now.date_str:
        return list(candidates)
    return [c for c in candidates if time_to_minutes(c) > now.minutes]


def filter_conflicts(
    candidates: Iterable[str],
    duration: int,
    booked: Sequence[Interval],
) -> List[TimeSlot]:
    """Flag candidates whose [start, start + duration) hits a booked range."""
    slots = []
    for candidate in candidates:
        slot = Interval.for_slot(candidate, duration)
        taken = any(overlaps(slot.start, slot.end, b.start, b.end) for b in booked)
        slots.append(TimeSlot(time=candidate, available=not taken))
    return slots
