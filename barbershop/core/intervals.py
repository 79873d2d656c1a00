# barbershop/core/intervals.py

from typing import Iterable, List, NamedTuple, Optional

from barbershop.core.timeutils import minutes_to_time, time_to_minutes


class Interval(NamedTuple):
    """Half-open [start, end) range in minutes since midnight."""

    start: int
    end: int

    @classmethod
    def from_times(cls, start_time: str, end_time: str) -> "Interval":
        return cls(time_to_minutes(start_time), time_to_minutes(end_time))

    @classmethod
    def for_slot(cls, start_time: str, duration: int) -> "Interval":
        start = time_to_minutes(start_time)
        return cls(start, start + duration)

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{minutes_to_time(self.start)}-{minutes_to_time(self.end)}"


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    # shared endpoints do not overlap
    return a_start < b_end and b_start < a_end


def intersect(a: Interval, b: Interval) -> Optional[Interval]:
    result = Interval(max(a.start, b.start), min(a.end, b.end))
    return None if result.is_empty else result


def subtract(intervals: Iterable[Interval], cut: Interval) -> List[Interval]:
    """Remove `cut` from every interval, dropping zero-length leftovers."""
    result = []
    for current in intervals:
        if not overlaps(current.start, current.end, cut.start, cut.end):
            result.append(current)
            continue
        left = Interval(current.start, cut.start)
        right = Interval(cut.end, current.end)
        if not left.is_empty:
            result.append(left)
        if not right.is_empty:
            result.append(right)
    return result
