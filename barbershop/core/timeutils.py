# barbershop/core/timeutils.py
"""
Calendar and "HH:mm" helpers for the business clock.

Calendar days are stored as UTC midnight of the day itself, never shifted
through the business timezone. "HH:mm" strings stay strings everywhere except
inside interval arithmetic, where they become minutes since midnight.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Union
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Sao_Paulo"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_date_string(value: str) -> date:
    """Parse "YYYY-MM-DD" as a calendar day."""
    return date.fromisoformat(value)


def to_storage_datetime(day: Union[date, str]) -> datetime:
    """UTC midnight of the calendar day, the persisted form of a date."""
    if isinstance(day, str):
        day = parse_date_string(day)
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def from_storage_datetime(value: datetime) -> str:
    """Read back the calendar day of a stored UTC-midnight timestamp."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_date_br(day: Union[date, str]) -> str:
    """DD/MM/YYYY for user-facing messages."""
    if isinstance(day, str):
        day = parse_date_string(day)
    return day.strftime("%d/%m/%Y")


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    if len(hours) != 2 or len(minutes) != 2:
        raise ValueError(f"invalid time string: {value!r}")
    h, m = int(hours), int(minutes)
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"invalid time string: {value!r}")
    return h * 60 + m


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    # business hours never cross midnight, so no rollover handling
    return minutes_to_time(time_to_minutes(value) + minutes)


@dataclass(frozen=True)
class BusinessNow:
    date_str: str
    minutes: int


def business_now(clock: Clock = utcnow, tz_name: str = DEFAULT_TIMEZONE) -> BusinessNow:
    """Current business date ("YYYY-MM-DD") and minutes since local midnight."""
    local = clock().astimezone(ZoneInfo(tz_name))
    return BusinessNow(
        date_str=local.date().isoformat(),
        minutes=local.hour * 60 + local.minute,
    )


def is_slot_in_past(date_str: str, start_time: str, now: BusinessNow) -> bool:
    """True when the slot does not start strictly after now."""
    if date_str < now.date_str:
        return True
    if date_str > now.date_str:
        return False
    return time_to_minutes(start_time) <= now.minutes


def minutes_until(
    date_str: str,
    start_time: str,
    clock: Clock = utcnow,
    tz_name: str = DEFAULT_TIMEZONE,
) -> float:
    """Signed minutes from now until the start of an appointment."""
    zone = ZoneInfo(tz_name)
    day = parse_date_string(date_str)
    start = datetime.combine(day, time(0, 0), tzinfo=zone) + timedelta(
        minutes=time_to_minutes(start_time)
    )
    delta = start - clock().astimezone(zone)
    return delta.total_seconds() / 60
