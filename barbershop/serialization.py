# barbershop/serialization.py
"""
Appointment <-> wire form.

`date` goes out as the stored UTC-midnight timestamp of the calendar day
(`2025-12-16T00:00:00.000Z`); timestamps are ISO-8601 UTC with a `Z` suffix.
"""
import json
from datetime import date, datetime, timezone
from typing import Any, Dict

from barbershop.core.timeutils import from_storage_datetime, to_storage_datetime
from barbershop.models import Appointment
from barbershop.schemas import AppointmentData


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)  # SQLite hands back naive UTC
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_storage_date(value: date) -> str:
    stored = to_storage_datetime(value)
    return stored.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_storage_date(value: str) -> date:
    return date.fromisoformat(from_storage_datetime(parse_timestamp(value)))


def to_appointment_data(appointment: Appointment) -> AppointmentData:
    return AppointmentData(
        id=appointment.id,
        client_id=appointment.client_id,
        guest_client_id=appointment.guest_client_id,
        barber_id=appointment.barber_id,
        service_id=appointment.service_id,
        date=format_storage_date(appointment.date),
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status,
        cancel_reason=appointment.cancel_reason,
        created_at=format_timestamp(appointment.created_at),
        updated_at=format_timestamp(appointment.updated_at),
    )


def serialize_appointment(appointment: Appointment) -> Dict[str, Any]:
    return to_appointment_data(appointment).model_dump(by_alias=True, mode="json")


def deserialize_appointment(data: Dict[str, Any]) -> Appointment:
    parsed = AppointmentData.model_validate(data)
    return Appointment(
        id=parsed.id,
        client_id=parsed.client_id,
        guest_client_id=parsed.guest_client_id,
        barber_id=parsed.barber_id,
        service_id=parsed.service_id,
        date=parse_storage_date(parsed.date),
        start_time=parsed.start_time,
        end_time=parsed.end_time,
        status=parsed.status,
        cancel_reason=parsed.cancel_reason,
        created_at=parse_timestamp(parsed.created_at),
        updated_at=parse_timestamp(parsed.updated_at),
    )


def appointment_to_json(appointment: Appointment) -> str:
    return json.dumps(serialize_appointment(appointment))


def json_to_appointment(payload: str) -> Appointment:
    return deserialize_appointment(json.loads(payload))
