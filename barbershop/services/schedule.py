# barbershop/services/schedule.py
"""Weekly hours, absences and shop closures."""
import logging
from dataclasses import dataclass
from datetime import date as Date
from typing import List, Optional, Sequence

from sqlmodel import Session, select

from barbershop.core.intervals import Interval, overlaps
from barbershop.core.status import LIVE_STATUS
from barbershop.core.timeutils import Clock, format_date_br, time_to_minutes, utcnow
from barbershop.errors import AbsenceConflict, InvalidTimeRange, RecordNotFound
from barbershop.models import (
    Appointment,
    BarberAbsence,
    GuestClient,
    Profile,
    Service,
    ShopClosure,
    ShopHours,
    WorkingHours,
)

logger = logging.getLogger(__name__)


@dataclass
class DayHours:
    """One weekday of a weekly schedule as submitted by a barber or admin."""

    day_of_week: int
    is_working: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None


def validate_window(start_time: Optional[str], end_time: Optional[str], allow_empty: bool = False):
    if not start_time and not end_time and allow_empty:
        return
    if not start_time or not end_time:
        raise InvalidTimeRange("Informe o horário de início e de término")
    if time_to_minutes(start_time) >= time_to_minutes(end_time):
        raise InvalidTimeRange("O horário de início deve ser anterior ao de término")


def validate_day(day: DayHours):
    if not 0 <= day.day_of_week <= 6:
        raise InvalidTimeRange("Dia da semana inválido")
    if not day.is_working:
        return
    validate_window(day.start_time, day.end_time)
    if bool(day.break_start) != bool(day.break_end):
        raise InvalidTimeRange("Informe o início e o fim do intervalo")
    if day.break_start:
        validate_window(day.break_start, day.break_end)
        window = Interval.from_times(day.start_time, day.end_time)
        if not window.contains(Interval.from_times(day.break_start, day.break_end)):
            raise InvalidTimeRange("O intervalo deve estar dentro do horário de trabalho")


class ScheduleService:
    def __init__(self, session: Session, clock: Clock = utcnow):
        self.session = session
        self.clock = clock

    # Barber weekly hours

    def get_working_hours(self, barber_id: str) -> List[DayHours]:
        """All seven days, non-working days included."""
        rows = self.session.exec(
            select(WorkingHours).where(WorkingHours.barber_id == barber_id)
        ).all()
        by_day = {row.day_of_week: row for row in rows}
        week = []
        for weekday in range(7):
            row = by_day.get(weekday)
            if row is None:
                week.append(DayHours(day_of_week=weekday, is_working=False))
            else:
                week.append(
                    DayHours(
                        day_of_week=weekday,
                        is_working=True,
                        start_time=row.start_time,
                        end_time=row.end_time,
                        break_start=row.break_start,
                        break_end=row.break_end,
                    )
                )
        return week

    def set_working_hours(self, barber_id: str, days: Sequence[DayHours]) -> List[DayHours]:
        for day in days:
            validate_day(day)

        for day in days:
            row = self.session.exec(
                select(WorkingHours)
                .where(WorkingHours.barber_id == barber_id)
                .where(WorkingHours.day_of_week == day.day_of_week)
            ).first()
            if not day.is_working:
                if row is not None:
                    self.session.delete(row)
                continue
            if row is None:
                row = WorkingHours(barber_id=barber_id, day_of_week=day.day_of_week,
                                   start_time=day.start_time, end_time=day.end_time)
            row.start_time = day.start_time
            row.end_time = day.end_time
            row.break_start = day.break_start
            row.break_end = day.break_end
            self.session.add(row)

        self.session.commit()
        logger.info("Working hours updated for barber %s", barber_id)
        return self.get_working_hours(barber_id)

    # Shop-wide hours

    def get_shop_hours(self) -> List[ShopHours]:
        rows = {row.day_of_week: row for row in self.session.exec(select(ShopHours)).all()}
        return [rows.get(d) or ShopHours(day_of_week=d, is_open=False) for d in range(7)]

    def set_shop_hours(self, days: Sequence[DayHours]) -> List[ShopHours]:
        for day in days:
            validate_day(day)

        for day in days:
            row = self.session.get(ShopHours, day.day_of_week) or ShopHours(day_of_week=day.day_of_week)
            row.is_open = day.is_working
            if day.is_working:
                row.start_time, row.end_time = day.start_time, day.end_time
                row.break_start, row.break_end = day.break_start, day.break_end
            else:
                row.start_time = row.end_time = row.break_start = row.break_end = None
            self.session.add(row)

        self.session.commit()
        logger.info("Shop hours updated")
        return self.get_shop_hours()

    # Shop closures

    def list_shop_closures(self, start: Optional[Date] = None, end: Optional[Date] = None) -> List[ShopClosure]:
        stmt = select(ShopClosure)
        if start is not None:
            stmt = stmt.where(ShopClosure.date >= start)
        if end is not None:
            stmt = stmt.where(ShopClosure.date <= end)
        return list(self.session.exec(stmt.order_by(ShopClosure.date, ShopClosure.start_time)).all())

    def create_shop_closure(self, day: Date, start_time=None, end_time=None, reason=None) -> ShopClosure:
        validate_window(start_time, end_time, allow_empty=True)
        closure = ShopClosure(date=day, start_time=start_time, end_time=end_time,
                              reason=reason, created_at=self.clock())
        self.session.add(closure)
        self.session.commit()
        self.session.refresh(closure)
        logger.info("Shop closure %s created for %s", closure.id, day)
        return closure

    def delete_shop_closure(self, closure_id: str) -> None:
        closure = self.session.get(ShopClosure, closure_id)
        if closure is None:
            raise RecordNotFound("Fechamento não encontrado")
        self.session.delete(closure)
        self.session.commit()

    # Barber absences

    def list_absences(self, barber_id: str, start: Optional[Date] = None, end: Optional[Date] = None) -> List[BarberAbsence]:
        stmt = select(BarberAbsence).where(BarberAbsence.barber_id == barber_id)
        if start is not None:
            stmt = stmt.where(BarberAbsence.date >= start)
        if end is not None:
            stmt = stmt.where(BarberAbsence.date <= end)
        return list(self.session.exec(stmt.order_by(BarberAbsence.date, BarberAbsence.start_time)).all())

    def absence_conflicts(self, barber_id: str, day: Date, start_time=None, end_time=None) -> List[Appointment]:
        confirmed = self.session.exec(
            select(Appointment)
            .where(Appointment.barber_id == barber_id)
            .where(Appointment.date == day)
            .where(Appointment.status == LIVE_STATUS)
            .order_by(Appointment.start_time)
        ).all()
        if not start_time or not end_time:
            return list(confirmed)
        window = Interval.from_times(start_time, end_time)
        return [
            a for a in confirmed
            if overlaps(window.start, window.end, *Interval.from_times(a.start_time, a.end_time))
        ]

    def create_absence(self, barber_id: str, day: Date, start_time=None, end_time=None, reason=None) -> BarberAbsence:
        validate_window(start_time, end_time, allow_empty=True)

        # absences never orphan confirmed bookings
        conflicts = self.absence_conflicts(barber_id, day, start_time, end_time)
        if conflicts:
            raise AbsenceConflict(
                f"Existem agendamentos confirmados em {format_date_br(day)} no período informado",
                details={"conflicts": [self.describe(a) for a in conflicts]},
            )

        now = self.clock()
        absence = BarberAbsence(barber_id=barber_id, date=day, start_time=start_time,
                                end_time=end_time, reason=reason, created_at=now, updated_at=now)
        self.session.add(absence)
        self.session.commit()
        self.session.refresh(absence)
        logger.info("Absence %s created for barber %s on %s", absence.id, barber_id, day)
        return absence

    def delete_absence(self, barber_id: str, absence_id: str) -> None:
        absence = self.session.get(BarberAbsence, absence_id)
        if absence is None or absence.barber_id != barber_id:
            raise RecordNotFound("Ausência não encontrada")
        self.session.delete(absence)
        self.session.commit()

    def describe(self, appointment: Appointment) -> dict:
        service = self.session.get(Service, appointment.service_id)
        client_name = None
        if appointment.client_id:
            client = self.session.get(Profile, appointment.client_id)
            client_name = client.full_name if client else None
        elif appointment.guest_client_id:
            guest = self.session.get(GuestClient, appointment.guest_client_id)
            client_name = guest.full_name if guest else None
        return {
            "id": appointment.id,
            "startTime": appointment.start_time,
            "endTime": appointment.end_time,
            "serviceName": service.name if service else None,
            "clientName": client_name,
        }
