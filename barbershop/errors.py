# barbershop/errors.py
"""
Named booking outcomes.

Services raise these instead of HTTPException or raw driver errors; the app
turns them into `{"error": code, "message": message}` responses.
"""
from typing import Any, Dict, Optional


class BookingError(Exception):
    code = "BOOKING_ERROR"
    message = "Não foi possível concluir a operação"
    status_code = 400

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        if message is not None:
            self.message = message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            body.update(self.details)
        return body


# Input / precondition errors

class PreconditionError(BookingError):
    status_code = 422


class SlotInPast(PreconditionError):
    code = "SLOT_IN_PAST"
    message = "Não é possível agendar um horário que já passou"


class ShopClosed(PreconditionError):
    code = "SHOP_CLOSED"
    message = "A barbearia está fechada neste horário"


class BarberUnavailable(PreconditionError):
    code = "BARBER_UNAVAILABLE"
    message = "O barbeiro não atende neste horário"


class SlotUnavailable(PreconditionError):
    code = "SLOT_UNAVAILABLE"
    message = "Este horário não está disponível para agendamento"


class CancellationReasonRequired(PreconditionError):
    code = "CANCELLATION_REASON_REQUIRED"
    message = "Informe o motivo do cancelamento"


class AppointmentInPast(PreconditionError):
    code = "APPOINTMENT_IN_PAST"
    message = "Não é possível cancelar um agendamento que já começou"


class AppointmentNotStarted(PreconditionError):
    code = "APPOINTMENT_NOT_STARTED"
    message = "Só é possível marcar ausência após o horário do agendamento"
    status_code = 412


class InvalidTimeRange(PreconditionError):
    code = "INVALID_TIME_RANGE"
    message = "Intervalo de horário inválido"


class ClientRequired(PreconditionError):
    code = "CLIENT_REQUIRED"
    message = "Informe o cliente ou os dados do convidado, não ambos"


# Conflict errors

class ConflictError(BookingError):
    status_code = 409


class SlotOccupied(ConflictError):
    code = "SLOT_OCCUPIED"
    message = "Este horário já está ocupado"


class AppointmentNotCancellable(ConflictError):
    code = "APPOINTMENT_NOT_CANCELLABLE"
    message = "Este agendamento não pode ser cancelado"


class AppointmentNotMarkable(ConflictError):
    code = "APPOINTMENT_NOT_MARKABLE"
    message = "Este agendamento não pode ser marcado como ausência"


class AbsenceConflict(ConflictError):
    code = "ABSENCE_CONFLICT"
    message = "Existem agendamentos confirmados no período informado"


# Authorization errors

class AuthorizationError(BookingError):
    status_code = 403


class Unauthorized(AuthorizationError):
    code = "UNAUTHORIZED"
    message = "Você não tem permissão para alterar este agendamento"


class GuestNotFound(AuthorizationError):
    code = "GUEST_NOT_FOUND"
    message = "Cliente não encontrado"
    status_code = 404


# Not-found errors

class NotFoundError(BookingError):
    status_code = 404


class AppointmentNotFound(NotFoundError):
    code = "APPOINTMENT_NOT_FOUND"
    message = "Agendamento não encontrado"


class ServiceNotFound(NotFoundError):
    code = "SERVICE_NOT_FOUND"
    message = "Serviço não encontrado"


class BarberNotFound(NotFoundError):
    code = "BARBER_NOT_FOUND"
    message = "Barbeiro não encontrado"


class RecordNotFound(NotFoundError):
    code = "NOT_FOUND"
    message = "Registro não encontrado"
