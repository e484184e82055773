from __future__ import annotations


class SchedulingError(Exception):
    """Base dos erros de domínio da agenda."""

    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Entrada malformada: campo obrigatório ausente, início >= fim, etc."""

    kind = "validation"
    status_code = 400


class ConflictError(SchedulingError):
    """Reserva dupla ou exceção duplicada para (horário, data)."""

    kind = "conflict"
    status_code = 409


class NotFoundError(SchedulingError):
    kind = "not_found"
    status_code = 404


class AuthorizationError(SchedulingError):
    """Operador sem direito de alterar o atendimento de outro operador."""

    kind = "forbidden"
    status_code = 403


ERRORS_BY_STATUS: dict[int, type[SchedulingError]] = {
    400: ValidationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
}
